import logging
import os

HOST = os.getenv("TICTACTOE_HOST", "127.0.0.1")
PORT = int(os.getenv("TICTACTOE_PORT", "8000"))

LOG_LEVEL = os.getenv("TICTACTOE_LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = [origin.strip() for origin in os.getenv("TICTACTOE_CORS_ORIGINS", "*").split(",") if origin.strip()]

# Games live in memory only; the oldest one is dropped past this bound.
MAX_GAMES = int(os.getenv("TICTACTOE_MAX_GAMES", "100"))


def configure_logging(level: str = LOG_LEVEL):
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
