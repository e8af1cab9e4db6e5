"""
Tic Tac Toe with move history and time travel.

The game engine lives in core; main exposes it as a FastAPI app with a
server-rendered page, a JSON API and a websocket.
"""

from .core import Cell, Game, WIN_LINES, compute_winner, winning_line, move_label

__version__ = "0.1.0"
__all__ = [
    "Cell",
    "Game",
    "WIN_LINES",
    "compute_winner",
    "winning_line",
    "move_label",
]
