import asyncio
import logging
from pathlib import Path
from typing import Dict

import uvicorn
from fastapi import FastAPI, WebSocket, WebSocketDisconnect, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError

from .config import CORS_ORIGINS, HOST, LOG_LEVEL, MAX_GAMES, PORT, configure_logging
from .core import Cell, Game, move_label, winning_line
from .models import GameStateResponse, JumpRequest, PlayRequest, WsIntent

logger = logging.getLogger(__name__)

# In-memory game store, insertion ordered so the oldest game is evicted first.
games_db: Dict[int, Game] = {}
game_id_counter = 1

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

app = FastAPI(
    title="Tic Tac Toe Time Travel",
    description="Tic Tac Toe with a full move history. Any earlier move can be revisited and played over.",
    version="0.1.0",
    openapi_tags=[
        {"name": "game", "description": "Start games, play moves and jump through history"},
        {"name": "ui", "description": "Server-rendered game page"},
        {"name": "ws", "description": "Websockets for real-time updates"},
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


##---- Utility Functions ----##
def _cell_value(cell: Cell):
    return cell.value if cell != Cell.EMPTY else None


def create_game() -> int:
    """Register a fresh game, evicting the oldest one past MAX_GAMES."""
    global game_id_counter
    gid = game_id_counter
    games_db[gid] = Game()
    game_id_counter += 1
    while len(games_db) > MAX_GAMES:
        evicted = next(iter(games_db))
        del games_db[evicted]
        logger.info(f"Evicted game {evicted}")
    logger.info(f"Started game {gid}")
    return gid


def get_game(game_id: int) -> Game:
    game = games_db.get(game_id)
    if game is None:
        logger.warning(f"Unknown game {game_id}")
        raise HTTPException(status_code=404, detail="Game not found")
    return game


# PUBLIC_INTERFACE
def game_state(game_id: int, game: Game, accepted: bool = True) -> GameStateResponse:
    """Build the rendering projection of a game."""
    winner = game.winner()
    line = winning_line(game.current_board())
    history = game.history()
    return GameStateResponse(
        game_id=game_id,
        board=[_cell_value(cell) for cell in game.current_board()],
        history=[[_cell_value(cell) for cell in board] for board in history],
        current_move=game.current_move,
        status=game.status(),
        winner=winner.value if winner is not None else None,
        winning_line=list(line) if line is not None else None,
        next_player=game.next_mark().value if winner is None else None,
        is_draw=game.is_draw(),
        moves=[move_label(move) for move in range(len(history))],
        accepted=accepted,
    )


@app.get("/", tags=["health"])
def health_check():
    """Health check route"""
    return {"message": "Healthy"}


# PUBLIC_INTERFACE
@app.post("/new_game", response_model=int, tags=["game"], summary="Start new game")
async def start_game():
    """Start a new game with an empty board and X to move. Returns: game ID."""
    return create_game()


# PUBLIC_INTERFACE
@app.get("/game_state/{game_id}", response_model=GameStateResponse, tags=["game"], summary="Get current game state")
async def get_game_state(game_id: int):
    """Get the live board, the whole history and the status of a game."""
    return game_state(game_id, get_game(game_id))


# PUBLIC_INTERFACE
@app.post("/play", response_model=GameStateResponse, tags=["game"], summary="Play a move")
async def play(request: PlayRequest):
    """Place the next mark on the live board.

    Occupied cells, out-of-range cells and moves after a win are ignored;
    the response then carries accepted=False and the unchanged state.
    """
    game = get_game(request.game_id)
    accepted = game.play(request.cell)
    return game_state(request.game_id, game, accepted=accepted)


# PUBLIC_INTERFACE
@app.post("/jump_to", response_model=GameStateResponse, tags=["game"], summary="Jump to a move")
async def jump_to(request: JumpRequest):
    """Make an earlier (or later) snapshot live. History is kept until the next play."""
    game = get_game(request.game_id)
    accepted = game.jump_to(request.move)
    return game_state(request.game_id, game, accepted=accepted)


##---- Server-rendered UI ----##
@app.get("/games", tags=["ui"], summary="Open a new game page")
async def new_game_page():
    gid = create_game()
    return RedirectResponse(url=f"/games/{gid}", status_code=303)


@app.get("/games/{game_id}", response_class=HTMLResponse, tags=["ui"], summary="Game page")
async def game_page(request: Request, game_id: int):
    """Board, status line and one button per history entry."""
    state = game_state(game_id, get_game(game_id))
    return templates.TemplateResponse(request, "game.html", {"state": state})


@app.post("/games/{game_id}/play/{cell}", tags=["ui"], summary="Cell clicked")
async def game_page_play(game_id: int, cell: int):
    get_game(game_id).play(cell)
    return RedirectResponse(url=f"/games/{game_id}", status_code=303)


@app.post("/games/{game_id}/jump/{move}", tags=["ui"], summary="History button clicked")
async def game_page_jump(game_id: int, move: int):
    get_game(game_id).jump_to(move)
    return RedirectResponse(url=f"/games/{game_id}", status_code=303)


##---- Websocket ----##
async def _receive_intents(websocket: WebSocket, game_id: int, game: Game):
    while True:
        data = await websocket.receive_text()
        if data == "ping":
            await websocket.send_text("pong")
            continue
        try:
            intent = WsIntent.model_validate_json(data)
        except ValidationError:
            await websocket.send_json({"error": "Invalid intent"})
            continue
        if intent.action == "play":
            accepted = game.play(intent.cell)
        else:
            accepted = game.jump_to(intent.move)
        # Accepted intents reach the client through the subscription.
        if not accepted:
            await websocket.send_json(game_state(game_id, game, accepted=False).model_dump())


async def _push_updates(websocket: WebSocket, updates: asyncio.Queue):
    while True:
        payload = await updates.get()
        await websocket.send_json(payload)


# PUBLIC_INTERFACE
@app.websocket("/ws/game/{game_id}")
async def websocket_game_updates(websocket: WebSocket, game_id: int):
    """
    WebSocket carrying game state. Usage: connect to ws://host/ws/game/{game_id}.
    The state is sent on connect and after every change to the game, whichever client made it.

    Send 'ping' for a pong, or a JSON intent: {"action": "play", "cell": 4} / {"action": "jump_to", "move": 2}.
    """
    await websocket.accept()
    game = games_db.get(game_id)
    if game is None:
        await websocket.send_text("Invalid game_id")
        await websocket.close()
        return

    loop = asyncio.get_running_loop()
    updates: asyncio.Queue = asyncio.Queue()

    def on_change(changed: Game):
        # Intents may arrive on another thread (HTTP handlers), hand off to this loop.
        loop.call_soon_threadsafe(updates.put_nowait, game_state(game_id, changed).model_dump())

    unsubscribe = game.subscribe(on_change)
    try:
        await websocket.send_json(game_state(game_id, game).model_dump())
        receiver = asyncio.create_task(_receive_intents(websocket, game_id, game))
        sender = asyncio.create_task(_push_updates(websocket, updates))
        done, pending = await asyncio.wait({receiver, sender}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            task.result()
    except WebSocketDisconnect:
        logger.debug(f"Websocket for game {game_id} disconnected")
    finally:
        unsubscribe()


# Misc: Docs route for websocket usage notes
@app.get("/websocket_info", tags=["ws"], summary="Get websocket usage instructions")
def websocket_info():
    """Instructions for real-time connection via websocket."""
    return {
        "usage":
            "Connect using WebSocket at ws://HOST/ws/game/{game_id} to receive game state updates in real-time. "
            "Send 'ping' for a pong, or a JSON intent such as {\"action\": \"play\", \"cell\": 4} "
            "or {\"action\": \"jump_to\", \"move\": 2}."
    }


def run():
    """Console entry point: serve the app with uvicorn."""
    configure_logging()
    uvicorn.run(app, host=HOST, port=PORT, log_level=LOG_LEVEL.lower())
