from pydantic import BaseModel, Field
from typing import List, Optional, Literal


# PUBLIC_INTERFACE
class PlayRequest(BaseModel):
    """Request model for placing the next mark."""
    game_id: int = Field(..., description="Game session ID.")
    cell: int = Field(..., description="Cell index 0-8, row-major. Other values are ignored by the game.")


# PUBLIC_INTERFACE
class JumpRequest(BaseModel):
    """Request model for travelling to a snapshot in the move history."""
    game_id: int = Field(..., description="Game session ID.")
    move: int = Field(..., description="History index, 0 being the game start.")


# PUBLIC_INTERFACE
class WsIntent(BaseModel):
    """Intent sent over the game websocket."""
    action: Literal["play", "jump_to"]
    cell: Optional[int] = None
    move: Optional[int] = None


# PUBLIC_INTERFACE
class GameStateResponse(BaseModel):
    """Projection of a game for rendering; returned after every read or intent."""
    game_id: int
    board: List[Optional[str]] = Field(..., description="9 cells, row-major: X, O, or None.")
    history: List[List[Optional[str]]] = Field(..., description="Every snapshot since the game start.")
    current_move: int
    status: str
    winner: Optional[str] = None
    winning_line: Optional[List[int]] = None
    next_player: Optional[str] = None
    is_draw: bool = False
    moves: List[str] = Field(..., description="History button labels, one per snapshot.")
    accepted: bool = Field(default=True, description="False when the intent was ignored.")
