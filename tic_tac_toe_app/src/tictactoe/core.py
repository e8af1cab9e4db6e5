import logging
from enum import Enum
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class Cell(str, Enum):
    EMPTY = ""
    X = "X"
    O = "O"


Board = Tuple[Cell, ...]

BOARD_SIZE = 9

# Rows top-to-bottom, columns left-to-right, then the two diagonals.
WIN_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),
    (0, 3, 6), (1, 4, 7), (2, 5, 8),
    (0, 4, 8), (2, 4, 6),
)

EMPTY_BOARD: Board = (Cell.EMPTY,) * BOARD_SIZE


# PUBLIC_INTERFACE
def winning_line(board: Board) -> Optional[Tuple[int, int, int]]:
    """Returns the first completed triple, or None."""
    for a, b, c in WIN_LINES:
        if board[a] != Cell.EMPTY and board[a] == board[b] == board[c]:
            return a, b, c
    return None


# PUBLIC_INTERFACE
def compute_winner(board: Board) -> Optional[Cell]:
    """Checks for a winner. Returns Cell.X, Cell.O, or None."""
    line = winning_line(board)
    if line is None:
        return None
    return board[line[0]]


class Game:
    """Tic Tac Toe game holding every board snapshot and a pointer to the live one.

    Invalid intents are ignored: play() and jump_to() return False and leave
    the state untouched.
    """

    def __init__(self):
        self._history: List[Board] = [EMPTY_BOARD]
        self._current_move = 0
        self._listeners: List[Callable[["Game"], None]] = []

    @property
    def current_move(self) -> int:
        return self._current_move

    # PUBLIC_INTERFACE
    def current_board(self) -> Board:
        return self._history[self._current_move]

    # PUBLIC_INTERFACE
    def history(self) -> Tuple[Board, ...]:
        return tuple(self._history)

    # PUBLIC_INTERFACE
    def next_mark(self) -> Cell:
        """X moves on even pointers, O on odd ones."""
        return Cell.X if self._current_move % 2 == 0 else Cell.O

    # PUBLIC_INTERFACE
    def winner(self) -> Optional[Cell]:
        return compute_winner(self.current_board())

    # PUBLIC_INTERFACE
    def is_draw(self) -> bool:
        board = self.current_board()
        return all(cell != Cell.EMPTY for cell in board) and compute_winner(board) is None

    # PUBLIC_INTERFACE
    def status(self) -> str:
        winner = self.winner()
        if winner is not None:
            return f"winner: {winner.value}"
        return f"next player: {self.next_mark().value}"

    # PUBLIC_INTERFACE
    def play(self, cell_index: int) -> bool:
        """Place the next mark on the live board. Returns True if accepted."""
        if isinstance(cell_index, bool) or not isinstance(cell_index, int) or not 0 <= cell_index < BOARD_SIZE:
            logger.debug(f"Refused play: cell {cell_index!r} out of range")
            return False
        board = self.current_board()
        if board[cell_index] != Cell.EMPTY:
            logger.debug(f"Refused play: cell {cell_index} already holds {board[cell_index].value}")
            return False
        if compute_winner(board) is not None:
            logger.debug(f"Refused play: game already won at move {self._current_move}")
            return False

        mark = self.next_mark()
        next_board = board[:cell_index] + (mark,) + board[cell_index + 1:]
        self._history = self._history[:self._current_move + 1] + [next_board]
        self._current_move = len(self._history) - 1
        logger.debug(f"{mark.value} played cell {cell_index}, now at move {self._current_move}")
        self._notify()
        return True

    # PUBLIC_INTERFACE
    def jump_to(self, move_index: int) -> bool:
        """Move the pointer to an earlier or later snapshot. Returns True if accepted."""
        if isinstance(move_index, bool) or not isinstance(move_index, int) or not 0 <= move_index < len(self._history):
            logger.debug(f"Refused jump: move {move_index!r} outside history of {len(self._history)}")
            return False
        self._current_move = move_index
        logger.debug(f"Jumped to move {move_index}")
        self._notify()
        return True

    # PUBLIC_INTERFACE
    def subscribe(self, listener: Callable[["Game"], None]) -> Callable[[], None]:
        """Register a callback run after every accepted intent. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self):
        for listener in list(self._listeners):
            listener(self)


# PUBLIC_INTERFACE
def move_label(move_index: int) -> str:
    """Caption for the history button of a snapshot."""
    if move_index > 0:
        return f"Go to move #{move_index}"
    return "Go to game start"
