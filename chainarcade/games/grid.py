"""Tic-tac-toe: 3x3 grid, the requested index is the cell itself."""

from chainarcade.core.exceptions import IllegalPositionError
from chainarcade.core.models import Board
from chainarcade.core.shared_types import Cell, GameKind
from chainarcade.games.base import LineGameRules
from chainarcade.games.geometry import BoardGeometry


class TicTacToeRules(LineGameRules):
    kind = GameKind.TICTACTOE
    geometry = BoardGeometry(width=3, height=3, win_length=3)

    def target_cell(self, board: Board, position: int) -> int:
        if not 0 <= position < self.board_size:
            raise IllegalPositionError(
                f"Cell {position} is off the board (0-{self.board_size - 1})."
            )
        if board[position] != Cell.EMPTY:
            raise IllegalPositionError(f"Cell {position} is already taken.")
        return position

    def legal_positions(self, board: Board) -> frozenset[int]:
        return frozenset(i for i, cell in enumerate(board) if cell == Cell.EMPTY)

    def can_place(self, board: Board, cell: int) -> bool:
        return 0 <= cell < self.board_size and board[cell] == Cell.EMPTY
