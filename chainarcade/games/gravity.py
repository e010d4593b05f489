"""
Connect-four: 7 columns x 6 rows, pieces drop to the lowest empty row of the chosen column.

The player picks a column, not a cell. Row 0 is the top row, so a column is full as soon as its top cell is taken.
"""

from typing import Optional

from chainarcade.core.exceptions import IllegalPositionError
from chainarcade.core.models import Board
from chainarcade.core.shared_types import Cell, GameKind
from chainarcade.games.base import LineGameRules
from chainarcade.games.geometry import BoardGeometry, Coordinate


class ConnectFourRules(LineGameRules):
    kind = GameKind.CONNECT4
    geometry = BoardGeometry(width=7, height=6, win_length=4)

    def target_cell(self, board: Board, position: int) -> int:
        """Map a column to the cell its piece will land in."""
        if not 0 <= position < self.geometry.width:
            raise IllegalPositionError(
                f"Column {position} does not exist (0-{self.geometry.width - 1})."
            )
        landing = self._landing_cell(board, position)
        if landing is None:
            raise IllegalPositionError(f"Column {position} is full.")
        return landing

    def legal_positions(self, board: Board) -> frozenset[int]:
        return frozenset(
            column
            for column in range(self.geometry.width)
            if board[self.geometry.cell_index(0, column)] == Cell.EMPTY
        )

    def can_place(self, board: Board, cell: int) -> bool:
        """A mark can only appear on the cell a drop into its column would reach right now."""
        if not 0 <= cell < self.board_size:
            return False
        column = Coordinate.from_index(cell, self.geometry.width).column
        return self._landing_cell(board, column) == cell

    def _landing_cell(self, board: Board, column: int) -> Optional[int]:
        """Lowest empty cell of the column (scan bottom-up)."""
        for cell in reversed(self.geometry.column_cells(column)):
            if board[cell] == Cell.EMPTY:
                return cell
        return None
