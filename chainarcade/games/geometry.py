"""
Board geometry shared by the rule modules.

Boards are flat sequences as returned by the ledger: index = row * width + column, row 0 is the top row.
"""

from dataclasses import dataclass
from typing import Optional, Self

from chainarcade.core.models import Board
from chainarcade.core.shared_types import Cell

Vector = tuple[int, int]

# Half of the eight compass directions is enough: a line found walking right is the same line walking left.
LINE_DIRECTIONS: list[Vector] = [(0, 1), (1, 0), (1, 1), (1, -1)]


@dataclass(frozen=True)
class Coordinate:
    row: int
    column: int

    @classmethod
    def from_index(cls, index: int, width: int) -> Self:
        return cls(index // width, index % width)

    def to_index(self, width: int) -> int:
        return self.row * width + self.column


@dataclass(frozen=True)
class BoardGeometry:
    width: int
    height: int
    win_length: int

    @property
    def size(self) -> int:
        return self.width * self.height

    def empty_board(self) -> Board:
        return tuple(Cell.EMPTY for _ in range(self.size))

    def contains(self, coordinate: Coordinate) -> bool:
        return 0 <= coordinate.row < self.height and 0 <= coordinate.column < self.width

    def cell_index(self, row: int, column: int) -> int:
        return Coordinate(row, column).to_index(self.width)

    def column_cells(self, column: int) -> list[int]:
        """Cell indices of one column, top row first."""
        return [self.cell_index(row, column) for row in range(self.height)]

    def winning_mark(self, board: Board) -> Optional[Cell]:
        """
        Raycasting over the board
        ---

        From every occupied cell, walk along each line direction while the mark stays the same.
        The first run reaching `win_length` decides the mark. Returns None if no such run exists.
        """
        for index, mark in enumerate(board):
            if mark == Cell.EMPTY:
                continue
            start = Coordinate.from_index(index, self.width)
            for dr, dc in LINE_DIRECTIONS:
                run = 1
                row, column = start.row, start.column
                while run < self.win_length:
                    row += dr
                    column += dc
                    target = Coordinate(row, column)
                    if not self.contains(target) or board[target.to_index(self.width)] != mark:
                        break
                    run += 1
                if run == self.win_length:
                    return Cell(mark)
        return None
