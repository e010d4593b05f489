"""Behaviour shared by every line-forming game: turn parity and (advisory) terminal detection."""

from typing import Optional

from chainarcade.core.models import Board, Outcome
from chainarcade.core.shared_types import Cell, GameKind, Seat
from chainarcade.games.geometry import BoardGeometry


def turn_owner_for(move_count: int) -> Seat:
    """Mirrors the contracts: seat A moves on an even move count, seat B on an odd one."""
    return Seat.A if move_count % 2 == 0 else Seat.B


class LineGameRules:
    """Base for games won by forming a line of `win_length` marks."""

    kind: GameKind
    geometry: BoardGeometry

    @property
    def board_size(self) -> int:
        return self.geometry.size

    def empty_board(self) -> Board:
        return self.geometry.empty_board()

    def turn_owner_for(self, move_count: int) -> Seat:
        return turn_owner_for(move_count)

    def is_terminal(self, board: Board) -> Optional[Outcome]:
        """
        Local guess at the outcome.

        NOTE display-only: the ledger announces the real outcome, and that always overwrites this.
        """
        mark = self.geometry.winning_mark(board)
        if mark is not None:
            return Outcome.won_by(Seat.A if mark == Cell.MARK_A else Seat.B)
        if all(cell != Cell.EMPTY for cell in board):
            return Outcome.drawn()
        return None
