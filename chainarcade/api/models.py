"""View models handed to the presentation layer"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from chainarcade.core.exceptions import InvalidRequestError
from chainarcade.core.models import Address, Board, LedgerSnapshot, Outcome
from chainarcade.core.shared_types import Cell, GameKind, Phase, Seat, StatusKind
from chainarcade.core.units import format_ether


class ViewModel(BaseModel):
    """Everything the UI needs to draw one game, recomputed from scratch on every change."""

    model_config = ConfigDict(frozen=True)

    game_id: int
    kind: GameKind
    board: list[Cell]
    move_count: int
    phase: Phase
    stake_tier: int

    local_seat: Optional[Seat]
    opponent: str
    is_my_turn: bool
    selectable: list[int]
    selection: Optional[int]
    can_submit: bool

    pending: bool
    pending_overdue: bool
    awaiting_result: bool

    status: StatusKind
    status_text: str
    winner: Optional[Seat]


class OpenGame(BaseModel):
    """One row of the open-games listing: a game still waiting for its second player."""

    model_config = ConfigDict(frozen=True)

    game_id: int
    seat_a: Address
    stake_tier: int
    stake_amount: int

    @field_validator("seat_a")
    @classmethod
    def validate_seat_a(cls, value: str) -> str:
        if not value.startswith("0x"):
            raise InvalidRequestError(f"Cannot interpret {value!r} as a wallet address.")
        return value

    @property
    def stake_display(self) -> str:
        return f"{format_ether(self.stake_amount)} ETH"

    def to_snapshot(self, empty_board: Board) -> LedgerSnapshot:
        """An open game has had no moves yet: its whole state is known from the listing query."""
        return LedgerSnapshot(
            seat_a=self.seat_a,
            seat_b=None,
            turn_owner=Seat.A,
            move_count=0,
            outcome=Outcome.undecided(),
            stake_tier=self.stake_tier,
            phase=Phase.AWAITING_OPPONENT,
            board=empty_board,
        )
