"""
Protocols for the external collaborators (ledger queries, transaction submission).

Concrete transports (web3 provider, RPC polling, a test double) implement these. The client only relies on
the shapes below: raw values exactly as the contracts return them, decoded here into domain models.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Optional, Protocol, Self, Sequence

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from chainarcade.core.config import ZERO_ADDRESS
from chainarcade.core.exceptions import InvalidSnapshotError
from chainarcade.core.models import ActionDescriptor, Address, LedgerSnapshot, Outcome
from chainarcade.core.shared_types import Cell, Phase, Seat
from chainarcade.games.base import turn_owner_for


class LedgerReader(Protocol):
    """Read side of the contract. Every call returns the authoritative value at call time."""

    async def get_game_info(self, game_id: int) -> dict | Sequence:
        """(playerX, playerO, turn, moveCount, winner, stakeIndex, status), as a tuple or a keyed mapping."""
        ...

    async def get_board(self, game_id: int) -> Sequence[int]: ...

    async def stake_option(self, tier: int) -> int:
        """Stake amount in wei for the tier."""
        ...

    async def next_game_id(self) -> int: ...

    async def balance_of(self, address: Address) -> int: ...


class TxStatus(StrEnum):
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


@dataclass(frozen=True)
class TxReceipt:
    status: TxStatus
    tx_hash: Optional[str] = None
    # ids emitted by the contract (createGame returns the new game id)
    game_id: Optional[int] = None
    error: Optional[str] = None

    @property
    def confirmed(self) -> bool:
        return self.status == TxStatus.CONFIRMED


class TransactionSubmitter(Protocol):
    """Signs, sends and waits for one transaction. Raising is treated the same as a REJECTED receipt."""

    async def submit(self, action: ActionDescriptor, value: int) -> TxReceipt: ...


# --- decoding ---
GAME_INFO_FIELDS = (
    "playerX",
    "playerO",
    "turn",
    "moveCount",
    "winner",
    "stakeIndex",
    "status",
)


class GameInfo(BaseModel):
    """getGameInfo, decoded"""

    model_config = ConfigDict(frozen=True)

    seat_a: Address
    seat_b: Optional[Address]
    turn: Optional[Seat]
    move_count: int
    winner: Optional[Seat]
    stake_tier: int
    phase: Phase

    @field_validator("seat_b", mode="before")
    @classmethod
    def zero_address_is_empty_seat(cls, value: Optional[str]) -> Optional[str]:
        if not value or value.lower() == ZERO_ADDRESS:
            return None
        return value

    @field_validator("turn", mode="before")
    @classmethod
    def unset_turn_is_none(cls, value: int | Seat | None) -> Optional[int]:
        if value is None or int(value) not in (Seat.A, Seat.B):
            return None
        return int(value)

    @field_validator("winner", mode="before")
    @classmethod
    def zero_winner_is_none(cls, value: int | Seat | None) -> Optional[int]:
        if value is None or int(value) == 0:
            return None
        return int(value)

    @field_validator("move_count", "stake_tier")
    @classmethod
    def non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("must be non-negative")
        return value

    @classmethod
    def from_ledger(cls, raw: dict | Sequence) -> Self:
        """Accept both the positional tuple and the named mapping a contract call can return."""
        values = dict(raw) if isinstance(raw, dict) else dict(zip(GAME_INFO_FIELDS, raw))
        try:
            return cls(
                seat_a=values["playerX"],
                seat_b=values.get("playerO"),
                turn=values.get("turn"),
                move_count=int(values["moveCount"]),
                winner=values.get("winner"),
                stake_tier=int(values["stakeIndex"]),
                phase=int(values["status"]),
            )
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise InvalidSnapshotError(f"Cannot decode game info {raw!r}: {e}") from e

    @property
    def outcome(self) -> Outcome:
        """Finished with winner 0 is a draw. Before that the outcome is undecided."""
        if self.phase != Phase.FINISHED:
            return Outcome.undecided()
        if self.winner is None:
            return Outcome.drawn()
        return Outcome.won_by(self.winner)


def decode_board(raw: Sequence[int], expected_size: int) -> tuple[Cell, ...]:
    if len(raw) != expected_size:
        raise InvalidSnapshotError(
            f"Board has {len(raw)} cells, expected {expected_size}."
        )
    try:
        return tuple(Cell(int(value)) for value in raw)
    except ValueError as e:
        raise InvalidSnapshotError(f"Unknown cell value in board {list(raw)!r}.") from e


def build_snapshot(info: GameInfo, board: tuple[Cell, ...]) -> LedgerSnapshot:
    return LedgerSnapshot(
        seat_a=info.seat_a,
        seat_b=info.seat_b,
        turn_owner=info.turn or turn_owner_for(info.move_count),
        move_count=info.move_count,
        outcome=info.outcome,
        stake_tier=info.stake_tier,
        phase=info.phase,
        board=board,
    )
