"""
Boundary layer data model(s).

These objects are shared by the sync layer (which writes them) and the services (which read them).
The ledger stays the source of truth: nothing in here is ever derived from local speculation, except
`pending_action`, which only marks that a local transaction is in flight.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Self

from chainarcade.core.shared_types import ActionKind, Cell, GameKind, Phase, Seat

# Type aliases to make the models easier to read
Address = str
Board = tuple[Cell, ...]


def same_address(left: Optional[Address], right: Optional[Address]) -> bool:
    """Wallet addresses are compared case-insensitively (checksummed vs lower-case hex)."""
    if left is None or right is None:
        return False
    return left.lower() == right.lower()


@dataclass(frozen=True)
class Outcome:
    """None / Draw / Winner(seat). Only meaningful once the game is finished."""

    draw: bool = False
    winner: Optional[Seat] = None

    @classmethod
    def undecided(cls) -> Self:
        return cls()

    @classmethod
    def drawn(cls) -> Self:
        return cls(draw=True)

    @classmethod
    def won_by(cls, seat: Seat) -> Self:
        return cls(winner=seat)

    @property
    def is_decided(self) -> bool:
        return self.draw or self.winner is not None


@dataclass(frozen=True)
class ActionDescriptor:
    """A local request to change ledger state, as handed to the transaction collaborator."""

    kind: ActionKind
    payload: dict[str, Any] = field(default_factory=dict)
    submitted_at: float = 0.0
    gas_limit: int = 0


@dataclass(frozen=True)
class LedgerSnapshot:
    """Decoded result of getGameInfo + getBoard for one game id, at query time."""

    seat_a: Address
    seat_b: Optional[Address]
    turn_owner: Seat
    move_count: int
    outcome: Outcome
    stake_tier: int
    phase: Phase
    board: Board


@dataclass
class GameSession:
    """Local cache of one game, keyed by its ledger id."""

    id: int
    kind: GameKind
    board: Board
    seat_a: Address
    seat_b: Optional[Address]
    turn_owner: Seat
    move_count: int
    phase: Phase
    outcome: Outcome
    stake_tier: int
    pending_action: Optional[ActionDescriptor] = None

    def seat_of(self, address: Optional[Address]) -> Optional[Seat]:
        """Which seat (if any) the address occupies. None means spectator."""
        if same_address(address, self.seat_a):
            return Seat.A
        if same_address(address, self.seat_b):
            return Seat.B
        return None

    def address_of(self, seat: Seat) -> Optional[Address]:
        return self.seat_a if seat == Seat.A else self.seat_b
