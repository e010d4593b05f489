"""
Ledger notifications (contract events), as delivered by the notification transport.

Delivery is at-least-once and unordered. Parsing is strict: a payload that does not fit one of the five
contract events is refused with InvalidRequestError rather than half-applied.

Raw payloads may use the snake_case names below or the contract's own argument names
(gameId, playerX, stakeIndex, ...), which is what an event subscription hands over.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from chainarcade.core.exceptions import InvalidRequestError
from chainarcade.core.models import Address
from chainarcade.core.shared_types import Cell, EventKind
from chainarcade.games.geometry import BoardGeometry, Coordinate

DedupKey = tuple[Any, ...]


def _alias(*names: str) -> Any:
    return Field(validation_alias=AliasChoices(*names))


class LedgerNotification(BaseModel):
    """Fields every contract event carries, plus where it was mined."""

    model_config = ConfigDict(frozen=True)

    event: str
    game_id: int = Field(ge=0, validation_alias=AliasChoices("game_id", "gameId"))
    block_number: int = Field(
        default=0, validation_alias=AliasChoices("block_number", "blockNumber")
    )
    tx_hash: str = Field(validation_alias=AliasChoices("tx_hash", "transactionHash"))

    @property
    def kind(self) -> EventKind:
        return EventKind(self.event)

    def payload(self) -> dict[str, Any]:
        """Event specific fields (what the event log displays)."""
        return self.model_dump(exclude={"event", "game_id", "block_number", "tx_hash"})

    def discriminating_fields(self) -> tuple[Any, ...]:
        return ()

    def dedup_key(self) -> DedupKey:
        """Two deliveries of the same on-chain event produce the same key."""
        return (self.kind, self.game_id, self.tx_hash.lower(), *self.discriminating_fields())


class GameCreated(LedgerNotification):
    event: Literal["GameCreated"] = "GameCreated"
    creator: Address = _alias("creator", "playerX")
    stake_tier: int = _alias("stake_tier", "stakeIndex")
    stake_amount: int = _alias("stake_amount", "stakeAmount")

    def discriminating_fields(self) -> tuple[Any, ...]:
        return (self.creator.lower(), self.stake_tier)


class GameJoined(LedgerNotification):
    event: Literal["GameJoined"] = "GameJoined"
    joiner: Address = _alias("joiner", "playerO")

    def discriminating_fields(self) -> tuple[Any, ...]:
        return (self.joiner.lower(),)


class MoveMade(LedgerNotification):
    """
    Tic-tac-toe reports the cell (`position`), connect-four reports `column` and `row`.
    Exactly one of the two forms must be present.
    """

    event: Literal["MoveMade"] = "MoveMade"
    mover: Address = _alias("mover", "player")
    mark: Cell = _alias("mark", "symbol")
    target_cell: Optional[int] = Field(
        default=None, ge=0, validation_alias=AliasChoices("target_cell", "position")
    )
    column: Optional[int] = Field(default=None, ge=0)
    row: Optional[int] = Field(default=None, ge=0)

    @field_validator("mark")
    @classmethod
    def must_be_a_mark(cls, value: Cell) -> Cell:
        if value == Cell.EMPTY:
            raise ValueError("a move cannot place an empty cell")
        return value

    @model_validator(mode="after")
    def cell_or_column_and_row(self) -> "MoveMade":
        has_cell = self.target_cell is not None
        has_drop = self.column is not None and self.row is not None
        if has_cell == has_drop:
            raise ValueError("expected either target_cell, or column and row")
        return self

    def cell_index(self, geometry: BoardGeometry) -> Optional[int]:
        """Flat cell index on the given board, or None if the move lies outside of it."""
        if self.target_cell is not None:
            return self.target_cell if self.target_cell < geometry.size else None
        # for the type checker: validated above
        assert self.column is not None and self.row is not None
        if not geometry.contains(Coordinate(self.row, self.column)):
            return None
        return geometry.cell_index(self.row, self.column)

    def discriminating_fields(self) -> tuple[Any, ...]:
        return (self.target_cell, self.column, self.row, int(self.mark))


class GameWon(LedgerNotification):
    event: Literal["GameWon"] = "GameWon"
    winner: Address
    prize: int

    def discriminating_fields(self) -> tuple[Any, ...]:
        return (self.winner.lower(),)


class GameDraw(LedgerNotification):
    event: Literal["GameDraw"] = "GameDraw"
    refund_amount: int = _alias("refund_amount", "refundEach")


Notification = Annotated[
    Union[GameCreated, GameJoined, MoveMade, GameWon, GameDraw],
    Field(discriminator="event"),
]
NOTIFICATION_ADAPTER: TypeAdapter[Notification] = TypeAdapter(Notification)


def parse_notification(raw: dict[str, Any] | LedgerNotification) -> Notification:
    """Turn a raw event payload into one of the notification models."""
    if isinstance(raw, LedgerNotification):
        return raw  # type: ignore[return-value]

    data = dict(raw)
    # event subscriptions name the discriminator "type"
    if "event" not in data and "type" in data:
        data["event"] = data.pop("type")
    try:
        return NOTIFICATION_ADAPTER.validate_python(data)
    except ValidationError as e:
        raise InvalidRequestError(f"Cannot interpret notification {raw!r}: {e}") from e
