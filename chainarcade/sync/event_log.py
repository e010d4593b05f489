"""
Bounded, most-recent-first record of what the ledger told us (plus local confirmations).

Used for audit / UI display only: nothing reads game state back from here.
"""

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Optional, Self

from chainarcade.core.config import EVENT_LOG_CAPACITY
from chainarcade.core.shared_types import Cell, EventKind
from chainarcade.core.units import format_ether
from chainarcade.sync.notifications import DedupKey, LedgerNotification

# payload fields that hold wei amounts
AMOUNT_FIELDS = ("stake_amount", "prize", "refund_amount")


@dataclass(frozen=True)
class EventLogEntry:
    kind: EventKind
    game_id: Optional[int]
    fields: dict[str, Any]
    block_seq: int
    source_tx_id: Optional[str]
    observed_at: float
    key: DedupKey = field(compare=False, repr=False)

    @classmethod
    def from_notification(cls, notification: LedgerNotification, observed_at: float) -> Self:
        return cls(
            kind=notification.kind,
            game_id=notification.game_id,
            fields=notification.payload(),
            block_seq=notification.block_number,
            source_tx_id=notification.tx_hash,
            observed_at=observed_at,
            key=notification.dedup_key(),
        )

    def details(self) -> dict[str, str]:
        """What the events panel shows for this entry: symbols as X/O, amounts in ether."""
        shown: dict[str, str] = {}
        if self.game_id is not None:
            shown["gameId"] = str(self.game_id)
        for name, value in self.fields.items():
            if value is None:
                continue
            if name == "mark":
                shown["symbol"] = "X" if value == Cell.MARK_A else "O"
            elif name in AMOUNT_FIELDS:
                shown[name] = f"{format_ether(value)} ETH"
            else:
                shown[name] = str(value)
        shown["block"] = str(self.block_seq)
        if self.source_tx_id:
            shown["tx"] = self.source_tx_id
        return shown


class EventLog:
    """Deduplicating ring of EventLogEntry, newest first."""

    def __init__(self, capacity: int = EVENT_LOG_CAPACITY) -> None:
        self.capacity = capacity
        self._entries: deque[EventLogEntry] = deque(maxlen=capacity)

    def record(
        self, notification: LedgerNotification, observed_at: Optional[float] = None
    ) -> Optional[EventLogEntry]:
        """
        Prepend the notification unless the same event was already recorded.
        Returns the new entry, or None for a repeated delivery.
        """
        key = notification.dedup_key()
        if self._contains(key):
            return None
        entry = EventLogEntry.from_notification(
            notification, observed_at if observed_at is not None else time.time()
        )
        # deque(maxlen) drops from the opposite end: the oldest entry
        self._entries.appendleft(entry)
        return entry

    def record_local(
        self,
        kind: EventKind,
        game_id: Optional[int],
        tx_id: Optional[str],
        observed_at: Optional[float] = None,
        **fields: Any,
    ) -> Optional[EventLogEntry]:
        """Synthetic entry for something the client itself observed (a confirmed transaction)."""
        key = (kind, game_id, (tx_id or "").lower(), *sorted(fields.items()))
        if self._contains(key):
            return None
        entry = EventLogEntry(
            kind=kind,
            game_id=game_id,
            fields=dict(fields),
            block_seq=0,
            source_tx_id=tx_id,
            observed_at=observed_at if observed_at is not None else time.time(),
            key=key,
        )
        self._entries.appendleft(entry)
        return entry

    def entries(self) -> list[EventLogEntry]:
        """Most recent first."""
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _contains(self, key: DedupKey) -> bool:
        return any(entry.key == key for entry in self._entries)
