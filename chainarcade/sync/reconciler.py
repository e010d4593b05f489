"""
Reconciler: the only writer of ledger-derived state.

Notifications arrive on a single inbound channel (an asyncio.Queue fed by whatever transport is in use).
Each one is parsed, recorded in the event log, and applied to the session store. Whenever the store says
local state may be behind, the game is re-read from the ledger: a query snapshot always wins.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

from chainarcade.core.exceptions import GameError, InvalidRequestError, LedgerQueryError
from chainarcade.core.models import Address, GameSession, same_address
from chainarcade.core.shared_types import ActionKind
from chainarcade.sync.event_log import EventLog
from chainarcade.sync.ledger import GameInfo, LedgerReader, build_snapshot, decode_board
from chainarcade.sync.notifications import (
    GameCreated,
    LedgerNotification,
    parse_notification,
)
from chainarcade.sync.session_store import LOBBY, ApplyResult, SessionStore

logger = logging.getLogger(__name__)

ChangeListener = Callable[[Optional[int]], None]


class Reconciler:
    def __init__(
        self,
        store: SessionStore,
        event_log: EventLog,
        ledger: LedgerReader,
        identity: Address,
    ) -> None:
        self.store = store
        self.event_log = event_log
        self.ledger = ledger
        self.identity = identity
        self._refresh_due: set[int] = set()
        self._listeners: list[ChangeListener] = []

    def subscribe(self, listener: ChangeListener) -> None:
        """Called with the game id after every change that may alter a projection."""
        self._listeners.append(listener)

    @property
    def refresh_due(self) -> frozenset[int]:
        return frozenset(self._refresh_due)

    def request_refresh(self, game_id: int) -> None:
        self._refresh_due.add(game_id)

    # --- notification path ---
    def ingest(self, raw: dict[str, Any] | LedgerNotification) -> ApplyResult:
        """Record and apply one notification. Synchronous: safe to call between two awaits."""
        notification = parse_notification(raw)

        entry = self.event_log.record(notification)
        if entry is None:
            # the transport delivered the same event again
            logger.debug(
                "Duplicate %s for game %s ignored", notification.event, notification.game_id
            )
            return ApplyResult(applied=False, reason="duplicate delivery")

        result = self.store.apply_notification(
            notification.game_id,
            notification,
            adopt=self._is_own_creation(notification),
        )
        if result.needs_refresh and notification.game_id in self.store:
            self._refresh_due.add(notification.game_id)
        self._notify(notification.game_id)
        return result

    async def process(self, raw: dict[str, Any] | LedgerNotification) -> ApplyResult:
        """ingest, then run the refreshes it asked for"""
        result = self.ingest(raw)
        await self.refresh_pending()
        return result

    async def run(self, channel: "asyncio.Queue[Any]") -> None:
        """Drain the notification channel until cancelled."""
        logger.info("Listening for %s notifications", self.store.kind)
        try:
            while True:
                raw = await channel.get()
                try:
                    await self.process(raw)
                except InvalidRequestError as e:
                    logger.warning("Dropped malformed notification: %s", e)
                except Exception:
                    # one bad item (failing listener, unexpected ledger error) must not stop the drain
                    logger.exception("Failed to process notification %r", raw)
                finally:
                    channel.task_done()
        finally:
            logger.info("Stopped listening for %s notifications", self.store.kind)

    # --- query path ---
    async def refresh(self, game_id: int) -> GameSession:
        """
        Load the authoritative snapshot and overwrite the local session with it.

        Both reads complete (and decode) before the store is touched: a failure leaves the session as it was,
        and the next refresh simply tries again.
        """
        try:
            raw_info, raw_board = await asyncio.gather(
                self.ledger.get_game_info(game_id), self.ledger.get_board(game_id)
            )
        except GameError:
            raise
        except Exception as e:
            raise LedgerQueryError(f"Could not load game {game_id}: {e}") from e

        info = GameInfo.from_ledger(raw_info)
        board = decode_board(raw_board, self.store.rules.board_size)
        session = self.store.upsert_from_query(game_id, build_snapshot(info, board))
        self._refresh_due.discard(game_id)
        self._notify(game_id)
        return session

    async def refresh_pending(self) -> None:
        """Refresh every game the notification path flagged. A failing game stays flagged."""
        for game_id in sorted(self._refresh_due):
            if game_id not in self.store:
                self._refresh_due.discard(game_id)
                continue
            try:
                await self.refresh(game_id)
            except LedgerQueryError as e:
                logger.warning("Refresh of game %s failed, will retry: %s", game_id, e)

    # -- PRIVATE HELPERS --
    def _is_own_creation(self, notification: LedgerNotification) -> bool:
        """A GameCreated for the local wallet while a create is pending: start tracking that game."""
        if not isinstance(notification, GameCreated):
            return False
        pending = self.store.pending(LOBBY)
        return (
            pending is not None
            and pending.kind == ActionKind.CREATE
            and same_address(notification.creator, self.identity)
        )

    def _notify(self, game_id: Optional[int]) -> None:
        for listener in self._listeners:
            listener(game_id)
