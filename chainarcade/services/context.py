"""
Orchestration of the client for one wallet connection and one game kind.

ArcadeContext replaces any global "current contract / current game" state: it is built on connect, owns
every per-connection component, and is torn down on disconnect.
"""

import asyncio
import logging
from typing import Any, Optional, Self

from chainarcade.api.models import ViewModel
from chainarcade.core.config import GAME_REGISTRY, GameDescriptor
from chainarcade.core.exceptions import (
    GameError,
    IllegalPositionError,
    InvalidRequestError,
    LedgerQueryError,
    NotFoundError,
)
from chainarcade.core.models import Address
from chainarcade.core.shared_types import GameKind
from chainarcade.services.dispatcher import ActionDispatcher
from chainarcade.services.lobby import Lobby
from chainarcade.services.projector import project
from chainarcade.services.selection import Selections
from chainarcade.sync.event_log import EventLog, EventLogEntry
from chainarcade.sync.ledger import LedgerReader, TransactionSubmitter
from chainarcade.sync.reconciler import Reconciler
from chainarcade.sync.session_store import SessionStore

logger = logging.getLogger(__name__)


class ArcadeContext:
    def __init__(
        self,
        descriptor: GameDescriptor,
        identity: Address,
        ledger: LedgerReader,
        submitter: TransactionSubmitter,
    ) -> None:
        self.descriptor = descriptor
        self.identity = identity
        self.store = SessionStore(descriptor.kind)
        self.event_log = EventLog()
        self.selections = Selections()
        self.reconciler = Reconciler(self.store, self.event_log, ledger, identity)
        self.lobby = Lobby(ledger, identity)
        self.dispatcher = ActionDispatcher(
            store=self.store,
            reconciler=self.reconciler,
            event_log=self.event_log,
            submitter=submitter,
            lobby=self.lobby,
            identity=identity,
            selections=self.selections,
        )
        self.closed = False
        self._listener: Optional[asyncio.Task[None]] = None

    @classmethod
    def connect(
        cls,
        kind: GameKind | str,
        identity: Address,
        ledger: LedgerReader,
        submitter: TransactionSubmitter,
    ) -> Self:
        """Build the context for the game picked in the lobby screen."""
        try:
            descriptor = GAME_REGISTRY[GameKind(kind)]
        except (KeyError, ValueError):
            raise InvalidRequestError(
                f"Unknown game {kind!r}. Pick one from {', '.join(GAME_REGISTRY)}."
            )
        logger.info("Connected %s to %s", identity, descriptor.name)
        return cls(descriptor, identity, ledger, submitter)

    # --- lifecycle ---
    def start(self, channel: "asyncio.Queue[Any]") -> "asyncio.Task[None]":
        """Start draining the notification channel on the running loop."""
        self._assert_open()
        if self._listener is not None and not self._listener.done():
            raise InvalidRequestError("This context is already listening.")
        self._listener = asyncio.get_running_loop().create_task(
            self.reconciler.run(channel)
        )
        return self._listener

    async def close(self) -> None:
        """Disconnect: stop listening and drop all local state. Submitted transactions are not cancelled."""
        if self.closed:
            return
        self.closed = True
        if self._listener is not None:
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
            self._listener = None
        self.store.clear()
        self.selections.clear_all()
        self.event_log.clear()
        logger.info("Disconnected %s from %s", self.identity, self.descriptor.name)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # --- reads ---
    async def load(self, game_id: int) -> ViewModel:
        """Explicit load-by-id: starts tracking the game if needed, then returns its view."""
        self._assert_open()
        await self.reconciler.refresh(game_id)
        return self.view(game_id)

    async def refresh(self) -> None:
        """Manual refresh: lobby plus every tracked game. Failures are logged; the next refresh retries."""
        self._assert_open()
        try:
            await self.lobby.refresh()
        except LedgerQueryError as e:
            logger.warning("Lobby refresh failed: %s", e)
        for game_id in self.store.game_ids():
            try:
                await self.reconciler.refresh(game_id)
            except LedgerQueryError as e:
                logger.warning("Refresh of game %s failed: %s", game_id, e)

    def view(self, game_id: int) -> ViewModel:
        session = self.store.get(game_id)
        if session is None:
            raise NotFoundError(f"Game {game_id} is not loaded.")
        return project(session, self.identity, selection=self.selections.get(game_id))

    def events(self) -> list[EventLogEntry]:
        return self.event_log.entries()

    # --- selection (never leaves the client) ---
    def select(self, game_id: int, position: int) -> ViewModel:
        current = self.view(game_id)
        if position not in current.selectable:
            raise IllegalPositionError(
                f"{position} cannot be selected in game {game_id} right now."
            )
        self.selections.select(game_id, position)
        return self.view(game_id)

    def unselect(self, game_id: int) -> None:
        self.selections.clear(game_id)

    def submit_selection(self, game_id: int) -> "asyncio.Task":
        """The "make move" button: propose whatever is currently selected."""
        position = self.selections.get(game_id)
        if position is None:
            raise InvalidRequestError("Select a cell or column first.")
        return self.dispatcher.propose_move(game_id, position)

    def leave(self, game_id: int) -> None:
        """Navigate away from a game: it is no longer tracked."""
        self.store.evict(game_id)
        self.selections.clear(game_id)

    def _assert_open(self) -> None:
        if self.closed:
            raise GameError("This connection is closed.")
