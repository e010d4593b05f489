"""
Action dispatcher: from user intent to a submitted transaction (and back).

Every local check runs synchronously and raises before anything is handed to the transaction
collaborator. Once accepted, the action is marked pending (one per session) and submitted on the running
event loop; the returned task resolves to the receipt or raises ExternalRejectedError.

Confirmation never paints the board: the session is re-read from the ledger instead.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from chainarcade.core.config import GAS_LIMIT_DEFAULT, GAS_LIMIT_WITHDRAW
from chainarcade.core.exceptions import (
    ConflictError,
    ExternalRejectedError,
    InvalidPhaseError,
    LedgerQueryError,
    NotFoundError,
    NotYourTurnError,
    StakeMismatchError,
)
from chainarcade.core.models import ActionDescriptor, Address, GameSession
from chainarcade.core.shared_types import ActionKind, EventKind, Phase
from chainarcade.services.lobby import Lobby
from chainarcade.services.selection import Selections
from chainarcade.sync.event_log import EventLog
from chainarcade.sync.ledger import TransactionSubmitter, TxReceipt
from chainarcade.sync.reconciler import Reconciler
from chainarcade.sync.session_store import LOBBY, WALLET, PendingKey, SessionStore

logger = logging.getLogger(__name__)

ConfirmedHook = Callable[[TxReceipt], Awaitable[None]]
PreSubmitCheck = Callable[[], Awaitable[None]]


class ActionDispatcher:
    def __init__(
        self,
        store: SessionStore,
        reconciler: Reconciler,
        event_log: EventLog,
        submitter: TransactionSubmitter,
        lobby: Lobby,
        identity: Address,
        selections: Optional[Selections] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.reconciler = reconciler
        self.event_log = event_log
        self.submitter = submitter
        self.lobby = lobby
        self.identity = identity
        self.selections = selections or Selections()
        self.clock = clock

    # --- user intents ---
    def propose_move(self, game_id: int, position: int) -> "asyncio.Task[TxReceipt]":
        """
        Validate and submit a move
        ----

        1. the game must be loaded
        2. nothing may be pending for it (checked first: a pending game always answers Conflict)
        3. the game must be active
        4. the local wallet must hold the seat whose turn it is
        5. the rule module must accept the cell / column
        """
        session = self._fetch_session(game_id)
        self._assert_nothing_pending(game_id)
        if session.phase != Phase.ACTIVE:
            raise InvalidPhaseError(
                f"Game {game_id} is not in progress. phase: {session.phase.name}"
            )
        self._assert_your_turn(session)
        cell = self.store.rules.target_cell(session.board, position)

        action = self._action(
            ActionKind.MOVE, game_id=game_id, position=position, cell=cell
        )

        async def reload(receipt: TxReceipt) -> None:
            await self._reload_game(game_id)

        task = self._dispatch(game_id, action, value=0, on_confirmed=reload)
        self.selections.clear(game_id)
        return task

    def propose_create(self, stake_tier: int) -> "asyncio.Task[TxReceipt]":
        """Create a new game at the given stake tier. There is no game id until the ledger assigns one."""
        self._assert_nothing_pending(LOBBY)
        stake = self.lobby.stake_amount(stake_tier)
        action = self._action(ActionKind.CREATE, stake_tier=stake_tier)

        async def load_created(receipt: TxReceipt) -> None:
            if receipt.game_id is None:
                logger.warning("Create confirmed (tx %s) without a game id", receipt.tx_hash)
            else:
                await self._reload_game(receipt.game_id)
            await self._reload_lobby()

        return self._dispatch(LOBBY, action, value=stake, on_confirmed=load_created)

    def propose_join(self, game_id: int, expected_stake_tier: int) -> "asyncio.Task[TxReceipt]":
        """
        Join an open game at the stake tier the user saw.

        The tier is checked twice: now against what is known locally, and right before submission against a
        fresh ledger read (the listing may have gone stale between display and click).
        """
        session = self.store.get(game_id)
        listed = None
        if session is None:
            listed = self.lobby.open_game(game_id)
            if listed is None:
                raise NotFoundError(f"Game {game_id} is neither loaded nor listed as open.")
            self._assert_joinable(
                game_id, Phase.AWAITING_OPPONENT, listed.stake_tier, expected_stake_tier
            )
        else:
            self._assert_nothing_pending(game_id)
            self._assert_joinable(
                game_id, session.phase, session.stake_tier, expected_stake_tier
            )
        stake = self.lobby.stake_amount(expected_stake_tier)
        action = self._action(
            ActionKind.JOIN, game_id=game_id, stake_tier=expected_stake_tier
        )

        if listed is not None:
            # every check passed: track the game so its pending slot exists
            self.store.upsert_from_query(
                game_id, listed.to_snapshot(self.store.rules.empty_board())
            )

        async def recheck() -> None:
            fresh = await self.reconciler.refresh(game_id)
            self._assert_joinable(
                game_id, fresh.phase, fresh.stake_tier, expected_stake_tier
            )

        async def reload(receipt: TxReceipt) -> None:
            await self._reload_game(game_id)
            await self._reload_lobby()

        return self._dispatch(
            game_id, action, value=stake, on_confirmed=reload, before_submit=recheck
        )

    def propose_withdraw(self) -> "asyncio.Task[TxReceipt]":
        """Withdraw the wallet's balance (winnings and refunds) from the contract."""
        self._assert_nothing_pending(WALLET)
        action = self._action(ActionKind.WITHDRAW, gas_limit=GAS_LIMIT_WITHDRAW)

        async def reload_balance(receipt: TxReceipt) -> None:
            try:
                await self.lobby.refresh_balance()
            except LedgerQueryError as e:
                logger.warning("Balance refresh after withdraw failed: %s", e)

        return self._dispatch(WALLET, action, value=0, on_confirmed=reload_balance)

    # -- INTERNAL HELPERS --
    def _dispatch(
        self,
        key: PendingKey,
        action: ActionDescriptor,
        value: int,
        on_confirmed: ConfirmedHook,
        before_submit: Optional[PreSubmitCheck] = None,
    ) -> "asyncio.Task[TxReceipt]":
        # no running loop -> RuntimeError here, before anything is marked pending
        loop = asyncio.get_running_loop()
        self.store.mark_pending(key, action)
        logger.info("Dispatching %s (%s) %s", action.kind, key, action.payload)
        return loop.create_task(
            self._settle(key, action, value, on_confirmed, before_submit)
        )

    async def _settle(
        self,
        key: PendingKey,
        action: ActionDescriptor,
        value: int,
        on_confirmed: ConfirmedHook,
        before_submit: Optional[PreSubmitCheck],
    ) -> TxReceipt:
        """
        The action stays pending until the post-confirmation reload is done: the session must not accept a
        second dispatch while it still shows the pre-transaction board. Cleared on every exit, cancellation included.
        """
        try:
            if before_submit is not None:
                await before_submit()

            try:
                receipt = await self.submitter.submit(action, value)
            except Exception as e:
                logger.warning("%s transaction failed: %s", action.kind, e)
                raise ExternalRejectedError(str(e)) from e

            if not receipt.confirmed:
                logger.warning("%s transaction rejected: %s", action.kind, receipt.error)
                raise ExternalRejectedError(receipt.error or "Transaction rejected.")

            await on_confirmed(receipt)
        finally:
            self.store.clear_pending(key, action)

        game_id = key if isinstance(key, int) else receipt.game_id
        self.event_log.record_local(
            EventKind.TX_CONFIRMED, game_id, receipt.tx_hash, action=str(action.kind)
        )
        return receipt

    async def _reload_game(self, game_id: int) -> None:
        """Mandatory after every confirmation. If the read fails the game stays flagged for the next refresh."""
        try:
            await self.reconciler.refresh(game_id)
        except LedgerQueryError as e:
            logger.warning("Reload of game %s after confirmation failed: %s", game_id, e)
            self.reconciler.request_refresh(game_id)

    async def _reload_lobby(self) -> None:
        try:
            await self.lobby.refresh()
        except LedgerQueryError as e:
            logger.warning("Lobby refresh after confirmation failed: %s", e)

    def _action(
        self, kind: ActionKind, gas_limit: int = GAS_LIMIT_DEFAULT, **payload: object
    ) -> ActionDescriptor:
        return ActionDescriptor(
            kind=kind, payload=dict(payload), submitted_at=self.clock(), gas_limit=gas_limit
        )

    def _fetch_session(self, game_id: int) -> GameSession:
        session = self.store.get(game_id)
        if session is None:
            raise NotFoundError(f"Game {game_id} is not loaded.")
        return session

    def _assert_nothing_pending(self, key: PendingKey) -> None:
        pending = self.store.pending(key)
        if pending is not None:
            raise ConflictError(
                f"Wait for the pending {pending.kind} transaction ({key}) to resolve first."
            )

    def _assert_your_turn(self, session: GameSession) -> None:
        local_seat = session.seat_of(self.identity)
        if local_seat is None or local_seat != session.turn_owner:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for player {session.turn_owner.symbol} to move first."
            )

    def _assert_joinable(
        self, game_id: int, phase: Phase, stake_tier: int, expected_stake_tier: int
    ) -> None:
        if phase != Phase.AWAITING_OPPONENT:
            raise InvalidPhaseError(
                f"Cannot join game {game_id}. It is not waiting for players. phase: {phase.name}"
            )
        if stake_tier != expected_stake_tier:
            raise StakeMismatchError(
                f"Game {game_id} is at stake tier {stake_tier}, not {expected_stake_tier}."
            )
