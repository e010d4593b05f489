"""
Local cache of every tracked game, keyed by ledger game id.

Two ways in:

* `upsert_from_query`: a fresh authoritative snapshot overwrites everything the ledger owns (remote wins).
* `apply_notification`: a single streamed event is applied incrementally, but only if it is exactly the
  next thing that can happen to the game. Anything else (replay, stale, out-of-order) is discarded and,
  where local state may be behind, a refresh is requested instead.

Every mutation below is synchronous: no await between reading and writing session fields.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from chainarcade.core.exceptions import (
    ConflictError,
    InvalidSnapshotError,
    NotFoundError,
    StaleNotificationDiscarded,
)
from chainarcade.core.models import ActionDescriptor, GameSession, LedgerSnapshot, Outcome
from chainarcade.core.shared_types import Cell, GameKind, Phase
from chainarcade.games.rules import RuleModule, rule_for
from chainarcade.sync.notifications import (
    GameCreated,
    GameDraw,
    GameJoined,
    GameWon,
    LedgerNotification,
    MoveMade,
)

logger = logging.getLogger(__name__)

# Pseudo-sessions: actions that do not (yet) belong to a game id
LOBBY = "lobby"  # creating a game: there is no game id before confirmation
WALLET = "wallet"  # withdrawing winnings
PendingKey = int | str


@dataclass(frozen=True)
class ApplyResult:
    applied: bool
    reason: Optional[str] = None
    # local state may be behind the ledger: a query refresh should follow
    needs_refresh: bool = False


class SessionStore:
    """All sessions of one game kind (one contract) for one connection."""

    def __init__(self, kind: GameKind) -> None:
        self.kind = kind
        self.rules: RuleModule = rule_for(kind)
        self._sessions: dict[int, GameSession] = {}
        self._scoped_pending: dict[str, ActionDescriptor] = {}

    # --- reads ---
    def get(self, game_id: int) -> Optional[GameSession]:
        return self._sessions.get(game_id)

    def game_ids(self) -> list[int]:
        return sorted(self._sessions)

    def __contains__(self, game_id: object) -> bool:
        return game_id in self._sessions

    # --- query path ---
    def upsert_from_query(self, game_id: int, snapshot: LedgerSnapshot) -> GameSession:
        """
        Overwrite (or create) the session from an authoritative snapshot.

        The snapshot is checked before anything is written, so a bad one leaves the prior session untouched.
        A pending action is local bookkeeping and survives the overwrite.
        """
        if len(snapshot.board) != self.rules.board_size:
            raise InvalidSnapshotError(
                f"Snapshot of game {game_id} has {len(snapshot.board)} cells, {self.kind} boards have {self.rules.board_size}."
            )

        session = self._sessions.get(game_id)
        if session is None:
            session = GameSession(
                id=game_id,
                kind=self.kind,
                board=tuple(snapshot.board),
                seat_a=snapshot.seat_a,
                seat_b=snapshot.seat_b,
                turn_owner=snapshot.turn_owner,
                move_count=snapshot.move_count,
                phase=snapshot.phase,
                outcome=snapshot.outcome,
                stake_tier=snapshot.stake_tier,
            )
            self._sessions[game_id] = session
            logger.debug("Tracking game %s (%s) from ledger query", game_id, self.kind)
            return session

        session.board = tuple(snapshot.board)
        session.seat_a = snapshot.seat_a
        session.seat_b = snapshot.seat_b
        session.turn_owner = snapshot.turn_owner
        session.move_count = snapshot.move_count
        session.phase = snapshot.phase
        session.outcome = snapshot.outcome
        session.stake_tier = snapshot.stake_tier
        return session

    # --- notification path ---
    def apply_notification(
        self, game_id: int, notification: LedgerNotification, adopt: bool = False
    ) -> ApplyResult:
        """
        Incrementally apply one event to the session it belongs to.

        `adopt` allows a GameCreated event to start tracking a game that is not in the store yet
        (used for games the local wallet just created).
        """
        if notification.game_id != game_id:
            return ApplyResult(applied=False, reason="notification belongs to another game")

        session = self._sessions.get(game_id)
        if session is None:
            if adopt and isinstance(notification, GameCreated):
                self._adopt_created(notification)
                return ApplyResult(applied=True)
            return ApplyResult(applied=False, reason="game is not tracked")

        try:
            if isinstance(notification, GameCreated):
                self._apply_created(session, notification)
            elif isinstance(notification, GameJoined):
                self._apply_joined(session, notification)
            elif isinstance(notification, MoveMade):
                self._apply_move(session, notification)
            elif isinstance(notification, GameWon):
                self._apply_won(session, notification)
            elif isinstance(notification, GameDraw):
                self._apply_draw(session, notification)
            else:
                raise StaleNotificationDiscarded(
                    f"Unsupported notification {notification.event!r}"
                )
        except StaleNotificationDiscarded as e:
            logger.info(
                "Discarded %s for game %s (tx %s): %s",
                notification.event,
                game_id,
                notification.tx_hash,
                e,
            )
            return ApplyResult(applied=False, reason=str(e), needs_refresh=e.needs_refresh)

        # The final move may still be in flight when the result is announced: re-read the board.
        terminal = isinstance(notification, (GameWon, GameDraw))
        return ApplyResult(applied=True, needs_refresh=terminal)

    # --- pending actions ---
    def pending(self, key: PendingKey) -> Optional[ActionDescriptor]:
        if isinstance(key, str):
            return self._scoped_pending.get(key)
        session = self._sessions.get(key)
        return session.pending_action if session else None

    def mark_pending(self, key: PendingKey, action: ActionDescriptor) -> None:
        """At most one in-flight action per session (or pseudo-session)."""
        if isinstance(key, str):
            if key in self._scoped_pending:
                raise ConflictError(
                    f"A {self._scoped_pending[key].kind} action is already pending ({key})."
                )
            self._scoped_pending[key] = action
            return

        session = self._sessions.get(key)
        if session is None:
            raise NotFoundError(f"Game {key} is not loaded.")
        if session.pending_action is not None:
            raise ConflictError(
                f"A {session.pending_action.kind} action is already pending for game {key}."
            )
        session.pending_action = action

    def clear_pending(self, key: PendingKey, action: Optional[ActionDescriptor] = None) -> None:
        """
        Idempotent: nothing pending (or an evicted session) is fine.

        With `action`, only that exact action is cleared: a session evicted and re-loaded meanwhile may hold a newer one.
        """
        if isinstance(key, str):
            current = self._scoped_pending.get(key)
            if current is not None and (action is None or current is action):
                del self._scoped_pending[key]
            return
        session = self._sessions.get(key)
        if session is not None and (action is None or session.pending_action is action):
            session.pending_action = None

    def overdue_pending(
        self, now: float, after_seconds: float
    ) -> list[tuple[PendingKey, ActionDescriptor]]:
        """Pending actions older than `after_seconds`. Reported only, never cleared here."""
        candidates: list[tuple[PendingKey, ActionDescriptor]] = list(
            self._scoped_pending.items()
        )
        candidates.extend(
            (game_id, session.pending_action)
            for game_id, session in self._sessions.items()
            if session.pending_action is not None
        )
        return [
            (key, action)
            for key, action in candidates
            if now - action.submitted_at > after_seconds
        ]

    # --- lifecycle ---
    def evict(self, game_id: int) -> Optional[GameSession]:
        """User navigated away. Drops the session together with its pending action."""
        session = self._sessions.pop(game_id, None)
        if session is not None and session.pending_action is not None:
            logger.warning(
                "Game %s evicted with a pending %s action", game_id, session.pending_action.kind
            )
        return session

    def clear(self) -> None:
        self._sessions.clear()
        self._scoped_pending.clear()

    # -- INCREMENTAL UPDATE HELPERS --
    def _adopt_created(self, notification: GameCreated) -> GameSession:
        session = GameSession(
            id=notification.game_id,
            kind=self.kind,
            board=self.rules.empty_board(),
            seat_a=notification.creator,
            seat_b=None,
            turn_owner=self.rules.turn_owner_for(0),
            move_count=0,
            phase=Phase.AWAITING_OPPONENT,
            outcome=Outcome.undecided(),
            stake_tier=notification.stake_tier,
        )
        self._sessions[notification.game_id] = session
        logger.debug("Tracking game %s from its creation event", notification.game_id)
        return session

    def _apply_created(self, session: GameSession, notification: GameCreated) -> None:
        """Creation is the first thing that happens to a game: a tracked game has seen it already."""
        raise StaleNotificationDiscarded("game is already tracked")

    def _apply_joined(self, session: GameSession, notification: GameJoined) -> None:
        if session.phase != Phase.AWAITING_OPPONENT:
            # same joiner: replay. different joiner: local state is wrong somewhere.
            raise StaleNotificationDiscarded(
                f"game already left the waiting phase ({session.phase.name})",
                needs_refresh=session.seat_of(notification.joiner) is None,
            )
        session.seat_b = notification.joiner
        session.phase = Phase.ACTIVE
        session.turn_owner = self.rules.turn_owner_for(session.move_count)

    def _apply_move(self, session: GameSession, notification: MoveMade) -> None:
        """
        Only the very next move is applied
        ----

        A move event carries no move number, so "next" is inferred:
        1. the game must be active
        2. the target cell must still be empty (a replay finds its own mark there)
        3. the mark must belong to the seat whose turn it is at the current move count
        4. the cell must be reachable now (gravity: the lowest empty cell of its column)
        Anything ahead of the local move count means an event was missed: request a refresh.
        """
        if session.phase == Phase.FINISHED:
            raise StaleNotificationDiscarded("game is already finished")
        if session.phase == Phase.AWAITING_OPPONENT:
            raise StaleNotificationDiscarded(
                "move before the join was seen", needs_refresh=True
            )

        cell = notification.cell_index(self.rules.geometry)
        if cell is None:
            raise StaleNotificationDiscarded(
                f"move (cell {notification.target_cell}, column {notification.column}, row {notification.row}) is off the board",
                needs_refresh=True,
            )

        current = session.board[cell]
        if current == notification.mark:
            raise StaleNotificationDiscarded(f"cell {cell} already holds this mark")
        if current != Cell.EMPTY:
            raise StaleNotificationDiscarded(
                f"cell {cell} holds the other mark", needs_refresh=True
            )

        expected_seat = self.rules.turn_owner_for(session.move_count)
        if notification.mark != expected_seat.mark:
            raise StaleNotificationDiscarded(
                f"mark {notification.mark.name} is not due at move {session.move_count}",
                needs_refresh=True,
            )
        if not self.rules.can_place(session.board, cell):
            raise StaleNotificationDiscarded(
                f"cell {cell} is not reachable yet", needs_refresh=True
            )

        board = list(session.board)
        board[cell] = notification.mark
        session.board = tuple(board)
        session.move_count += 1
        session.turn_owner = self.rules.turn_owner_for(session.move_count)

    def _apply_won(self, session: GameSession, notification: GameWon) -> None:
        seat = session.seat_of(notification.winner)
        if session.phase == Phase.FINISHED:
            raise StaleNotificationDiscarded(
                "outcome is already set",
                needs_refresh=session.outcome != Outcome.won_by(seat) if seat else True,
            )
        if seat is None:
            raise StaleNotificationDiscarded(
                f"winner {notification.winner} holds no seat in this game",
                needs_refresh=True,
            )
        session.phase = Phase.FINISHED
        session.outcome = Outcome.won_by(seat)

    def _apply_draw(self, session: GameSession, notification: GameDraw) -> None:
        if session.phase == Phase.FINISHED:
            raise StaleNotificationDiscarded(
                "outcome is already set",
                needs_refresh=session.outcome != Outcome.drawn(),
            )
        session.phase = Phase.FINISHED
        session.outcome = Outcome.drawn()
