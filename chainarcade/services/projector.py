"""
Projector: GameSession + local wallet -> ViewModel.

Pure: reads the session, never writes it. Cheap enough to call on every change.
"""

import time
from typing import Optional

from chainarcade.api.models import ViewModel
from chainarcade.core.config import PENDING_OVERDUE_SECONDS
from chainarcade.core.models import Address, GameSession
from chainarcade.core.shared_types import Phase, Seat, StatusKind
from chainarcade.core.units import short_address
from chainarcade.games.rules import rule_for


def status_line(session: GameSession, is_my_turn: bool) -> tuple[StatusKind, str]:
    """Which status to show is decided by phase / outcome / turn owner only."""
    if session.phase == Phase.AWAITING_OPPONENT:
        return StatusKind.WAITING, "WAITING FOR PLAYER O TO JOIN..."

    if session.phase == Phase.FINISHED:
        winner = session.outcome.winner
        # the contract reports "winner 0" for a draw
        if winner is None:
            return StatusKind.DRAW, "GAME ENDED IN A DRAW!"
        return StatusKind.WINNER, f"GAME WON BY {winner.symbol}!"

    text = f"CURRENT TURN: {session.turn_owner.symbol}"
    if is_my_turn:
        text += " (YOUR TURN!)"
    return StatusKind.TURN, text


def opponent_label(session: GameSession, local_seat: Optional[Seat]) -> str:
    opponent = session.seat_b if local_seat == Seat.A else session.seat_a
    if opponent is None:
        return "WAITING..."
    return short_address(opponent)


def project(
    session: GameSession,
    local_identity: Optional[Address],
    selection: Optional[int] = None,
    now: Optional[float] = None,
    overdue_after: float = PENDING_OVERDUE_SECONDS,
) -> ViewModel:
    rules = rule_for(session.kind)

    local_seat = session.seat_of(local_identity)
    is_my_turn = session.phase == Phase.ACTIVE and session.turn_owner == local_seat

    # the local terminal check is only a hint: the ledger has not announced a result yet
    locally_terminal = rules.is_terminal(session.board) is not None
    awaiting_result = session.phase == Phase.ACTIVE and locally_terminal

    pending = session.pending_action is not None
    selectable: list[int] = []
    if is_my_turn and not pending and not locally_terminal:
        selectable = sorted(rules.legal_positions(session.board))

    pending_overdue = False
    if session.pending_action is not None:
        current_time = now if now is not None else time.time()
        pending_overdue = current_time - session.pending_action.submitted_at > overdue_after

    status, text = status_line(session, is_my_turn)

    return ViewModel(
        game_id=session.id,
        kind=session.kind,
        board=list(session.board),
        move_count=session.move_count,
        phase=session.phase,
        stake_tier=session.stake_tier,
        local_seat=local_seat,
        opponent=opponent_label(session, local_seat),
        is_my_turn=is_my_turn,
        selectable=selectable,
        selection=selection,
        can_submit=selection is not None and selection in selectable,
        pending=pending,
        pending_overdue=pending_overdue,
        awaiting_result=awaiting_result,
        status=status,
        status_text=text,
        winner=session.outcome.winner if session.phase == Phase.FINISHED else None,
    )
