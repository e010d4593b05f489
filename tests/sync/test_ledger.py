"""Unit tests for chainarcade/sync/ledger.py (decoding of query results)"""

import pytest

from chainarcade.core.config import ZERO_ADDRESS
from chainarcade.core.exceptions import InvalidSnapshotError, LedgerQueryError
from chainarcade.core.models import Outcome
from chainarcade.core.shared_types import Cell, Phase, Seat
from chainarcade.sync.ledger import (
    GameInfo,
    TxReceipt,
    TxStatus,
    build_snapshot,
    decode_board,
)
from tests.fakes import ALICE, BOB


def test_open_game_tuple() -> None:
    """(playerX, playerO, turn, moveCount, winner, stakeIndex, status)"""
    info = GameInfo.from_ledger((ALICE, ZERO_ADDRESS, 1, 0, 0, 2, 0))

    assert info.seat_a == ALICE
    assert info.seat_b is None
    assert info.turn == Seat.A
    assert info.stake_tier == 2
    assert info.phase == Phase.AWAITING_OPPONENT
    assert info.outcome == Outcome.undecided()


def test_keyed_mapping_is_accepted() -> None:
    info = GameInfo.from_ledger(
        {
            "playerX": ALICE,
            "playerO": BOB,
            "turn": 2,
            "moveCount": 3,
            "winner": 0,
            "stakeIndex": 0,
            "status": 1,
        }
    )
    assert info.seat_b == BOB
    assert info.turn == Seat.B
    assert info.phase == Phase.ACTIVE


def test_finished_without_winner_is_a_draw() -> None:
    info = GameInfo.from_ledger((ALICE, BOB, 0, 9, 0, 0, 2))
    assert info.outcome == Outcome.drawn()


def test_finished_with_winner() -> None:
    info = GameInfo.from_ledger((ALICE, BOB, 0, 6, 2, 0, 2))
    assert info.outcome == Outcome.won_by(Seat.B)


@pytest.mark.parametrize(
    "raw",
    [
        (ALICE, BOB, 1, 0, 0, 0, 7),  # unknown status
        (ALICE, BOB, 1, -1, 0, 0, 1),  # negative move count
        (ALICE, BOB, 1, 0, 5, 0, 2),  # unknown winner
        (ALICE, BOB, 1),  # truncated
    ],
)
def test_undecodable_game_info(raw: tuple) -> None:
    with pytest.raises(InvalidSnapshotError):
        GameInfo.from_ledger(raw)


def test_invalid_snapshot_is_a_query_error() -> None:
    """Callers that retry on query failures also retry on garbage answers."""
    assert issubclass(InvalidSnapshotError, LedgerQueryError)


def test_decode_board() -> None:
    board = decode_board([0, 1, 2, 0, 0, 0, 0, 0, 0], 9)
    assert board[:3] == (Cell.EMPTY, Cell.MARK_A, Cell.MARK_B)


def test_decode_board_wrong_size() -> None:
    with pytest.raises(InvalidSnapshotError):
        decode_board([0] * 9, 42)


def test_decode_board_unknown_cell_value() -> None:
    with pytest.raises(InvalidSnapshotError):
        decode_board([0, 0, 3, 0, 0, 0, 0, 0, 0], 9)


def test_snapshot_falls_back_to_parity_when_turn_is_unset() -> None:
    info = GameInfo.from_ledger((ALICE, BOB, 0, 3, 0, 0, 1))
    snapshot = build_snapshot(info, decode_board([0] * 9, 9))
    assert snapshot.turn_owner == Seat.B
    assert snapshot.move_count == 3


def test_receipt_status() -> None:
    assert TxReceipt(status=TxStatus.CONFIRMED).confirmed
    assert not TxReceipt(status=TxStatus.REJECTED, error="user denied").confirmed
