"""Unit tests for chainarcade/core/models.py and the shared enums"""

from chainarcade.core.models import GameSession, Outcome, same_address
from chainarcade.core.shared_types import Cell, GameKind, Phase, Seat
from tests.fakes import ALICE, BOB, CAROL


def make_session(seat_b: str | None = BOB) -> GameSession:
    return GameSession(
        id=1,
        kind=GameKind.TICTACTOE,
        board=(Cell.EMPTY,) * 9,
        seat_a=ALICE,
        seat_b=seat_b,
        turn_owner=Seat.A,
        move_count=0,
        phase=Phase.ACTIVE,
        outcome=Outcome.undecided(),
        stake_tier=0,
    )


def test_addresses_compare_case_insensitively() -> None:
    assert same_address(ALICE, ALICE.lower())
    assert same_address(ALICE.upper().replace("0X", "0x"), ALICE)
    assert not same_address(ALICE, BOB)
    assert not same_address(None, ALICE)
    assert not same_address(ALICE, None)


def test_seat_of_local_wallet() -> None:
    session = make_session()
    assert session.seat_of(ALICE.lower()) == Seat.A
    assert session.seat_of(BOB) == Seat.B
    assert session.seat_of(CAROL) is None
    assert session.seat_of(None) is None


def test_absent_seat_b_matches_nobody() -> None:
    session = make_session(seat_b=None)
    assert session.seat_of(BOB) is None
    assert session.address_of(Seat.B) is None
    assert session.address_of(Seat.A) == ALICE


def test_outcome_constructors() -> None:
    assert not Outcome.undecided().is_decided
    assert Outcome.drawn().is_decided and Outcome.drawn().winner is None
    assert Outcome.won_by(Seat.B).winner == Seat.B
    assert Outcome.won_by(Seat.B) != Outcome.won_by(Seat.A)


def test_seat_symbols_and_marks() -> None:
    assert Seat.A.symbol == "X" and Seat.B.symbol == "O"
    assert Seat.A.mark == Cell.MARK_A and Seat.B.mark == Cell.MARK_B
    assert Seat.A.other == Seat.B and Seat.B.other == Seat.A
