"""Unit tests for chainarcade/games/grid.py"""

import pytest

from chainarcade.core.exceptions import IllegalPositionError
from chainarcade.core.models import Outcome
from chainarcade.core.shared_types import Cell, Seat
from chainarcade.games.grid import TicTacToeRules

_ = Cell.EMPTY
X = Cell.MARK_A
O = Cell.MARK_B

rules = TicTacToeRules()


def test_board_shape() -> None:
    assert rules.board_size == 9
    assert rules.empty_board() == (_,) * 9


def test_target_cell_is_the_requested_cell() -> None:
    board = (X, _, _, _, O, _, _, _, _)
    assert rules.target_cell(board, 8) == 8


@pytest.mark.parametrize("position", [0, 4])
def test_occupied_cell_is_illegal(position: int) -> None:
    board = (X, _, _, _, O, _, _, _, _)
    with pytest.raises(IllegalPositionError):
        rules.target_cell(board, position)


@pytest.mark.parametrize("position", [-1, 9, 42])
def test_off_board_cell_is_illegal(position: int) -> None:
    with pytest.raises(IllegalPositionError):
        rules.target_cell(rules.empty_board(), position)


def test_legal_positions_are_the_empty_cells() -> None:
    board = (X, O, X, _, O, _, _, _, _)
    assert rules.legal_positions(board) == frozenset({3, 5, 6, 7, 8})


def test_turn_owner_follows_move_count_parity() -> None:
    """Even move count: seat A (X). Odd: seat B (O)."""
    assert rules.turn_owner_for(0) == Seat.A
    assert rules.turn_owner_for(1) == Seat.B
    assert rules.turn_owner_for(4) == Seat.A
    assert rules.turn_owner_for(7) == Seat.B


@pytest.mark.parametrize(
    "board, winner",
    [
        ((X, X, X, O, O, _, _, _, _), Seat.A),  # top row
        ((O, X, X, O, X, _, O, _, _), Seat.B),  # left column
        ((X, O, _, O, X, _, _, _, X), Seat.A),  # diagonal
        ((X, X, O, X, O, _, O, _, _), Seat.B),  # anti-diagonal
    ],
)
def test_line_of_three_wins(board: tuple[Cell, ...], winner: Seat) -> None:
    assert rules.is_terminal(board) == Outcome.won_by(winner)


def test_full_board_without_line_is_a_draw() -> None:
    board = (X, O, X, X, O, O, O, X, X)
    assert rules.is_terminal(board) == Outcome.drawn()


def test_game_in_progress_is_not_terminal() -> None:
    assert rules.is_terminal(rules.empty_board()) is None
    assert rules.is_terminal((X, O, X, _, O, _, _, _, _)) is None


def test_can_place_only_on_empty_cells() -> None:
    board = (X, _, _, _, _, _, _, _, _)
    assert rules.can_place(board, 1)
    assert not rules.can_place(board, 0)
    assert not rules.can_place(board, 9)
