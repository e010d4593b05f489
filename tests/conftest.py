"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures required for testing multiple layers.
"""

from typing import Iterator

import pytest

from chainarcade.core.shared_types import GameKind
from chainarcade.sync.event_log import EventLog
from chainarcade.sync.reconciler import Reconciler
from chainarcade.sync.session_store import SessionStore
from tests.fakes import ALICE, MockLedger, MockSubmitter


@pytest.fixture
def ledger() -> Iterator[MockLedger]:
    """Empty contract: add games with `put_game`."""
    mock = MockLedger()
    try:
        yield mock
    finally:
        mock.games.clear()
        mock.boards.clear()


@pytest.fixture
def submitter() -> MockSubmitter:
    """Wallet that confirms everything unless told otherwise."""
    return MockSubmitter()


@pytest.fixture
def ttt_store() -> SessionStore:
    return SessionStore(GameKind.TICTACTOE)


@pytest.fixture
def c4_store() -> SessionStore:
    return SessionStore(GameKind.CONNECT4)


@pytest.fixture
def event_log() -> EventLog:
    return EventLog()


@pytest.fixture
def reconciler(ttt_store: SessionStore, event_log: EventLog, ledger: MockLedger) -> Reconciler:
    """Tic-tac-toe reconciler for ALICE's wallet."""
    return Reconciler(ttt_store, event_log, ledger, ALICE)
