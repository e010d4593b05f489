"""
Test doubles for the external collaborators (ledger queries, transaction submission)
plus builders for raw notification payloads, shaped the way an event subscription delivers them.
"""

import asyncio
from typing import Any, Callable, Optional, Sequence

from chainarcade.core.config import ZERO_ADDRESS
from chainarcade.core.models import ActionDescriptor
from chainarcade.sync.ledger import GAME_INFO_FIELDS, TxReceipt, TxStatus

# --- WALLETS ----
ALICE = "0xA11cE00000000000000000000000000000000001"
BOB = "0xB0B0000000000000000000000000000000000002"
CAROL = "0xCa401000000000000000000000000000000000003"

STAKES = [10**16, 5 * 10**16, 10**17]


class MockLedger:
    """Mock the contract read side with dictionaries keyed by game id."""

    def __init__(self) -> None:
        self.games: dict[int, dict[str, Any]] = {}
        self.boards: dict[int, list[int]] = {}
        self.stakes: list[int] = list(STAKES)
        self.balances: dict[str, int] = {}
        self.failing = False
        # positional tuples by default, like a raw contract call
        self.as_mapping = False
        self.info_reads = 0
        # when set, game info reads wait for it; `held` counts the reads that had to wait
        self.gate: Optional[asyncio.Event] = None
        self.held = 0
        # raised by every read while `failing` is set
        self.failure: Exception = ConnectionError("node unreachable")

    def put_game(
        self,
        game_id: int,
        size: int = 9,
        seat_a: str = ALICE,
        seat_b: Optional[str] = None,
        move_count: int = 0,
        winner: int = 0,
        stake_tier: int = 0,
        status: int = 0,
        board: Optional[Sequence[int]] = None,
        turn: Optional[int] = None,
    ) -> None:
        """Store (or replace) one game, as the contract would report it."""
        self.games[game_id] = {
            "playerX": seat_a,
            "playerO": seat_b or ZERO_ADDRESS,
            "turn": turn if turn is not None else (1 if move_count % 2 == 0 else 2),
            "moveCount": move_count,
            "winner": winner,
            "stakeIndex": stake_tier,
            "status": status,
        }
        self.boards[game_id] = list(board) if board is not None else [0] * size

    async def get_game_info(self, game_id: int) -> dict | tuple:
        self._check()
        if self.gate is not None and not self.gate.is_set():
            self.held += 1
            await self.gate.wait()
        self.info_reads += 1
        if game_id not in self.games:
            raise LookupError(f"execution reverted: game {game_id} does not exist")
        info = self.games[game_id]
        if self.as_mapping:
            return dict(info)
        return tuple(info[name] for name in GAME_INFO_FIELDS)

    async def get_board(self, game_id: int) -> list[int]:
        self._check()
        if game_id not in self.boards:
            raise LookupError(f"execution reverted: game {game_id} does not exist")
        return list(self.boards[game_id])

    async def stake_option(self, tier: int) -> int:
        self._check()
        return self.stakes[tier]

    async def next_game_id(self) -> int:
        self._check()
        return max(self.games) + 1 if self.games else 0

    async def balance_of(self, address: str) -> int:
        self._check()
        return self.balances.get(address.lower(), 0)

    def _check(self) -> None:
        if self.failing:
            raise self.failure


class MockSubmitter:
    """Mock the wallet: records every submission and answers with scripted receipts."""

    def __init__(self) -> None:
        self.calls: list[tuple[ActionDescriptor, int]] = []
        self.receipts: list[TxReceipt] = []
        self.error: Optional[Exception] = None
        # runs when the transaction is "mined" (use it to update the MockLedger)
        self.on_submit: Optional[Callable[[ActionDescriptor], None]] = None
        # when set, submission waits for it: lets a test look at the in-flight state
        self.gate: Optional[asyncio.Event] = None

    async def submit(self, action: ActionDescriptor, value: int) -> TxReceipt:
        self.calls.append((action, value))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        if self.on_submit is not None:
            self.on_submit(action)
        if self.receipts:
            return self.receipts.pop(0)
        return TxReceipt(status=TxStatus.CONFIRMED, tx_hash=f"0xfeed{len(self.calls)}")


# --- RAW NOTIFICATIONS ----
def created(
    game_id: int, creator: str = ALICE, stake_tier: int = 0, tx: str = "0xc0ffee", block: int = 1
) -> dict[str, Any]:
    return {
        "event": "GameCreated",
        "gameId": game_id,
        "playerX": creator,
        "stakeIndex": stake_tier,
        "stakeAmount": STAKES[stake_tier],
        "transactionHash": tx,
        "blockNumber": block,
    }


def joined(game_id: int, joiner: str = BOB, tx: str = "0xj0", block: int = 2) -> dict[str, Any]:
    return {
        "event": "GameJoined",
        "gameId": game_id,
        "playerO": joiner,
        "transactionHash": tx,
        "blockNumber": block,
    }


def moved(
    game_id: int,
    mover: str,
    symbol: int,
    position: Optional[int] = None,
    column: Optional[int] = None,
    row: Optional[int] = None,
    tx: str = "0xm0",
    block: int = 3,
) -> dict[str, Any]:
    raw: dict[str, Any] = {
        "event": "MoveMade",
        "gameId": game_id,
        "player": mover,
        "symbol": symbol,
        "transactionHash": tx,
        "blockNumber": block,
    }
    if position is not None:
        raw["position"] = position
    if column is not None:
        raw["column"] = column
    if row is not None:
        raw["row"] = row
    return raw


def won(game_id: int, winner: str, prize: int = 2 * STAKES[0], tx: str = "0xw0", block: int = 9) -> dict[str, Any]:
    return {
        "event": "GameWon",
        "gameId": game_id,
        "winner": winner,
        "prize": prize,
        "transactionHash": tx,
        "blockNumber": block,
    }


def drawn(game_id: int, refund: int = STAKES[0], tx: str = "0xd0", block: int = 9) -> dict[str, Any]:
    return {
        "event": "GameDraw",
        "gameId": game_id,
        "refundEach": refund,
        "transactionHash": tx,
        "blockNumber": block,
    }
