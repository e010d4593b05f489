"""
Client configuration.

Values can be overridden through environment variables (or a local .env file).
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from chainarcade.core.shared_types import GameKind

load_dotenv()


@dataclass(frozen=True)
class GameDescriptor:
    """One entry of the game registry: what the lobby shows and which contract backs it."""

    kind: GameKind
    name: str
    icon: str
    description: str
    contract_address: str


GAME_REGISTRY: dict[GameKind, GameDescriptor] = {
    GameKind.TICTACTOE: GameDescriptor(
        kind=GameKind.TICTACTOE,
        name="TIC TAC TOE",
        icon="⭕",
        description="Classic 3x3 grid game. Get three in a row to win!",
        contract_address=os.getenv(
            "TICTACTOE_CONTRACT_ADDRESS", "0x2dA8Edf5D07628A0FB9224fef70c56ec691cefa9"
        ),
    ),
    GameKind.CONNECT4: GameDescriptor(
        kind=GameKind.CONNECT4,
        name="CONNECT 4",
        icon="🔴",
        description="Drop pieces into columns. Get four in a row to win!",
        contract_address=os.getenv(
            "CONNECT4_CONTRACT_ADDRESS", "0xC21bA6f79E41C9501C013Cf4C17D107682a86fd3"
        ),
    ),
}

# Gas limits handed to the transaction collaborator with every action
GAS_LIMIT_DEFAULT = int(os.getenv("GAS_LIMIT_DEFAULT", "500000"))
GAS_LIMIT_WITHDRAW = int(os.getenv("GAS_LIMIT_WITHDRAW", "200000"))

# The contracts expose STAKE_OPTIONS(0..2)
STAKE_TIER_COUNT = int(os.getenv("STAKE_TIER_COUNT", "3"))

EVENT_LOG_CAPACITY = int(os.getenv("EVENT_LOG_CAPACITY", "20"))

# A pending action older than this is flagged in the view model. It is never cleared automatically.
PENDING_OVERDUE_SECONDS = float(os.getenv("PENDING_OVERDUE_SECONDS", "120"))

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
