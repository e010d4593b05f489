"""
Lobby: the contract-wide state shown outside of a single game.

Stake table, next game id, the local wallet's withdrawable balance, and the open-games listing.
Rebuilt wholesale on every refresh cycle; it never creates or touches sessions.
"""

import asyncio
import logging
from typing import Optional, Sequence

from chainarcade.api.models import OpenGame
from chainarcade.core.config import STAKE_TIER_COUNT
from chainarcade.core.exceptions import InvalidRequestError, LedgerQueryError
from chainarcade.core.models import Address
from chainarcade.core.shared_types import Phase
from chainarcade.core.units import format_ether
from chainarcade.sync.ledger import GameInfo, LedgerReader

logger = logging.getLogger(__name__)


class Lobby:
    def __init__(
        self, ledger: LedgerReader, identity: Address, tier_count: int = STAKE_TIER_COUNT
    ) -> None:
        self.ledger = ledger
        self.identity = identity
        self.tier_count = tier_count
        self.stake_options: list[int] = []
        self.next_game_id: int = 0
        self.balance: int = 0
        self.open_games: list[OpenGame] = []

    async def refresh(self) -> list[OpenGame]:
        """
        One refresh cycle
        ----

        1. stake table, next game id and balance, read together
        2. every game id below the counter is read; those still waiting for an opponent are listed

        If step 1 fails nothing is replaced. In step 2 a game that cannot be read is skipped.
        """
        try:
            *stakes, next_id, balance = await asyncio.gather(
                *(self.ledger.stake_option(tier) for tier in range(self.tier_count)),
                self.ledger.next_game_id(),
                self.ledger.balance_of(self.identity),
            )
        except Exception as e:
            raise LedgerQueryError(f"Lobby refresh failed: {e}") from e

        open_games: list[OpenGame] = []
        for game_id in range(int(next_id)):
            try:
                listed = self._listing_row(
                    game_id, await self.ledger.get_game_info(game_id), stakes
                )
            except Exception as e:
                logger.debug("Skipping game %s in listing: %s", game_id, e)
                continue
            if listed is not None:
                open_games.append(listed)

        self.stake_options = [int(stake) for stake in stakes]
        self.next_game_id = int(next_id)
        self.balance = int(balance)
        self.open_games = open_games
        return open_games

    async def refresh_balance(self) -> int:
        try:
            self.balance = int(await self.ledger.balance_of(self.identity))
        except Exception as e:
            raise LedgerQueryError(f"Balance query failed: {e}") from e
        return self.balance

    def stake_amount(self, tier: int) -> int:
        if not self.stake_options:
            raise InvalidRequestError("Stake table not loaded yet. Refresh the lobby first.")
        if not 0 <= tier < len(self.stake_options):
            raise InvalidRequestError(
                f"Unknown stake tier {tier}. Pick one from 0-{len(self.stake_options) - 1}."
            )
        return self.stake_options[tier]

    def open_game(self, game_id: int) -> Optional[OpenGame]:
        return next((game for game in self.open_games if game.game_id == game_id), None)

    def _listing_row(
        self, game_id: int, raw_info: dict | Sequence, stakes: list[int]
    ) -> Optional[OpenGame]:
        """None for a game that is not open. Raises on a row that cannot be decoded."""
        info = GameInfo.from_ledger(raw_info)
        if info.phase != Phase.AWAITING_OPPONENT:
            return None
        if not 0 <= info.stake_tier < len(stakes):
            logger.warning("Game %s uses unknown stake tier %s", game_id, info.stake_tier)
            return None
        return OpenGame(
            game_id=game_id,
            seat_a=info.seat_a,
            stake_tier=info.stake_tier,
            stake_amount=int(stakes[info.stake_tier]),
        )

    def stake_labels(self) -> list[str]:
        """Labels for the stake picker: 'Option 0 (0.01 ETH)'"""
        return [
            f"Option {tier} ({format_ether(amount)} ETH)"
            for tier, amount in enumerate(self.stake_options)
        ]
