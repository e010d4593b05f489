"""
Ephemeral per-game selection (the cell/column the user clicked but has not submitted yet).

Kept apart from `pending_action`: choosing and un-choosing is free and synchronous, nothing is sent.
"""

from typing import Optional


class Selections:
    def __init__(self) -> None:
        self._selected: dict[int, int] = {}

    def get(self, game_id: int) -> Optional[int]:
        return self._selected.get(game_id)

    def select(self, game_id: int, position: int) -> None:
        self._selected[game_id] = position

    def clear(self, game_id: int) -> None:
        self._selected.pop(game_id, None)

    def clear_all(self) -> None:
        self._selected.clear()
