"""
Rule modules: pluggable, pure logic describing one game's board and move legality.

Key idea: tagged-union dispatch over GameKind. The sync layer and the dispatcher only ever talk to the
RuleModule protocol through `rule_for(kind)`; adding a game means adding one variant to RULES.

None of this is authoritative: the ledger enforces the rules. The client uses it to refuse obviously
illegal input before paying for a transaction, and to decide what to highlight.
"""

from typing import Optional, Protocol

from chainarcade.core.exceptions import InvalidRequestError
from chainarcade.core.models import Board, Outcome
from chainarcade.core.shared_types import GameKind, Seat
from chainarcade.games.geometry import BoardGeometry
from chainarcade.games.gravity import ConnectFourRules
from chainarcade.games.grid import TicTacToeRules


class RuleModule(Protocol):
    """Capability set every game variant implements"""

    kind: GameKind
    geometry: BoardGeometry

    @property
    def board_size(self) -> int: ...
    def empty_board(self) -> Board: ...
    def target_cell(self, board: Board, position: int) -> int: ...
    def legal_positions(self, board: Board) -> frozenset[int]: ...
    def can_place(self, board: Board, cell: int) -> bool: ...
    def turn_owner_for(self, move_count: int) -> Seat: ...
    def is_terminal(self, board: Board) -> Optional[Outcome]: ...


RULES: dict[GameKind, RuleModule] = {
    GameKind.TICTACTOE: TicTacToeRules(),
    GameKind.CONNECT4: ConnectFourRules(),
}


def rule_for(kind: GameKind) -> RuleModule:
    try:
        return RULES[kind]
    except KeyError:
        raise InvalidRequestError(f"No rule module registered for game kind {kind!r}.")
