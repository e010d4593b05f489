"""
Type definitions used across layers
"""

from enum import IntEnum, StrEnum


class GameKind(StrEnum):
    TICTACTOE = "tictactoe"
    CONNECT4 = "connect4"


# --- Cell / Seat / Phase values mirror the ledger's own uint8 encodings, so decoding a query result is just Enum(value)
class Cell(IntEnum):
    EMPTY = 0
    MARK_A = 1
    MARK_B = 2


class Seat(IntEnum):
    A = 1
    B = 2

    @property
    def symbol(self) -> str:
        return "X" if self == Seat.A else "O"

    @property
    def mark(self) -> Cell:
        return Cell.MARK_A if self == Seat.A else Cell.MARK_B

    @property
    def other(self) -> "Seat":
        return Seat.B if self == Seat.A else Seat.A


class Phase(IntEnum):
    AWAITING_OPPONENT = 0
    ACTIVE = 1
    FINISHED = 2


class ActionKind(StrEnum):
    CREATE = "create"
    JOIN = "join"
    MOVE = "move"
    WITHDRAW = "withdraw"


class EventKind(StrEnum):
    GAME_CREATED = "GameCreated"
    GAME_JOINED = "GameJoined"
    MOVE_MADE = "MoveMade"
    GAME_WON = "GameWon"
    GAME_DRAW = "GameDraw"
    # synthetic, written by the dispatcher once a local transaction is confirmed
    TX_CONFIRMED = "TxConfirmed"


class StatusKind(StrEnum):
    WAITING = "waiting"
    TURN = "turn"
    DRAW = "draw"
    WINNER = "winner"
