"""
Custom exceptions.

Everything raised on purpose by the client derives from GameError, so callers (UI layer, tests)
can catch a single top-level type and leave the specific types to the layer that detects the problem.
"""


class GameError(Exception):
    """Top-level exception for the arcade client."""


class InvalidRequestError(GameError):
    """Input that cannot even be interpreted (unknown stake tier, malformed notification, ...)."""


# --- local validation (raised before anything reaches the transaction collaborator) ---
class NotFoundError(GameError):
    """Unknown game id."""


class InvalidPhaseError(GameError):
    """Action not allowed in the current phase of the game."""


class NotYourTurnError(GameError):
    """The local wallet does not hold the seat that moves next."""


class IllegalPositionError(GameError):
    """Occupied cell, full column or out-of-range input."""


class ConflictError(GameError):
    """A pending action already exists for this session."""


class StakeMismatchError(GameError):
    """The stake tier of an open game drifted between display and join."""


# --- external collaborators ---
class ExternalRejectedError(GameError):
    """The transaction collaborator reported a failure. The message is its own, verbatim."""


class LedgerQueryError(GameError):
    """A ledger query failed. Prior local state is left untouched."""


class InvalidSnapshotError(LedgerQueryError):
    """A ledger query returned data that does not fit the game (wrong board size, unknown codes)."""


# --- internal ---
class StaleNotificationDiscarded(GameError):
    """A notification would break move-count monotonicity or phase direction. Logged, never surfaced."""

    def __init__(self, message: str, needs_refresh: bool = False) -> None:
        super().__init__(message)
        self.needs_refresh = needs_refresh
