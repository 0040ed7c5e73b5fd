"""
Custom exceptions.

Every layer raises a subclass of GameError, so callers higher up can decide to catch the top-level error only.
NOTE: none of these derive from ValueError, so pydantic validators let them propagate as-is.
"""


class GameError(Exception):
    """Top-level exception for anything going wrong while playing a match."""


class GameStateError(GameError):
    """The requested transition is not allowed in the current match status (e.g. the match is already over)."""


class IllegalMoveError(GameError):
    """The rules oracle rejected a move."""


class NotYourTurnError(IllegalMoveError):
    """The side that is not to move tried to move a piece."""


class InvalidSquareError(GameError):
    """Cannot interpret a string as a square on the board."""


class SetupError(GameError):
    """The setup record handed to the match screen is missing or corrupt."""


class RepositoryError(GameError):
    """Persistence layer could not perform the requested operation."""


class InvalidRequestError(GameError):
    """Incoming request data does not make sense."""
