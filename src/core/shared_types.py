"""
Type definitions used across layers
"""

from enum import IntEnum, StrEnum


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opposite(self) -> "Color":
        return Color.BLACK if self == Color.WHITE else Color.WHITE


class MatchStatus(StrEnum):
    SETUP = "setup"
    IN_PROGRESS = "in progress"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW = "draw"
    TIMEOUT = "timeout"


class GameOverKind(StrEnum):
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW = "draw"
    TIMEOUT = "timeout"


class TimeControl(IntEnum):
    """Flat countdown choices offered on the setup screen, in minutes."""

    FIVE_MINUTES = 5
    TEN_MINUTES = 10

    @property
    def seconds(self) -> int:
        return self.value * 60


DEFAULT_TIME_CONTROL = TimeControl.TEN_MINUTES
