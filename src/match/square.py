"""
Square names as they come in from the browser.

(placed in its own module as the selection engine, the oracle and the API models all need to parse squares)
"""

import chess

from src.core.exceptions import InvalidSquareError


def parse_square(sq: str) -> str:
    """Normalise a square name coming from the outside world ('E4' -> 'e4'), rejecting anything off the board."""
    name = sq.strip().lower()
    if name not in chess.SQUARE_NAMES:
        raise InvalidSquareError(f"Cannot interpret {sq!r} as a square on the board.")
    return name


def square_index(sq: str) -> chess.Square:
    """Parse straight to python-chess' square index (a1 = 0, h8 = 63)."""
    return chess.SQUARE_NAMES.index(parse_square(sq))
