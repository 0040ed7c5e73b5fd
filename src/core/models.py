"""
Boundary layer data model(s).

The setup screen writes a SetupRecord, the match screen reads it once when it opens.
Both the service layer and the db layer use this model to send to/receive from each other,
which decouples the db schema and the domain objects from the information needed to cross that boundary.
"""

from dataclasses import asdict, dataclass
from typing import Any, Self

# Type aliases to make SetupRecord easier to read
PieceColor = str
PlayerName = str


@dataclass
class PlayerRecord:
    name: PlayerName
    color: PieceColor
    time_left: int


@dataclass
class SetupRecord:
    """Transport-safe handoff from the setup screen to the match screen."""

    player_a: PlayerRecord
    player_b: PlayerRecord
    current_turn: PieceColor = "white"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Raises KeyError / TypeError on a malformed payload, the caller decides what that means."""
        return cls(
            player_a=PlayerRecord(**data["player_a"]),
            player_b=PlayerRecord(**data["player_b"]),
            current_turn=data["current_turn"],
        )
