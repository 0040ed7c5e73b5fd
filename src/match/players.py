"""
Players and the Match value (who plays which color, whose turn it is, how much time everyone has left).

Both are immutable: every transition builds a new Match and swaps it in as a whole.
"""

import random
from dataclasses import dataclass, replace
from typing import Optional, Self

from src.core.exceptions import SetupError
from src.core.models import PlayerRecord, SetupRecord
from src.core.shared_types import Color, TimeControl


@dataclass(frozen=True)
class Player:
    name: str
    color: Color
    time_left: int

    @classmethod
    def from_record(cls, record: PlayerRecord) -> Self:
        """Validation of untrusted setup data happens here."""
        name = record.name.strip() if isinstance(record.name, str) else ""
        if not name:
            raise SetupError("Player name must be a non-empty text.")
        if record.color not in Color:
            raise SetupError(
                f"Invalid color {record.color!r}. Pick one from {','.join(Color)}"
            )
        if (
            not isinstance(record.time_left, int)
            or isinstance(record.time_left, bool)
            or record.time_left < 0
        ):
            raise SetupError(
                f"Remaining time must be a non-negative number of seconds, got {record.time_left!r}."
            )
        return cls(name=name, color=Color(record.color), time_left=record.time_left)

    def to_record(self) -> PlayerRecord:
        return PlayerRecord(
            name=self.name, color=self.color.value, time_left=self.time_left
        )


@dataclass(frozen=True)
class Match:
    player_a: Player
    player_b: Player
    current_turn: Color = Color.WHITE

    def __post_init__(self) -> None:
        if self.player_a.color == self.player_b.color:
            raise SetupError("Both players cannot play with the same color.")

    @classmethod
    def from_record(cls, record: SetupRecord) -> Self:
        if record.current_turn != Color.WHITE:
            raise SetupError(
                f"A match always starts with white to move, got {record.current_turn!r}."
            )
        return cls(
            player_a=Player.from_record(record.player_a),
            player_b=Player.from_record(record.player_b),
            current_turn=Color.WHITE,
        )

    def to_record(self) -> SetupRecord:
        return SetupRecord(
            player_a=self.player_a.to_record(),
            player_b=self.player_b.to_record(),
            current_turn=self.current_turn.value,
        )

    @property
    def players(self) -> tuple[Player, Player]:
        return (self.player_a, self.player_b)

    def player(self, color: Color) -> Player:
        return self.player_a if self.player_a.color == color else self.player_b

    def active_player(self) -> Player:
        """The side to move."""
        return self.player(self.current_turn)

    def inactive_player(self) -> Player:
        """The side waiting for the opponent to move."""
        return self.player(self.current_turn.opposite)

    def with_turn_flipped(self) -> Self:
        return replace(self, current_turn=self.current_turn.opposite)

    def with_time_left(self, color: Color, time_left: int) -> Self:
        if self.player_a.color == color:
            return replace(self, player_a=replace(self.player_a, time_left=time_left))
        return replace(self, player_b=replace(self.player_b, time_left=time_left))


def build_setup_record(
    name_a: str,
    name_b: str,
    time_control: TimeControl,
    rng: Optional[random.Random] = None,
) -> SetupRecord:
    """
    What the setup screen hands over to the match screen.
    ----

    Colors are assigned by an unbiased coin flip, each player starts with the full time control.
    """
    rng = rng or random.Random()
    a_plays_white = rng.random() < 0.5
    color_a = Color.WHITE if a_plays_white else Color.BLACK
    record = SetupRecord(
        player_a=PlayerRecord(
            name=name_a.strip(), color=color_a.value, time_left=time_control.seconds
        ),
        player_b=PlayerRecord(
            name=name_b.strip(),
            color=color_a.opposite.value,
            time_left=time_control.seconds,
        ),
        current_turn=Color.WHITE.value,
    )
    # fail early on empty names
    Match.from_record(record)
    return record
