"""Requests and Response models"""

from typing import Optional, Self

from pydantic import BaseModel, field_validator

from src.core.exceptions import InvalidRequestError
from src.core.models import PlayerRecord, SetupRecord
from src.core.shared_types import (
    DEFAULT_TIME_CONTROL,
    Color,
    GameOverKind,
    MatchStatus,
    TimeControl,
)
from src.match.outcome import GameOver
from src.match.players import Player
from src.match.square import parse_square
from src.services.match_service import ScreenSnapshot

PlayerName = str


# --- REQUEST MODELS ---
class SetupRequest(BaseModel):
    player_a: PlayerName
    player_b: PlayerName
    minutes: TimeControl = DEFAULT_TIME_CONTROL

    @field_validator(*["player_a", "player_b"])
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not value.strip():
            raise InvalidRequestError("Both players need a name.")
        return value.strip()


class SelectSquareRequest(BaseModel):
    square: str

    @field_validator("square")
    @classmethod
    def validate_square(cls, value: str) -> str:
        # raises InvalidSquareError for anything that is not on the board
        return parse_square(value)


# --- RESPONSE MODELS ---
class PlayerResponse(BaseModel):
    name: PlayerName
    color: Color
    time_left: int

    @classmethod
    def from_player(cls, player: Player | PlayerRecord) -> Self:
        return cls(name=player.name, color=player.color, time_left=player.time_left)


class SetupResponse(BaseModel):
    player_a: PlayerResponse
    player_b: PlayerResponse
    current_turn: Color

    @classmethod
    def from_record(cls, record: SetupRecord) -> Self:
        return cls(
            player_a=PlayerResponse.from_player(record.player_a),
            player_b=PlayerResponse.from_player(record.player_b),
            current_turn=record.current_turn,
        )


class SetupScreenResponse(BaseModel):
    time_controls: list[int]
    default_minutes: int


class GameOverResponse(BaseModel):
    kind: GameOverKind
    winner_name: Optional[PlayerName]
    message: str
    by_resignation: bool

    @classmethod
    def from_game_over(cls, game_over: GameOver) -> Self:
        return cls(
            kind=game_over.kind,
            winner_name=game_over.winner_name,
            message=game_over.message,
            by_resignation=game_over.by_resignation,
        )


class SelectionResponse(BaseModel):
    selected_square: Optional[str]
    valid_moves: list[str]


class MatchResponse(BaseModel):
    status: MatchStatus
    fen: str
    layout: str
    current_turn: Color
    players: list[PlayerResponse]
    in_check: bool
    game_over: Optional[GameOverResponse]
    selection: SelectionResponse
    flipped: bool
    advisory: Optional[str]

    @classmethod
    def from_snapshot(cls, screen: ScreenSnapshot) -> Self:
        match = screen.match
        return cls(
            status=match.status,
            fen=match.fen,
            layout=match.layout,
            current_turn=match.current_turn,
            players=[PlayerResponse.from_player(player) for player in match.players],
            in_check=match.in_check,
            game_over=(
                GameOverResponse.from_game_over(match.game_over)
                if match.game_over
                else None
            ),
            selection=SelectionResponse(
                selected_square=screen.selection.selected_square,
                valid_moves=sorted(screen.selection.valid_moves),
            ),
            flipped=screen.flipped,
            advisory=screen.advisory,
        )
