"""
The MatchStateMachine is the entrypoint into the domain layer for the service layer.
It is the single owner of the match: position, side to move, remaining time and how the match ended.
Every transition replaces those values as a whole and then notifies subscribers with an immutable snapshot.

Status flow: SETUP -> IN_PROGRESS -> {CHECKMATE, STALEMATE, DRAW, TIMEOUT}. The last four are absorbing.
"""

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Optional

from src.core.exceptions import GameStateError
from src.core.models import SetupRecord
from src.core.shared_types import (
    DEFAULT_TIME_CONTROL,
    Color,
    MatchStatus,
    TimeControl,
)
from src.match.clock import Clock
from src.match.oracle import AUTO_PROMOTION, ChessRulesOracle, MoveResult, Position, RulesOracle
from src.match.outcome import GameOver, checkmate, draw, resignation, stalemate
from src.match.players import Match, Player, build_setup_record

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchSnapshot:
    """Read-only view handed to whoever renders the match."""

    status: MatchStatus
    fen: str
    layout: str
    current_turn: Color
    players: tuple[Player, ...]
    in_check: bool
    game_over: Optional[GameOver]


# -- Event definitions --
TransitionCallback = Callable[[MatchSnapshot], None]
MoveCallback = Callable[[str, str], None]  # from square, to square
CheckCallback = Callable[[Color], None]  # color of the king in check
GameOverCallback = Callable[[GameOver], None]
NewMatchCallback = Callable[[], None]


@dataclass
class MatchEvents:
    """Observable callbacks. Multiple handlers per event."""

    on_transition: list[TransitionCallback] = field(default_factory=list)
    on_move: list[MoveCallback] = field(default_factory=list)
    on_check: list[CheckCallback] = field(default_factory=list)
    on_game_over: list[GameOverCallback] = field(default_factory=list)
    on_new_match: list[NewMatchCallback] = field(default_factory=list)


class MatchStateMachine:
    def __init__(
        self, oracle: Optional[RulesOracle] = None, clock: Optional[Clock] = None
    ) -> None:
        self.oracle: RulesOracle = oracle or ChessRulesOracle()
        self.clock = clock or Clock()
        self.events = MatchEvents()
        self._status = MatchStatus.SETUP
        self._match: Optional[Match] = None
        self._position = Position()
        self._in_check = False
        self._game_over: Optional[GameOver] = None

    # --- PROPERTIES ---
    @property
    def status(self) -> MatchStatus:
        return self._status

    @property
    def in_progress(self) -> bool:
        return self._status == MatchStatus.IN_PROGRESS

    @property
    def is_over(self) -> bool:
        return self._game_over is not None

    @property
    def game_over(self) -> Optional[GameOver]:
        return self._game_over

    @property
    def position(self) -> Position:
        return self._position

    @property
    def match(self) -> Match:
        if self._match is None:
            raise GameStateError("No match has been set up yet.")
        return self._match

    @property
    def current_turn(self) -> Color:
        return self.match.current_turn

    def active_player(self) -> Player:
        return self.match.active_player()

    def inactive_player(self) -> Player:
        return self.match.inactive_player()

    def snapshot(self) -> MatchSnapshot:
        match = self.match
        return MatchSnapshot(
            status=self._status,
            fen=self._position.fen,
            layout=self._position.layout,
            current_turn=match.current_turn,
            players=match.players,
            in_check=self._in_check,
            game_over=self._game_over,
        )

    # --- TRANSITIONS ---
    def new_match(
        self,
        name_a: str,
        name_b: str,
        time_control: TimeControl = DEFAULT_TIME_CONTROL,
        rng: Optional[random.Random] = None,
        starting_fen: Optional[str] = None,
    ) -> MatchSnapshot:
        """Flip a coin for the colors, give both players the full time control and start playing."""
        record = build_setup_record(name_a, name_b, time_control, rng)
        return self.start(record, starting_fen=starting_fen)

    def start(
        self, record: SetupRecord, starting_fen: Optional[str] = None
    ) -> MatchSnapshot:
        """
        Start a match from the setup screen's handoff record.
        ----

        Throws away whatever match was going on before (including a finished one).
        Raises SetupError when the record is corrupt and InvalidRequestError for an impossible starting position,
        in which case nothing changes. A starting position that is already decided ends the match right away.
        """
        match = Match.from_record(record)
        position = Position.from_fen(starting_fen)
        # a custom starting position decides who moves first
        if position.turn != match.current_turn:
            match = match.with_turn_flipped()
        assessment = self.oracle.assess(position)

        self._match = match
        self._position = position
        self._in_check = assessment.is_check
        self._game_over = None
        self._status = MatchStatus.IN_PROGRESS
        logger.info(
            "New match: %s (%s) vs %s (%s)",
            match.player_a.name,
            match.player_a.color,
            match.player_b.name,
            match.player_b.color,
        )

        self._emit_new_match()
        game_over = self._classify(assessment, match)
        if game_over is not None:
            self._finish(game_over)
        return self._emit_transition()

    def commit_move(self, from_square: str, to_square: str) -> MatchSnapshot:
        """
        Attempt to make a move for the side to move.
        -----

        1. let the oracle check legality and apply the move (pawns always promote to a queen)
        2. replace the position and flip the turn
        3. classify the new position: checkmate -> stalemate -> other draw -> check (check alone never ends the match)

        Raises GameStateError when the match is not in progress and IllegalMoveError when the oracle rejects the move.
        In both cases nothing changes.
        """
        self._assert_in_progress()
        result = self.oracle.apply_move(
            self._position, from_square, to_square, promotion=AUTO_PROMOTION
        )

        mover = self.match.active_player()
        match = self.match.with_turn_flipped()
        game_over = self._classify(result, match)

        self._position = result.position
        self._match = match
        self._in_check = result.is_check
        logger.info("%s (%s) played %s%s", mover.name, mover.color, from_square, to_square)

        self._emit_move(from_square, to_square)
        if game_over is not None:
            self._finish(game_over)
        elif result.is_check:
            self._emit_check(match.current_turn)
        return self._emit_transition()

    def resign(self) -> MatchSnapshot:
        """The side to move gives up. Does not need the rules oracle."""
        self._assert_in_progress()
        self._finish(resignation(self.match))
        return self._emit_transition()

    def tick(self, seconds: int = 1) -> MatchSnapshot:
        """Charge the side to move. A no-op unless the match is in progress."""
        if not self.in_progress:
            return self.snapshot()

        charge = self.clock.charge(self.match, seconds)
        self._match = charge.match
        if charge.game_over is not None:
            self._finish(charge.game_over)
        return self._emit_transition()

    # -- PRIVATE HELPERS ---
    def _assert_in_progress(self) -> None:
        if not self.in_progress:
            raise GameStateError(f"Match is not in progress. status: {self._status}")

    def _classify(self, result: MoveResult, match: Match) -> Optional[GameOver]:
        """NOTE match already has the turn flipped: the side to move is the one that might be mated."""
        if result.is_checkmate:
            return checkmate(match)
        if result.is_stalemate:
            return stalemate()
        if result.is_draw:
            return draw()
        return None

    def _finish(self, game_over: GameOver) -> None:
        self._game_over = game_over
        self._status = game_over.status
        logger.info("Match over (%s): %s", game_over.kind, game_over.message)
        self._emit_game_over(game_over)

    def _emit_transition(self) -> MatchSnapshot:
        snapshot = self.snapshot()
        for cb in self.events.on_transition:
            cb(snapshot)
        return snapshot

    def _emit_move(self, from_square: str, to_square: str) -> None:
        for cb in self.events.on_move:
            cb(from_square, to_square)

    def _emit_check(self, color: Color) -> None:
        for cb in self.events.on_check:
            cb(color)

    def _emit_game_over(self, game_over: GameOver) -> None:
        for cb in self.events.on_game_over:
            cb(game_over)

    def _emit_new_match(self) -> None:
        for cb in self.events.on_new_match:
            cb()
