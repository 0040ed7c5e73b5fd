"""Orchestration of communication from API router to the match domain and persistence layers (and the reverse direction)."""

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

from src.core.config import Settings
from src.core.exceptions import RepositoryError, SetupError
from src.core.models import SetupRecord
from src.core.shared_types import Color, TimeControl
from src.db.repository import SetupRepository
from src.match.game import MatchSnapshot, MatchStateMachine
from src.match.oracle import RulesOracle
from src.match.outcome import GameOver
from src.match.players import build_setup_record
from src.match.selection import Selection, SelectionEngine
from src.services.ticker import ClockTicker

logger = logging.getLogger(__name__)

CHECK_ADVISORY = "Check!"


@dataclass(frozen=True)
class ScreenSnapshot:
    """Everything the browser needs to draw the match screen."""

    match: MatchSnapshot
    selection: Selection
    flipped: bool
    advisory: Optional[str]


class MatchService:
    """
    Setup screen + match screen orchestration.
    ----

    The setup screen stores a SetupRecord through the repository. Opening the match screen reads it and builds a
    fresh state machine, selection engine and clock ticker. Leaving the screen (home / new game) tears all of them down.

    The calls that touch storage accept the repository to use for that call (e.g. one bound to the current request's
    database session), falling back to the one given at construction.
    """

    def __init__(
        self,
        repository: Optional[SetupRepository] = None,
        settings: Optional[Settings] = None,
        oracle: Optional[RulesOracle] = None,
        rng: Optional[random.Random] = None,
        now: Callable[[], float] = time.monotonic,
    ) -> None:
        self.repo = repository
        self.settings = settings or Settings()
        self._oracle = oracle
        self._rng = rng or random.Random()
        self._now = now
        self.machine: Optional[MatchStateMachine] = None
        self.selection: Optional[SelectionEngine] = None
        self.ticker: Optional[ClockTicker] = None
        self._flipped = False
        self._advisory: Optional[str] = None

    # -- Setup screen ---
    def create_setup(
        self,
        name_a: str,
        name_b: str,
        time_control: Optional[TimeControl] = None,
        repository: Optional[SetupRepository] = None,
    ) -> SetupRecord:
        """Players entered their names and picked a time control."""
        time_control = time_control or self.settings.default_time_control
        record = build_setup_record(name_a, name_b, time_control, self._rng)
        stored = self._storage(repository).save_setup(record)
        logger.info(
            "Setup stored: %s vs %s, %d minutes",
            record.player_a.name,
            record.player_b.name,
            time_control.value,
        )
        return stored

    # -- Match screen lifecycle ---
    @property
    def is_open(self) -> bool:
        return self.machine is not None

    def open_match(
        self,
        starting_fen: Optional[str] = None,
        repository: Optional[SetupRepository] = None,
    ) -> ScreenSnapshot:
        """
        Enter the match screen.
        ----

        Raises SetupError when the setup record is missing or corrupt: the caller should send the players back to setup.
        Does not start the clock, see start_clock().
        """
        record = self._storage(repository).get_setup()
        if record is None:
            raise SetupError("No match has been set up. Go back to the setup screen.")

        machine = MatchStateMachine(oracle=self._oracle)
        selection = SelectionEngine(machine)
        machine.events.on_check.append(self._on_check)
        machine.events.on_game_over.append(self._on_game_over)
        machine.start(record, starting_fen=starting_fen)

        # only replace the running screen once the new match is known to be valid
        self.close_match()
        self.machine = machine
        self.selection = selection
        self.ticker = ClockTicker(
            machine, interval=self.settings.tick_interval, now=self._now
        )
        self._flipped = machine.match.player_a.color == Color.BLACK
        self._advisory = None
        return self.snapshot()

    def start_clock(self) -> None:
        """Must be called from within the running event loop."""
        machine, _ = self._require_open()
        if self.ticker is not None and machine.in_progress:
            self.ticker.start()

    def close_match(self) -> None:
        """Tear down the match screen. Cancels the clock so nothing keeps mutating the discarded match."""
        if self.ticker is not None:
            self.ticker.cancel()
        self.machine = None
        self.selection = None
        self.ticker = None
        self._advisory = None

    def snapshot(self) -> ScreenSnapshot:
        machine, selection = self._require_open()
        return ScreenSnapshot(
            match=machine.snapshot(),
            selection=selection.selection,
            flipped=self._flipped,
            advisory=self._advisory,
        )

    # -- Intents from the browser ---
    def select_square(self, square: str) -> ScreenSnapshot:
        _, selection = self._require_open()
        self._advisory = None
        result = selection.on_square_click(square)
        if result.advisory is not None:
            self._advisory = result.advisory
        return self.snapshot()

    def resign(self) -> ScreenSnapshot:
        """Raises GameStateError when the match is already over."""
        machine, _ = self._require_open()
        self._advisory = None
        machine.resign()
        return self.snapshot()

    def flip_orientation(self) -> ScreenSnapshot:
        self._require_open()
        self._flipped = not self._flipped
        return self.snapshot()

    def go_home(self) -> None:
        """Leave the match screen. The setup record stays, so the match screen can be opened again."""
        self.close_match()

    def new_game(self, repository: Optional[SetupRepository] = None) -> None:
        """Leave the match screen and forget the setup."""
        self.close_match()
        self._storage(repository).delete_setup()
        logger.info("Setup record deleted, back to setup")

    # -- Internal helpers --
    def _storage(self, repository: Optional[SetupRepository]) -> SetupRepository:
        if repository is None:
            repository = self.repo
        if repository is None:
            raise RepositoryError("No storage for the setup record is available.")
        return repository

    def _require_open(self) -> tuple[MatchStateMachine, SelectionEngine]:
        if self.machine is None or self.selection is None:
            raise SetupError("No match screen is open. Go back to the setup screen.")
        return self.machine, self.selection

    def _on_check(self, _color: Color) -> None:
        self._advisory = CHECK_ADVISORY

    def _on_game_over(self, game_over: GameOver) -> None:
        self._advisory = game_over.message
        if self.ticker is not None:
            self.ticker.cancel()
