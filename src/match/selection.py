"""
Selection engine: turns raw square clicks into a highlighted selection, and a second click into a move attempt.

The selection is transient. It is cleared on every committed move, every invalid click, every turn change and
whenever a match ends or a new one starts, so the highlighted destinations always belong to the current position.
"""

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Optional

from src.core.exceptions import IllegalMoveError
from src.match.game import MatchStateMachine
from src.match.square import parse_square

logger = logging.getLogger(__name__)


class ClickOutcome(StrEnum):
    SELECTED = "selected"
    NO_MOVES = "no moves"
    MOVED = "moved"
    CLEARED = "cleared"
    NOT_YOUR_TURN = "not your turn"
    NOT_YOUR_PIECE = "not your piece"
    MOVE_REJECTED = "move rejected"


ADVISORIES: dict[ClickOutcome, str] = {
    ClickOutcome.NOT_YOUR_TURN: "Not your turn",
    ClickOutcome.NOT_YOUR_PIECE: "You can only move your own pieces",
    ClickOutcome.NO_MOVES: "No valid moves for this piece",
    ClickOutcome.MOVE_REJECTED: "Invalid move",
}


@dataclass(frozen=True)
class Selection:
    selected_square: Optional[str] = None
    valid_moves: frozenset[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return self.selected_square is None


EMPTY_SELECTION = Selection()


@dataclass(frozen=True)
class ClickResult:
    outcome: ClickOutcome
    selection: Selection

    @property
    def advisory(self) -> Optional[str]:
        """User-visible message, None when the click needs no feedback."""
        return ADVISORIES.get(self.outcome)


class SelectionEngine:
    def __init__(self, machine: MatchStateMachine) -> None:
        self.machine = machine
        self._selection = EMPTY_SELECTION
        machine.events.on_move.append(lambda _from, _to: self.clear())
        machine.events.on_game_over.append(lambda _game_over: self.clear())
        machine.events.on_new_match.append(self.clear)

    @property
    def selection(self) -> Selection:
        return self._selection

    def clear(self) -> None:
        self._selection = EMPTY_SELECTION

    def on_square_click(self, square: str) -> ClickResult:
        """
        Handle a click on a square
        ----

        In order of priority:
        1. nobody may move (match not in progress) --> reject, nothing changes
        2. a piece is selected and the square is one of its destinations --> attempt the move
        3. the square holds a piece of the side to move --> select it and ask the oracle where it can go
        4. the square holds an opposing piece --> clear the selection, signal it's not your piece
        5. empty square --> clear the selection
        """
        square = parse_square(square)

        if not self.machine.in_progress:
            logger.debug("Click on %s ignored, match status: %s", square, self.machine.status)
            return ClickResult(ClickOutcome.NOT_YOUR_TURN, self._selection)

        selected = self._selection.selected_square
        if selected is not None and square in self._selection.valid_moves:
            return self._attempt_move(selected, square)

        position = self.machine.position
        piece_color = position.color_at(square)

        if piece_color == self.machine.current_turn:
            destinations = self.machine.oracle.legal_destinations(position, square)
            self._selection = Selection(selected_square=square, valid_moves=destinations)
            outcome = ClickOutcome.SELECTED if destinations else ClickOutcome.NO_MOVES
            return ClickResult(outcome, self._selection)

        self.clear()
        if piece_color is not None:
            return ClickResult(ClickOutcome.NOT_YOUR_PIECE, self._selection)
        return ClickResult(ClickOutcome.CLEARED, self._selection)

    # -- PRIVATE HELPERS ---
    def _attempt_move(self, from_square: str, to_square: str) -> ClickResult:
        """The destinations came from the oracle, so a rejection here means the selection and the position disagree."""
        try:
            self.machine.commit_move(from_square, to_square)
        except IllegalMoveError:
            logger.exception(
                "Internal consistency fault: oracle rejected offered move %s%s",
                from_square,
                to_square,
            )
            return ClickResult(ClickOutcome.MOVE_REJECTED, self._selection)

        self.clear()
        return ClickResult(ClickOutcome.MOVED, self._selection)
