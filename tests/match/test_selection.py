"""Unit tests for src/match/selection.py"""

from typing import Callable

import pytest

from src.core.exceptions import IllegalMoveError, InvalidSquareError
from src.core.models import SetupRecord
from src.core.shared_types import Color, GameOverKind
from src.match.game import MatchStateMachine
from src.match.oracle import ChessRulesOracle, MoveResult, Position
from src.match.selection import (
    EMPTY_SELECTION,
    ClickOutcome,
    Selection,
    SelectionEngine,
)


class RejectingOracle(ChessRulesOracle):
    """Offers the real destinations, but refuses to apply any move."""

    def apply_move(self, position: Position, from_square: str, to_square: str, promotion: int = 5) -> MoveResult:
        raise IllegalMoveError(f"Move not allowed: {from_square}{to_square}")


@pytest.fixture
def machine(make_record: Callable[..., SetupRecord]) -> MatchStateMachine:
    """Alice plays white, Bob plays black."""
    machine = MatchStateMachine()
    machine.start(make_record())
    return machine


@pytest.fixture
def engine(machine: MatchStateMachine) -> SelectionEngine:
    return SelectionEngine(machine)


def click_move(engine: SelectionEngine, from_square: str, to_square: str) -> None:
    engine.on_square_click(from_square)
    result = engine.on_square_click(to_square)
    assert result.outcome == ClickOutcome.MOVED


# -- SELECTING --
def test_select_own_piece(engine: SelectionEngine) -> None:
    result = engine.on_square_click("e2")
    assert result.outcome == ClickOutcome.SELECTED
    assert result.advisory is None
    assert engine.selection == Selection("e2", frozenset({"e3", "e4"}))


def test_select_piece_without_moves(engine: SelectionEngine) -> None:
    """Empty set of destinations is a valid selection, with a message."""
    result = engine.on_square_click("a1")
    assert result.outcome == ClickOutcome.NO_MOVES
    assert result.advisory == "No valid moves for this piece"
    assert engine.selection == Selection("a1", frozenset())


def test_reselect_other_own_piece(engine: SelectionEngine) -> None:
    engine.on_square_click("e2")
    engine.on_square_click("b1")
    assert engine.selection == Selection("b1", frozenset({"a3", "c3"}))


def test_click_opponent_piece(engine: SelectionEngine, machine: MatchStateMachine) -> None:
    before = machine.snapshot()
    engine.on_square_click("e2")

    result = engine.on_square_click("e7")

    assert result.outcome == ClickOutcome.NOT_YOUR_PIECE
    assert result.advisory == "You can only move your own pieces"
    assert engine.selection == EMPTY_SELECTION
    assert machine.snapshot() == before


def test_click_empty_square_clears_silently(engine: SelectionEngine) -> None:
    engine.on_square_click("e2")
    result = engine.on_square_click("e5")
    assert result.outcome == ClickOutcome.CLEARED
    assert result.advisory is None
    assert engine.selection.is_empty


def test_invalid_square_name(engine: SelectionEngine) -> None:
    with pytest.raises(InvalidSquareError):
        engine.on_square_click("z9")


@pytest.mark.parametrize("square", ["a2", "b1", "e2", "g1", "d1"])
def test_valid_moves_match_the_oracle(
    engine: SelectionEngine, machine: MatchStateMachine, square: str
) -> None:
    engine.on_square_click(square)
    expected = ChessRulesOracle().legal_destinations(machine.position, square)
    assert engine.selection.valid_moves == expected


# -- MOVING --
def test_second_click_moves(engine: SelectionEngine, machine: MatchStateMachine) -> None:
    engine.on_square_click("e2")
    result = engine.on_square_click("e4")

    assert result.outcome == ClickOutcome.MOVED
    assert engine.selection == EMPTY_SELECTION
    assert machine.current_turn == Color.BLACK
    assert machine.position.color_at("e4") == Color.WHITE


def test_destinations_are_never_stale(engine: SelectionEngine, machine: MatchStateMachine) -> None:
    """After a move, the next selection is computed on the new position."""
    click_move(engine, "e2", "e4")
    click_move(engine, "d7", "d5")

    engine.on_square_click("e4")
    assert engine.selection.valid_moves == {"e5", "d5"}
    assert engine.selection.valid_moves == ChessRulesOracle().legal_destinations(
        machine.position, "e4"
    )


def test_selection_cleared_when_turn_changes_elsewhere(
    engine: SelectionEngine, machine: MatchStateMachine
) -> None:
    """A move committed without the engine still clears a pending selection."""
    engine.on_square_click("g1")
    machine.commit_move("e2", "e4")
    assert engine.selection == EMPTY_SELECTION


def test_oracle_rejection_keeps_selection(make_record: Callable[..., SetupRecord]) -> None:
    machine = MatchStateMachine(oracle=RejectingOracle())
    machine.start(make_record())
    engine = SelectionEngine(machine)
    before = machine.snapshot()

    engine.on_square_click("e2")
    result = engine.on_square_click("e4")

    assert result.outcome == ClickOutcome.MOVE_REJECTED
    assert result.advisory == "Invalid move"
    assert engine.selection == Selection("e2", frozenset({"e3", "e4"}))
    assert machine.snapshot() == before


# -- END OF THE GAME --
def test_scholars_mate_by_clicks(engine: SelectionEngine, machine: MatchStateMachine) -> None:
    for from_square, to_square in [
        ("e2", "e4"),
        ("e7", "e5"),
        ("f1", "c4"),
        ("b8", "c6"),
        ("d1", "h5"),
        ("g8", "f6"),
        ("h5", "f7"),
    ]:
        click_move(engine, from_square, to_square)

    assert machine.game_over is not None
    assert machine.game_over.kind == GameOverKind.CHECKMATE
    assert machine.game_over.winner_name == "Alice"

    before = machine.snapshot()
    for square in ["e8", "a7", "a6", "e4"]:
        result = engine.on_square_click(square)
        assert result.outcome == ClickOutcome.NOT_YOUR_TURN
        assert result.advisory == "Not your turn"
        assert engine.selection == EMPTY_SELECTION
    assert machine.snapshot() == before


def test_selection_cleared_on_resign(engine: SelectionEngine, machine: MatchStateMachine) -> None:
    engine.on_square_click("e2")
    machine.resign()
    assert engine.selection == EMPTY_SELECTION


def test_selection_cleared_on_new_match(engine: SelectionEngine, machine: MatchStateMachine) -> None:
    engine.on_square_click("e2")
    machine.new_match("Carol", "Dave")
    assert engine.selection == EMPTY_SELECTION
