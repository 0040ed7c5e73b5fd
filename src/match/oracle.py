"""
Rules oracle: everything that needs knowledge of the actual rules of chess is delegated to python-chess.

The match state machine and the selection engine only depend on the RulesOracle protocol,
so they never touch a chess.Board directly (apart from the opaque Position they pass around).
"""

from dataclasses import dataclass, field
from typing import Optional, Protocol, Self

import chess

from src.core.exceptions import IllegalMoveError, InvalidRequestError, NotYourTurnError
from src.core.shared_types import Color
from src.match.square import square_index

# No underpromotion: a pawn reaching the last rank always becomes a queen.
AUTO_PROMOTION: chess.PieceType = chess.QUEEN
FIFTY_MOVE_PLIES = 100


@dataclass(frozen=True)
class Position:
    """Opaque board state. Never mutated: the oracle hands out a new Position for every accepted move."""

    board: chess.Board = field(default_factory=chess.Board)

    @classmethod
    def from_fen(cls, fen: Optional[str] = None) -> Self:
        if fen is None:
            return cls()
        try:
            board = chess.Board(fen)
        except ValueError as e:
            raise InvalidRequestError(f"Invalid FEN: {fen!r}") from e
        # syntax alone says nothing about missing kings, pawns on the back rank, etc.
        if not board.is_valid():
            raise InvalidRequestError(f"Impossible position: {fen!r} ({board.status()!r})")
        return cls(board)

    @property
    def fen(self) -> str:
        return self.board.fen()

    @property
    def layout(self) -> str:
        """Render key: piece placement part of the FEN."""
        return self.board.board_fen()

    @property
    def turn(self) -> Color:
        return Color.WHITE if self.board.turn == chess.WHITE else Color.BLACK

    def color_at(self, square: str) -> Optional[Color]:
        """Color of the piece standing on the square, None for an empty square."""
        color = self.board.color_at(square_index(square))
        if color is None:
            return None
        return Color.WHITE if color == chess.WHITE else Color.BLACK


@dataclass(frozen=True)
class MoveResult:
    position: Position
    is_checkmate: bool
    is_stalemate: bool
    is_draw: bool
    is_check: bool


class RulesOracle(Protocol):
    """Legality and move application. Must be a deterministic, pure function of the position."""

    def legal_destinations(self, position: Position, square: str) -> frozenset[str]:
        """Squares the piece on 'square' can legally move to (empty for an empty square or a piece of the side not to move)."""
        ...

    def apply_move(
        self,
        position: Position,
        from_square: str,
        to_square: str,
        promotion: chess.PieceType = AUTO_PROMOTION,
    ) -> MoveResult:
        """Return the resulting position + terminal flags, or raise IllegalMoveError."""
        ...

    def assess(self, position: Position) -> MoveResult:
        """Terminal flags of a position as it stands, without making a move."""
        ...


class ChessRulesOracle:
    """RulesOracle implemented with python-chess."""

    def legal_destinations(self, position: Position, square: str) -> frozenset[str]:
        from_square = square_index(square)
        moves = position.board.generate_legal_moves(
            from_mask=chess.BB_SQUARES[from_square]
        )
        # promotions show up four times (one per piece type), the set collapses them
        return frozenset(chess.square_name(move.to_square) for move in moves)

    def apply_move(
        self,
        position: Position,
        from_square: str,
        to_square: str,
        promotion: chess.PieceType = AUTO_PROMOTION,
    ) -> MoveResult:
        mover = position.color_at(from_square)
        if mover is not None and mover != position.turn:
            raise NotYourTurnError(f"It is {position.turn}'s turn, {from_square} holds a {mover} piece.")
        move = self._find_legal_move(position.board, from_square, to_square, promotion)
        if move is None:
            raise IllegalMoveError(f"Move not allowed: {from_square}{to_square}")

        board = position.board.copy()
        board.push(move)
        return self.assess(Position(board))

    def assess(self, position: Position) -> MoveResult:
        board = position.board
        return MoveResult(
            position=position,
            is_checkmate=board.is_checkmate(),
            is_stalemate=board.is_stalemate(),
            is_draw=self._is_draw(board),
            is_check=board.is_check(),
        )

    # -- PRIVATE HELPERS ---
    def _find_legal_move(
        self,
        board: chess.Board,
        from_square: str,
        to_square: str,
        promotion: chess.PieceType,
    ) -> Optional[chess.Move]:
        """The promotion piece only applies to a pawn reaching the last rank, so try the plain move first."""
        origin = square_index(from_square)
        target = square_index(to_square)
        for candidate in (
            chess.Move(origin, target),
            chess.Move(origin, target, promotion=promotion),
        ):
            if board.is_legal(candidate):
                return candidate
        return None

    def _is_draw(self, board: chess.Board) -> bool:
        """Stalemate, insufficient material, fifty-move rule or threefold repetition of the current position."""
        return (
            board.is_stalemate()
            or board.is_insufficient_material()
            or board.halfmove_clock >= FIFTY_MOVE_PLIES
            or board.is_repetition(3)
        )
