"""
How a match ended.

Winner attribution is the same for every kind: the winner is the player NOT to move at the moment the
terminal condition is detected. After a mating move the turn has already flipped to the mated side,
and a player can only flag or resign while it is their own turn.
"""

from dataclasses import dataclass
from typing import Optional

from src.core.shared_types import GameOverKind, MatchStatus
from src.match.players import Match

STATUS_FOR_KIND: dict[GameOverKind, MatchStatus] = {
    GameOverKind.CHECKMATE: MatchStatus.CHECKMATE,
    GameOverKind.STALEMATE: MatchStatus.STALEMATE,
    GameOverKind.DRAW: MatchStatus.DRAW,
    GameOverKind.TIMEOUT: MatchStatus.TIMEOUT,
}


@dataclass(frozen=True)
class GameOver:
    kind: GameOverKind
    message: str
    winner_name: Optional[str] = None
    by_resignation: bool = False

    @property
    def status(self) -> MatchStatus:
        return STATUS_FOR_KIND[self.kind]


def checkmate(match: Match) -> GameOver:
    winner = match.inactive_player().name
    return GameOver(
        kind=GameOverKind.CHECKMATE,
        winner_name=winner,
        message=f"Checkmate! {winner} wins!",
    )


def stalemate() -> GameOver:
    return GameOver(kind=GameOverKind.STALEMATE, message="Stalemate - Draw!")


def draw() -> GameOver:
    return GameOver(kind=GameOverKind.DRAW, message="Draw!")


def timeout(match: Match) -> GameOver:
    winner = match.inactive_player().name
    return GameOver(
        kind=GameOverKind.TIMEOUT,
        winner_name=winner,
        message=f"{winner} wins by timeout!",
    )


def resignation(match: Match) -> GameOver:
    """Reported as a timeout-like result, with the resigning player named in the message."""
    loser = match.active_player().name
    winner = match.inactive_player().name
    return GameOver(
        kind=GameOverKind.TIMEOUT,
        winner_name=winner,
        message=f"{loser} resigned. {winner} wins!",
        by_resignation=True,
    )
