"""Flat countdown clock. Always charges whoever is to move, so handing over the clock is implied by the turn flip."""

from dataclasses import dataclass
from typing import Optional

from src.match.outcome import GameOver, timeout
from src.match.players import Match


@dataclass(frozen=True)
class ClockCharge:
    match: Match
    game_over: Optional[GameOver] = None


class Clock:
    def charge(self, match: Match, seconds: int = 1) -> ClockCharge:
        """
        Debit the side to move by 'seconds' whole seconds.
        ----

        The remaining time is never written as a negative number. Running out of time
        (reaching zero, or a charge that would go below zero) produces a timeout won by the waiting player.
        """
        if seconds < 0:
            raise ValueError(f"Cannot charge a negative amount of time: {seconds}")
        if seconds == 0:
            return ClockCharge(match)

        active = match.active_player()
        remaining = active.time_left - seconds
        charged = match.with_time_left(active.color, max(remaining, 0))
        if remaining > 0:
            return ClockCharge(charged)
        return ClockCharge(charged, timeout(charged))
