from __future__ import annotations

from enum import Enum


class Outcome(str, Enum):
    """A bettable three-way outcome."""

    HOME = "home"
    DRAW = "draw"
    AWAY = "away"


class MatchResult(str, Enum):
    HOME = "home"
    DRAW = "draw"
    AWAY = "away"
    UNKNOWN = "unknown"


class MatchStatus(str, Enum):
    SCHEDULED = "scheduled"
    FINISHED = "finished"
    OTHER = "other"


OUTCOMES: tuple[Outcome, ...] = (Outcome.HOME, Outcome.DRAW, Outcome.AWAY)


__all__ = ["Outcome", "MatchResult", "MatchStatus", "OUTCOMES"]
