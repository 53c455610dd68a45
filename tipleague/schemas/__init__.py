"""Pydantic schemas for API requests and responses."""

from tipleague.schemas.bet import BetConfirmation, BetSubmission, UpcomingMatch
from tipleague.schemas.leaderboard import LeaderboardRow

__all__ = [
    "BetConfirmation",
    "BetSubmission",
    "UpcomingMatch",
    "LeaderboardRow",
]
