"""Leaderboard Pydantic schemas."""

from pydantic import BaseModel, Field


class LeaderboardRow(BaseModel):
    """One ranked member of a league."""

    username: str
    name: str
    score: float = Field(description="Sum of odds of correct eligible bets")
    correct_bets: int
    final_balance: float = Field(description="Score minus the league betting volume")
