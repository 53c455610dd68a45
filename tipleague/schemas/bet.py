"""Bet Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from tipleague.enums import Outcome


class BetSubmission(BaseModel):
    """Bet request body."""

    fixture_id: int
    prediction: Outcome


class BetConfirmation(BaseModel):
    """Stored bet, as echoed back to the user."""

    username: str
    fixture_id: int
    prediction: Outcome
    home_team: str
    away_team: str
    kickoff: datetime


class UpcomingMatch(BaseModel):
    """Upcoming fixture with the requesting user's bet attached."""

    fixture_id: int
    kickoff: datetime
    matchday: int
    home_team: str
    away_team: str
    odds_home: float | None = None
    odds_draw: float | None = None
    odds_away: float | None = None
    bet: Outcome | None = Field(default=None, description="User's current prediction")
