"""SQLAlchemy database models."""

from tipleague.models.competition import Competition
from tipleague.models.team import Team
from tipleague.models.match import Match
from tipleague.models.user import User
from tipleague.models.league import League, LeagueMember
from tipleague.models.bet import Bet
from tipleague.models.fairplay import Fairplay
from tipleague.models.score import Score
from tipleague.models.notification_token import NotificationToken

__all__ = [
    "Competition",
    "Team",
    "Match",
    "User",
    "League",
    "LeagueMember",
    "Bet",
    "Fairplay",
    "Score",
    "NotificationToken",
]
