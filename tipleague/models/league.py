"""League and membership database models."""

from decimal import Decimal

from sqlalchemy import ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from tipleague.database import Base


class League(Base):
    """Private league competing on one competition season."""

    __tablename__ = "leagues"

    league_id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    competition_id: Mapped[int] = mapped_column(Integer, nullable=False)
    season: Mapped[int] = mapped_column(Integer, nullable=False)

    # Matchdays at or beyond max_matchday * fraction stay hidden from the leaderboard
    secret_mode_fraction: Mapped[Decimal] = mapped_column(Numeric(4, 3), default=Decimal("0.9"))


class LeagueMember(Base):
    __tablename__ = "league_members"

    league_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("leagues.league_id"), primary_key=True
    )
    username: Mapped[str] = mapped_column(
        String(50), ForeignKey("users.username"), primary_key=True
    )
