"""Fairplay mark database model."""

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from tipleague.database import Base


class Fairplay(Base):
    """Match every member of a league bet on. Derived, rebuilt each run."""

    __tablename__ = "fairplay"

    fixture_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("matches.fixture_id"), primary_key=True
    )
    league_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("leagues.league_id"), primary_key=True
    )
