"""Bet database model."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tipleague.clock import utcnow
from tipleague.database import Base


class Bet(Base):
    """A user's prediction for one match; last write wins."""

    __tablename__ = "bets"

    bet_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(
        String(50), ForeignKey("users.username"), nullable=False
    )
    fixture_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("matches.fixture_id"), nullable=False
    )
    prediction: Mapped[str] = mapped_column(String(10), nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        UniqueConstraint("username", "fixture_id", name="uq_bets_user_fixture"),
    )
