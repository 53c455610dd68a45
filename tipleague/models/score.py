"""Leaderboard score database model."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from tipleague.clock import utcnow
from tipleague.database import Base


class Score(Base):
    """Per (user, league) leaderboard row, rebuilt from scratch each run."""

    __tablename__ = "scores"

    username: Mapped[str] = mapped_column(
        String(50), ForeignKey("users.username"), primary_key=True
    )
    league_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("leagues.league_id"), primary_key=True
    )

    score: Mapped[Decimal] = mapped_column(Numeric(10, 3), default=Decimal("0"))
    correct_bets: Mapped[int] = mapped_column(Integer, default=0)
    final_balance: Mapped[Decimal] = mapped_column(Numeric(10, 3), default=Decimal("0"))

    computed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        Index("idx_scores_league_rank", "league_id", "score", "correct_bets"),
    )
