"""Match database model."""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tipleague.clock import utcnow
from tipleague.database import Base
from tipleague.enums import MatchResult, MatchStatus, Outcome

if TYPE_CHECKING:
    from tipleague.models.team import Team


class Match(Base):
    """One fixture with its schedule, result and tier-adjusted odds."""

    __tablename__ = "matches"

    fixture_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    competition_id: Mapped[int] = mapped_column(Integer, nullable=False)
    season: Mapped[int] = mapped_column(Integer, nullable=False)
    matchday: Mapped[int] = mapped_column(Integer, nullable=False)

    home_team_id: Mapped[int] = mapped_column(Integer, ForeignKey("teams.team_id"), nullable=False)
    away_team_id: Mapped[int] = mapped_column(Integer, ForeignKey("teams.team_id"), nullable=False)

    kickoff: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=MatchStatus.SCHEDULED.value)
    status_code: Mapped[str | None] = mapped_column(String(10), nullable=True)

    home_goals: Mapped[int | None] = mapped_column(Integer, nullable=True)
    away_goals: Mapped[int | None] = mapped_column(Integer, nullable=True)
    result: Mapped[str] = mapped_column(String(10), default=MatchResult.UNKNOWN.value)

    odds_home: Mapped[Decimal | None] = mapped_column(Numeric(8, 3), nullable=True)
    odds_draw: Mapped[Decimal | None] = mapped_column(Numeric(8, 3), nullable=True)
    odds_away: Mapped[Decimal | None] = mapped_column(Numeric(8, 3), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships
    home_team: Mapped["Team"] = relationship("Team", foreign_keys=[home_team_id])
    away_team: Mapped["Team"] = relationship("Team", foreign_keys=[away_team_id])

    __table_args__ = (
        Index("idx_matches_competition", "competition_id", "season", "matchday"),
        Index("idx_matches_kickoff", "kickoff"),
    )

    def odds_for(self, outcome: Outcome | str) -> Decimal | None:
        """Stored odds for one outcome."""
        return {
            Outcome.HOME.value: self.odds_home,
            Outcome.DRAW.value: self.odds_draw,
            Outcome.AWAY.value: self.odds_away,
        }[Outcome(outcome).value]
