"""Competition database model."""

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from tipleague.database import Base


class Competition(Base):
    """A provider competition for one season, ingested by the batch while active."""

    __tablename__ = "competitions"

    competition_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    season: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    # Substring of the provider round label, e.g. "Regular Season - 12"
    round_filter: Mapped[str] = mapped_column(String(50), default="Regular Season")
    active: Mapped[bool] = mapped_column(Boolean, default=True)
