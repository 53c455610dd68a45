"""Notification token database model."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from tipleague.clock import utcnow
from tipleague.database import Base


class NotificationToken(Base):
    """Opaque re-bet credential bound to (user, match, outcome)."""

    __tablename__ = "notification_tokens"

    token: Mapped[str] = mapped_column(String(64), primary_key=True)
    username: Mapped[str] = mapped_column(
        String(50), ForeignKey("users.username"), nullable=False
    )
    fixture_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("matches.fixture_id"), nullable=False
    )
    outcome: Mapped[str] = mapped_column(String(10), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
