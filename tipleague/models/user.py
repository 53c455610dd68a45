"""User database model."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from tipleague.database import Base


class User(Base):
    """Player account; credentials are owned by the auth layer."""

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Notification channels
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    telegram_chat_id: Mapped[str | None] = mapped_column(String(50), nullable=True)

    @property
    def has_channel(self) -> bool:
        return bool(self.email or self.telegram_chat_id)
