"""External clients, pure settlement rules and the bet service."""

from tipleague.services.football_api import ApiFootballClient
from tipleague.services.messaging import EmailClient, TelegramClient

__all__ = [
    "ApiFootballClient",
    "EmailClient",
    "TelegramClient",
]
