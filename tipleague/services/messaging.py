"""Outbound messaging: transactional email and Telegram bot."""

import httpx
import structlog

from tipleague.config import Settings
from tipleague.errors import DispatchError

logger = structlog.get_logger()


class EmailClient:
    """Client for a Brevo-compatible transactional email API."""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        sender: str,
        sender_name: str = "",
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 15.0,
    ):
        self.api_url = api_url
        self.sender = {"email": sender, "name": sender_name or sender}
        self._headers = {"api-key": api_key, "accept": "application/json"}
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self.enabled = bool(api_key)

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailClient":
        return cls(
            settings.email_api_url,
            settings.email_api_key,
            settings.email_sender,
            settings.email_sender_name,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def send(self, to: str, subject: str, html: str) -> None:
        """Send one HTML email.

        Raises:
            DispatchError: on transport failure or non-2xx answer.
        """
        body = {
            "sender": self.sender,
            "to": [{"email": to}],
            "subject": subject,
            "htmlContent": html,
        }
        try:
            response = await self._client.post(self.api_url, headers=self._headers, json=body)
        except httpx.HTTPError as e:
            raise DispatchError("email", to, str(e)) from e
        if not response.is_success:
            raise DispatchError("email", to, f"status {response.status_code}")
        logger.debug("Email sent", to=to, subject=subject)


class TelegramClient:
    """Client for the Telegram Bot API ``sendMessage`` method."""

    def __init__(
        self,
        api_url: str,
        bot_token: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 15.0,
    ):
        self.base = f"{api_url.rstrip('/')}/bot{bot_token}"
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self.enabled = bool(bot_token)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TelegramClient":
        return cls(settings.telegram_api_url, settings.telegram_bot_token)

    async def close(self) -> None:
        await self._client.aclose()

    async def send_message(self, chat_id: str, text: str) -> None:
        """Send an HTML-formatted chat message.

        Raises:
            DispatchError: on transport failure, non-2xx answer or ``ok: false``.
        """
        data = {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        try:
            response = await self._client.post(self.base + "/sendMessage", json=data)
        except httpx.HTTPError as e:
            raise DispatchError("telegram", chat_id, str(e)) from e
        try:
            ok = response.is_success and bool(response.json().get("ok", False))
        except ValueError:
            ok = False
        if not ok:
            raise DispatchError("telegram", chat_id, f"status {response.status_code}")
        logger.debug("Telegram message sent", chat_id=chat_id)
