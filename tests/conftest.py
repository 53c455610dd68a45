import pytest
import pytest_asyncio

from tipleague.config import Settings
from tipleague.database import Store


@pytest.fixture
def settings():
    return Settings(
        environment="development",
        timezone="UTC",
        notify_cutoff_hour=12,
        public_base_url="https://tips.example",
        email_api_url="https://mail.example/v3/smtp/email",
        email_api_key="mail-key",
        telegram_api_url="https://tg.example",
        telegram_bot_token="bot-token",
        telegram_send_delay_seconds=0,
    )


@pytest_asyncio.fixture
async def store(tmp_path):
    store = Store(f"sqlite+aiosqlite:///{tmp_path / 'tipleague.db'}")
    await store.create_all()
    try:
        yield store
    finally:
        await store.dispose()
