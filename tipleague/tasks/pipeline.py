#!/usr/bin/env python3
"""
Settlement batch.

Runs, strictly in this order:
1. Team sync, fixture/result ingestion and odds tiering for every active competition
2. Fairplay rebuild
3. Score rebuild
4. Daily token generation and notifications

Every step is isolated: a failed step is logged and reported and the batch
moves on to the next one.

Can be run from Celery beat or standalone:

    python -m tipleague.tasks.pipeline [--skip-notify]
"""

import argparse
import asyncio
import json
from dataclasses import asdict, is_dataclass
from datetime import datetime

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from tipleague.celery_app import celery_app
from tipleague.clock import local_now
from tipleague.config import Settings, get_settings
from tipleague.database import Store
from tipleague.errors import TipLeagueError
from tipleague.log import configure_logging
from tipleague.models import Competition
from tipleague.services.football_api import ApiFootballClient
from tipleague.services.messaging import EmailClient, TelegramClient
from tipleague.tasks.fairplay import rebuild_fairplay
from tipleague.tasks.ingestion import adjust_odds, ingest_fixtures, sync_teams
from tipleague.tasks.leaderboard import rebuild_scores
from tipleague.tasks.notifications import generate_and_notify

logger = structlog.get_logger()


def run_async(coro):
    """Helper to run async code in sync Celery task."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _result(value) -> dict:
    if is_dataclass(value):
        return {"status": "ok", **asdict(value)}
    return {"status": "ok", "count": value}


async def _step(report: dict, name: str, coro) -> None:
    """Await one step and record its outcome without letting pipeline errors escape."""
    try:
        report[name] = _result(await coro)
    except (TipLeagueError, SQLAlchemyError) as e:
        logger.error("Batch step failed", step=name, error=str(e), error_type=type(e).__name__)
        report[name] = {"status": "failed", "error": str(e)}


async def run_pipeline(
    settings: Settings,
    store: Store,
    provider: ApiFootballClient,
    email: EmailClient | None,
    chat: TelegramClient | None,
    *,
    now: datetime | None = None,
    notify: bool = True,
) -> dict:
    """Run every step against already constructed collaborators."""
    report: dict = {}

    async with store.session() as session:
        competitions = (
            await session.execute(select(Competition).where(Competition.active.is_(True)))
        ).scalars().all()

    today = local_now(settings.timezone, now).date()
    for competition in competitions:
        key = f"{competition.competition_id}/{competition.season}"
        await _step(report, f"teams:{key}", sync_teams(store, provider, competition))
        await _step(report, f"fixtures:{key}", ingest_fixtures(store, provider, competition))
        await _step(
            report,
            f"odds:{key}",
            adjust_odds(store, provider, competition, today, settings.odds_window_days),
        )

    await _step(report, "fairplay", rebuild_fairplay(store))
    await _step(report, "scores", rebuild_scores(store))

    if notify:
        await _step(report, "notifications", generate_and_notify(store, settings, email, chat, now))

    failed = [name for name, step in report.items() if step["status"] == "failed"]
    report["status"] = "degraded" if failed else "completed"
    logger.info("Settlement batch finished", status=report["status"], failed_steps=failed)
    return report


async def run_batch(settings: Settings | None = None, *, notify: bool = True) -> dict:
    """Build store and clients for one invocation, run the pipeline, tear everything down."""
    settings = settings or get_settings()
    store = Store.from_settings(settings)
    provider = ApiFootballClient.from_settings(settings)
    email = EmailClient.from_settings(settings)
    chat = TelegramClient.from_settings(settings)

    logger.info("Starting settlement batch", environment=settings.environment)
    try:
        return await run_pipeline(settings, store, provider, email, chat, notify=notify)
    finally:
        await provider.close()
        await email.close()
        await chat.close()
        await store.dispose()


@celery_app.task(name="tipleague.tasks.pipeline.run_settlement_batch")
def run_settlement_batch() -> dict:
    """Celery entry point for the daily batch."""
    return run_async(run_batch())


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the settlement batch once")
    parser.add_argument("--skip-notify", action="store_true", help="Do not mint tokens or send messages")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings)
    report = asyncio.run(run_batch(settings, notify=not args.skip_notify))
    print(json.dumps(report, indent=2, default=str))


if __name__ == "__main__":
    main()
