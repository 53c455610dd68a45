"""Daily re-bet notifications: token minting, message composition and fan-out."""

import asyncio
import secrets
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from html import escape

import structlog
from sqlalchemy import delete, select
from sqlalchemy.orm import selectinload

from tipleague.clock import as_utc, local_day_bounds, local_now
from tipleague.config import Settings
from tipleague.database import Store
from tipleague.enums import OUTCOMES, Outcome
from tipleague.errors import DispatchError
from tipleague.models import Bet, Match, NotificationToken, User
from tipleague.services.messaging import EmailClient, TelegramClient

logger = structlog.get_logger()

TOKEN_COLUMNS = ("token", "username", "fixture_id", "outcome")
OUTCOME_LABELS = {Outcome.HOME: "1", Outcome.DRAW: "X", Outcome.AWAY: "2"}


@dataclass(frozen=True)
class OddsTriple:
    home: Decimal | None
    draw: Decimal | None
    away: Decimal | None

    def get(self, outcome: Outcome) -> Decimal | None:
        return {Outcome.HOME: self.home, Outcome.DRAW: self.draw, Outcome.AWAY: self.away}[outcome]


@dataclass
class MatchLine:
    """One of today's matches as shown to one user."""

    fixture_id: int
    home_team: str
    away_team: str
    kickoff: datetime
    odds: OddsTriple
    tokens: dict[Outcome, str]
    current_bet: Outcome | None = None


@dataclass
class UserDigest:
    """Everything sent to one user in one day."""

    username: str
    name: str
    email: str | None
    telegram_chat_id: str | None
    lines: list[MatchLine] = field(default_factory=list)

    @property
    def has_channel(self) -> bool:
        return bool(self.email or self.telegram_chat_id)


@dataclass
class NotifyReport:
    skipped: bool = False
    matches: int = 0
    tokens: int = 0
    users_notified: int = 0
    users_without_channel: int = 0
    emails_sent: int = 0
    chats_sent: int = 0
    failures: int = 0


def mint_token() -> str:
    return secrets.token_urlsafe(24)


def bet_link(settings: Settings, token: str) -> str:
    return f"{settings.public_base_url.rstrip('/')}/bet/{token}"


def _format_odds(value: Decimal | None) -> str:
    return "n/a" if value is None else f"{value:.2f}"


def _odds_links(settings: Settings, line: MatchLine) -> list[str]:
    links = []
    for outcome in OUTCOMES:
        text = f"{OUTCOME_LABELS[outcome]} {_format_odds(line.odds.get(outcome))}"
        if line.current_bet == outcome:
            text = f"[{text}]"
        links.append(f'<a href="{bet_link(settings, line.tokens[outcome])}">{escape(text)}</a>')
    return links


def compose_email(settings: Settings, digest: UserDigest, today: str) -> tuple[str, str]:
    """Subject and HTML body for one user."""
    tz_name = settings.timezone
    rows = []
    for line in digest.lines:
        kickoff = local_now(tz_name, line.kickoff).strftime("%H:%M")
        links = " &nbsp; ".join(_odds_links(settings, line))
        rows.append(
            "<tr>"
            f"<td>{kickoff}</td>"
            f"<td>{escape(line.home_team)} - {escape(line.away_team)}</td>"
            f"<td>{links}</td>"
            "</tr>"
        )
    html = (
        f"<p>Hi {escape(digest.name)},</p>"
        f"<p>Today's matches. Click an odd to place or change your bet; "
        f"your current bet is in brackets.</p>"
        f"<table>{''.join(rows)}</table>"
    )
    return f"Today's matches ({today})", html


def compose_chat(settings: Settings, digest: UserDigest, today: str) -> str:
    """Telegram HTML text for one user."""
    parts = [f"<b>Matches of {today}</b>"]
    for line in digest.lines:
        kickoff = local_now(settings.timezone, line.kickoff).strftime("%H:%M")
        parts.append(
            f"\n{kickoff} {escape(line.home_team)} - {escape(line.away_team)}\n"
            + "  ".join(_odds_links(settings, line))
        )
    return "\n".join(parts)


async def _mint_and_group(
    store: Store, settings: Settings, now: datetime
) -> tuple[dict[str, UserDigest], int, int]:
    """Replace all tokens with fresh ones for today's matches and group them per user."""
    today = local_now(settings.timezone, now).date()
    start, end = local_day_bounds(today, settings.timezone)

    async with store.transaction() as session:
        await session.execute(delete(NotificationToken))

        matches = (
            await session.execute(
                select(Match)
                .options(selectinload(Match.home_team), selectinload(Match.away_team))
                .where(Match.kickoff >= start)
                .where(Match.kickoff < end)
                .order_by(Match.kickoff.asc(), Match.fixture_id.asc())
            )
        ).scalars().all()
        users = (await session.execute(select(User).order_by(User.username))).scalars().all()

        if not matches or not users:
            return {}, len(matches), 0

        fixture_ids = [m.fixture_id for m in matches]
        bets = await session.execute(
            select(Bet.username, Bet.fixture_id, Bet.prediction).where(Bet.fixture_id.in_(fixture_ids))
        )
        current = {(u, f): Outcome(p) for u, f, p in bets.all()}

        digests: dict[str, UserDigest] = {}
        rows: list[tuple[str, str, int, str]] = []
        for user in users:
            digest = UserDigest(
                username=user.username,
                name=user.name,
                email=user.email,
                telegram_chat_id=user.telegram_chat_id,
            )
            for match in matches:
                tokens = {outcome: mint_token() for outcome in OUTCOMES}
                rows.extend(
                    (token, user.username, match.fixture_id, outcome.value)
                    for outcome, token in tokens.items()
                )
                digest.lines.append(
                    MatchLine(
                        fixture_id=match.fixture_id,
                        home_team=match.home_team.name,
                        away_team=match.away_team.name,
                        kickoff=as_utc(match.kickoff),
                        odds=OddsTriple(match.odds_home, match.odds_draw, match.odds_away),
                        tokens=tokens,
                        current_bet=current.get((user.username, match.fixture_id)),
                    )
                )
            digests[user.username] = digest

        minted = await store.bulk_insert(session, NotificationToken, TOKEN_COLUMNS, rows)

    return digests, len(matches), minted


async def dispatch(
    settings: Settings,
    digests: dict[str, UserDigest],
    email: EmailClient | None,
    chat: TelegramClient | None,
    today: str,
    report: NotifyReport,
) -> None:
    """Send every digest; one failed send never blocks the others."""
    chat_sends = 0
    for digest in digests.values():
        if not digest.has_channel:
            report.users_without_channel += 1
            continue
        report.users_notified += 1

        if digest.email and email is not None and email.enabled:
            subject, html = compose_email(settings, digest, today)
            try:
                await email.send(digest.email, subject, html)
                report.emails_sent += 1
            except DispatchError as e:
                report.failures += 1
                logger.warning("Email dispatch failed", username=digest.username, error=str(e))

        if digest.telegram_chat_id and chat is not None and chat.enabled:
            # Bot API rate limit
            if chat_sends and settings.telegram_send_delay_seconds > 0:
                await asyncio.sleep(settings.telegram_send_delay_seconds)
            chat_sends += 1
            try:
                await chat.send_message(digest.telegram_chat_id, compose_chat(settings, digest, today))
                report.chats_sent += 1
            except DispatchError as e:
                report.failures += 1
                logger.warning("Telegram dispatch failed", username=digest.username, error=str(e))


async def generate_and_notify(
    store: Store,
    settings: Settings,
    email: EmailClient | None,
    chat: TelegramClient | None,
    now: datetime | None = None,
) -> NotifyReport:
    """
    Mint today's re-bet tokens and notify every reachable user.

    Runs only before the local notification cutoff hour so a second run
    later in the day cannot send duplicates.
    """
    report = NotifyReport()
    local = local_now(settings.timezone, now)
    if local.hour >= settings.notify_cutoff_hour:
        report.skipped = True
        logger.info("Past notification cutoff, skipping", local_time=local.isoformat())
        return report

    digests, report.matches, report.tokens = await _mint_and_group(store, settings, local)
    if not digests:
        logger.info("No matches today, nothing to notify", date=local.date().isoformat())
        return report

    await dispatch(settings, digests, email, chat, local.date().isoformat(), report)

    logger.info(
        "Notifications dispatched",
        matches=report.matches,
        tokens=report.tokens,
        users_notified=report.users_notified,
        emails_sent=report.emails_sent,
        chats_sent=report.chats_sent,
        failures=report.failures,
    )
    return report
