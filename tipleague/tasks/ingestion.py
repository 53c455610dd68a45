"""Data ingestion tasks: teams, fixtures/results and tier-adjusted odds."""

from dataclasses import dataclass
from datetime import date, timedelta

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tipleague.clock import utcnow
from tipleague.database import Store
from tipleague.errors import MalformedItemError
from tipleague.models import Competition, Match, Team
from tipleague.services.football_api import (
    ApiFootballClient,
    FixtureData,
    TeamData,
    parse_fixture,
    parse_odds,
    parse_team,
)
from tipleague.services.rules import tier_multiplier

logger = structlog.get_logger()

# Columns whose change marks a match row as updated
MATCH_TRACKED_COLUMNS = (
    "competition_id",
    "season",
    "matchday",
    "home_team_id",
    "away_team_id",
    "kickoff",
    "status",
    "status_code",
    "home_goals",
    "away_goals",
    "result",
)


@dataclass
class IngestReport:
    upserted: int = 0
    skipped: int = 0


@dataclass
class OddsReport:
    updated: int = 0
    skipped: int = 0
    days: int = 0


async def max_matchday(session: AsyncSession, competition_id: int, season: int) -> int | None:
    """Highest stored matchday of a competition season."""
    result = await session.execute(
        select(func.max(Match.matchday))
        .where(Match.competition_id == competition_id)
        .where(Match.season == season)
    )
    return result.scalar_one_or_none()


async def _upsert_team(store: Store, session: AsyncSession, team: TeamData) -> None:
    await store.upsert(
        session,
        Team,
        {"team_id": team.team_id, "name": team.name, "logo": team.logo, "updated_at": utcnow()},
        index_elements=["team_id"],
        compare_columns=["name", "logo"],
    )


async def _upsert_match(
    store: Store, session: AsyncSession, competition: Competition, fixture: FixtureData
) -> None:
    now = utcnow()
    values = {
        "fixture_id": fixture.fixture_id,
        "competition_id": competition.competition_id,
        "season": fixture.season,
        "matchday": fixture.matchday,
        "home_team_id": fixture.home_team.team_id,
        "away_team_id": fixture.away_team.team_id,
        "kickoff": fixture.kickoff,
        "status": fixture.status.value,
        "status_code": fixture.status_code,
        "home_goals": fixture.home_goals,
        "away_goals": fixture.away_goals,
        "result": fixture.result.value,
        "created_at": now,
        "updated_at": now,
    }
    await store.upsert(
        session,
        Match,
        values,
        index_elements=["fixture_id"],
        update_columns=[*MATCH_TRACKED_COLUMNS, "updated_at"],
        compare_columns=MATCH_TRACKED_COLUMNS,
    )


async def sync_teams(store: Store, client: ApiFootballClient, competition: Competition) -> int:
    """Upsert every team the provider lists for a competition season.

    Raises:
        ExternalFetchError: if the provider call fails.
    """
    payloads = await client.get_teams(competition.competition_id, competition.season)

    upserted = 0
    async with store.transaction() as session:
        for payload in payloads:
            try:
                team = parse_team(payload)
            except MalformedItemError as e:
                logger.warning("Skipping malformed team", error=str(e))
                continue
            await _upsert_team(store, session, team)
            upserted += 1

    logger.info("Upserted teams", competition_id=competition.competition_id, count=upserted)
    return upserted


async def ingest_fixtures(
    store: Store, client: ApiFootballClient, competition: Competition
) -> IngestReport:
    """
    Upsert the regular-season fixtures and results of a competition season.

    Flow:
    1. Fetch all fixtures of the season
    2. Keep those whose round label contains the competition's round filter
    3. Upsert both teams, then the match keyed by fixture id

    Raises:
        ExternalFetchError: if the provider call fails; nothing is written.
    """
    items = await client.get_fixtures(competition.competition_id, competition.season)
    report = IngestReport()

    async with store.transaction() as session:
        for item in items:
            if not isinstance(item, dict):
                report.skipped += 1
                logger.warning("Skipping malformed fixture", competition_id=competition.competition_id)
                continue
            league = item.get("league")
            round_label = league.get("round") if isinstance(league, dict) else None
            # Round missing entirely is malformed; a different round is just filtered out
            if isinstance(round_label, str) and competition.round_filter not in round_label:
                continue

            try:
                fixture = parse_fixture(item)
            except MalformedItemError as e:
                report.skipped += 1
                logger.warning(
                    "Skipping malformed fixture",
                    competition_id=competition.competition_id,
                    error=str(e),
                )
                continue

            await _upsert_team(store, session, fixture.home_team)
            await _upsert_team(store, session, fixture.away_team)
            await _upsert_match(store, session, competition, fixture)
            report.upserted += 1

    logger.info(
        "Ingested fixtures",
        competition_id=competition.competition_id,
        season=competition.season,
        upserted=report.upserted,
        skipped=report.skipped,
    )
    return report


async def adjust_odds(
    store: Store,
    client: ApiFootballClient,
    competition: Competition,
    start: date,
    days: int,
) -> OddsReport:
    """
    Overwrite stored odds with raw provider odds scaled by the matchday tier.

    Each run replaces the stored values, so repeated runs over the same raw
    odds never compound.

    Raises:
        ExternalFetchError: if any provider call in the window fails.
    """
    report = OddsReport()

    async with store.session() as session:
        top = await max_matchday(session, competition.competition_id, competition.season)
        result = await session.execute(
            select(Match.fixture_id, Match.matchday)
            .where(Match.competition_id == competition.competition_id)
            .where(Match.season == competition.season)
        )
        matchdays = {fixture_id: matchday for fixture_id, matchday in result.all()}

    if not top:
        logger.info("No matches stored, skipping odds", competition_id=competition.competition_id)
        return report

    for offset in range(days):
        day = start + timedelta(days=offset)
        items = await client.get_odds(competition.competition_id, competition.season, day)
        report.days += 1

        async with store.transaction() as session:
            for item in items:
                try:
                    odds = parse_odds(item)
                except MalformedItemError as e:
                    report.skipped += 1
                    logger.debug("Skipping odds item", date=day.isoformat(), error=str(e))
                    continue

                matchday = matchdays.get(odds.fixture_id)
                if matchday is None:
                    report.skipped += 1
                    continue

                multiplier = tier_multiplier(matchday, top)
                await session.execute(
                    update(Match)
                    .where(Match.fixture_id == odds.fixture_id)
                    .values(
                        odds_home=odds.home * multiplier,
                        odds_draw=odds.draw * multiplier,
                        odds_away=odds.away * multiplier,
                    )
                )
                report.updated += 1

    logger.info(
        "Adjusted odds",
        competition_id=competition.competition_id,
        updated=report.updated,
        skipped=report.skipped,
        days=report.days,
    )
    return report
