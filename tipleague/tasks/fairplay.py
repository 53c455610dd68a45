"""Fairplay rebuild: which matches every member of a league bet on."""

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tipleague.database import Store
from tipleague.errors import AggregationFailure
from tipleague.models import Bet, Fairplay, League, LeagueMember, Match

logger = structlog.get_logger()


async def league_member_names(session: AsyncSession, league_id: str) -> list[str]:
    result = await session.execute(
        select(LeagueMember.username).where(LeagueMember.league_id == league_id)
    )
    return list(result.scalars().all())


async def eligible_fixtures(session: AsyncSession, league: League) -> list[int]:
    """Fixtures of the league's season on which every member placed a bet.

    Only bets by members count, so an outsider's bet can never complete
    the set. A league without members has no eligible fixtures.
    """
    members = await league_member_names(session, league.league_id)
    if not members:
        return []

    bettors = func.count(func.distinct(Bet.username))
    result = await session.execute(
        select(Bet.fixture_id)
        .join(Match, Match.fixture_id == Bet.fixture_id)
        .where(Match.competition_id == league.competition_id)
        .where(Match.season == league.season)
        .where(Bet.username.in_(members))
        .group_by(Bet.fixture_id)
        .having(bettors == len(members))
    )
    return sorted(result.scalars().all())


async def rebuild_fairplay(store: Store) -> int:
    """
    Rebuild the fairplay table from scratch.

    Delete and re-insert run in one transaction, so readers keep seeing the
    previous marks until the new set commits.

    Raises:
        AggregationFailure: on any store error; the previous marks survive.
    """
    try:
        async with store.transaction() as session:
            await session.execute(delete(Fairplay))

            leagues = (await session.execute(select(League))).scalars().all()
            rows: list[tuple[int, str]] = []
            for league in leagues:
                fixtures = await eligible_fixtures(session, league)
                rows.extend((fixture_id, league.league_id) for fixture_id in fixtures)
                logger.debug("Fairplay league", league_id=league.league_id, marked=len(fixtures))

            marked = await store.bulk_insert(session, Fairplay, ("fixture_id", "league_id"), rows)
    except SQLAlchemyError as e:
        logger.error("Fairplay rebuild failed, previous marks kept", error=str(e))
        raise AggregationFailure("fairplay", e) from e

    logger.info("Rebuilt fairplay", leagues=len(leagues), marked=marked)
    return marked
