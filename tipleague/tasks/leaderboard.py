"""Leaderboard rebuild from fairplay-eligible, pre-cutoff finished matches."""

from dataclasses import dataclass
from decimal import Decimal

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tipleague.clock import utcnow
from tipleague.database import Store
from tipleague.enums import MatchResult, MatchStatus
from tipleague.errors import AggregationFailure
from tipleague.models import Bet, Fairplay, League, Match, Score
from tipleague.services.rules import is_before_cutoff, secret_cutoff, tier_multiplier
from tipleague.tasks.fairplay import league_member_names
from tipleague.tasks.ingestion import max_matchday

logger = structlog.get_logger()

SCORE_COLUMNS = ("username", "league_id", "score", "correct_bets", "final_balance", "computed_at")


@dataclass
class MemberTally:
    score: Decimal = Decimal("0")
    correct_bets: int = 0


async def _eligible_matches(session: AsyncSession, league: League, top: int) -> list[Match]:
    """Finished, resolved, fairplay-marked matches of the league below its secret cutoff."""
    cutoff = secret_cutoff(top, league.secret_mode_fraction)
    result = await session.execute(
        select(Match)
        .join(Fairplay, Fairplay.fixture_id == Match.fixture_id)
        .where(Fairplay.league_id == league.league_id)
        .where(Match.competition_id == league.competition_id)
        .where(Match.season == league.season)
        .where(Match.status == MatchStatus.FINISHED.value)
        .where(Match.result != MatchResult.UNKNOWN.value)
    )
    return [m for m in result.scalars().all() if is_before_cutoff(m.matchday, cutoff)]


async def league_score_rows(session: AsyncSession, league: League) -> list[tuple]:
    """
    Compute one score row per league member.

    Every member gets a row, including members without a single correct
    bet (score 0, balance equal to minus the league volume).
    """
    members = await league_member_names(session, league.league_id)
    if not members:
        return []

    tallies = {username: MemberTally() for username in members}
    volume = Decimal("0")

    top = await max_matchday(session, league.competition_id, league.season)
    if top:
        matches = await _eligible_matches(session, league, top)
        by_fixture = {m.fixture_id: m for m in matches}
        volume = sum((tier_multiplier(m.matchday, top) for m in matches), Decimal("0"))

        if by_fixture:
            result = await session.execute(
                select(Bet.username, Bet.fixture_id, Bet.prediction)
                .where(Bet.fixture_id.in_(list(by_fixture)))
                .where(Bet.username.in_(members))
            )
            for username, fixture_id, prediction in result.all():
                match = by_fixture[fixture_id]
                if prediction != match.result:
                    continue
                odds = match.odds_for(prediction)
                tally = tallies[username]
                tally.score += Decimal(odds) if odds is not None else Decimal("0")
                tally.correct_bets += 1

    computed_at = utcnow()
    return [
        (
            username,
            league.league_id,
            tally.score,
            tally.correct_bets,
            tally.score - volume,
            computed_at,
        )
        for username, tally in tallies.items()
    ]


async def rebuild_scores(store: Store) -> int:
    """
    Rebuild the scores table from scratch.

    Leagues are computed independently; the delete and every insert share a
    single transaction so a failure leaves the previous leaderboard intact.

    Raises:
        AggregationFailure: on any store error during the rebuild.
    """
    try:
        async with store.transaction() as session:
            await session.execute(delete(Score))

            leagues = (await session.execute(select(League))).scalars().all()
            written = 0
            for league in leagues:
                rows = await league_score_rows(session, league)
                written += await store.bulk_insert(session, Score, SCORE_COLUMNS, rows)
                logger.debug("Scored league", league_id=league.league_id, members=len(rows))
    except SQLAlchemyError as e:
        logger.error("Score rebuild failed, previous leaderboard kept", error=str(e))
        raise AggregationFailure("scores", e) from e

    logger.info("Rebuilt scores", leagues=len(leagues), rows=written)
    return written
