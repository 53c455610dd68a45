"""Bet service: submission, token redemption and read models for the HTTP layer."""

from datetime import datetime, timedelta

import structlog
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased, selectinload

from tipleague.clock import as_utc, utcnow
from tipleague.database import Store
from tipleague.enums import Outcome
from tipleague.errors import (
    InvalidPredictionError,
    KickoffPassedError,
    MatchNotFoundError,
    TokenNotFoundError,
)
from tipleague.models import Bet, Match, NotificationToken, Score, Team, User
from tipleague.schemas import BetConfirmation, LeaderboardRow, UpcomingMatch

logger = structlog.get_logger()


def _as_outcome(prediction: Outcome | str) -> Outcome:
    try:
        return Outcome(prediction)
    except ValueError as e:
        raise InvalidPredictionError(str(prediction)) from e


async def _load_match(session: AsyncSession, fixture_id: int) -> Match:
    result = await session.execute(
        select(Match)
        .options(selectinload(Match.home_team), selectinload(Match.away_team))
        .where(Match.fixture_id == fixture_id)
    )
    match = result.scalar_one_or_none()
    if match is None:
        raise MatchNotFoundError(fixture_id)
    return match


async def place_bet(
    store: Store,
    session: AsyncSession,
    username: str,
    match: Match,
    prediction: Outcome,
    now: datetime,
) -> BetConfirmation:
    """Upsert a bet on (username, fixture); shared by every submission path.

    Raises:
        KickoffPassedError: if ``now`` is at or after kickoff.
    """
    if as_utc(now) >= as_utc(match.kickoff):
        raise KickoffPassedError(match.fixture_id)

    await store.upsert(
        session,
        Bet,
        {
            "username": username,
            "fixture_id": match.fixture_id,
            "prediction": prediction.value,
            "updated_at": as_utc(now),
        },
        index_elements=["username", "fixture_id"],
    )
    logger.info("Bet placed", username=username, fixture_id=match.fixture_id, prediction=prediction.value)

    return BetConfirmation(
        username=username,
        fixture_id=match.fixture_id,
        prediction=prediction,
        home_team=match.home_team.name,
        away_team=match.away_team.name,
        kickoff=as_utc(match.kickoff),
    )


async def submit_bet(
    store: Store,
    username: str,
    fixture_id: int,
    prediction: Outcome | str,
    now: datetime | None = None,
) -> BetConfirmation:
    """
    Authenticated bet submission.

    Raises:
        InvalidPredictionError: prediction is not home, draw or away.
        MatchNotFoundError: unknown fixture.
        KickoffPassedError: the match already started.
    """
    outcome = _as_outcome(prediction)
    async with store.transaction() as session:
        match = await _load_match(session, fixture_id)
        return await place_bet(store, session, username, match, outcome, now or utcnow())


async def redeem_token(store: Store, token: str, now: datetime | None = None) -> BetConfirmation:
    """
    One-click re-bet from a notification link.

    The token stays valid until kickoff or the next daily regeneration, so
    redeeming it again simply rewrites the same prediction.

    Raises:
        TokenNotFoundError: token unknown or already regenerated away.
        KickoffPassedError: the match already started; no bet is written.
    """
    async with store.transaction() as session:
        binding = await session.get(NotificationToken, token)
        if binding is None:
            raise TokenNotFoundError()
        match = await _load_match(session, binding.fixture_id)
        return await place_bet(
            store,
            session,
            binding.username,
            match,
            Outcome(binding.outcome),
            now or utcnow(),
        )


async def get_leaderboard(store: Store, league_id: str) -> list[LeaderboardRow]:
    """Ranked leaderboard of one league: score desc, then correct bets desc."""
    async with store.session() as session:
        result = await session.execute(
            select(Score, User.name)
            .join(User, User.username == Score.username)
            .where(Score.league_id == league_id)
            .order_by(Score.score.desc(), Score.correct_bets.desc(), Score.username)
        )
        return [
            LeaderboardRow(
                username=score.username,
                name=name,
                score=float(score.score),
                correct_bets=score.correct_bets,
                final_balance=float(score.final_balance),
            )
            for score, name in result.all()
        ]


async def get_upcoming_matches(
    store: Store,
    username: str,
    now: datetime | None = None,
    days: int = 8,
) -> list[UpcomingMatch]:
    """Matches kicking off within the next ``days`` days with the user's bet attached."""
    start = as_utc(now or utcnow())
    end = start + timedelta(days=days)
    home = aliased(Team)
    away = aliased(Team)

    async with store.session() as session:
        result = await session.execute(
            select(Match, home.name, away.name, Bet.prediction)
            .join(home, home.team_id == Match.home_team_id)
            .join(away, away.team_id == Match.away_team_id)
            .outerjoin(
                Bet,
                and_(Bet.fixture_id == Match.fixture_id, Bet.username == username),
            )
            .where(Match.kickoff >= start)
            .where(Match.kickoff < end)
            .order_by(Match.kickoff.asc())
        )
        return [
            UpcomingMatch(
                fixture_id=match.fixture_id,
                kickoff=as_utc(match.kickoff),
                matchday=match.matchday,
                home_team=home_name,
                away_team=away_name,
                odds_home=float(match.odds_home) if match.odds_home is not None else None,
                odds_draw=float(match.odds_draw) if match.odds_draw is not None else None,
                odds_away=float(match.odds_away) if match.odds_away is not None else None,
                bet=Outcome(prediction) if prediction else None,
            )
            for match, home_name, away_name, prediction in result.all()
        ]
