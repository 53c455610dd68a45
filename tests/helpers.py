"""Builders shared by the store-backed tests."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select

from tipleague.models import Bet, Competition, League, LeagueMember, Match, Team, User

NOW = datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)
COMPETITION_ID = 135
SEASON = 2026


async def add_all(store, *objects):
    async with store.transaction() as session:
        session.add_all(objects)


async def fetch_all(store, model, *order_by):
    async with store.session() as session:
        result = await session.execute(select(model).order_by(*order_by))
        return result.scalars().all()


def make_match(
    fixture_id,
    matchday,
    *,
    kickoff=None,
    status="finished",
    result="home",
    odds=("2.0", "3.0", "4.0"),
):
    home, draw, away = (Decimal(o) if o is not None else None for o in odds)
    return Match(
        fixture_id=fixture_id,
        competition_id=COMPETITION_ID,
        season=SEASON,
        matchday=matchday,
        home_team_id=1,
        away_team_id=2,
        kickoff=kickoff or NOW - timedelta(days=30),
        status=status,
        status_code="FT" if status == "finished" else "NS",
        result=result,
        odds_home=home,
        odds_draw=draw,
        odds_away=away,
    )


async def seed_world(store, usernames=("alice", "bob", "carol")):
    """Competition, two teams and plain users without notification channels."""
    await add_all(
        store,
        Competition(competition_id=COMPETITION_ID, season=SEASON, name="Serie A"),
        Team(team_id=1, name="Roma", logo=None),
        Team(team_id=2, name="Lazio", logo=None),
        *(User(username=u, name=u.title()) for u in usernames),
    )


async def seed_league(store, league_id, members, fraction="0.9"):
    await add_all(
        store,
        League(
            league_id=league_id,
            name=league_id.title(),
            competition_id=COMPETITION_ID,
            season=SEASON,
            secret_mode_fraction=Decimal(fraction),
        ),
        *(LeagueMember(league_id=league_id, username=u) for u in members),
    )


def bet(username, fixture_id, prediction):
    return Bet(username=username, fixture_id=fixture_id, prediction=prediction)


def fixture_item(
    fixture_id,
    matchday,
    *,
    home_goals=None,
    away_goals=None,
    status="NS",
    date="2026-10-25T18:45:00+00:00",
    round_prefix="Regular Season",
):
    """A ``/fixtures`` response item as API-Football returns it."""
    return {
        "fixture": {"id": fixture_id, "date": date, "status": {"short": status}},
        "league": {"id": COMPETITION_ID, "season": SEASON, "round": f"{round_prefix} - {matchday}"},
        "teams": {
            "home": {"id": 1, "name": "Roma", "logo": "https://img.example/1.png"},
            "away": {"id": 2, "name": "Lazio", "logo": "https://img.example/2.png"},
        },
        "score": {"fulltime": {"home": home_goals, "away": away_goals}},
    }


def odds_item(fixture_id, home="2.00", draw="3.10", away="3.80"):
    values = []
    for label, odd in (("Home", home), ("Draw", draw), ("Away", away)):
        if odd is not None:
            values.append({"value": label, "odd": odd})
    return {
        "fixture": {"id": fixture_id},
        "bookmakers": [{"id": 8, "bets": [{"id": 1, "values": values}]}],
    }


def envelope(items, page=1, total=1):
    return {"errors": [], "paging": {"current": page, "total": total}, "response": items}
