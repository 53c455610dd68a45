"""Tests for the score rebuild and leaderboard reads."""

from decimal import Decimal

import pytest
from sqlalchemy.exc import SQLAlchemyError

from helpers import add_all, bet, fetch_all, make_match, seed_league, seed_world
from tipleague.errors import AggregationFailure
from tipleague.models import Score
from tipleague.services.bets import get_leaderboard
from tipleague.tasks import leaderboard
from tipleague.tasks.fairplay import rebuild_fairplay
from tipleague.tasks.leaderboard import rebuild_scores


async def _scores(store):
    rows = await fetch_all(store, Score, Score.league_id, Score.username)
    return {(r.league_id, r.username): (r.score, r.correct_bets, r.final_balance) for r in rows}


async def _season(store):
    """Fixture 1 on matchday 1 finished 'home'; matchday 30 scheduled sets the season length."""
    await seed_world(store)
    await add_all(
        store,
        make_match(1, 1, result="home", odds=("2.0", "3.0", "4.0")),
        make_match(30, 30, status="scheduled", result="unknown"),
    )


@pytest.mark.asyncio
async def test_single_correct_bettor(store):
    await _season(store)
    await seed_league(store, "friends", ["alice", "bob"])
    await add_all(store, bet("alice", 1, "home"), bet("bob", 1, "draw"))

    await rebuild_fairplay(store)
    assert await rebuild_scores(store) == 2

    scores = await _scores(store)
    assert scores[("friends", "alice")] == (Decimal("2"), 1, Decimal("1"))
    assert scores[("friends", "bob")] == (Decimal("0"), 0, Decimal("-1"))


@pytest.mark.asyncio
async def test_scores_use_the_predicted_outcome_odds(store):
    await _season(store)
    await add_all(store, make_match(2, 15, result="away", odds=("1.5", "3.0", "6.0")))
    await seed_league(store, "friends", ["alice", "bob"])
    await add_all(
        store,
        bet("alice", 1, "home"),
        bet("bob", 1, "home"),
        bet("alice", 2, "away"),
        bet("bob", 2, "home"),
    )

    await rebuild_fairplay(store)
    await rebuild_scores(store)

    scores = await _scores(store)
    # volume: matchday 1 -> 1.0, matchday 15 of 30 -> 1.5
    assert scores[("friends", "alice")] == (Decimal("8"), 2, Decimal("5.5"))
    assert scores[("friends", "bob")] == (Decimal("2"), 1, Decimal("-0.5"))


@pytest.mark.asyncio
async def test_secret_mode_hides_late_matchdays(store):
    await _season(store)
    # cutoff = 30 * 0.9 = 27; matchday 27 is already hidden
    await add_all(store, make_match(27, 27, result="home", odds=("5.0", "3.0", "2.0")))
    await seed_league(store, "friends", ["alice", "bob"])
    await add_all(
        store,
        bet("alice", 1, "home"),
        bet("bob", 1, "away"),
        bet("alice", 27, "home"),
        bet("bob", 27, "home"),
    )

    await rebuild_fairplay(store)
    await rebuild_scores(store)

    scores = await _scores(store)
    assert scores[("friends", "alice")] == (Decimal("2"), 1, Decimal("1"))
    assert scores[("friends", "bob")] == (Decimal("0"), 0, Decimal("-1"))


@pytest.mark.asyncio
async def test_unfinished_and_ineligible_matches_do_not_count(store):
    await _season(store)
    await add_all(store, make_match(2, 2, status="other", result="home"), make_match(3, 3, result="home"))
    await seed_league(store, "friends", ["alice", "bob"])
    await add_all(
        store,
        bet("alice", 1, "home"),
        bet("bob", 1, "home"),
        bet("alice", 2, "home"),
        bet("bob", 2, "home"),
        # only alice bet on 3: not fairplay
        bet("alice", 3, "home"),
    )

    await rebuild_fairplay(store)
    await rebuild_scores(store)

    scores = await _scores(store)
    assert scores[("friends", "alice")] == (Decimal("2"), 1, Decimal("1"))


@pytest.mark.asyncio
async def test_every_member_gets_a_row(store):
    await _season(store)
    await seed_league(store, "friends", ["alice", "bob", "carol"])
    await seed_league(store, "empty", [])

    await rebuild_fairplay(store)
    assert await rebuild_scores(store) == 3

    scores = await _scores(store)
    assert set(scores) == {("friends", "alice"), ("friends", "bob"), ("friends", "carol")}
    assert all(value == (Decimal("0"), 0, Decimal("0")) for value in scores.values())


@pytest.mark.asyncio
async def test_failed_rebuild_keeps_previous_leaderboard(store, monkeypatch):
    await _season(store)
    await seed_league(store, "friends", ["alice", "bob"])
    await seed_league(store, "office", ["alice", "carol"])
    await add_all(store, bet("alice", 1, "home"), bet("bob", 1, "draw"), bet("carol", 1, "home"))
    await rebuild_fairplay(store)
    await rebuild_scores(store)
    before = await _scores(store)

    real = leaderboard.league_score_rows
    calls = []

    async def failing_second_league(session, league):
        calls.append(league.league_id)
        if len(calls) == 2:
            raise SQLAlchemyError("connection lost")
        return await real(session, league)

    monkeypatch.setattr(leaderboard, "league_score_rows", failing_second_league)

    with pytest.raises(AggregationFailure):
        await rebuild_scores(store)

    assert len(calls) == 2
    assert await _scores(store) == before


@pytest.mark.asyncio
async def test_leaderboard_ordering(store):
    await _season(store)
    await add_all(
        store,
        make_match(2, 2, result="draw", odds=("1.5", "2.0", "6.0")),
        make_match(3, 3, result="away", odds=("1.2", "3.0", "4.0")),
    )
    await seed_league(store, "friends", ["alice", "bob", "carol"])
    await add_all(
        store,
        bet("carol", 1, "home"),
        bet("carol", 2, "home"),
        bet("carol", 3, "home"),
        bet("bob", 1, "away"),
        bet("bob", 2, "home"),
        bet("bob", 3, "away"),
        bet("alice", 1, "home"),
        bet("alice", 2, "draw"),
        bet("alice", 3, "home"),
    )
    await rebuild_fairplay(store)
    await rebuild_scores(store)

    rows = await get_leaderboard(store, "friends")

    # alice and bob tie on score, alice has more correct bets
    assert [r.username for r in rows] == ["alice", "bob", "carol"]
    assert [(r.score, r.correct_bets) for r in rows] == [(4.0, 2), (4.0, 1), (2.0, 1)]
    assert rows[0].name == "Alice"
    assert rows[2].final_balance == pytest.approx(-1.0)
    assert await get_leaderboard(store, "nope") == []
