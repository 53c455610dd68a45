"""Tests for fixture ingestion and odds tiering against a real store."""

from datetime import date
from decimal import Decimal

import httpx
import pytest

from helpers import COMPETITION_ID, SEASON, envelope, fetch_all, fixture_item, odds_item
from tipleague.errors import ExternalFetchError
from tipleague.models import Competition, Match, Team
from tipleague.services.football_api import ApiFootballClient
from tipleague.tasks.ingestion import adjust_odds, ingest_fixtures, sync_teams

COMPETITION = Competition(competition_id=COMPETITION_ID, season=SEASON, name="Serie A", round_filter="Regular Season")


def _provider(routes: dict) -> ApiFootballClient:
    """Client answering each endpoint with a fixed item list (or a status code)."""

    def handler(request: httpx.Request) -> httpx.Response:
        endpoint = request.url.path.strip("/")
        answer = routes[endpoint]
        if isinstance(answer, int):
            return httpx.Response(answer)
        if callable(answer):
            answer = answer(request)
        return httpx.Response(200, json=envelope(answer))

    return ApiFootballClient(
        "https://api.test", "key", client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )


def _snapshot(matches):
    columns = [c.name for c in Match.__table__.columns]
    return [tuple(getattr(m, c) for c in columns) for m in matches]


class TestIngestFixtures:
    @pytest.mark.asyncio
    async def test_upserts_regular_season_only_and_counts_skips(self, store):
        broken = fixture_item(4, 3)
        del broken["teams"]["home"]["id"]
        provider = _provider(
            {
                "fixtures": [
                    fixture_item(1, 1, home_goals=2, away_goals=1, status="FT"),
                    fixture_item(2, 1, home_goals=0, away_goals=3, status="FT"),
                    fixture_item(3, 2),
                    fixture_item(9, 1, round_prefix="Relegation Round"),
                    broken,
                ]
            }
        )
        try:
            report = await ingest_fixtures(store, provider, COMPETITION)
        finally:
            await provider.close()

        assert report.upserted == 3
        assert report.skipped == 1

        matches = await fetch_all(store, Match, Match.fixture_id)
        assert [m.fixture_id for m in matches] == [1, 2, 3]
        assert [m.result for m in matches] == ["home", "away", "unknown"]
        assert [m.status for m in matches] == ["finished", "finished", "scheduled"]
        assert matches[0].competition_id == COMPETITION_ID

        teams = await fetch_all(store, Team, Team.team_id)
        assert [t.name for t in teams] == ["Roma", "Lazio"]

    @pytest.mark.asyncio
    async def test_replaying_identical_payload_leaves_rows_unchanged(self, store):
        items = [fixture_item(1, 1, home_goals=1, away_goals=1, status="FT"), fixture_item(2, 2)]
        provider = _provider({"fixtures": items})
        try:
            await ingest_fixtures(store, provider, COMPETITION)
            first = _snapshot(await fetch_all(store, Match, Match.fixture_id))
            await ingest_fixtures(store, provider, COMPETITION)
            second = _snapshot(await fetch_all(store, Match, Match.fixture_id))
        finally:
            await provider.close()

        assert first == second

    @pytest.mark.asyncio
    async def test_provider_correction_updates_result(self, store):
        payloads = [
            [fixture_item(1, 1, home_goals=1, away_goals=0, status="FT")],
            [fixture_item(1, 1, home_goals=1, away_goals=1, status="FT")],
        ]
        provider = _provider({"fixtures": lambda request: payloads.pop(0)})
        try:
            await ingest_fixtures(store, provider, COMPETITION)
            await ingest_fixtures(store, provider, COMPETITION)
        finally:
            await provider.close()

        (match,) = await fetch_all(store, Match)
        assert match.result == "draw"
        assert (match.home_goals, match.away_goals) == (1, 1)

    @pytest.mark.asyncio
    async def test_provider_failure_is_fatal_for_the_pass(self, store):
        provider = _provider({"fixtures": 500})
        try:
            with pytest.raises(ExternalFetchError):
                await ingest_fixtures(store, provider, COMPETITION)
        finally:
            await provider.close()
        assert await fetch_all(store, Match) == []


class TestSyncTeams:
    @pytest.mark.asyncio
    async def test_upserts_and_renames(self, store):
        teams = [
            [{"team": {"id": 1, "name": "AS Roma", "logo": "a.png"}}, {"team": {"id": 2, "name": "Lazio"}}],
            [{"team": {"id": 1, "name": "Roma", "logo": "b.png"}}, {"team": {"name": "no id"}}],
        ]
        provider = _provider({"teams": lambda request: teams.pop(0)})
        try:
            assert await sync_teams(store, provider, COMPETITION) == 2
            assert await sync_teams(store, provider, COMPETITION) == 1
        finally:
            await provider.close()

        rows = await fetch_all(store, Team, Team.team_id)
        assert [(t.team_id, t.name, t.logo) for t in rows] == [(1, "Roma", "b.png"), (2, "Lazio", None)]


class TestAdjustOdds:
    async def _seed_season(self, store):
        # 30 matchdays: boundaries at 10 and 20
        items = [fixture_item(md, md) for md in (10, 11, 20, 21, 30)]
        provider = _provider({"fixtures": items})
        try:
            await ingest_fixtures(store, provider, COMPETITION)
        finally:
            await provider.close()

    @pytest.mark.asyncio
    async def test_scales_by_tier_and_never_compounds(self, store):
        await self._seed_season(store)
        items = [odds_item(fid, "2.00", "3.00", "4.00") for fid in (10, 11, 20, 21)]
        provider = _provider({"odds": items})
        try:
            report = await adjust_odds(store, provider, COMPETITION, date(2026, 10, 19), 1)
            await adjust_odds(store, provider, COMPETITION, date(2026, 10, 19), 1)
        finally:
            await provider.close()

        assert report.updated == 4
        matches = {m.fixture_id: m for m in await fetch_all(store, Match)}
        assert matches[10].odds_home == Decimal("2.000")
        assert matches[11].odds_home == Decimal("3.000")
        assert matches[20].odds_draw == Decimal("4.500")
        assert matches[21].odds_away == Decimal("8.000")
        assert matches[30].odds_home is None

    @pytest.mark.asyncio
    async def test_skips_incomplete_and_unknown_fixtures(self, store):
        await self._seed_season(store)
        items = [odds_item(10, draw=None), odds_item(999), odds_item(11)]
        provider = _provider({"odds": items})
        try:
            report = await adjust_odds(store, provider, COMPETITION, date(2026, 10, 19), 3)
        finally:
            await provider.close()

        # Same three items served for each of the three days
        assert report.days == 3
        assert report.updated == 3
        assert report.skipped == 6
        matches = {m.fixture_id: m for m in await fetch_all(store, Match)}
        assert matches[10].odds_home is None

    @pytest.mark.asyncio
    async def test_nothing_to_adjust_without_matches(self, store):
        provider = _provider({"odds": 500})
        try:
            report = await adjust_odds(store, provider, COMPETITION, date(2026, 10, 19), 2)
        finally:
            await provider.close()
        assert report.updated == 0
        assert report.days == 0
