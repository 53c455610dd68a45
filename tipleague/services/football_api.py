"""API-Football client for fixtures, teams and three-way odds."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx
import structlog

from tipleague.clock import as_utc
from tipleague.config import Settings
from tipleague.enums import MatchResult, MatchStatus
from tipleague.errors import ExternalFetchError, MalformedItemError
from tipleague.services.rules import compute_result, map_status, parse_matchday

logger = structlog.get_logger()

# Provider labels of the 1X2 market values
ODDS_LABELS = {"Home": "home", "Draw": "draw", "Away": "away"}


@dataclass
class TeamData:
    """Team as listed by the provider."""

    team_id: int
    name: str
    logo: str | None


@dataclass
class FixtureData:
    """Parsed fixture ready to upsert."""

    fixture_id: int
    season: int
    matchday: int
    home_team: TeamData
    away_team: TeamData
    kickoff: datetime
    status: MatchStatus
    status_code: str | None
    home_goals: int | None
    away_goals: int | None
    result: MatchResult


@dataclass
class OddsData:
    """Raw (unadjusted) 1X2 odds of one fixture."""

    fixture_id: int
    home: Decimal
    draw: Decimal
    away: Decimal


def parse_team(payload: dict) -> TeamData:
    try:
        return TeamData(
            team_id=int(payload["id"]),
            name=str(payload["name"]),
            logo=payload.get("logo"),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise MalformedItemError(f"Bad team payload: {e}") from e


def _goals(value: Any) -> int | None:
    """Full-time goal count; ``None`` until the provider reports one."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"bad goal count {value!r}")
    return value


def parse_fixture(item: dict) -> FixtureData:
    """Convert one ``/fixtures`` item.

    Raises:
        MalformedItemError: when identity, kickoff, teams, round, status or
            goals are missing or of the wrong type.
    """
    try:
        fixture = item["fixture"]
        league = item["league"]
        teams = item["teams"]
        fixture_id = int(fixture["id"])
        kickoff = as_utc(datetime.fromisoformat(fixture["date"].replace("Z", "+00:00")))
        matchday = parse_matchday(league["round"])
        season = int(league["season"])

        fulltime = (item.get("score") or {}).get("fulltime") or {}
        home_goals = _goals(fulltime.get("home"))
        away_goals = _goals(fulltime.get("away"))
        status_code = (fixture.get("status") or {}).get("short")
        if status_code is not None and not isinstance(status_code, str):
            raise ValueError(f"bad status {status_code!r}")
        home_payload = teams.get("home") or {}
        away_payload = teams.get("away") or {}
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise MalformedItemError(f"Bad fixture payload: {e}") from e

    return FixtureData(
        fixture_id=fixture_id,
        season=season,
        matchday=matchday,
        home_team=parse_team(home_payload),
        away_team=parse_team(away_payload),
        kickoff=kickoff,
        status=map_status(status_code),
        status_code=status_code,
        home_goals=home_goals,
        away_goals=away_goals,
        result=compute_result(home_goals, away_goals),
    )


def parse_odds(item: dict) -> OddsData:
    """Convert one ``/odds`` item, keeping the first bookmaker's first bet.

    Raises:
        MalformedItemError: unless exactly Home, Draw and Away are present
            with positive prices.
    """
    try:
        fixture_id = int(item["fixture"]["id"])
        values = item["bookmakers"][0]["bets"][0]["values"]
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise MalformedItemError(f"Bad odds payload: {e}") from e

    if not isinstance(values, list) or len(values) != 3:
        raise MalformedItemError(f"Fixture {fixture_id}: expected 3 outcomes")

    prices: dict[str, Decimal] = {}
    for value in values:
        if not isinstance(value, dict):
            raise MalformedItemError(f"Fixture {fixture_id}: bad outcome entry {value!r}")
        label = ODDS_LABELS.get(value.get("value")) if isinstance(value.get("value"), str) else None
        if label is None:
            continue
        try:
            price = Decimal(str(value.get("odd")))
        except InvalidOperation as e:
            raise MalformedItemError(f"Fixture {fixture_id}: bad price {value.get('odd')!r}") from e
        if not price.is_finite() or price <= 0:
            raise MalformedItemError(f"Fixture {fixture_id}: non-positive price")
        prices[label] = price

    if set(prices) != {"home", "draw", "away"}:
        raise MalformedItemError(f"Fixture {fixture_id}: missing outcome")

    return OddsData(
        fixture_id=fixture_id,
        home=prices["home"],
        draw=prices["draw"],
        away=prices["away"],
    )


class ApiFootballClient:
    """Async client for API-Football v3.

    Requests are not retried; a failed call surfaces as ExternalFetchError
    and the caller decides what to skip.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        bookmaker: int = 8,
        bet: int = 1,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.bookmaker = bookmaker
        self.bet = bet
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = {"x-apisports-key": api_key}
        self.requests_remaining: int | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "ApiFootballClient":
        return cls(
            settings.api_football_url,
            settings.api_football_key,
            bookmaker=settings.api_football_bookmaker,
            bet=settings.api_football_bet,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _get(self, endpoint: str, params: dict[str, Any]) -> dict:
        """Make authenticated GET request and return the JSON envelope."""
        try:
            response = await self._client.get(
                f"{self.base_url}/{endpoint}",
                headers=self._headers,
                params=params,
            )
        except httpx.HTTPError as e:
            raise ExternalFetchError(endpoint, detail=str(e)) from e

        if response.status_code != 200:
            raise ExternalFetchError(endpoint, response.status_code, response.reason_phrase)

        remaining = response.headers.get("x-ratelimit-requests-remaining")
        if remaining is not None and remaining.isdigit():
            self.requests_remaining = int(remaining)

        try:
            payload = response.json()
        except ValueError as e:
            raise ExternalFetchError(endpoint, response.status_code, "body is not JSON") from e
        if not isinstance(payload, dict):
            raise ExternalFetchError(endpoint, response.status_code, "unexpected body")
        # API-Football reports auth/quota problems with a 200 and an errors object
        if payload.get("errors"):
            raise ExternalFetchError(endpoint, response.status_code, str(payload["errors"]))
        if not isinstance(payload.get("response"), list):
            raise ExternalFetchError(endpoint, response.status_code, "missing response list")
        return payload

    async def get_fixtures(self, competition_id: int, season: int) -> list[dict]:
        """Raw fixture items for a competition season."""
        payload = await self._get("fixtures", {"league": competition_id, "season": season})
        logger.info(
            "Fetched fixtures",
            competition_id=competition_id,
            season=season,
            count=len(payload["response"]),
            requests_remaining=self.requests_remaining,
        )
        return payload["response"]

    async def get_teams(self, competition_id: int, season: int) -> list[dict]:
        payload = await self._get("teams", {"league": competition_id, "season": season})
        return [(item.get("team") if isinstance(item, dict) else None) or {} for item in payload["response"]]

    async def get_odds(self, competition_id: int, season: int, day: date) -> list[dict]:
        """Raw odds items for one day, following provider paging."""
        items: list[dict] = []
        page = 1
        while True:
            payload = await self._get(
                "odds",
                {
                    "league": competition_id,
                    "season": season,
                    "date": day.isoformat(),
                    "bookmaker": self.bookmaker,
                    "bet": self.bet,
                    "page": page,
                },
            )
            items.extend(payload["response"])
            try:
                total = int((payload.get("paging") or {}).get("total") or 1)
            except (AttributeError, TypeError, ValueError) as e:
                raise ExternalFetchError("odds", detail=f"bad paging: {e}") from e
            if page >= total:
                break
            page += 1
        logger.debug("Fetched odds", competition_id=competition_id, date=day.isoformat(), count=len(items))
        return items
