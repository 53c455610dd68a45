"""Pure settlement rules: results, statuses, odds tiers and the secret-mode cutoff."""

from decimal import Decimal

from tipleague.enums import MatchResult, MatchStatus

FINISHED_CODES = frozenset({"FT", "AET", "PEN"})
SCHEDULED_CODES = frozenset({"NS", "TBD"})

TIER_EARLY = Decimal("1.0")
TIER_MIDDLE = Decimal("1.5")
TIER_LATE = Decimal("2.0")


def compute_result(home_goals: int | None, away_goals: int | None) -> MatchResult:
    """Full-time result from goal counts; unknown until both are known."""
    if home_goals is None or away_goals is None:
        return MatchResult.UNKNOWN
    if home_goals > away_goals:
        return MatchResult.HOME
    if home_goals == away_goals:
        return MatchResult.DRAW
    return MatchResult.AWAY


def map_status(status_code: str | None) -> MatchStatus:
    """Collapse a provider short status code into scheduled/finished/other."""
    if status_code in FINISHED_CODES:
        return MatchStatus.FINISHED
    if status_code in SCHEDULED_CODES:
        return MatchStatus.SCHEDULED
    return MatchStatus.OTHER


def parse_matchday(round_label: str) -> int:
    """Extract the matchday from a round label like ``"Regular Season - 12"``.

    Raises:
        ValueError: if the label has no trailing integer.
    """
    _, sep, tail = round_label.rpartition(" - ")
    if not sep:
        raise ValueError(f"Round label without matchday: {round_label!r}")
    return int(tail.strip())


def tier_multiplier(matchday: int, max_matchday: int) -> Decimal:
    """Odds multiplier for a matchday's position in the season.

    Boundaries are ``max/3`` and ``max*2/3``, both inclusive on the lower
    tier. Compared in integers so a matchday sitting exactly on a boundary
    is never pushed up by float rounding.
    """
    if 3 * matchday <= max_matchday:
        return TIER_EARLY
    if 3 * matchday <= 2 * max_matchday:
        return TIER_MIDDLE
    return TIER_LATE


def secret_cutoff(max_matchday: int, fraction: Decimal | float) -> Decimal:
    return Decimal(max_matchday) * Decimal(str(fraction))


def is_before_cutoff(matchday: int, cutoff: Decimal) -> bool:
    """Matchdays at or beyond the cutoff stay hidden."""
    return Decimal(matchday) < cutoff
