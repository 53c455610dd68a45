"""Tests for the pure settlement rules."""

from decimal import Decimal

import pytest

from tipleague.enums import MatchResult, MatchStatus
from tipleague.services.rules import (
    compute_result,
    is_before_cutoff,
    map_status,
    parse_matchday,
    secret_cutoff,
    tier_multiplier,
)


class TestComputeResult:
    @pytest.mark.parametrize(
        "home,away,expected",
        [
            (2, 1, MatchResult.HOME),
            (1, 1, MatchResult.DRAW),
            (0, 0, MatchResult.DRAW),
            (0, 3, MatchResult.AWAY),
            (None, 2, MatchResult.UNKNOWN),
            (2, None, MatchResult.UNKNOWN),
            (None, None, MatchResult.UNKNOWN),
        ],
    )
    def test_result_from_goals(self, home, away, expected):
        assert compute_result(home, away) == expected


class TestTierMultiplier:
    def test_boundaries_on_thirty_matchdays(self):
        assert tier_multiplier(1, 30) == Decimal("1.0")
        assert tier_multiplier(10, 30) == Decimal("1.0")  # exactly max/3
        assert tier_multiplier(11, 30) == Decimal("1.5")
        assert tier_multiplier(20, 30) == Decimal("1.5")  # exactly max*2/3
        assert tier_multiplier(21, 30) == Decimal("2.0")
        assert tier_multiplier(30, 30) == Decimal("2.0")

    def test_fractional_boundaries_on_thirty_eight_matchdays(self):
        # 38/3 = 12.67, 76/3 = 25.33
        assert tier_multiplier(12, 38) == Decimal("1.0")
        assert tier_multiplier(13, 38) == Decimal("1.5")
        assert tier_multiplier(25, 38) == Decimal("1.5")
        assert tier_multiplier(26, 38) == Decimal("2.0")


class TestStatusAndRound:
    @pytest.mark.parametrize("code", ["FT", "AET", "PEN"])
    def test_finished_codes(self, code):
        assert map_status(code) == MatchStatus.FINISHED

    @pytest.mark.parametrize("code", ["NS", "TBD"])
    def test_scheduled_codes(self, code):
        assert map_status(code) == MatchStatus.SCHEDULED

    @pytest.mark.parametrize("code", ["1H", "PST", "CANC", None])
    def test_other_codes(self, code):
        assert map_status(code) == MatchStatus.OTHER

    def test_parse_matchday(self):
        assert parse_matchday("Regular Season - 12") == 12
        assert parse_matchday("Regular Season - 1 ") == 1

    def test_parse_matchday_rejects_label_without_number(self):
        with pytest.raises(ValueError):
            parse_matchday("Final")
        with pytest.raises(ValueError):
            parse_matchday("Regular Season - x")


class TestSecretCutoff:
    def test_cutoff_excludes_matchday_on_boundary(self):
        cutoff = secret_cutoff(30, Decimal("0.9"))
        assert cutoff == Decimal("27.0")
        assert is_before_cutoff(26, cutoff)
        assert not is_before_cutoff(27, cutoff)
        assert not is_before_cutoff(28, cutoff)

    def test_float_fraction_is_exact(self):
        assert secret_cutoff(38, 0.9) == Decimal("34.2")
        assert is_before_cutoff(34, secret_cutoff(38, 0.9))
        assert not is_before_cutoff(35, secret_cutoff(38, 0.9))
