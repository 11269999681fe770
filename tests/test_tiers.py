"""Tests for the driver tier table."""

from apex.roster.grid import STATIC_DRIVERS
from apex.roster.tiers import DEFAULT_TIER, TIERS, base_score, tier_of


class TestTierOf:
    def test_known_drivers_in_range(self):
        for driver_id in TIERS:
            assert 1 <= tier_of(driver_id) <= 4

    def test_whole_static_grid_is_tiered(self):
        """Every driver on the static grid should have an explicit tier."""
        for driver in STATIC_DRIVERS:
            assert driver.id in TIERS

    def test_champions_are_tier_one(self):
        assert tier_of("verstappen") == 1
        assert tier_of("leclerc") == 1

    def test_rookie_is_tier_four(self):
        assert tier_of("bortoleto") == 4

    def test_unknown_driver_defaults(self):
        assert tier_of("schumacher") == DEFAULT_TIER == 3

    def test_empty_and_none_default(self):
        assert tier_of("") == 3
        assert tier_of(None) == 3

    def test_case_and_whitespace_insensitive(self):
        assert tier_of("  Verstappen ") == 1


class TestBaseScore:
    def test_tier_baselines(self):
        assert base_score(1) == 8.5
        assert base_score(2) == 7.0
        assert base_score(3) == 5.5
        assert base_score(4) == 4.0
