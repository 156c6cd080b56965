"""
Unit tests for odds.py and the Leg / ParlaySimulation records.

Covers conversions, extreme odds and invalid input.
"""

import math

import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from parlaysim.errors import InvalidOddsError, InvalidRecordError
from parlaysim.models import Leg, ParlaySimulation
from parlaysim.odds import (
    MAX_DECIMAL_ODDS,
    MIN_DECIMAL_ODDS,
    combined_probability,
    decimal_to_american,
    parlay_payout_multiplier,
    probability_to_american,
    to_decimal_odds,
    to_implied_probability,
    to_payout_multiplier,
    validate_odds,
)


class TestImpliedProbability:
    """Tests for to_implied_probability."""

    def test_favorite(self):
        """-110 -> 110/210."""
        assert to_implied_probability(-110) == pytest.approx(110 / 210)
        assert to_implied_probability(-110) == pytest.approx(0.5238, abs=1e-4)

    def test_underdog(self):
        """+150 -> 100/250 = 0.4."""
        assert to_implied_probability(150) == pytest.approx(0.4)

    def test_even_money(self):
        """+100 and -100 are both 50%."""
        assert to_implied_probability(100) == 0.5
        assert to_implied_probability(-100) == 0.5

    def test_extreme_odds_stay_inside_open_interval(self):
        """Huge odds never reach exactly 0 or 1."""
        long_shot = to_implied_probability(10 ** 15)
        lock = to_implied_probability(-(10 ** 15))
        assert 0.0 < long_shot < 1.0
        assert 0.0 < lock < 1.0
        assert not math.isnan(long_shot)

    def test_zero_odds_raise(self):
        """Zero odds are rejected."""
        with pytest.raises(InvalidOddsError):
            to_implied_probability(0)

    def test_non_numeric_odds_raise(self):
        """NaN, inf, strings and booleans are rejected."""
        for bad in (float("nan"), float("inf"), "abc", None, True):
            with pytest.raises(InvalidOddsError):
                to_implied_probability(bad)

    def test_error_names_leg(self):
        """Error message carries the 1-based leg number."""
        with pytest.raises(InvalidOddsError, match="leg 3 has invalid odds"):
            validate_odds(0, leg_index=2)


class TestPayout:
    """Tests for payout multipliers and decimal odds."""

    def test_payout_multiplier(self):
        """Profit per unit staked."""
        assert to_payout_multiplier(150) == pytest.approx(1.5)
        assert to_payout_multiplier(-110) == pytest.approx(100 / 110)

    def test_decimal_odds(self):
        """Decimal odds include the stake."""
        assert to_decimal_odds(100) == 2.0
        assert to_decimal_odds(-200) == pytest.approx(1.5)

    def test_extreme_favorite_has_finite_payout(self):
        """No divide-by-zero for huge negative odds."""
        assert to_payout_multiplier(-(10 ** 12)) > 0.0
        assert to_decimal_odds(-(10 ** 20)) > 1.0

    def test_extreme_underdogs_stay_finite(self):
        """Huge positive odds are capped instead of overflowing to inf."""
        assert to_decimal_odds(10 ** 200) == pytest.approx(MAX_DECIMAL_ODDS)
        assert parlay_payout_multiplier([10 ** 200, 10 ** 200]) == MAX_DECIMAL_ODDS

    def test_odds_too_large_for_float(self):
        """Integers beyond float range are invalid odds, not an OverflowError."""
        with pytest.raises(InvalidOddsError):
            validate_odds(10 ** 400)
        with pytest.raises(InvalidOddsError):
            Leg("Moonshot", 10 ** 400)

    def test_parlay_multiplier(self):
        """Product of decimal odds."""
        assert parlay_payout_multiplier([100, 100]) == pytest.approx(4.0)
        assert parlay_payout_multiplier([150, -200]) == pytest.approx(2.5 * 1.5)


class TestReverseConversion:
    """Tests for decimal/probability back to American."""

    def test_decimal_to_american(self):
        assert decimal_to_american(2.5) == 150
        assert decimal_to_american(2.0) == 100
        assert decimal_to_american(1.5) == -200

    def test_decimal_to_american_saturates(self):
        """Out-of-range decimal odds map to the bounded extremes."""
        assert decimal_to_american(1.0) == decimal_to_american(MIN_DECIMAL_ODDS)
        assert decimal_to_american(1.0) < 0
        assert decimal_to_american(float("inf")) == decimal_to_american(MAX_DECIMAL_ODDS)
        assert decimal_to_american(float("inf")) > 0

    def test_decimal_to_american_rejects_nan(self):
        with pytest.raises(ValueError):
            decimal_to_american(float("nan"))

    def test_probability_to_american(self):
        assert probability_to_american(0.4) == 150
        assert probability_to_american(0.5) == -100
        assert probability_to_american(0.75) == -300

    def test_combined_probability(self):
        """Independent legs multiply."""
        assert combined_probability([100, 100]) == pytest.approx(0.25)
        assert combined_probability([]) == 1.0


class TestRecords:
    """Tests for Leg and ParlaySimulation derived fields."""

    def test_leg_implied_probability(self):
        leg = Leg("Lakers ML", 150)
        assert leg.implied_probability == pytest.approx(0.4)
        assert leg.is_underdog

    def test_leg_zero_odds(self):
        with pytest.raises(InvalidOddsError):
            Leg("Bad leg", 0)

    def test_parlay_derived_fields(self):
        parlay = ParlaySimulation.from_legs([("A", 100), ("B", 100)], stake=10)
        assert parlay.combined_probability == pytest.approx(0.25)
        assert parlay.decimal_odds == pytest.approx(4.0)
        assert parlay.total_odds == 300
        assert parlay.potential_payout == pytest.approx(40.0)
        assert parlay.potential_profit == pytest.approx(30.0)

    def test_extreme_parlay_total_odds(self):
        """Whole-parlay American odds stay defined at both extremes."""
        lock = ParlaySimulation.from_legs([("Lock", -(10 ** 20))], stake=10)
        assert lock.decimal_odds > 1.0
        assert isinstance(lock.total_odds, int)
        assert lock.total_odds < 0
        moonshot = ParlaySimulation.from_legs([("A", 10 ** 200), ("B", 10 ** 200)], stake=10)
        assert math.isfinite(moonshot.potential_payout)
        assert moonshot.total_odds > 0

    def test_from_dict_reports_leg_index(self):
        record = {
            "stake": 10,
            "legs": [
                {"description": "A", "odds": -110},
                {"description": "B", "odds": 120},
                {"description": "C", "odds": 0},
            ],
        }
        with pytest.raises(InvalidOddsError, match="leg 3"):
            ParlaySimulation.from_dict(record)

    def test_from_dict_rejects_wrong_shapes(self):
        """Non-object records and non-list legs name the bad record."""
        with pytest.raises(InvalidRecordError, match="parlay 2 is not an object"):
            ParlaySimulation.from_dict(7, index=1)
        with pytest.raises(InvalidRecordError, match="legs must be a list"):
            ParlaySimulation.from_dict({"stake": 10, "legs": "Bears ML"})
        with pytest.raises(InvalidRecordError, match="leg 1 is not an object"):
            ParlaySimulation.from_dict({"stake": 10, "legs": [150]})

    def test_from_dict_defaults_description(self):
        parlay = ParlaySimulation.from_dict({"stake": 5, "legs": [{"odds": 200}]})
        assert parlay.legs[0].description == "Leg 1"
        assert parlay.legs[0].odds == 200

    def test_legs_are_immutable_tuple(self):
        parlay = ParlaySimulation(legs=[Leg("A", 100)], stake=10)
        assert isinstance(parlay.legs, tuple)
