"""
Unit tests for sampler.py.

Single-trial and batched sampling against seeded generators.
"""

import numpy as np
import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from parlaysim.config import UpsetFactors
from parlaysim.models import Leg, TrialOutcome
from parlaysim.sampler import TrialSampler
from parlaysim.upset_model import UpsetAdjustmentModel


DOG_LEGS = [Leg("Dog A", 300), Leg("Dog B", 550)]


class TestSampleTrial:
    """Tests for sample_trial."""

    def test_outcome_shape(self):
        sampler = TrialSampler(DOG_LEGS)
        outcome = sampler.sample_trial(np.random.default_rng(1), stake=10, payout_multiplier=26.0)
        assert isinstance(outcome, TrialOutcome)
        assert len(outcome.hits) == 2
        assert len(outcome.pure_hits) == 2

    def test_profit_matches_outcome(self):
        sampler = TrialSampler(DOG_LEGS)
        rng = np.random.default_rng(3)
        for _ in range(200):
            outcome = sampler.sample_trial(rng, stake=10, payout_multiplier=26.0)
            if outcome.won:
                assert outcome.profit == pytest.approx(250.0)
            else:
                assert outcome.profit == -10.0

    def test_pure_hit_implies_adjusted_hit_for_underdogs(self):
        """Boosted legs hit whenever the same draw hits at pure odds."""
        sampler = TrialSampler(DOG_LEGS)
        rng = np.random.default_rng(5)
        for _ in range(500):
            outcome = sampler.sample_trial(rng)
            for hit, pure in zip(outcome.hits, outcome.pure_hits):
                assert hit or not pure
            assert outcome.upset_legs >= 0

    def test_certain_chaos_day(self):
        factors = UpsetFactors(chaos_day_chance=1.0)
        sampler = TrialSampler(DOG_LEGS, UpsetAdjustmentModel(factors))
        outcome = sampler.sample_trial(np.random.default_rng(0))
        assert outcome.chaos_day is True


class TestSampleBatch:
    """Tests for sample_batch."""

    def test_shapes(self):
        sampler = TrialSampler(DOG_LEGS)
        batch = sampler.sample_batch(np.random.default_rng(7), 1000)
        assert batch.size == 1000
        assert batch.hits.shape == (1000, 2)
        assert batch.pure_hits.shape == (1000, 2)
        assert batch.won.shape == (1000,)

    def test_no_chaos_when_disabled(self):
        sampler = TrialSampler(DOG_LEGS, UpsetAdjustmentModel(UpsetFactors.disabled()))
        batch = sampler.sample_batch(np.random.default_rng(7), 5000)
        assert not batch.chaos_days.any()
        # Adjustment off: adjusted and pure outcomes coincide
        assert np.array_equal(batch.hits, batch.pure_hits)
        assert not batch.upset_leg_mask.any()

    def test_chaos_rate_near_configured_chance(self):
        sampler = TrialSampler(DOG_LEGS)
        batch = sampler.sample_batch(np.random.default_rng(11), 50_000)
        assert batch.chaos_days.mean() == pytest.approx(0.05, abs=0.005)

    def test_hit_rate_tracks_adjusted_probability(self):
        factors = UpsetFactors(chaos_day_chance=0.0)
        sampler = TrialSampler([Leg("Dog", 300)], UpsetAdjustmentModel(factors))
        batch = sampler.sample_batch(np.random.default_rng(13), 50_000)
        assert batch.hits.mean() == pytest.approx(0.285, abs=0.01)
        assert batch.pure_hits.mean() == pytest.approx(0.25, abs=0.01)

    def test_same_seed_same_batch(self):
        sampler = TrialSampler(DOG_LEGS)
        a = sampler.sample_batch(np.random.default_rng(21), 100)
        b = sampler.sample_batch(np.random.default_rng(21), 100)
        assert np.array_equal(a.hits, b.hits)
        assert np.array_equal(a.chaos_days, b.chaos_days)


class TestSharedChaosDay:
    """One chaos roll per trial applies to every leg in that trial."""

    FACTORS = UpsetFactors(
        heavy_underdog_boost=0.0,
        underdog_boost=0.0,
        chaos_day_chance=0.5,
        chaos_day_boost=0.5,
    )
    LEGS = [Leg("Dog A", 300), Leg("Dog B", 300)]

    def make_batch(self, size=50_000):
        model = UpsetAdjustmentModel(self.FACTORS)
        sampler = TrialSampler(self.LEGS, model)
        return model, sampler.sample_batch(np.random.default_rng(17), size)

    def test_upset_legs_only_on_chaos_days(self):
        """Without base boosts, an adjusted-only hit needs a chaos day."""
        _, batch = self.make_batch()
        upset_rows = batch.upset_leg_mask.any(axis=1)
        assert upset_rows.any()
        assert not (upset_rows & ~batch.chaos_days).any()

    def test_both_legs_boosted_on_chaos_days(self):
        """Every leg on a chaos row hits at the chaos probability (0.75)."""
        _, batch = self.make_batch()
        chaos_hits = batch.hits[batch.chaos_days]
        normal_hits = batch.hits[~batch.chaos_days]
        for col in range(2):
            assert chaos_hits[:, col].mean() == pytest.approx(0.75, abs=0.015)
            assert normal_hits[:, col].mean() == pytest.approx(0.25, abs=0.015)

    def test_joint_hit_rate_uses_shared_roll(self):
        """0.5 * 0.25^2 + 0.5 * 0.75^2 = 0.3125, not (0.5)^2 = 0.25 from per-leg rolls."""
        model, batch = self.make_batch()
        expected = model.expected_win_probability(self.LEGS)
        assert expected == pytest.approx(0.3125)
        assert batch.won.mean() == pytest.approx(expected, abs=0.01)
        assert abs(batch.won.mean() - 0.25) > 0.04
