"""
Upset adjustment model.

Shifts each leg's implied probability by a fixed amount chosen from its odds
bucket, plus a trial-scoped "chaos day" boost for underdogs. The constants
live in UpsetFactors and are heuristics, not fitted values.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

import numpy as np

from .config import UpsetFactors
from .models import Leg


class LegBucket(Enum):
    """Odds buckets used by the upset model."""

    HEAVY_UNDERDOG = "heavy_underdog"
    UNDERDOG = "underdog"
    SLIGHT_UNDERDOG = "slight_underdog"
    NEUTRAL = "neutral"
    MODERATE_FAVORITE = "moderate_favorite"
    HEAVY_FAVORITE = "heavy_favorite"


@dataclass(frozen=True)
class LegAdjustment:
    """Pure and adjusted probability for one leg, with bookkeeping."""
    bucket: LegBucket
    pure_probability: float
    adjusted_probability: float
    base_adjustment: float
    chaos_adjustment: float

    @property
    def applied_adjustment(self) -> float:
        """Net change after clamping."""
        return self.adjusted_probability - self.pure_probability


class UpsetAdjustmentModel:
    """Classifies legs by odds and applies the configured adjustments."""

    def __init__(self, factors: Optional[UpsetFactors] = None):
        self.factors = factors or UpsetFactors()

    def classify(self, odds: float) -> LegBucket:
        f = self.factors
        if odds >= f.heavy_underdog_threshold:
            return LegBucket.HEAVY_UNDERDOG
        if odds >= f.underdog_threshold:
            return LegBucket.UNDERDOG
        if odds > 0:
            return LegBucket.SLIGHT_UNDERDOG
        if odds <= f.heavy_favorite_threshold:
            return LegBucket.HEAVY_FAVORITE
        if odds <= f.moderate_favorite_threshold:
            return LegBucket.MODERATE_FAVORITE
        return LegBucket.NEUTRAL

    def bucket_adjustment(self, bucket: LegBucket) -> float:
        """Signed probability shift for a bucket."""
        f = self.factors
        return {
            LegBucket.HEAVY_UNDERDOG: f.heavy_underdog_boost,
            LegBucket.UNDERDOG: f.underdog_boost,
            LegBucket.SLIGHT_UNDERDOG: f.slight_underdog_boost,
            LegBucket.NEUTRAL: 0.0,
            LegBucket.MODERATE_FAVORITE: -f.moderate_favorite_risk,
            LegBucket.HEAVY_FAVORITE: -f.heavy_favorite_risk,
        }[bucket]

    def clamp(self, prob: float) -> float:
        f = self.factors
        return min(f.probability_ceiling, max(f.probability_floor, prob))

    def adjust(self, leg: Leg, chaos_day: bool = False) -> LegAdjustment:
        """
        Adjusted win probability for a leg on a normal or chaos day.

        Underdogs (positive odds) get the chaos boost on chaos days. A leg
        with no adjustment at all keeps its pure probability unclamped.
        """
        bucket = self.classify(leg.odds)
        base = self.bucket_adjustment(bucket)
        chaos = self.factors.chaos_day_boost if chaos_day and leg.odds > 0 else 0.0

        pure = leg.implied_probability
        if base == 0.0 and chaos == 0.0:
            adjusted = pure
        else:
            adjusted = self.clamp(pure + base + chaos)

        return LegAdjustment(
            bucket=bucket,
            pure_probability=pure,
            adjusted_probability=adjusted,
            base_adjustment=base,
            chaos_adjustment=chaos,
        )

    def leg_probabilities(
        self, legs: Sequence[Leg]
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Return (pure, normal-day, chaos-day) probability vectors."""
        pure = np.array([leg.implied_probability for leg in legs], dtype=np.float64)
        normal = np.array([self.adjust(leg).adjusted_probability for leg in legs], dtype=np.float64)
        chaos = np.array(
            [self.adjust(leg, chaos_day=True).adjusted_probability for leg in legs],
            dtype=np.float64,
        )
        return pure, normal, chaos

    def expected_win_probability(self, legs: Sequence[Leg]) -> float:
        """
        Analytic parlay win probability under the adjusted model.

        Mixes the normal-day and chaos-day products by the chaos chance.
        """
        _, normal, chaos = self.leg_probabilities(legs)
        c = self.factors.chaos_day_chance
        return float((1.0 - c) * np.prod(normal) + c * np.prod(chaos))
