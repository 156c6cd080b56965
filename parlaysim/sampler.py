"""
Trial sampling.

One chaos roll per trial, one uniform draw per leg. The same draw is compared
against both the adjusted and the pure probability so wins can be attributed
to the upset adjustment.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .models import Leg, TrialOutcome
from .upset_model import UpsetAdjustmentModel


@dataclass
class TrialBatch:
    """Vectorized outcomes for a block of trials (rows = trials, cols = legs)."""
    hits: np.ndarray
    pure_hits: np.ndarray
    chaos_days: np.ndarray

    @property
    def size(self) -> int:
        return int(self.chaos_days.shape[0])

    @property
    def won(self) -> np.ndarray:
        return self.hits.all(axis=1)

    @property
    def pure_won(self) -> np.ndarray:
        return self.pure_hits.all(axis=1)

    @property
    def upset_leg_mask(self) -> np.ndarray:
        """Legs that hit only because of the adjustment."""
        return self.hits & ~self.pure_hits


class TrialSampler:
    """Draws leg outcomes for one parlay."""

    def __init__(self, legs: Sequence[Leg], model: Optional[UpsetAdjustmentModel] = None):
        self.model = model or UpsetAdjustmentModel()
        self.legs = tuple(legs)
        self.pure, self.normal, self.chaos = self.model.leg_probabilities(self.legs)
        self.chaos_day_chance = self.model.factors.chaos_day_chance

    def sample_trial(self, rng: np.random.Generator, stake: float = 0.0, payout_multiplier: float = 1.0) -> TrialOutcome:
        """
        Simulate one trial.

        Profit is stake * (payout_multiplier - 1) on a win, -stake otherwise.
        """
        chaos_day = bool(rng.random() < self.chaos_day_chance)
        probs = self.chaos if chaos_day else self.normal
        draws = rng.random(len(self.legs))
        hits = draws < probs
        pure_hits = draws < self.pure

        won = bool(hits.all())
        profit = stake * (payout_multiplier - 1.0) if won else -stake
        return TrialOutcome(
            hits=tuple(bool(h) for h in hits),
            pure_hits=tuple(bool(h) for h in pure_hits),
            chaos_day=chaos_day,
            profit=float(profit),
        )

    def sample_batch(self, rng: np.random.Generator, size: int) -> TrialBatch:
        """Simulate `size` trials at once."""
        chaos_days = rng.random(size) < self.chaos_day_chance
        draws = rng.random((size, len(self.legs)))
        # Pick each trial's probability row by its chaos flag
        probs = np.where(chaos_days[:, None], self.chaos[None, :], self.normal[None, :])
        hits = draws < probs
        pure_hits = draws < self.pure[None, :]
        return TrialBatch(hits=hits, pure_hits=pure_hits, chaos_days=chaos_days)
