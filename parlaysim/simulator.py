"""
Monte Carlo parlay simulator.

Runs trials in fixed-size batches. Each batch draws from its own
SeedSequence child, so a seeded run gives the same result whether batches
run one after another, interleaved with a host event loop, or sharded
across threads. Accumulators are plain sums and reduce in batch order.
"""

import asyncio
import logging
import math
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, List, Optional, Union

import numpy as np

from .config import SimulationConfig
from .errors import SimulationCancelled
from .models import MonteCarloResult, ParlaySimulation, PayoutBucket, UpsetStats
from .percentiles import calculate_percentiles
from .sampler import TrialBatch, TrialSampler
from .upset_model import UpsetAdjustmentModel


logger = logging.getLogger(__name__)

RandomSource = Union[None, int, np.random.SeedSequence, np.random.Generator]


class CancellationToken:
    """Thread-safe flag checked between batches."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class BatchProgress:
    """Emitted after every completed batch."""
    batch_index: int
    completed: int
    total: int

    @property
    def fraction(self) -> float:
        return self.completed / self.total if self.total else 1.0


@dataclass
class SimulationAccumulator:
    """Reducible partial sums for a block of trials."""
    trials: int = 0
    wins: int = 0
    losses: int = 0
    pure_wins: int = 0
    profit_sum: float = 0.0
    profit_sq_sum: float = 0.0
    total_chaos_days: int = 0
    chaos_day_wins: int = 0
    total_upsets: int = 0
    upset_wins: int = 0
    upset_legs: int = 0
    profits: List[np.ndarray] = field(default_factory=list)

    def add_batch(self, batch: TrialBatch, win_profit: float, stake: float) -> None:
        won = batch.won
        pure_won = batch.pure_won
        upset_mask = batch.upset_leg_mask
        profits = np.where(won, win_profit, -stake).astype(np.float64)

        n_wins = int(won.sum())
        self.trials += batch.size
        self.wins += n_wins
        self.losses += batch.size - n_wins
        self.pure_wins += int(pure_won.sum())
        self.profit_sum += float(profits.sum())
        self.profit_sq_sum += float(np.square(profits).sum())
        self.total_chaos_days += int(batch.chaos_days.sum())
        self.chaos_day_wins += int((won & batch.chaos_days).sum())
        self.total_upsets += int(upset_mask.any(axis=1).sum())
        self.upset_wins += int((won & ~pure_won).sum())
        self.upset_legs += int(upset_mask.sum())
        self.profits.append(profits)

    def merge(self, other: "SimulationAccumulator") -> None:
        """Fold another accumulator's sums into this one."""
        self.trials += other.trials
        self.wins += other.wins
        self.losses += other.losses
        self.pure_wins += other.pure_wins
        self.profit_sum += other.profit_sum
        self.profit_sq_sum += other.profit_sq_sum
        self.total_chaos_days += other.total_chaos_days
        self.chaos_day_wins += other.chaos_day_wins
        self.total_upsets += other.total_upsets
        self.upset_wins += other.upset_wins
        self.upset_legs += other.upset_legs
        self.profits.extend(other.profits)

    def profit_series(self) -> np.ndarray:
        if not self.profits:
            return np.empty(0, dtype=np.float64)
        return np.concatenate(self.profits)


def make_seed_sequence(rng: RandomSource = None, seed: Optional[int] = None) -> np.random.SeedSequence:
    """
    Normalize any accepted random source to a SeedSequence.

    A Generator contributes one draw as entropy, so results stay reproducible
    when the caller seeds the generator.
    """
    if isinstance(rng, np.random.SeedSequence):
        return rng
    if isinstance(rng, np.random.Generator):
        return np.random.SeedSequence(int(rng.integers(0, 2**63 - 1)))
    if rng is not None:
        return np.random.SeedSequence(int(rng))
    return np.random.SeedSequence(seed)


def child_seed(parent: np.random.SeedSequence, index: int) -> np.random.SeedSequence:
    """Deterministic child stream `index` of `parent` without mutating it."""
    return np.random.SeedSequence(
        parent.entropy,
        spawn_key=tuple(parent.spawn_key) + (index,),
        pool_size=parent.pool_size,
    )


def batch_sizes(iterations: int, batch_size: int) -> List[int]:
    full, rest = divmod(iterations, batch_size)
    return [batch_size] * full + ([rest] if rest else [])


class SimulationRun:
    """
    One in-flight simulation, stepped a batch at a time.

    Iterating yields a BatchProgress after each batch; result() finishes any
    remaining batches and builds the MonteCarloResult.
    """

    def __init__(
        self,
        simulator: "ParlaySimulator",
        parlay: ParlaySimulation,
        config: SimulationConfig,
        seed_seq: np.random.SeedSequence,
        cancel_token: Optional[CancellationToken] = None,
        parlay_index: int = 0,
    ):
        self.simulator = simulator
        self.parlay = parlay
        self.config = config
        self.seed_seq = seed_seq
        self.cancel_token = cancel_token
        self.parlay_index = parlay_index
        self.sampler = TrialSampler(parlay.legs, simulator.model_for(config))
        self.win_profit = parlay.stake * (parlay.decimal_odds - 1.0)
        self.sizes = batch_sizes(config.iterations, config.batch_size)
        self.accumulator = SimulationAccumulator()
        self._next_batch = 0

    @property
    def done(self) -> bool:
        return self._next_batch >= len(self.sizes)

    def run_batch(self, index: int) -> SimulationAccumulator:
        """Simulate batch `index` on its own stream. Safe to call from any thread."""
        rng = np.random.default_rng(child_seed(self.seed_seq, index))
        batch = self.sampler.sample_batch(rng, self.sizes[index])
        acc = SimulationAccumulator()
        acc.add_batch(batch, self.win_profit, self.parlay.stake)
        return acc

    def check_cancelled(self, completed: Optional[int] = None) -> None:
        if self.cancel_token is not None and self.cancel_token.cancelled:
            if completed is None:
                completed = self.accumulator.trials
            # Partial sums are discarded, never merged into a result
            self.accumulator = SimulationAccumulator()
            logger.info(
                "Simulation of parlay %d cancelled after %d/%d trials",
                self.parlay_index, completed, self.config.iterations,
            )
            raise SimulationCancelled(completed, self.config.iterations)

    def step(self) -> BatchProgress:
        self.check_cancelled()
        index = self._next_batch
        self.accumulator.merge(self.run_batch(index))
        self._next_batch += 1
        logger.debug(
            "Parlay %d batch %d/%d done (%d trials)",
            self.parlay_index, index + 1, len(self.sizes), self.accumulator.trials,
        )
        return BatchProgress(
            batch_index=index,
            completed=self.accumulator.trials,
            total=self.config.iterations,
        )

    def __iter__(self) -> Iterator[BatchProgress]:
        while not self.done:
            yield self.step()

    def result(self) -> MonteCarloResult:
        for _ in self:
            pass
        return self.simulator.build_result(
            self.parlay, self.config, self.accumulator, self.parlay_index
        )


class ParlaySimulator:
    """Simulates parlays under a fixed configuration."""

    def __init__(self, config: Optional[SimulationConfig] = None):
        self.config = config or SimulationConfig()

    def model_for(self, config: SimulationConfig) -> UpsetAdjustmentModel:
        return UpsetAdjustmentModel(config.upset_factors)

    def start(
        self,
        parlay: Any,
        config: Optional[SimulationConfig] = None,
        rng: RandomSource = None,
        cancel_token: Optional[CancellationToken] = None,
        parlay_index: int = 0,
    ) -> SimulationRun:
        """
        Validate inputs and return a run ready to step.

        Raises InvalidConfigError, EmptyParlayError, InvalidOddsError or
        InvalidStakeError before any sampling happens.
        """
        config = config or self.config
        config.validate()
        parlay = ParlaySimulation.coerce(parlay)
        parlay.validate()
        seed_seq = make_seed_sequence(rng, config.seed)
        return SimulationRun(self, parlay, config, seed_seq, cancel_token, parlay_index)

    def simulate(
        self,
        parlay: Any,
        config: Optional[SimulationConfig] = None,
        rng: RandomSource = None,
        cancel_token: Optional[CancellationToken] = None,
        progress: Optional[Callable[[BatchProgress], None]] = None,
        parlay_index: int = 0,
    ) -> MonteCarloResult:
        """Run every trial and return the aggregated result."""
        run = self.start(parlay, config, rng, cancel_token, parlay_index)
        for update in run:
            if progress is not None:
                progress(update)
        return run.result()

    async def simulate_async(
        self,
        parlay: Any,
        config: Optional[SimulationConfig] = None,
        rng: RandomSource = None,
        cancel_token: Optional[CancellationToken] = None,
        progress: Optional[Callable[[BatchProgress], None]] = None,
        parlay_index: int = 0,
    ) -> MonteCarloResult:
        """Same as simulate(), handing control back to the event loop between batches."""
        run = self.start(parlay, config, rng, cancel_token, parlay_index)
        for update in run:
            if progress is not None:
                progress(update)
            await asyncio.sleep(0)
        return run.result()

    def simulate_sharded(
        self,
        parlay: Any,
        config: Optional[SimulationConfig] = None,
        rng: RandomSource = None,
        workers: int = 4,
        cancel_token: Optional[CancellationToken] = None,
        parlay_index: int = 0,
    ) -> MonteCarloResult:
        """
        Run batches on a thread pool and reduce them in batch order.

        Bit-identical to simulate() for the same seed and batch size.
        """
        run = self.start(parlay, config, rng, cancel_token, parlay_index)

        def _worker(index: int) -> Optional[SimulationAccumulator]:
            if cancel_token is not None and cancel_token.cancelled:
                return None
            return run.run_batch(index)

        with ThreadPoolExecutor(max_workers=max(1, workers)) as executor:
            futures = [executor.submit(_worker, i) for i in range(len(run.sizes))]
            partials = [f.result() for f in futures]

        if any(acc is None for acc in partials):
            run.check_cancelled(sum(acc.trials for acc in partials if acc is not None))
        for acc in partials:
            run.accumulator.merge(acc)
        run._next_batch = len(run.sizes)
        return run.result()

    def build_result(
        self,
        parlay: ParlaySimulation,
        config: SimulationConfig,
        acc: SimulationAccumulator,
        parlay_index: int = 0,
    ) -> MonteCarloResult:
        n = acc.trials
        win_rate = acc.wins / n
        pure_rate = acc.pure_wins / n
        mean = acc.profit_sum / n
        variance = acc.profit_sq_sum / n - mean * mean
        if variance < 0.0:
            # Float rounding can dip just below zero
            variance = 0.0
        win_profit = parlay.stake * (parlay.decimal_odds - 1.0)

        upset_stats = UpsetStats(
            pure_odds_win_rate=pure_rate,
            adjusted_win_rate=win_rate,
            upset_impact=win_rate - pure_rate,
            total_upsets=acc.total_upsets,
            upset_wins=acc.upset_wins,
            upset_legs=acc.upset_legs,
            chaos_day_wins=acc.chaos_day_wins,
            total_chaos_days=acc.total_chaos_days,
        )
        payout_distribution = (
            PayoutBucket(
                label=f"Lose ${parlay.stake:.0f}",
                outcome=-parlay.stake,
                count=acc.losses,
                percentage=acc.losses / n * 100,
                is_win=False,
            ),
            PayoutBucket(
                label=f"Win ${win_profit:.0f}",
                outcome=win_profit,
                count=acc.wins,
                percentage=acc.wins / n * 100,
                is_win=True,
            ),
        )
        result = MonteCarloResult(
            iterations=n,
            wins=acc.wins,
            losses=acc.losses,
            win_rate=win_rate,
            expected_profit=mean,
            profit_stddev=math.sqrt(variance),
            percentiles=calculate_percentiles(acc.profit_series()),
            upset_stats=upset_stats,
            payout_distribution=payout_distribution,
            expected_win_probability=self.model_for(config).expected_win_probability(parlay.legs),
            parlay_index=parlay_index,
        )
        logger.info(
            "Simulated parlay %d: %d legs, %d trials, win rate %.4f (pure %.4f), EV %.2f",
            parlay_index, len(parlay.legs), n, win_rate, pure_rate, mean,
        )
        return result


def simulate(
    parlay: Any,
    config: Optional[SimulationConfig] = None,
    rng: RandomSource = None,
    **kwargs: Any,
) -> MonteCarloResult:
    """Module-level shortcut for ParlaySimulator().simulate()."""
    return ParlaySimulator(config).simulate(parlay, config, rng, **kwargs)
