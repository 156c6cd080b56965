"""
Comparative ranking of candidate parlays.

Every candidate is simulated with the same iteration count on its own random
stream, ranked per metric, and combined into an overall pick.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Sequence

from .config import SimulationConfig
from .errors import EmptyComparisonError
from .models import ComparisonResult, MonteCarloResult, ParlaySimulation
from .simulator import (
    CancellationToken,
    ParlaySimulator,
    RandomSource,
    child_seed,
    make_seed_sequence,
)


logger = logging.getLogger(__name__)

# Higher is better for every metric
METRICS: Dict[str, Callable[[ParlaySimulation, MonteCarloResult], float]] = {
    "win_rate": lambda sim, res: res.win_rate,
    "expected_profit": lambda sim, res: res.expected_profit,
    "payout": lambda sim, res: sim.potential_payout,
    "probability": lambda sim, res: sim.combined_probability,
}

OVERALL_METRICS = ("win_rate", "expected_profit")


def rank_by(values: Sequence[float], stakes: Sequence[float]) -> List[int]:
    """
    Indices ordered best first.

    Ties go to the lower stake, then to the earlier list position.
    """
    return sorted(range(len(values)), key=lambda i: (-values[i], stakes[i], i))


def overall_ranking(rankings: Dict[str, List[int]], stakes: Sequence[float]) -> List[int]:
    """Sum of rank positions across OVERALL_METRICS, ascending."""
    n = len(stakes)
    score = [0] * n
    for metric in OVERALL_METRICS:
        for position, index in enumerate(rankings[metric]):
            score[index] += position
    return sorted(range(n), key=lambda i: (score[i], stakes[i], i))


def build_recommendation(
    simulations: Sequence[ParlaySimulation],
    results: Sequence[MonteCarloResult],
    best: int,
) -> str:
    sim = simulations[best]
    res = results[best]
    label = f"Parlay {best + 1}"
    if sim.name:
        label += f" ({sim.name})"
    if len(simulations) == 1:
        lead = f"{label} is the only candidate"
    else:
        lead = f"{label} is the best overall pick"
    return (
        f"{lead} with a {res.win_rate * 100:.1f}% simulated win rate "
        f"and an expected profit of ${res.expected_profit:+.2f} per bet."
    )


def comparison_rows(result: ComparisonResult) -> List[Dict[str, Any]]:
    """Per-parlay summary rows for charts and tables."""
    rows = []
    for i, (sim, res) in enumerate(zip(result.simulations, result.results)):
        rows.append({
            "name": sim.label(i),
            "win_rate": res.win_rate,
            "loss_rate": res.loss_rate,
            "expected_profit": res.expected_profit,
            "potential_win": sim.potential_profit,
            "stake": sim.stake,
            "pure_win_rate": res.upset_stats.pure_odds_win_rate,
            "upset_impact": res.upset_stats.upset_impact,
            "is_best_overall": i == result.best_overall,
        })
    return rows


class ComparativeRanker:
    """Runs the simulator over candidate parlays and ranks them."""

    def __init__(self, simulator: Optional[ParlaySimulator] = None):
        self.simulator = simulator or ParlaySimulator()

    def compare(
        self,
        parlays: Sequence[Any],
        config: Optional[SimulationConfig] = None,
        rng: RandomSource = None,
        max_workers: Optional[int] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ComparisonResult:
        """
        Simulate and rank every parlay.

        All parlays are validated before the first trial runs. With
        max_workers > 1 parlays are simulated concurrently; results are
        identical to the sequential run for the same seed.
        """
        if not parlays:
            raise EmptyComparisonError()
        config = config or self.simulator.config
        config.validate()

        simulations = [ParlaySimulation.coerce(p, i) for i, p in enumerate(parlays)]
        for sim in simulations:
            sim.validate()

        root = make_seed_sequence(rng, config.seed)
        runs = [
            self.simulator.start(sim, config, child_seed(root, i), cancel_token, parlay_index=i)
            for i, sim in enumerate(simulations)
        ]

        if max_workers and max_workers > 1 and len(runs) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                futures = [executor.submit(run.result) for run in runs]
                results = [f.result() for f in futures]
        else:
            results = [run.result() for run in runs]

        return self.rank(simulations, results)

    async def compare_async(
        self,
        parlays: Sequence[Any],
        config: Optional[SimulationConfig] = None,
        rng: RandomSource = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ComparisonResult:
        """compare() for event-loop hosts: yields control after every batch."""
        if not parlays:
            raise EmptyComparisonError()
        config = config or self.simulator.config
        config.validate()

        simulations = [ParlaySimulation.coerce(p, i) for i, p in enumerate(parlays)]
        for sim in simulations:
            sim.validate()

        root = make_seed_sequence(rng, config.seed)
        results = []
        for i, sim in enumerate(simulations):
            result = await self.simulator.simulate_async(
                sim, config, child_seed(root, i), cancel_token, parlay_index=i
            )
            results.append(result)
        return self.rank(simulations, results)

    def rank(
        self,
        simulations: Sequence[ParlaySimulation],
        results: Sequence[MonteCarloResult],
    ) -> ComparisonResult:
        """Build rankings, winners and the recommendation from finished results."""
        results = [
            res if res.parlay_index == i else replace(res, parlay_index=i)
            for i, res in enumerate(results)
        ]
        stakes = [sim.stake for sim in simulations]

        rankings: Dict[str, List[int]] = {}
        for metric, getter in METRICS.items():
            values = [getter(sim, res) for sim, res in zip(simulations, results)]
            rankings[metric] = rank_by(values, stakes)
        rankings["overall"] = overall_ranking(rankings, stakes)

        best_by_metric = {metric: order[0] for metric, order in rankings.items()}
        recommendation = build_recommendation(simulations, results, rankings["overall"][0])

        logger.info(
            "Compared %d parlays; best overall is parlay %d",
            len(simulations), rankings["overall"][0],
        )
        return ComparisonResult(
            simulations=list(simulations),
            results=list(results),
            rankings=rankings,
            best_by_metric=best_by_metric,
            recommendation=recommendation,
        )


def compare(
    parlays: Sequence[Any],
    config: Optional[SimulationConfig] = None,
    rng: RandomSource = None,
    **kwargs: Any,
) -> ComparisonResult:
    """Module-level shortcut for ComparativeRanker().compare()."""
    return ComparativeRanker(ParlaySimulator(config)).compare(parlays, config, rng, **kwargs)
