"""Parlay Monte Carlo Outcome Simulator."""

from .config import ITERATION_PRESETS, SimulationConfig, UpsetFactors
from .errors import (
    EmptyComparisonError,
    EmptyParlayError,
    InvalidConfigError,
    InvalidOddsError,
    InvalidRecordError,
    InvalidStakeError,
    ParlaySimError,
    SimulationCancelled,
)
from .models import ComparisonResult, Leg, MonteCarloResult, ParlaySimulation
from .ranker import ComparativeRanker, compare
from .simulator import CancellationToken, ParlaySimulator, simulate

__version__ = "1.0.0"
__all__ = [
    "simulate",
    "compare",
    "ParlaySimulator",
    "ComparativeRanker",
    "CancellationToken",
    "Leg",
    "ParlaySimulation",
    "MonteCarloResult",
    "ComparisonResult",
    "SimulationConfig",
    "UpsetFactors",
    "ITERATION_PRESETS",
    "ParlaySimError",
    "InvalidOddsError",
    "InvalidRecordError",
    "EmptyParlayError",
    "InvalidStakeError",
    "EmptyComparisonError",
    "InvalidConfigError",
    "SimulationCancelled",
]
