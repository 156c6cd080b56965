"""
Percentile breakdown of simulated profit.

Nearest-rank on the sorted series: index ceil(p * (n - 1)). Works for any
non-empty series, including fewer samples than cut points.
"""

import math
from typing import Iterable, Sequence, Union

import numpy as np

from .models import Percentiles

PERCENTILE_CUTS = (0.05, 0.25, 0.50, 0.75, 0.95)


def percentile_value(sorted_values: Union[Sequence[float], np.ndarray], p: float) -> float:
    """Value at rank ceil(p * (n - 1)) of an ascending series."""
    n = len(sorted_values)
    if n == 0:
        raise ValueError("cannot take a percentile of an empty series")
    if not 0.0 <= p <= 1.0:
        raise ValueError(f"percentile must be within [0, 1], got {p!r}")
    index = min(n - 1, max(0, math.ceil(round(p * (n - 1), 9))))
    return float(sorted_values[index])


def calculate_percentiles(profits: Union[Iterable[float], np.ndarray]) -> Percentiles:
    """Reduce a per-trial profit series to p5/p25/p50/p75/p95."""
    if not isinstance(profits, np.ndarray):
        profits = np.fromiter(profits, dtype=np.float64)
    values = np.sort(profits.astype(np.float64, copy=False))
    p5, p25, p50, p75, p95 = (percentile_value(values, p) for p in PERCENTILE_CUTS)
    return Percentiles(p5=p5, p25=p25, p50=p50, p75=p75, p95=p95)
