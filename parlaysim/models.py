"""
Data model for the parlay simulation engine.

Plain records in, plain records out: nothing here knows about storage,
users or rendering.
"""

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .errors import EmptyParlayError, InvalidRecordError, InvalidStakeError
from .odds import (
    combined_probability,
    decimal_to_american,
    parlay_payout_multiplier,
    to_decimal_odds,
    to_implied_probability,
    validate_odds,
)


@dataclass(frozen=True)
class Leg:
    """One selection within a parlay."""
    description: str
    odds: int
    implied_probability: float = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "implied_probability", to_implied_probability(self.odds))

    @property
    def decimal_odds(self) -> float:
        return to_decimal_odds(self.odds)

    @property
    def is_underdog(self) -> bool:
        return self.odds > 0

    @classmethod
    def from_dict(cls, d: Mapping[str, Any], index: Optional[int] = None) -> "Leg":
        """Build a leg from {"description", "odds"}; index is used in error messages."""
        if not isinstance(d, Mapping):
            where = "leg" if index is None else f"leg {index + 1}"
            raise InvalidRecordError(f"{where} is not an object: {d!r}")
        odds = validate_odds(d.get("odds"), index)
        description = str(d.get("description") or f"Leg {(index or 0) + 1}")
        return cls(description=description, odds=int(odds) if odds.is_integer() else odds)


@dataclass(frozen=True)
class ParlaySimulation:
    """
    A finalized parlay: ordered legs plus stake.

    Leg order only matters for display; outcomes are order independent.
    """
    legs: Tuple[Leg, ...]
    stake: float
    name: Optional[str] = None

    def __post_init__(self) -> None:
        # Accept any sequence but store an immutable tuple
        object.__setattr__(self, "legs", tuple(self.legs))

    @classmethod
    def from_legs(
        cls,
        legs: Sequence[Tuple[str, int]],
        stake: float,
        name: Optional[str] = None,
    ) -> "ParlaySimulation":
        """Build from (description, odds) pairs."""
        built = [
            Leg.from_dict({"description": desc, "odds": odds}, i)
            for i, (desc, odds) in enumerate(legs)
        ]
        return cls(legs=tuple(built), stake=stake, name=name)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any], index: Optional[int] = None) -> "ParlaySimulation":
        """Build from a plain record: {"legs": [...], "stake": 10, "name": "..."}."""
        where = "parlay" if index is None else f"parlay {index + 1}"
        if not isinstance(d, Mapping):
            raise InvalidRecordError(f"{where} is not an object: {d!r}")
        raw_legs = d.get("legs") or []
        if not isinstance(raw_legs, (list, tuple)):
            raise InvalidRecordError(f"{where} legs must be a list, got {raw_legs!r}")
        legs = tuple(Leg.from_dict(leg, i) for i, leg in enumerate(raw_legs))
        return cls(legs=legs, stake=d.get("stake", 0), name=d.get("name"))

    @classmethod
    def coerce(cls, value: Any, index: Optional[int] = None) -> "ParlaySimulation":
        """Return value unchanged if already a ParlaySimulation, else parse a record."""
        if isinstance(value, cls):
            return value
        return cls.from_dict(value, index)

    def validate(self) -> None:
        """Raise the specific validation error for an unusable parlay."""
        if not self.legs:
            raise EmptyParlayError()
        stake = self.stake
        if isinstance(stake, bool) or not isinstance(stake, (int, float)):
            raise InvalidStakeError(stake)
        if not math.isfinite(stake) or stake <= 0:
            raise InvalidStakeError(stake)
        for i, leg in enumerate(self.legs):
            validate_odds(leg.odds, i)

    @property
    def odds(self) -> List[int]:
        return [leg.odds for leg in self.legs]

    @property
    def combined_probability(self) -> float:
        """Implied probability that every leg hits, assuming independent legs."""
        return combined_probability(self.odds)

    @property
    def decimal_odds(self) -> float:
        return parlay_payout_multiplier(self.odds)

    @property
    def total_odds(self) -> int:
        """American odds for the whole parlay."""
        return decimal_to_american(self.decimal_odds)

    @property
    def potential_payout(self) -> float:
        """Total return on a win, stake included."""
        return self.stake * self.decimal_odds

    @property
    def potential_profit(self) -> float:
        return self.potential_payout - self.stake

    def label(self, index: int) -> str:
        return self.name or f"Parlay {index + 1}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "stake": self.stake,
            "legs": [
                {
                    "description": leg.description,
                    "odds": leg.odds,
                    "implied_probability": leg.implied_probability,
                }
                for leg in self.legs
            ],
        }


@dataclass(frozen=True)
class TrialOutcome:
    """Result of a single simulated trial."""
    hits: Tuple[bool, ...]
    pure_hits: Tuple[bool, ...]
    chaos_day: bool
    profit: float

    @property
    def won(self) -> bool:
        return all(self.hits)

    @property
    def pure_won(self) -> bool:
        return all(self.pure_hits)

    @property
    def upset_legs(self) -> int:
        """Legs that hit only because of the upset adjustment."""
        return sum(1 for hit, pure in zip(self.hits, self.pure_hits) if hit and not pure)


@dataclass(frozen=True)
class UpsetStats:
    """
    How much the upset adjustment moved the outcome.

    Counters:
        total_upsets: trials where at least one leg hit only because of the
            adjustment (it would have missed at pure odds).
        upset_wins: trials the parlay won that pure odds would have lost.
        upset_legs: individual legs, across all trials, that hit only
            because of the adjustment.
        chaos_day_wins: parlay wins on chaos days.
        total_chaos_days: trials that rolled a chaos day.
    """
    pure_odds_win_rate: float
    adjusted_win_rate: float
    upset_impact: float
    total_upsets: int
    upset_wins: int
    upset_legs: int
    chaos_day_wins: int
    total_chaos_days: int


@dataclass(frozen=True)
class Percentiles:
    """Percentile breakdown of per-trial profit."""
    p5: float
    p25: float
    p50: float
    p75: float
    p95: float

    def as_tuple(self) -> Tuple[float, float, float, float, float]:
        return (self.p5, self.p25, self.p50, self.p75, self.p95)


@dataclass(frozen=True)
class PayoutBucket:
    """Loss or win bucket of the payout distribution."""
    label: str
    outcome: float
    count: int
    percentage: float
    is_win: bool


@dataclass(frozen=True)
class MonteCarloResult:
    """Complete simulation result for one parlay."""
    iterations: int
    wins: int
    losses: int
    win_rate: float
    expected_profit: float
    profit_stddev: float
    percentiles: Percentiles
    upset_stats: UpsetStats
    payout_distribution: Tuple[PayoutBucket, ...]
    expected_win_probability: float
    parlay_index: int = 0

    @property
    def loss_rate(self) -> float:
        return 1.0 - self.win_rate

    @property
    def median_outcome(self) -> float:
        return self.percentiles.p50

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["loss_rate"] = self.loss_rate
        d["median_outcome"] = self.median_outcome
        return d


@dataclass(frozen=True)
class ComparisonResult:
    """Side-by-side simulation of several parlays."""
    simulations: List[ParlaySimulation]
    results: List[MonteCarloResult]
    rankings: Dict[str, List[int]]
    best_by_metric: Dict[str, int]
    recommendation: str

    @property
    def best_overall(self) -> int:
        return self.rankings["overall"][0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "simulations": [sim.to_dict() for sim in self.simulations],
            "results": [r.to_dict() for r in self.results],
            "rankings": {k: list(v) for k, v in self.rankings.items()},
            "best_by_metric": dict(self.best_by_metric),
            "recommendation": self.recommendation,
        }
