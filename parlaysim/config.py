"""
Configuration for the parlay simulation engine.

All tunable parameters externalized as injectable objects.
Loads from parlaysim.json if present (merge with defaults).
"""

import hashlib
import json
import logging
import os
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, Optional

from .errors import InvalidConfigError


logger = logging.getLogger(__name__)

# Iteration presets exposed to the presentation layer
ITERATION_PRESETS: Dict[str, int] = {
    "quick": 10_000,
    "standard": 50_000,
    "precise": 100_000,
}

# Default configuration - all tunable parameters
DEFAULT_CONFIG: Dict[str, Any] = {
    # Run size
    "iterations": 100_000,
    "batch_size": 10_000,            # Trials per batch (yield / cancel point)
    "seed": None,

    # Upset buckets (American odds thresholds)
    "heavy_underdog_threshold": 500,    # +500 or longer
    "heavy_underdog_boost": 0.06,
    "underdog_threshold": 200,          # +200 to +499
    "underdog_boost": 0.035,
    "slight_underdog_boost": 0.0,       # +1 to +199, off by default
    "heavy_favorite_threshold": -300,   # -300 or shorter
    "heavy_favorite_risk": 0.025,
    "moderate_favorite_threshold": -200,
    "moderate_favorite_risk": 0.0,      # -200 to -299, off by default

    # Chaos day
    "chaos_day_chance": 0.05,           # Share of trials that are upset-prone slates
    "chaos_day_boost": 0.15,            # Extra probability for underdogs on chaos days

    # Clamp for adjusted probabilities
    "probability_floor": 0.01,
    "probability_ceiling": 0.99,
}


@dataclass(frozen=True)
class UpsetFactors:
    """Heuristic upset adjustments. Product-tuning defaults, not fitted values."""
    heavy_underdog_threshold: int = 500
    heavy_underdog_boost: float = 0.06
    underdog_threshold: int = 200
    underdog_boost: float = 0.035
    slight_underdog_boost: float = 0.0
    heavy_favorite_threshold: int = -300
    heavy_favorite_risk: float = 0.025
    moderate_favorite_threshold: int = -200
    moderate_favorite_risk: float = 0.0
    chaos_day_chance: float = 0.05
    chaos_day_boost: float = 0.15
    probability_floor: float = 0.01
    probability_ceiling: float = 0.99

    def __post_init__(self) -> None:
        if not 0.0 <= self.chaos_day_chance <= 1.0:
            raise InvalidConfigError(
                "chaos_day_chance", self.chaos_day_chance, "must be within [0, 1]"
            )
        if not 0.0 < self.probability_floor < self.probability_ceiling < 1.0:
            raise InvalidConfigError(
                "probability_floor/probability_ceiling",
                (self.probability_floor, self.probability_ceiling),
                "must satisfy 0 < floor < ceiling < 1",
            )
        if self.underdog_threshold <= 0 or self.heavy_underdog_threshold < self.underdog_threshold:
            raise InvalidConfigError(
                "underdog thresholds",
                (self.underdog_threshold, self.heavy_underdog_threshold),
                "must satisfy 0 < underdog <= heavy underdog",
            )
        if self.moderate_favorite_threshold >= 0 or self.heavy_favorite_threshold > self.moderate_favorite_threshold:
            raise InvalidConfigError(
                "favorite thresholds",
                (self.moderate_favorite_threshold, self.heavy_favorite_threshold),
                "must satisfy heavy favorite <= moderate favorite < 0",
            )

    @classmethod
    def disabled(cls) -> "UpsetFactors":
        """Factors that leave every probability at its implied value."""
        return cls(
            heavy_underdog_boost=0.0,
            underdog_boost=0.0,
            slight_underdog_boost=0.0,
            heavy_favorite_risk=0.0,
            moderate_favorite_risk=0.0,
            chaos_day_chance=0.0,
            chaos_day_boost=0.0,
        )

    @property
    def is_disabled(self) -> bool:
        return (
            self.heavy_underdog_boost == 0.0
            and self.underdog_boost == 0.0
            and self.slight_underdog_boost == 0.0
            and self.heavy_favorite_risk == 0.0
            and self.moderate_favorite_risk == 0.0
            and (self.chaos_day_chance == 0.0 or self.chaos_day_boost == 0.0)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "UpsetFactors":
        """Create from dictionary, ignoring keys that are not upset factors."""
        known = {k: v for k, v in d.items() if k in cls.__dataclass_fields__}
        return cls(**known)


@dataclass(frozen=True)
class SimulationConfig:
    """Read-only run configuration, safe to reuse across threads."""
    iterations: int = 100_000
    batch_size: int = 10_000
    upset_factors: UpsetFactors = field(default_factory=UpsetFactors)
    seed: Optional[int] = None

    def validate(self) -> None:
        """Raise InvalidConfigError unless iterations and batch size are positive ints."""
        for name in ("iterations", "batch_size"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise InvalidConfigError(name, value)

    def with_iterations(self, iterations: int) -> "SimulationConfig":
        return replace(self, iterations=iterations)

    def with_seed(self, seed: Optional[int]) -> "SimulationConfig":
        return replace(self, seed=seed)

    @classmethod
    def from_preset(cls, preset: str, **overrides: Any) -> "SimulationConfig":
        """Build a config from one of ITERATION_PRESETS."""
        if preset not in ITERATION_PRESETS:
            raise InvalidConfigError(
                "preset", preset, f"must be one of {sorted(ITERATION_PRESETS)}"
            )
        return cls(iterations=ITERATION_PRESETS[preset], **overrides)

    def to_dict(self) -> Dict[str, Any]:
        """Flatten to the DEFAULT_CONFIG key layout."""
        d = {
            "iterations": self.iterations,
            "batch_size": self.batch_size,
            "seed": self.seed,
        }
        d.update(self.upset_factors.to_dict())
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SimulationConfig":
        """Create from a flat dictionary such as DEFAULT_CONFIG."""
        merged = DEFAULT_CONFIG.copy()
        merged.update(d)
        return cls(
            iterations=merged["iterations"],
            batch_size=merged["batch_size"],
            upset_factors=UpsetFactors.from_dict(merged),
            seed=merged["seed"],
        )


def load_config(config_path: str = "parlaysim.json") -> Dict[str, Any]:
    """
    Load configuration, merging parlaysim.json with defaults.

    Missing keys use defaults, provided keys override.
    """
    config = DEFAULT_CONFIG.copy()

    if os.path.exists(config_path):
        try:
            with open(config_path, "r") as f:
                user_config = json.load(f)
            # Merge: user config overrides defaults
            config.update(user_config)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Could not load %s: %s. Using defaults.", config_path, e)

    return config


def get_config_hash(config: Optional[SimulationConfig] = None) -> str:
    """Return first 8 chars of SHA256 hash of config for logging."""
    data = (config or SimulationConfig()).to_dict()
    # seed does not change the model, only the draw
    data.pop("seed", None)
    config_str = json.dumps(data, sort_keys=True)
    return hashlib.sha256(config_str.encode()).hexdigest()[:8]

