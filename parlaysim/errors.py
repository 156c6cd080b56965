"""
Error taxonomy for the parlay simulation engine.

Every input problem is detected before sampling starts, so callers either get
a complete result or one of these exceptions naming the violated precondition.
"""

from typing import Any, Optional


class ParlaySimError(Exception):
    """Base class for all engine errors."""


class ParlayValidationError(ParlaySimError):
    """Input parlay data failed validation."""


class InvalidOddsError(ParlayValidationError):
    """A leg carries odds that cannot be converted (zero, NaN, non-numeric)."""

    def __init__(self, odds: Any, leg_index: Optional[int] = None):
        self.odds = odds
        self.leg_index = leg_index
        if leg_index is None:
            message = f"invalid odds: {odds!r}"
        else:
            # leg_index is 0-based internally, 1-based for people
            message = f"leg {leg_index + 1} has invalid odds: {odds!r}"
        super().__init__(message)


class InvalidRecordError(ParlayValidationError):
    """A parlay or leg record has the wrong shape (not an object, legs not a list)."""


class EmptyParlayError(ParlayValidationError):
    """A parlay was submitted with no legs."""

    def __init__(self, message: str = "parlay has no legs"):
        super().__init__(message)


class InvalidStakeError(ParlayValidationError):
    """Stake is not a positive finite number."""

    def __init__(self, stake: Any):
        self.stake = stake
        super().__init__(f"stake must be positive, got {stake!r}")


class EmptyComparisonError(ParlayValidationError):
    """A comparison was requested with no candidate parlays."""

    def __init__(self, message: str = "comparison needs at least one parlay"):
        super().__init__(message)


class InvalidConfigError(ParlaySimError):
    """Simulation configuration is out of range."""

    def __init__(self, field: str, value: Any, requirement: str = "must be positive"):
        self.field = field
        self.value = value
        super().__init__(f"{field} {requirement}, got {value!r}")


class SimulationCancelled(ParlaySimError):
    """A running simulation was aborted through its cancellation token."""

    def __init__(self, completed: int = 0, total: int = 0):
        self.completed = completed
        self.total = total
        super().__init__(f"simulation cancelled after {completed}/{total} trials")
