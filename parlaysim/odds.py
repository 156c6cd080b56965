"""
American odds conversions.

Pure, stateless helpers. Combining legs multiplies per-leg values, which
assumes leg outcomes are independent. Correlated legs (same-game props) are
a known modelling limitation and are not corrected here.
"""

import math
from typing import Any, Iterable, Optional

from .errors import InvalidOddsError

# Keeps implied probabilities strictly inside (0, 1) for extreme odds
PROBABILITY_EPSILON = 1e-9

# Finite bounds on decimal odds (stake included) so payouts never overflow
MIN_DECIMAL_ODDS = 1.0 + 1e-9
MAX_DECIMAL_ODDS = 1e12


def validate_odds(odds: Any, leg_index: Optional[int] = None) -> float:
    """
    Return odds as a float, or raise InvalidOddsError.

    Rejects zero, booleans, NaN/inf, integers too large for a float and
    anything non-numeric.
    """
    if isinstance(odds, bool):
        raise InvalidOddsError(odds, leg_index)
    try:
        value = float(odds)
    except (TypeError, ValueError, OverflowError):
        raise InvalidOddsError(odds, leg_index) from None
    if value == 0 or not math.isfinite(value):
        raise InvalidOddsError(odds, leg_index)
    return value


def to_implied_probability(odds: float, leg_index: Optional[int] = None) -> float:
    """
    Convert American odds to implied win probability.

    +150 -> 100/250 = 0.4, -110 -> 110/210 ~= 0.5238.
    """
    value = validate_odds(odds, leg_index)
    if value > 0:
        prob = 100.0 / (value + 100.0)
    else:
        prob = abs(value) / (abs(value) + 100.0)
    return min(1.0 - PROBABILITY_EPSILON, max(PROBABILITY_EPSILON, prob))


def clamp_decimal_odds(decimal_odds: float) -> float:
    """Pin decimal odds into [MIN_DECIMAL_ODDS, MAX_DECIMAL_ODDS]."""
    return min(MAX_DECIMAL_ODDS, max(MIN_DECIMAL_ODDS, decimal_odds))


def to_payout_multiplier(odds: float, leg_index: Optional[int] = None) -> float:
    """
    Profit per unit staked when the bet hits (+150 -> 1.5, -110 -> 100/110).

    Clamped so the matching decimal odds stay finite and above 1.
    """
    value = validate_odds(odds, leg_index)
    if value > 0:
        multiplier = value / 100.0
    else:
        multiplier = 100.0 / abs(value)
    return min(MAX_DECIMAL_ODDS - 1.0, max(MIN_DECIMAL_ODDS - 1.0, multiplier))


def to_decimal_odds(odds: float, leg_index: Optional[int] = None) -> float:
    """Total return per unit staked, stake included."""
    return 1.0 + to_payout_multiplier(odds, leg_index)


def decimal_to_american(decimal_odds: float) -> int:
    """
    Convert decimal odds back to rounded American odds.

    Even money (2.0) maps to +100. Values outside the supported range
    saturate at its bounds.
    """
    if math.isnan(decimal_odds):
        raise ValueError(f"decimal odds must be a number, got {decimal_odds!r}")
    decimal_odds = clamp_decimal_odds(decimal_odds)
    if decimal_odds >= 2.0:
        return int(round((decimal_odds - 1.0) * 100))
    return int(round(-100 / (decimal_odds - 1.0)))


def probability_to_american(prob: float) -> int:
    """Fair American odds for a win probability."""
    if not 0.0 < prob < 1.0:
        raise ValueError(f"probability must be in (0, 1), got {prob!r}")
    if prob >= 0.5:
        return int(round(-100 * prob / (1 - prob)))
    return int(round(100 * (1 - prob) / prob))


def combined_probability(odds_list: Iterable[float]) -> float:
    """Product of per-leg implied probabilities."""
    prob = 1.0
    for i, odds in enumerate(odds_list):
        prob *= to_implied_probability(odds, i)
    return prob


def parlay_payout_multiplier(odds_list: Iterable[float]) -> float:
    """Product of per-leg decimal odds (total return per unit staked), clamped."""
    multiplier = 1.0
    for i, odds in enumerate(odds_list):
        multiplier = clamp_decimal_odds(multiplier * to_decimal_odds(odds, i))
    return multiplier
