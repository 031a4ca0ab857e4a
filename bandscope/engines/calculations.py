"""
Shared math utilities for band and oscillator calculations.
"""

import math
from typing import List, Sequence


def mean(values: Sequence[float]) -> float:
    """Return the arithmetic mean of values, or 0 if empty."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def population_std_dev(values: Sequence[float], center: float) -> float:
    """
    Population standard deviation of values around a supplied mean.

    Divides by n (not n - 1), matching how Bollinger Bands are
    conventionally computed. Returns 0 for an empty sequence.
    """
    n = len(values)
    if n == 0:
        return 0.0
    return math.sqrt(sum((x - center) ** 2 for x in values) / n)


def closes_of(candles: Sequence) -> List[float]:
    """Extract close prices from a candle sequence."""
    return [c.close for c in candles]
