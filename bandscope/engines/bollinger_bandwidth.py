"""
Bollinger Bands Engine - Latest Point and Full Series

Computes Bollinger Bands (upper/middle/lower), %B, bandwidth and the squeeze
flag from a candle sequence.

Two entry points:
- compute_latest_bands(): one result for the trailing window (timeframe cards)
- compute_band_series(): one point per candle with a full window (chart overlay)

Formulas:
- middle    = SMA(close, period)
- upper     = middle + k * population_std
- lower     = middle - k * population_std
- %B        = (close - lower) / (upper - lower), 0 if upper == lower
- bandwidth = (upper - lower) / middle, 0 if middle == 0

Squeeze:
- Latest point: bandwidth < POINT_SQUEEZE_THRESHOLD (0.10)
- Series:       bandwidth < SERIES_SQUEEZE_THRESHOLD (0.05)

Both functions are pure and return None / [] when fewer than `period`
candles are supplied.

Usage:
    bands = compute_latest_bands(candles)
    if bands is not None and bands.squeeze:
        ...

    series = compute_band_series(candles)
    upper_line = [(p.time, p.upper) for p in series]
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .calculations import closes_of, mean, population_std_dev
from .candle import Candle
from .indicator_config import POINT_SQUEEZE_THRESHOLD, SERIES_SQUEEZE_THRESHOLD


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True)
class BandResult:
    """Bollinger Bands for the most recent window."""

    upper: float
    middle: float
    lower: float
    percent_b: float
    bandwidth: float
    squeeze: bool


@dataclass(frozen=True)
class BandSeriesPoint:
    """Bollinger Bands at one candle, aligned to that candle's time."""

    time: int
    upper: float
    middle: float
    lower: float
    bandwidth: float
    squeeze: bool


# ============================================================================
# HELPERS
# ============================================================================

def _band_levels(window: Sequence[float], std_dev_mult: float) -> Tuple[float, float, float]:
    """Return (upper, middle, lower) for one window of closes."""
    middle = mean(window)
    sd = population_std_dev(window, middle)
    return middle + std_dev_mult * sd, middle, middle - std_dev_mult * sd


def _bandwidth(upper: float, middle: float, lower: float) -> float:
    return (upper - lower) / middle if middle != 0 else 0.0


# ============================================================================
# ENGINE
# ============================================================================

def compute_latest_bands(
    candles: Sequence[Candle], period: int = 20, std_dev_mult: float = 2.0
) -> Optional[BandResult]:
    """
    Compute Bollinger Bands over the trailing `period` closes.

    Args:
        candles: Candles ordered oldest first
        period: Window length
        std_dev_mult: Band width in standard deviations

    Returns:
        BandResult, or None if fewer than `period` candles
    """
    if period <= 0 or len(candles) < period:
        return None

    window = closes_of(candles[-period:])
    upper, middle, lower = _band_levels(window, std_dev_mult)

    band_range = upper - lower
    percent_b = (window[-1] - lower) / band_range if band_range != 0 else 0.0
    bandwidth = _bandwidth(upper, middle, lower)

    return BandResult(
        upper=upper,
        middle=middle,
        lower=lower,
        percent_b=percent_b,
        bandwidth=bandwidth,
        squeeze=bandwidth < POINT_SQUEEZE_THRESHOLD,
    )


def compute_band_series(
    candles: Sequence[Candle], period: int = 20, std_dev_mult: float = 2.0
) -> List[BandSeriesPoint]:
    """
    Compute Bollinger Bands for every candle that has a full window behind it.

    Point i uses closes [i - period + 1, i] and carries candles[i].time, so the
    series lines up with the candle series on a shared time axis.

    Returns:
        List of BandSeriesPoint (empty if fewer than `period` candles)
    """
    if period <= 0 or len(candles) < period:
        return []

    closes = closes_of(candles)
    series: List[BandSeriesPoint] = []

    for i in range(period - 1, len(closes)):
        upper, middle, lower = _band_levels(closes[i - period + 1 : i + 1], std_dev_mult)
        bandwidth = _bandwidth(upper, middle, lower)
        series.append(
            BandSeriesPoint(
                time=candles[i].time,
                upper=upper,
                middle=middle,
                lower=lower,
                bandwidth=bandwidth,
                squeeze=bandwidth < SERIES_SQUEEZE_THRESHOLD,
            )
        )

    return series
