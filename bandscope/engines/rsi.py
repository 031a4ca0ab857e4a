"""
RSI Engine - Wilder-smoothed Relative Strength Index series.

The first value is seeded from plain averages of the first `period` close-to-
close changes; every later value uses Wilder's recursive smoothing:

    avg = (avg * (period - 1) + current) / period

Zero average loss is handled on two separate paths:
- seed point: rs is forced to 100, giving 100 - 100/101
- later points: RSI is exactly 100
"""

from dataclasses import dataclass
from typing import List, Sequence

from .calculations import closes_of
from .candle import Candle

SEED_ZERO_LOSS_RS = 100.0


@dataclass(frozen=True)
class RSIPoint:
    """RSI value at one candle."""

    time: int
    value: float


def _rsi_from_rs(rs: float) -> float:
    return 100 - (100 / (1 + rs))


def compute_rsi_series(candles: Sequence[Candle], period: int = 14) -> List[RSIPoint]:
    """
    Calculate the RSI series, one point per candle from index `period` onward.

    Args:
        candles: Candles ordered oldest first
        period: Lookback length

    Returns:
        List of RSIPoint (empty if fewer than period + 1 candles)
    """
    if period <= 0 or len(candles) < period + 1:
        return []

    closes = closes_of(candles)

    gain = 0.0
    loss = 0.0
    for i in range(1, period + 1):
        change = closes[i] - closes[i - 1]
        if change > 0:
            gain += change
        else:
            loss -= change

    avg_gain = gain / period
    avg_loss = loss / period

    rs = SEED_ZERO_LOSS_RS if avg_loss == 0 else avg_gain / avg_loss
    series = [RSIPoint(time=candles[period].time, value=_rsi_from_rs(rs))]

    for i in range(period + 1, len(closes)):
        change = closes[i] - closes[i - 1]
        current_gain = change if change > 0 else 0.0
        current_loss = -change if change < 0 else 0.0

        avg_gain = (avg_gain * (period - 1) + current_gain) / period
        avg_loss = (avg_loss * (period - 1) + current_loss) / period

        if avg_loss == 0:
            value = 100.0
        else:
            value = _rsi_from_rs(avg_gain / avg_loss)

        series.append(RSIPoint(time=candles[i].time, value=value))

    return series
