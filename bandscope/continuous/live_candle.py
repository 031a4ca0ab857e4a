"""
Live candle synthesis from polled price samples.

Keeps one in-progress candle for the selected timeframe. Each price sample
either widens the current candle or, once the wall-clock bucket has moved
past it, replaces it with a fresh one opened at that price.

Only the current bucket is ever opened: if several boundaries passed since
the last sample (sleep, suspended task) the skipped buckets are not
back-filled.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

from ..engines.candle import Candle

logger = logging.getLogger(__name__)

UNIT_SECONDS = {
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
}
DEFAULT_INTERVAL_SECONDS = 60


def interval_seconds(timeframe: str) -> int:
    """
    Bucket length in seconds for a timeframe label.

    '5m' -> 300, '4h' -> 14400, '1w' -> 604800. A label with an unknown unit
    falls back to 60 seconds.

    Raises:
        ValueError: If the label has no leading integer count
    """
    digits = ""
    for ch in timeframe:
        if not ch.isdigit():
            break
        digits += ch
    if not digits:
        raise ValueError(f"Invalid timeframe label: {timeframe!r}")

    unit_seconds = UNIT_SECONDS.get(timeframe[-1])
    if unit_seconds is None:
        return DEFAULT_INTERVAL_SECONDS
    return int(digits) * unit_seconds


def bucket_start(now_seconds: float, bucket_seconds: int) -> int:
    """Start of the bucket containing now_seconds."""
    return int(now_seconds // bucket_seconds) * bucket_seconds


@dataclass
class LiveCandleState:
    """The in-progress candle. Mutated in place within a bucket."""

    time: int
    open: float
    high: float
    low: float
    close: float


class LiveCandleSynthesizer:
    """
    Synthesizes the forming candle for one timeframe.

    Usage:
        synth = LiveCandleSynthesizer()
        synth.initialize(candles[-1])

        state = synth.on_price_sample(price, "5m", time.time())
        if state is not None:
            chart.update(state)
    """

    def __init__(self):
        self._state: Optional[LiveCandleState] = None

    @property
    def is_initialized(self) -> bool:
        return self._state is not None

    @property
    def current(self) -> Optional[LiveCandleState]:
        """A copy of the live candle, safe to hand to readers."""
        return replace(self._state) if self._state is not None else None

    def initialize(self, last_candle: Candle) -> None:
        """Start from the last historical candle."""
        self._state = LiveCandleState(
            time=last_candle.time,
            open=last_candle.open,
            high=last_candle.high,
            low=last_candle.low,
            close=last_candle.close,
        )

    def reset(self) -> None:
        self._state = None

    def on_price_sample(
        self, price: float, timeframe: str, now_seconds: float
    ) -> Optional[LiveCandleState]:
        """
        Fold one price sample into the live candle.

        Args:
            price: Latest traded price
            timeframe: Timeframe label driving the bucket size ('1m', '4h', ...)
            now_seconds: Current unix time in seconds

        Returns:
            The live state (rolled over or updated), or None if uninitialized
        """
        state = self._state
        if state is None:
            return None

        current_bucket = bucket_start(now_seconds, interval_seconds(timeframe))

        if current_bucket > state.time:
            logger.debug(f"Live candle rollover {timeframe}: {state.time} -> {current_bucket}")
            self._state = LiveCandleState(
                time=current_bucket, open=price, high=price, low=price, close=price
            )
        else:
            state.close = price
            state.high = max(state.high, price)
            state.low = min(state.low, price)

        return self._state
