"""
Market data types shared by the engines, the fetcher and the orchestrator.
"""

from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(frozen=True)
class Candle:
    """
    One OHLCV bar.

    ``time`` is the bucket start in unix seconds (not milliseconds).
    """

    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @property
    def datetime(self) -> datetime:
        """UTC datetime for the bucket start."""
        return datetime.fromtimestamp(self.time, tz=timezone.utc)


@dataclass(frozen=True)
class TickerData:
    """Header scalars: last price, formatted funding rate and 24h change %."""

    price: float
    funding_rate: str
    change_24h: float
