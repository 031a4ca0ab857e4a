"""
Core data types published by the orchestrator.

Every snapshot is immutable and replaced wholesale on each refresh cycle, so
a reader holding a reference always sees a consistent set.
"""

from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from ..engines.bollinger_bandwidth import BandResult, BandSeriesPoint
from ..engines.candle import Candle, TickerData
from ..engines.rsi import RSIPoint


# =============================================================================
# PER-TIMEFRAME RESULT
# =============================================================================


@dataclass(frozen=True)
class AnalysisResult:
    """Bollinger state of one timeframe at the latest candle."""

    timeframe: str
    close: float
    bands: BandResult
    kline: Candle


# =============================================================================
# SNAPSHOTS
# =============================================================================


@dataclass(frozen=True)
class AnalyticsSnapshot:
    """
    One multi-timeframe refresh.

    `results` has exactly one key per configured timeframe label; a value of
    None means that timeframe had insufficient data this cycle.
    """

    symbol: str
    generation: int
    timestamp: float
    results: Mapping[str, Optional[AnalysisResult]]

    def get(self, timeframe: str) -> Optional[AnalysisResult]:
        return self.results.get(timeframe)


@dataclass(frozen=True)
class ChartSnapshot:
    """Full history of the selected timeframe plus its indicator series."""

    symbol: str
    timeframe: str
    generation: int
    candles: Tuple[Candle, ...]
    bands: Tuple[BandSeriesPoint, ...]
    rsi: Tuple[RSIPoint, ...]

    @property
    def latest_time(self) -> Optional[int]:
        return self.candles[-1].time if self.candles else None


@dataclass(frozen=True)
class TickerSnapshot:
    """Header scalars for the selected symbol."""

    symbol: str
    generation: int
    timestamp: float
    ticker: TickerData
