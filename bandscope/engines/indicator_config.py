"""
Indicator Configuration Module
Centralizes the band/RSI parameters, squeeze thresholds and refresh cadence.

This module provides a single source of truth for all configurable parameters,
making it easy to tune the dashboard without hunting through multiple files.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple

# =============================================================================
# CONSTANTS
# =============================================================================

# Squeeze thresholds on bandwidth ((upper - lower) / middle).
# The point and series computations intentionally use different cut-offs.
POINT_SQUEEZE_THRESHOLD = 0.10
SERIES_SQUEEZE_THRESHOLD = 0.05

# Dashboard label -> Binance kline interval. Order is display order.
TIMEFRAME_INTERVALS: Dict[str, str] = {
    "1m": "1m",
    "5m": "5m",
    "30m": "30m",
    "1h": "1h",
    "2h": "2h",
    "4h": "4h",
    "8h": "8h",
    "12h": "12h",
    "1d": "1d",
    "1w": "1w",
}

SUPPORTED_COINS: Tuple[str, ...] = ("BTC", "ETH", "SOL", "LTC", "DOGE", "ZEC", "BNB")


@dataclass
class BandThresholds:
    """Bollinger Band parameters."""

    period: int = 20
    std_dev_mult: float = 2.0

    # %B display zones
    above_band: float = 1.0  # %B > 1 = close above upper band
    below_band: float = 0.0  # %B < 0 = close below lower band


@dataclass
class RSIThresholds:
    """RSI parameters."""

    period: int = 14
    overbought: float = 70.0
    oversold: float = 30.0


@dataclass
class RefreshSchedule:
    """Polling cadence (seconds) and fetch sizes for the three refresh tasks."""

    ticker_interval: float = 1.0
    analytics_interval: float = 5.0
    chart_interval: float = 2.0

    analytics_limit: int = 50  # candles per timeframe for the cards
    chart_limit: int = 500  # candles for the selected timeframe's chart


@dataclass
class DashboardConfig:
    """
    Master configuration for the dashboard.

    Usage:
        config = DashboardConfig()
        # Use defaults

        # Or customize:
        config = DashboardConfig(
            schedule=RefreshSchedule(analytics_interval=10.0),
            bands=BandThresholds(period=30),
        )
    """

    timeframes: Dict[str, str] = field(default_factory=lambda: dict(TIMEFRAME_INTERVALS))
    supported_coins: Tuple[str, ...] = SUPPORTED_COINS
    default_symbol: str = "BTC"
    default_timeframe: str = "1h"

    schedule: RefreshSchedule = field(default_factory=RefreshSchedule)
    bands: BandThresholds = field(default_factory=BandThresholds)
    rsi: RSIThresholds = field(default_factory=RSIThresholds)

    def __post_init__(self):
        if self.default_timeframe not in self.timeframes:
            raise ValueError(
                f"default_timeframe {self.default_timeframe!r} not in timeframes "
                f"{list(self.timeframes)}"
            )


# Global default config instance
DEFAULT_CONFIG = DashboardConfig()


def get_config() -> DashboardConfig:
    """Get the default configuration."""
    return DEFAULT_CONFIG
