"""Multi-timeframe Bollinger Band dashboard.

Public symbols are exposed lazily: the engines and `continuous` never import
`aiohttp`, only the fetcher does.
"""

from __future__ import annotations

import importlib
from typing import Dict, Tuple


__all__ = [
    # Data model
    "Candle",
    # Band engine
    "BandResult",
    "BandSeriesPoint",
    "compute_latest_bands",
    "compute_band_series",
    # Oscillator
    "RSIPoint",
    "compute_rsi_series",
    # Data fetcher
    "BinanceMarketFetcher",
    "TickerData",
    "BinanceAPIError",
    "BinanceRateLimitError",
    "BinanceTimeoutError",
    "BinanceConnectionError",
    "RequestConfig",
    "DEFAULT_REQUEST_CONFIG",
    # Configuration
    "DashboardConfig",
    "BandThresholds",
    "RSIThresholds",
    "RefreshSchedule",
    "DEFAULT_CONFIG",
    "get_config",
    # Live candle / orchestration
    "LiveCandleState",
    "LiveCandleSynthesizer",
    "DashboardOrchestrator",
    "AnalysisResult",
    "AnalyticsSnapshot",
    "ChartSnapshot",
    "TickerSnapshot",
]


_EXPORT_TO_SOURCE: Dict[str, Tuple[str, str]] = {}


def _register(module: str, names: list[str]) -> None:
    for name in names:
        _EXPORT_TO_SOURCE[name] = (module, name)


_register(".engines.candle", ["Candle", "TickerData"])

_register(
    ".engines.bollinger_bandwidth",
    [
        "BandResult",
        "BandSeriesPoint",
        "compute_latest_bands",
        "compute_band_series",
    ],
)

_register(".engines.rsi", ["RSIPoint", "compute_rsi_series"])

_register(
    ".engines.data_fetcher",
    [
        "BinanceMarketFetcher",
        "BinanceAPIError",
        "BinanceRateLimitError",
        "BinanceTimeoutError",
        "BinanceConnectionError",
        "RequestConfig",
        "DEFAULT_REQUEST_CONFIG",
    ],
)

_register(
    ".engines.indicator_config",
    [
        "DashboardConfig",
        "BandThresholds",
        "RSIThresholds",
        "RefreshSchedule",
        "DEFAULT_CONFIG",
        "get_config",
    ],
)

_register(".continuous.live_candle", ["LiveCandleState", "LiveCandleSynthesizer"])

_register(".continuous.orchestrator", ["DashboardOrchestrator"])

_register(
    ".continuous.data_types",
    [
        "AnalysisResult",
        "AnalyticsSnapshot",
        "ChartSnapshot",
        "TickerSnapshot",
    ],
)


_missing_exports = [name for name in __all__ if name not in _EXPORT_TO_SOURCE]
if _missing_exports:
    raise RuntimeError(f"Lazy export map incomplete: {_missing_exports}")


def __getattr__(name: str):
    if name not in _EXPORT_TO_SOURCE:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module_name, symbol_name = _EXPORT_TO_SOURCE[name]
    module = importlib.import_module(module_name, __name__)
    value = getattr(module, symbol_name)

    # Cache resolved symbol on module globals for subsequent fast access.
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    return sorted(set(globals()) | set(__all__))
