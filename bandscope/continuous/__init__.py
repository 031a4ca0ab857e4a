"""
Continuous Dashboard Refresh

Three polling loops keep the dashboard current:

```
TICKER (1s) ──── price / funding / 24h change ──> header
    └─────────── price sample ──> LIVE CANDLE (bucketed by timeframe)
ANALYTICS (5s) ─ 50 candles x 10 timeframes ───> Bollinger cards
CHART (2s) ───── 500 candles, selected TF ─────> band series + RSI
```

"Poll continuously, publish whole snapshots."

Usage:
    import asyncio

    from bandscope.continuous import DashboardOrchestrator
    from bandscope.engines.data_fetcher import BinanceMarketFetcher

    async def main():
        async with BinanceMarketFetcher() as fetcher:
            dashboard = DashboardOrchestrator(fetcher, symbol="BTC", timeframe="1h")

            def show(snapshot):
                for tf, result in snapshot.results.items():
                    print(tf, result.bands.percent_b if result else "-")

            dashboard.on_analytics(show)

            async with dashboard:
                await asyncio.sleep(60)

    asyncio.run(main())
"""

from .data_types import AnalysisResult, AnalyticsSnapshot, ChartSnapshot, TickerSnapshot
from .live_candle import (
    LiveCandleState,
    LiveCandleSynthesizer,
    bucket_start,
    interval_seconds,
)
from .metrics import LatencyStats, LatencyTracker, MetricsCollector
from .orchestrator import DashboardOrchestrator, MarketDataSource, PeriodicTask

__all__ = [
    # Data types
    "AnalysisResult",
    "AnalyticsSnapshot",
    "ChartSnapshot",
    "TickerSnapshot",
    # Live candle
    "LiveCandleState",
    "LiveCandleSynthesizer",
    "bucket_start",
    "interval_seconds",
    # Metrics
    "LatencyStats",
    "LatencyTracker",
    "MetricsCollector",
    # Orchestration
    "DashboardOrchestrator",
    "MarketDataSource",
    "PeriodicTask",
]
