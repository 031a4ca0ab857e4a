"""
Dashboard Orchestrator

Wires together:
- Market data source (candles + ticker)
- Band / RSI engines
- Live candle synthesizer

Three independent periodic tasks each own one slice of state and publish
immutable snapshots:

```
TICKER (1s) ──── price/funding/24h ──> TickerSnapshot
       └──────── price sample ───────> LiveCandleSynthesizer ──> live candle
ANALYTICS (5s) ─ 50 candles x TF ────> compute_latest_bands ──> AnalyticsSnapshot
CHART (2s) ───── 500 candles (sel.) ─> band series + RSI ─────> ChartSnapshot
                                  └──> synthesizer.initialize(last candle)
```

Changing the selected symbol/timeframe bumps a generation counter and
restarts all three tasks; a cycle that completes under an older generation
drops its result instead of publishing it.
"""

import asyncio
import logging
import time
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

from ..engines.bollinger_bandwidth import compute_band_series, compute_latest_bands
from ..engines.candle import Candle, TickerData
from ..engines.indicator_config import DashboardConfig, get_config
from ..engines.rsi import compute_rsi_series
from .data_types import AnalysisResult, AnalyticsSnapshot, ChartSnapshot, TickerSnapshot
from .live_candle import LiveCandleState, LiveCandleSynthesizer
from .metrics import MetricsCollector

logger = logging.getLogger(__name__)


class MarketDataSource(Protocol):
    """What the orchestrator needs from a market data client."""

    async def fetch_candles(self, symbol: str, interval: str, limit: int) -> List[Candle]:
        ...

    async def fetch_ticker(self, symbol: str) -> TickerData:
        ...


# =============================================================================
# PERIODIC TASK
# =============================================================================


class PeriodicTask:
    """
    Runs an async callable every `interval` seconds until stopped.

    A cycle that takes longer than the interval delays the next one; cycles
    are never skipped or run concurrently.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        func: Callable[[], Awaitable[Any]],
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        self.name = name
        self.interval = interval
        self._func = func
        self._on_error = on_error
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name=self.name)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            started = loop.time()
            try:
                await self._func()
            except Exception as e:
                logger.error(f"{self.name} cycle error: {e}", exc_info=True)
                if self._on_error:
                    self._on_error(e)

            elapsed = loop.time() - started
            await asyncio.sleep(max(0.0, self.interval - elapsed))


# =============================================================================
# ORCHESTRATOR
# =============================================================================


class DashboardOrchestrator:
    """
    Owns the dashboard state for one selected symbol and timeframe.

    Usage:
        async with BinanceMarketFetcher() as fetcher:
            dashboard = DashboardOrchestrator(fetcher, symbol="ETH", timeframe="4h")
            dashboard.on_analytics(render_cards)

            async with dashboard:
                await asyncio.sleep(60)
                await dashboard.select(timeframe="1d")
    """

    def __init__(
        self,
        source: MarketDataSource,
        config: Optional[DashboardConfig] = None,
        symbol: Optional[str] = None,
        timeframe: Optional[str] = None,
        clock: Callable[[], float] = time.time,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.config = config or get_config()
        self._source = source
        self._clock = clock
        self._metrics = metrics or MetricsCollector()

        self._symbol = (symbol or self.config.default_symbol).upper()
        self._timeframe = self._validate_timeframe(timeframe or self.config.default_timeframe)
        self._generation = 0

        # Published snapshots (replaced, never mutated)
        self._analytics: Optional[AnalyticsSnapshot] = None
        self._chart: Optional[ChartSnapshot] = None
        self._ticker: Optional[TickerSnapshot] = None
        self._live_candle: Optional[LiveCandleState] = None

        self._synthesizer = LiveCandleSynthesizer()

        schedule = self.config.schedule
        self._tasks = [
            PeriodicTask("ticker", schedule.ticker_interval, self.refresh_ticker, self._count_error),
            PeriodicTask(
                "analytics", schedule.analytics_interval, self.refresh_analytics, self._count_error
            ),
            PeriodicTask("chart", schedule.chart_interval, self.refresh_chart, self._count_error),
        ]
        self._running = False

        self._on_analytics_callbacks: List[Callable] = []
        self._on_chart_callbacks: List[Callable] = []
        self._on_ticker_callbacks: List[Callable] = []
        self._on_live_candle_callbacks: List[Callable] = []

    # === Properties ===

    @property
    def symbol(self) -> str:
        return self._symbol

    @property
    def timeframe(self) -> str:
        return self._timeframe

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def analytics(self) -> Optional[AnalyticsSnapshot]:
        return self._analytics

    @property
    def chart(self) -> Optional[ChartSnapshot]:
        return self._chart

    @property
    def ticker(self) -> Optional[TickerSnapshot]:
        return self._ticker

    @property
    def live_candle(self) -> Optional[LiveCandleState]:
        return self._live_candle

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def tasks(self) -> Dict[str, PeriodicTask]:
        return {task.name: task for task in self._tasks}

    # === Callback Registration ===

    def on_analytics(self, callback: Callable[[AnalyticsSnapshot], Any]) -> None:
        """Register callback for multi-timeframe snapshots."""
        self._on_analytics_callbacks.append(callback)

    def on_chart(self, callback: Callable[[ChartSnapshot], Any]) -> None:
        """Register callback for chart history snapshots."""
        self._on_chart_callbacks.append(callback)

    def on_ticker(self, callback: Callable[[TickerSnapshot], Any]) -> None:
        """Register callback for ticker snapshots."""
        self._on_ticker_callbacks.append(callback)

    def on_live_candle(self, callback: Callable[[LiveCandleState], Any]) -> None:
        """Register callback for live candle updates."""
        self._on_live_candle_callbacks.append(callback)

    async def _notify(self, callbacks: List[Callable], payload: Any) -> None:
        for callback in callbacks:
            try:
                result = callback(payload)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.error(f"Callback error: {e}")

    # === Helpers ===

    def _validate_timeframe(self, timeframe: str) -> str:
        if timeframe not in self.config.timeframes:
            raise ValueError(
                f"Unknown timeframe {timeframe!r}. Must be one of: {list(self.config.timeframes)}"
            )
        return timeframe

    def _count_error(self, error: Exception) -> None:
        self._metrics.increment("errors")

    def _is_stale(self, generation: int, kind: str) -> bool:
        if generation == self._generation:
            return False
        logger.debug(f"Dropping stale {kind} result (generation {generation} != {self._generation})")
        self._metrics.increment("stale_drops")
        return True

    async def _publish_live_candle(self) -> None:
        self._live_candle = self._synthesizer.current
        if self._live_candle is not None:
            await self._notify(self._on_live_candle_callbacks, self._live_candle)

    # === Refresh Cycles ===

    async def _analyze_timeframe(self, symbol: str, label: str, interval: str) -> Optional[AnalysisResult]:
        candles = await self._source.fetch_candles(
            symbol, interval, self.config.schedule.analytics_limit
        )
        bands = compute_latest_bands(
            candles, self.config.bands.period, self.config.bands.std_dev_mult
        )
        if bands is None:
            self._metrics.increment("insufficient_data")
            return None

        last = candles[-1]
        return AnalysisResult(timeframe=label, close=last.close, bands=bands, kline=last)

    async def refresh_analytics(self) -> Optional[AnalyticsSnapshot]:
        """
        Recompute bands for every configured timeframe.

        Returns:
            The published snapshot, or None if the selection changed mid-cycle
        """
        generation = self._generation
        symbol = self._symbol
        labels = list(self.config.timeframes)

        with self._metrics.time("analytics_refresh"):
            outcomes = await asyncio.gather(
                *(
                    self._analyze_timeframe(symbol, label, self.config.timeframes[label])
                    for label in labels
                ),
                return_exceptions=True,
            )

        results: Dict[str, Optional[AnalysisResult]] = {}
        for label, outcome in zip(labels, outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"Analytics for {symbol} {label} failed: {outcome}")
                self._metrics.increment("errors")
                results[label] = None
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results[label] = outcome

        if self._is_stale(generation, "analytics"):
            return None

        snapshot = AnalyticsSnapshot(
            symbol=symbol,
            generation=generation,
            timestamp=self._clock(),
            results=MappingProxyType(results),
        )
        self._analytics = snapshot
        self._metrics.increment("analytics_cycles")
        await self._notify(self._on_analytics_callbacks, snapshot)
        return snapshot

    async def refresh_chart(self) -> Optional[ChartSnapshot]:
        """
        Reload the selected timeframe's history and indicator series.

        An empty fetch keeps the previous chart snapshot.
        """
        generation = self._generation
        symbol = self._symbol
        timeframe = self._timeframe

        with self._metrics.time("chart_refresh"):
            candles = await self._source.fetch_candles(
                symbol, self.config.timeframes[timeframe], self.config.schedule.chart_limit
            )

        if self._is_stale(generation, "chart"):
            return None

        if not candles:
            logger.debug(f"No chart candles for {symbol} {timeframe}; keeping previous snapshot")
            self._metrics.increment("empty_fetches")
            return None

        bands = self.config.bands
        snapshot = ChartSnapshot(
            symbol=symbol,
            timeframe=timeframe,
            generation=generation,
            candles=tuple(candles),
            bands=tuple(compute_band_series(candles, bands.period, bands.std_dev_mult)),
            rsi=tuple(compute_rsi_series(candles, self.config.rsi.period)),
        )
        self._chart = snapshot
        self._synthesizer.initialize(candles[-1])
        self._metrics.increment("chart_cycles")

        await self._notify(self._on_chart_callbacks, snapshot)
        await self._publish_live_candle()
        return snapshot

    async def refresh_ticker(self) -> Optional[TickerSnapshot]:
        """Refresh header scalars and fold the price into the live candle."""
        generation = self._generation
        symbol = self._symbol

        with self._metrics.time("ticker_refresh"):
            data = await self._source.fetch_ticker(symbol)

        if self._is_stale(generation, "ticker"):
            return None

        now = self._clock()
        snapshot = TickerSnapshot(symbol=symbol, generation=generation, timestamp=now, ticker=data)
        self._ticker = snapshot
        self._metrics.increment("ticker_cycles")
        await self._notify(self._on_ticker_callbacks, snapshot)

        # A zero price is the fetch-failure fallback, not a trade
        if data.price and self._synthesizer.is_initialized:
            self._synthesizer.on_price_sample(data.price, self._timeframe, now)
            await self._publish_live_candle()

        return snapshot

    # === Lifecycle ===

    def _start_tasks(self) -> None:
        for task in self._tasks:
            task.start()

    async def _stop_tasks(self) -> None:
        await asyncio.gather(*(task.stop() for task in self._tasks))

    async def start(self) -> None:
        """Start the three refresh tasks."""
        if self._running:
            return
        self._running = True
        logger.info(f"Starting dashboard for {self._symbol} ({self._timeframe})")
        self._start_tasks()

    async def stop(self) -> None:
        """Stop all refresh tasks."""
        self._running = False
        logger.info(f"Stopping dashboard for {self._symbol}")
        await self._stop_tasks()

    async def select(self, symbol: Optional[str] = None, timeframe: Optional[str] = None) -> None:
        """
        Change the selected symbol and/or timeframe.

        Cancels all three tasks, invalidates in-flight cycles, clears state
        that belongs to the old selection and restarts the tasks if running.
        """
        new_symbol = symbol.upper() if symbol else self._symbol
        new_timeframe = self._validate_timeframe(timeframe) if timeframe else self._timeframe

        if new_symbol not in self.config.supported_coins:
            logger.warning(f"{new_symbol} is not in the supported coin list")

        self._generation += 1
        await self._stop_tasks()

        symbol_changed = new_symbol != self._symbol
        self._symbol = new_symbol
        self._timeframe = new_timeframe

        self._chart = None
        self._live_candle = None
        self._synthesizer = LiveCandleSynthesizer()
        if symbol_changed:
            self._analytics = None
            self._ticker = None

        logger.info(
            f"Selection -> {self._symbol} {self._timeframe} (generation {self._generation})"
        )
        if self._running:
            self._start_tasks()

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()
