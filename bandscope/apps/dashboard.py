#!/usr/bin/env python3
"""
Band Dashboard Runner

Polls Binance and renders the multi-timeframe Bollinger cards, the selected
timeframe's band/RSI summary and the live candle in the terminal.

While running, type a coin ("eth"), a timeframe ("4h") or both ("sol 1d")
and press Enter to change the selection; "q" quits.
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import Dict, List, Optional, Tuple

from ..continuous.data_types import AnalysisResult, AnalyticsSnapshot
from ..continuous.orchestrator import DashboardOrchestrator
from ..display.colors import Colors, paint
from ..display.printers import print_chart_summary, print_header, print_timeframe_cards
from ..engines.data_fetcher import BinanceMarketFetcher
from ..engines.indicator_config import DashboardConfig, get_config
from ..logging_config import configure_default_logging, log_exception

logger = logging.getLogger(__name__)

QUIT_COMMANDS = {"q", "quit", "exit"}


def parse_selection(
    text: str, config: DashboardConfig
) -> Optional[Tuple[Optional[str], Optional[str]]]:
    """
    Parse a selection command into (symbol, timeframe).

    Tokens matching a configured timeframe label select the timeframe; any
    other token is taken as a coin. Returns None for an empty line.

    Examples:
        "eth"    -> ("ETH", None)
        "4h"     -> (None, "4h")
        "sol 1d" -> ("SOL", "1d")
    """
    symbol = None
    timeframe = None
    for token in text.split():
        if token in config.timeframes:
            timeframe = token
        elif token.lower() in config.timeframes:
            timeframe = token.lower()
        else:
            symbol = token.upper()

    if symbol is None and timeframe is None:
        return None
    return symbol, timeframe


def coin_from_symbol(symbol: str) -> str:
    """'btc', 'BTCUSDT', 'BTC/USDT' -> 'BTC'."""
    coin = symbol.upper().replace("/", "").replace("-", "")
    if coin.endswith("USDT") and len(coin) > 4:
        coin = coin[: -len("USDT")]
    return coin


class DashboardDisplay:
    """
    Terminal view over the orchestrator's snapshots.

    Keeps the last valid result per timeframe so a card does not blank out
    when one analytics cycle comes back without data for it. Retained cards
    are dropped when the symbol changes.
    """

    def __init__(self, config: DashboardConfig, clear_screen: bool = True):
        self.config = config
        self.clear_screen = clear_screen
        self._symbol: Optional[str] = None
        self._cards: Dict[str, Optional[AnalysisResult]] = {tf: None for tf in config.timeframes}

    @property
    def cards(self) -> Dict[str, Optional[AnalysisResult]]:
        return dict(self._cards)

    def handle_analytics(self, snapshot: AnalyticsSnapshot) -> None:
        if snapshot.symbol != self._symbol:
            self._symbol = snapshot.symbol
            self._cards = {tf: None for tf in self.config.timeframes}
        for timeframe, result in snapshot.results.items():
            if result is not None:
                self._cards[timeframe] = result

    def render(self, dashboard: DashboardOrchestrator) -> None:
        if self.clear_screen:
            print("\033[2J\033[H")  # ANSI clear screen

        cards = self._cards if dashboard.symbol == self._symbol else {}

        print_header(dashboard.symbol, dashboard.timeframe, dashboard.ticker)
        print_timeframe_cards(cards, self.config, dashboard.timeframe)
        print_chart_summary(dashboard.chart, dashboard.live_candle)

        print()
        print(
            paint(
                "  Type a coin and/or timeframe + Enter to switch "
                f"({', '.join(self.config.supported_coins)}), q to quit",
                Colors.DIM,
            )
        )

    def print_metrics(self, dashboard: DashboardOrchestrator) -> None:
        summary = dashboard.metrics.get_summary()
        counters = summary["counters"]
        print()
        print(paint("  METRICS", Colors.BOLD, Colors.BLUE))
        print(
            f"  cycles: ticker {counters.get('ticker_cycles', 0)}  "
            f"analytics {counters.get('analytics_cycles', 0)}  "
            f"chart {counters.get('chart_cycles', 0)}  |  "
            f"errors {counters.get('errors', 0)}  "
            f"stale {counters.get('stale_drops', 0)}  "
            f"empty {counters.get('empty_fetches', 0)}"
        )
        for name, stats in summary["latencies_ms"].items():
            print(f"  {name}: mean={stats['mean']}ms p95={stats['p95']}ms max={stats['max']}ms")


class LineBuffer:
    """Splits raw terminal input into complete lines; an empty chunk means EOF."""

    def __init__(self):
        self._pending = ""

    def feed(self, chunk: bytes) -> List[str]:
        if not chunk:
            rest, self._pending = self._pending, ""
            return ([rest] if rest else []) + [""]

        self._pending += chunk.decode("utf-8", errors="replace")
        *complete, self._pending = self._pending.split("\n")
        return [line + "\n" for line in complete]


async def read_commands(dashboard: DashboardOrchestrator, stop: asyncio.Event) -> None:
    """Read selection commands from stdin until EOF or a quit command."""
    loop = asyncio.get_running_loop()
    lines: "asyncio.Queue[str]" = asyncio.Queue()
    buffer = LineBuffer()
    fd = sys.stdin.fileno()

    def on_readable():
        # os.read bypasses the sys.stdin buffer
        for line in buffer.feed(os.read(fd, 4096)):
            lines.put_nowait(line)

    loop.add_reader(fd, on_readable)
    try:
        while not stop.is_set():
            line = await lines.get()
            if not line:
                break

            text = line.strip()
            if text.lower() in QUIT_COMMANDS:
                break

            selection = parse_selection(text, dashboard.config)
            if selection is None:
                continue
            symbol, timeframe = selection
            try:
                await dashboard.select(symbol=symbol, timeframe=timeframe)
            except ValueError as e:
                print(paint(f"  {e}", Colors.YELLOW))
    finally:
        loop.remove_reader(fd)
        stop.set()


async def run_once(dashboard: DashboardOrchestrator, display: DashboardDisplay) -> None:
    """Run each refresh cycle a single time and print the result."""
    # Chart first so the ticker's price lands in an initialized live candle
    await dashboard.refresh_chart()
    await asyncio.gather(dashboard.refresh_analytics(), dashboard.refresh_ticker())
    display.render(dashboard)


async def run_dashboard(
    symbol: str,
    timeframe: str,
    once: bool = False,
    show_metrics: bool = False,
    render_interval: float = 1.0,
):
    """Run the dashboard until interrupted or told to quit."""
    config = get_config()
    display = DashboardDisplay(config, clear_screen=not once)

    async with BinanceMarketFetcher() as fetcher:
        dashboard = DashboardOrchestrator(fetcher, config=config, symbol=symbol, timeframe=timeframe)
        dashboard.on_analytics(display.handle_analytics)

        if once:
            await run_once(dashboard, display)
            if show_metrics:
                display.print_metrics(dashboard)
            return

        stop = asyncio.Event()
        async with dashboard:
            reader = None
            if sys.stdin.isatty():
                reader = asyncio.create_task(read_commands(dashboard, stop))
            try:
                while not stop.is_set():
                    display.render(dashboard)
                    if show_metrics:
                        display.print_metrics(dashboard)
                    try:
                        await asyncio.wait_for(stop.wait(), timeout=render_interval)
                    except asyncio.TimeoutError:
                        pass
            finally:
                if reader is not None:
                    reader.cancel()


def main():
    config = get_config()

    parser = argparse.ArgumentParser(
        description="Multi-timeframe Bollinger Band dashboard for Binance USDT pairs"
    )
    parser.add_argument(
        "symbol",
        nargs="?",
        default=config.default_symbol,
        help=f"Coin to watch (default: {config.default_symbol})",
    )
    parser.add_argument(
        "--timeframe",
        "-t",
        default=config.default_timeframe,
        choices=list(config.timeframes),
        help=f"Chart timeframe (default: {config.default_timeframe})",
    )
    parser.add_argument(
        "--once", action="store_true", help="Fetch and print a single snapshot, then exit"
    )
    parser.add_argument(
        "--metrics", "-m", action="store_true", help="Show cycle counters and latencies"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: $LOG_LEVEL or INFO)",
    )

    args = parser.parse_args()
    configure_default_logging(args.log_level)

    try:
        asyncio.run(
            run_dashboard(
                coin_from_symbol(args.symbol),
                args.timeframe,
                once=args.once,
                show_metrics=args.metrics,
            )
        )
    except KeyboardInterrupt:
        print(f"\n{paint('Shutting down...', Colors.YELLOW)}")
    except Exception as e:
        log_exception(logger, e, "Dashboard failed")
        print(f"\n{paint(f'Error: {e}', Colors.RED)}")
        sys.exit(1)


if __name__ == "__main__":
    main()
