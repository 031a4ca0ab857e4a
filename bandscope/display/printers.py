"""Print functions for the band dashboard."""

from datetime import datetime
from typing import Mapping, Optional

from ..continuous.data_types import AnalysisResult, ChartSnapshot, TickerSnapshot
from ..continuous.live_candle import LiveCandleState
from ..engines.indicator_config import DashboardConfig
from .colors import Colors, paint
from .formatters import (
    band_zone,
    format_bandwidth,
    format_change,
    format_price,
    percent_b_bar,
    rsi_color,
    zone_color,
)


def print_header(symbol: str, timeframe: str, ticker: Optional[TickerSnapshot]):
    """Print the price / 24h change / funding header."""
    print()
    print(paint("═" * 80, Colors.BOLD))
    print(paint(f"  BAND DASHBOARD: {symbol}USDT  ({timeframe})", Colors.BOLD, Colors.CYAN))
    print(paint("═" * 80, Colors.BOLD))

    if ticker is None:
        print(paint("  Waiting for ticker...", Colors.DIM))
    else:
        data = ticker.ticker
        print(
            f"  Price: {paint(format_price(data.price), Colors.BOLD, Colors.ORANGE)}  "
            f"{format_change(data.change_24h)}  |  "
            f"Funding: {data.funding_rate}  |  "
            f"Time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}"
        )
    print(paint("─" * 80, Colors.DIM))


def format_timeframe_card(
    timeframe: str, result: Optional[AnalysisResult], selected: bool = False
) -> str:
    """One line per timeframe with %B, the band levels, bandwidth and a squeeze badge."""
    marker = paint("▶", Colors.BOLD, Colors.BLUE) if selected else " "
    label = f"{timeframe:>4}"

    if result is None:
        return f" {marker} {label}  {paint('loading / insufficient data', Colors.DIM)}"

    bands = result.bands
    zone = band_zone(bands)
    squeeze = paint(" SQUEEZE", Colors.BOLD, Colors.MAGENTA) if bands.squeeze else ""

    return (
        f" {marker} {label}  {percent_b_bar(bands.percent_b)} "
        f"%B {paint(f'{bands.percent_b:5.2f}', zone_color(zone))}  "
        f"{paint('H', Colors.BOLD, Colors.RED)} {bands.upper:.2f}  "
        f"{paint('L', Colors.BOLD, Colors.GREEN)} {bands.lower:.2f}  "
        f"BW {format_bandwidth(bands.bandwidth):>6}  "
        f"close {format_price(result.close)}{squeeze}"
    )


def print_timeframe_cards(
    results: Mapping[str, Optional[AnalysisResult]],
    config: DashboardConfig,
    selected: str,
):
    """Print the multi-timeframe cards in configured order."""
    print()
    print(paint("  MULTI-TIMEFRAME ANALYSIS", Colors.BOLD, Colors.BLUE))
    print(paint("─" * 40, Colors.DIM))
    for timeframe in config.timeframes:
        print(format_timeframe_card(timeframe, results.get(timeframe), timeframe == selected))


def print_chart_summary(chart: Optional[ChartSnapshot], live: Optional[LiveCandleState]):
    """Print the latest band/RSI values of the chart series and the live candle."""
    print()
    print(paint("  CHART", Colors.BOLD, Colors.BLUE))
    print(paint("─" * 40, Colors.DIM))

    if chart is None:
        print(paint("  Waiting for history...", Colors.DIM))
        return

    print(f"  {len(chart.candles)} candles  ({chart.timeframe})")
    if chart.bands:
        last = chart.bands[-1]
        squeeze = paint("  SQUEEZE", Colors.BOLD, Colors.MAGENTA) if last.squeeze else ""
        print(
            f"  Bands  U {last.upper:,.2f}  M {last.middle:,.2f}  L {last.lower:,.2f}  "
            f"BW {format_bandwidth(last.bandwidth)}{squeeze}"
        )
    if chart.rsi:
        value = chart.rsi[-1].value
        print(f"  RSI    {paint(f'{value:.1f}', rsi_color(value))}")

    if live is not None:
        opened = datetime.fromtimestamp(live.time).strftime("%m/%d %H:%M")
        print(
            f"  Live   {opened}  O {live.open:,.2f}  H {live.high:,.2f}  "
            f"L {live.low:,.2f}  C {live.close:,.2f}"
        )
