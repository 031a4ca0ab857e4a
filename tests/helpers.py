"""Shared builders and fakes for the test suite."""

import asyncio
from typing import Dict, List, Optional, Sequence

from bandscope.engines.candle import Candle, TickerData


def make_candles(closes: Sequence[float], start: int = 0, step: int = 60) -> List[Candle]:
    """Candles with the given closes; open = previous close, high/low pad by 1."""
    candles = []
    prev = closes[0] if closes else 0.0
    for i, close in enumerate(closes):
        candles.append(
            Candle(
                time=start + i * step,
                open=prev,
                high=max(prev, close) + 1,
                low=min(prev, close) - 1,
                close=float(close),
                volume=100.0,
            )
        )
        prev = close
    return candles


class FakeMarketSource:
    """
    In-memory market data source.

    `candles` maps Binance interval -> candle list; intervals listed in
    `failing` raise instead of returning data. Setting `gate` makes every
    fetch wait on it before answering.
    """

    def __init__(
        self,
        candles: Optional[Dict[str, List[Candle]]] = None,
        ticker: Optional[TickerData] = None,
        failing: Sequence[str] = (),
    ):
        self.candles = candles or {}
        self.ticker = ticker or TickerData(price=100.0, funding_rate="0.0100%", change_24h=1.5)
        self.failing = set(failing)
        self.gate: Optional[asyncio.Event] = None
        self.candle_calls: List[tuple] = []
        self.ticker_calls: List[str] = []

    async def fetch_candles(self, symbol: str, interval: str, limit: int) -> List[Candle]:
        self.candle_calls.append((symbol, interval, limit))
        if self.gate is not None:
            await self.gate.wait()
        if interval in self.failing:
            raise RuntimeError(f"boom {interval}")
        return list(self.candles.get(interval, []))[-limit:]

    async def fetch_ticker(self, symbol: str) -> TickerData:
        self.ticker_calls.append(symbol)
        if self.gate is not None:
            await self.gate.wait()
        return self.ticker
