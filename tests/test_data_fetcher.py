"""
Tests for the Binance fetcher: payload parsing, symbol handling, retries and
the never-raise collaborator methods.
"""

import aiohttp
import pytest

from bandscope.engines.data_fetcher import (
    DEFAULT_FUNDING_RATE,
    BinanceAPIError,
    BinanceConnectionError,
    BinanceMarketFetcher,
    BinanceRateLimitError,
    RequestConfig,
    TickerData,
    format_funding_rate,
    normalize_symbol,
    parse_kline,
)


NO_WAIT = RequestConfig(max_retries=3, retry_base_delay=0.0, retry_max_delay=0.0)

KLINE_ROW = [
    1700000000000,
    "37000.10",
    "37100.00",
    "36900.50",
    "37050.25",
    "123.456",
    1700003599999,
    "4567890.12",
    1000,
    "60.0",
    "2220000.0",
    "0",
]


class FakeResponse:
    def __init__(self, status=200, payload=None, text="", headers=None):
        self.status = status
        self._payload = payload
        self._text = text
        self.headers = headers or {}

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False

    async def json(self):
        return self._payload

    async def text(self):
        return self._text


class FakeSession:
    """Replays a scripted list of responses (or exceptions) for every GET."""

    def __init__(self, script):
        self._script = list(script)
        self.requests = []

    def get(self, url, params=None):
        self.requests.append((url, params))
        item = self._script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def fetcher_with(script, config=NO_WAIT) -> BinanceMarketFetcher:
    return BinanceMarketFetcher(session=FakeSession(script), request_config=config)


class TestHelpers:
    """Tests for symbol, funding and kline helpers."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("btc", "BTCUSDT"),
            ("BTC", "BTCUSDT"),
            ("ETH/USDT", "ETHUSDT"),
            ("sol-usdt", "SOLUSDT"),
            ("DOGEUSDT", "DOGEUSDT"),
        ],
    )
    def test_normalize_symbol(self, raw, expected):
        assert normalize_symbol(raw) == expected

    def test_format_funding_rate(self):
        assert format_funding_rate(0.0001) == "0.0100%"
        assert format_funding_rate(-0.00025) == "-0.0250%"
        assert format_funding_rate(0.0) == "0.0000%"

    def test_parse_kline_converts_ms_to_seconds(self):
        candle = parse_kline(KLINE_ROW)
        assert candle.time == 1700000000
        assert candle.open == 37000.10
        assert candle.high == 37100.00
        assert candle.low == 36900.50
        assert candle.close == 37050.25
        assert candle.volume == 123.456

    def test_parse_kline_rejects_short_row(self):
        with pytest.raises(ValueError):
            parse_kline([1700000000000, "1.0", "2.0"])


class TestRequestRetries:
    """Tests for the GET retry loop."""

    @pytest.mark.asyncio
    async def test_retries_server_error_then_succeeds(self):
        fetcher = fetcher_with(
            [FakeResponse(status=503, text="busy"), FakeResponse(payload={"price": "1.5"})]
        )
        assert await fetcher.get_price("BTC") == 1.5
        assert len(fetcher._session.requests) == 2

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self):
        fetcher = fetcher_with([FakeResponse(status=400, text="bad symbol")])
        with pytest.raises(BinanceAPIError) as exc_info:
            await fetcher.get_price("NOPE")
        assert exc_info.value.status_code == 400
        assert len(fetcher._session.requests) == 1

    @pytest.mark.asyncio
    async def test_rate_limit_exhausts_retries(self):
        fetcher = fetcher_with([FakeResponse(status=429, headers={"Retry-After": "0"})] * 3)
        with pytest.raises(BinanceRateLimitError):
            await fetcher.get_price("BTC")
        assert len(fetcher._session.requests) == 3

    @pytest.mark.asyncio
    async def test_connection_errors_become_typed(self):
        fetcher = fetcher_with([aiohttp.ClientConnectionError("reset")] * 3)
        with pytest.raises(BinanceConnectionError):
            await fetcher.get_price("BTC")

    @pytest.mark.asyncio
    async def test_requires_session(self):
        with pytest.raises(RuntimeError):
            await BinanceMarketFetcher().get_price("BTC")

    def test_backoff_is_capped(self):
        fetcher = BinanceMarketFetcher(
            request_config=RequestConfig(retry_base_delay=1.0, retry_max_delay=2.0)
        )
        assert fetcher._calculate_backoff_delay(10) == 2.0
        assert fetcher._calculate_backoff_delay(0, retry_after=30) == 2.0


class TestEndpoints:
    """Tests for the raw endpoint wrappers."""

    @pytest.mark.asyncio
    async def test_get_klines(self):
        fetcher = fetcher_with([FakeResponse(payload=[KLINE_ROW, KLINE_ROW])])

        candles = await fetcher.get_klines("btc", "1h", 5000)

        url, params = fetcher._session.requests[0]
        assert url.endswith("/api/v3/klines")
        assert params == {"symbol": "BTCUSDT", "interval": "1h", "limit": 1000}
        assert [c.time for c in candles] == [1700000000, 1700000000]

    @pytest.mark.asyncio
    async def test_get_klines_rejects_unknown_interval(self):
        with pytest.raises(ValueError):
            await fetcher_with([]).get_klines("BTC", "7m")

    @pytest.mark.asyncio
    async def test_funding_rate_uses_futures_api(self):
        fetcher = fetcher_with([FakeResponse(payload={"lastFundingRate": "0.00010000"})])

        assert await fetcher.get_funding_rate("ETH") == pytest.approx(0.0001)
        url, params = fetcher._session.requests[0]
        assert url == "https://fapi.binance.com/fapi/v1/premiumIndex"
        assert params == {"symbol": "ETHUSDT"}

    @pytest.mark.asyncio
    async def test_24h_change(self):
        fetcher = fetcher_with([FakeResponse(payload={"priceChangePercent": "-2.345"})])
        assert await fetcher.get_24h_change("SOL") == -2.345


class TestCollaboratorContract:
    """fetch_candles / fetch_ticker never raise."""

    @pytest.mark.asyncio
    async def test_fetch_candles_returns_empty_on_failure(self):
        fetcher = fetcher_with([FakeResponse(status=400, text="invalid")])
        assert await fetcher.fetch_candles("BTC", "1h", 50) == []

    @pytest.mark.asyncio
    async def test_fetch_candles_returns_empty_on_bad_payload(self):
        fetcher = fetcher_with([FakeResponse(payload=[["not", "a", "kline"]])])
        assert await fetcher.fetch_candles("BTC", "1h", 50) == []

    @pytest.mark.asyncio
    async def test_fetch_candles_returns_empty_on_truncated_row(self):
        fetcher = fetcher_with([FakeResponse(payload=[KLINE_ROW, [1700000000000, "1.0", "2.0"]])])
        assert await fetcher.fetch_candles("BTC", "1h", 50) == []

    @pytest.mark.asyncio
    async def test_fetch_candles_returns_empty_without_session(self):
        assert await BinanceMarketFetcher().fetch_candles("BTC", "1h", 50) == []

    @pytest.mark.asyncio
    async def test_fetch_candles_returns_empty_on_bad_interval(self):
        assert await fetcher_with([]).fetch_candles("BTC", "7m", 50) == []

    @pytest.mark.asyncio
    async def test_fetch_ticker_success(self, monkeypatch):
        fetcher = BinanceMarketFetcher()

        async def price(symbol):
            return 86451.13

        async def funding(symbol):
            return 0.0001

        async def change(symbol):
            return -1.25

        monkeypatch.setattr(fetcher, "get_price", price)
        monkeypatch.setattr(fetcher, "get_funding_rate", funding)
        monkeypatch.setattr(fetcher, "get_24h_change", change)

        assert await fetcher.fetch_ticker("BTC") == TickerData(
            price=86451.13, funding_rate="0.0100%", change_24h=-1.25
        )

    @pytest.mark.asyncio
    async def test_fetch_ticker_falls_back_per_value(self, monkeypatch):
        fetcher = BinanceMarketFetcher()

        async def price(symbol):
            return 150.0

        async def broken(symbol):
            raise BinanceAPIError(500, "down")

        monkeypatch.setattr(fetcher, "get_price", price)
        monkeypatch.setattr(fetcher, "get_funding_rate", broken)
        monkeypatch.setattr(fetcher, "get_24h_change", broken)

        ticker = await fetcher.fetch_ticker("BTC")
        assert ticker == TickerData(price=150.0, funding_rate=DEFAULT_FUNDING_RATE, change_24h=0.0)

    @pytest.mark.asyncio
    async def test_fetch_ticker_all_failures(self):
        fetcher = fetcher_with([FakeResponse(status=400, text="x")] * 3)
        ticker = await fetcher.fetch_ticker("BTC")
        assert ticker == TickerData(price=0.0, funding_rate="0.0100%", change_24h=0.0)
