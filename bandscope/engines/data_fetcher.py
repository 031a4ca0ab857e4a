"""
Binance Data Fetcher for the Band Dashboard
Fetches klines, last price, funding rate and 24h change.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import aiohttp

from .candle import Candle, TickerData

logger = logging.getLogger(__name__)


# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================


class BinanceAPIError(Exception):
    """Base exception for Binance API errors."""

    def __init__(self, status_code: int, message: str, response_text: str = ""):
        self.status_code = status_code
        self.message = message
        self.response_text = response_text
        super().__init__(f"Binance API error {status_code}: {message}")


class BinanceRateLimitError(BinanceAPIError):
    """Raised when rate limit (HTTP 429) is hit."""

    def __init__(self, retry_after: Optional[int] = None):
        self.retry_after = retry_after
        super().__init__(429, "Rate limit exceeded", "")


class BinanceTimeoutError(BinanceAPIError):
    """Raised when request times out."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(0, f"Request timed out after {timeout}s", "")


class BinanceConnectionError(BinanceAPIError):
    """Raised when connection fails."""

    def __init__(self, original_error: Exception):
        self.original_error = original_error
        super().__init__(0, f"Connection error: {original_error}", "")


# =============================================================================
# REQUEST CONFIGURATION
# =============================================================================


@dataclass
class RequestConfig:
    """Configuration for HTTP requests."""

    timeout_total: float = 10.0  # Total request timeout in seconds
    timeout_connect: float = 5.0  # Connection timeout in seconds
    max_retries: int = 3  # Maximum number of attempts
    retry_base_delay: float = 0.5  # Base delay for exponential backoff
    retry_max_delay: float = 5.0  # Maximum delay between retries
    retry_on_status: tuple = (429, 500, 502, 503, 504)  # HTTP status codes to retry


DEFAULT_REQUEST_CONFIG = RequestConfig()

DEFAULT_FUNDING_RATE = "0.0100%"


def normalize_symbol(symbol: str, quote: str = "USDT") -> str:
    """
    Normalize a coin or pair to a Binance USDT symbol.

    'btc' -> 'BTCUSDT', 'ETH/USDT' -> 'ETHUSDT', 'SOLUSDT' -> 'SOLUSDT'
    """
    s = symbol.upper().replace("/", "").replace("-", "").replace("_", "")
    return s if s.endswith(quote) else f"{s}{quote}"


def format_funding_rate(rate: float) -> str:
    """Format a raw funding rate (0.0001) as a percent string ('0.0100%')."""
    return f"{rate * 100:.4f}%"


def parse_kline(row: List[Any]) -> Candle:
    """Build a Candle from a Binance kline row (open time in ms)."""
    if len(row) < 6:
        raise ValueError(f"Kline row has {len(row)} fields, expected at least 6")
    return Candle(
        time=int(row[0]) // 1000,
        open=float(row[1]),
        high=float(row[2]),
        low=float(row[3]),
        close=float(row[4]),
        volume=float(row[5]),
    )


class BinanceMarketFetcher:
    """
    Fetches market data from Binance for the dashboard.

    Klines, price and 24h stats come from the spot API; the funding rate
    comes from the USD-M futures premium index.

    The collaborator methods `fetch_candles` and `fetch_ticker` never raise:
    failures are logged and turned into empty / fallback values.
    """

    SPOT_BASE = "https://api.binance.com"
    FUTURES_BASE = "https://fapi.binance.com"

    VALID_INTERVALS = [
        "1m",
        "3m",
        "5m",
        "15m",
        "30m",
        "1h",
        "2h",
        "4h",
        "6h",
        "8h",
        "12h",
        "1d",
        "3d",
        "1w",
        "1M",
    ]

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        request_config: Optional[RequestConfig] = None,
    ):
        self._session = session
        self._owns_session = session is None
        self._config = request_config or DEFAULT_REQUEST_CONFIG

    async def __aenter__(self):
        if self._session is None:
            timeout = aiohttp.ClientTimeout(
                total=self._config.timeout_total, connect=self._config.timeout_connect
            )
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._owns_session and self._session:
            await self._session.close()
            self._session = None

    def _calculate_backoff_delay(self, attempt: int, retry_after: Optional[int] = None) -> float:
        """Calculate exponential backoff delay with jitter."""
        if retry_after is not None:
            return min(retry_after, self._config.retry_max_delay)

        # Exponential backoff: base_delay * 2^attempt
        delay = self._config.retry_base_delay * (2**attempt)
        # Add small jitter to prevent thundering herd
        jitter = random.uniform(0, 0.1 * delay)
        return min(delay + jitter, self._config.retry_max_delay)

    async def _get(self, url: str, params: Optional[Dict] = None) -> Any:
        """
        Make GET request with timeout and retry logic.

        Args:
            url: The URL to request
            params: Optional query parameters

        Returns:
            Parsed JSON response

        Raises:
            BinanceAPIError: For non-retryable API errors
            BinanceRateLimitError: When rate limit is exceeded after retries
            BinanceTimeoutError: When request times out after retries
            BinanceConnectionError: When connection fails after retries
        """
        if self._session is None:
            raise RuntimeError(
                "Session not initialized. Use 'async with BinanceMarketFetcher()' "
                "or pass a session to __init__."
            )

        last_error: Optional[Exception] = None

        for attempt in range(self._config.max_retries):
            try:
                logger.debug(
                    "GET %s params=%s (attempt %d/%d)",
                    url,
                    params,
                    attempt + 1,
                    self._config.max_retries,
                )
                async with self._session.get(url, params=params) as response:
                    if response.status == 429:
                        retry_after = response.headers.get("Retry-After")
                        retry_after_sec = int(retry_after) if retry_after else None
                        delay = self._calculate_backoff_delay(attempt, retry_after_sec)

                        if attempt < self._config.max_retries - 1:
                            logger.warning(
                                f"Rate limited on {url}, attempt {attempt + 1}/{self._config.max_retries}. "
                                f"Retrying in {delay:.1f}s"
                            )
                            await asyncio.sleep(delay)
                            continue
                        raise BinanceRateLimitError(retry_after_sec)

                    if response.status in self._config.retry_on_status:
                        text = await response.text()
                        if attempt < self._config.max_retries - 1:
                            delay = self._calculate_backoff_delay(attempt)
                            logger.warning(
                                f"Retryable error {response.status} on {url}, "
                                f"attempt {attempt + 1}/{self._config.max_retries}. "
                                f"Retrying in {delay:.1f}s"
                            )
                            await asyncio.sleep(delay)
                            continue
                        raise BinanceAPIError(response.status, text, text)

                    if response.status != 200:
                        text = await response.text()
                        raise BinanceAPIError(response.status, text, text)

                    return await response.json()

            except asyncio.TimeoutError:
                last_error = BinanceTimeoutError(self._config.timeout_total)
                if attempt < self._config.max_retries - 1:
                    delay = self._calculate_backoff_delay(attempt)
                    logger.warning(
                        f"Timeout on {url}, attempt {attempt + 1}/{self._config.max_retries}. "
                        f"Retrying in {delay:.1f}s"
                    )
                    await asyncio.sleep(delay)
                    continue
                raise last_error

            except aiohttp.ClientError as e:
                last_error = BinanceConnectionError(e)
                if attempt < self._config.max_retries - 1:
                    delay = self._calculate_backoff_delay(attempt)
                    logger.warning(
                        f"Connection error on {url}: {e}, "
                        f"attempt {attempt + 1}/{self._config.max_retries}. "
                        f"Retrying in {delay:.1f}s"
                    )
                    await asyncio.sleep(delay)
                    continue
                raise last_error

        if last_error:
            raise last_error
        raise BinanceAPIError(0, "Unknown error after retries", "")

    # =========================================================================
    # RAW ENDPOINTS (raise on failure)
    # =========================================================================

    async def get_klines(self, symbol: str, interval: str = "1h", limit: int = 100) -> List[Candle]:
        """
        Fetch spot kline/candlestick data.

        Args:
            symbol: Coin or pair (e.g., 'BTC', 'BTCUSDT' or 'BTC/USDT')
            interval: Binance interval (1m, 5m, 1h, 1d, ...)
            limit: Number of candles (max 1000)

        Returns:
            List of Candle objects, oldest first
        """
        if interval not in self.VALID_INTERVALS:
            raise ValueError(f"Invalid interval. Must be one of: {self.VALID_INTERVALS}")

        data = await self._get(
            f"{self.SPOT_BASE}/api/v3/klines",
            {"symbol": normalize_symbol(symbol), "interval": interval, "limit": min(limit, 1000)},
        )
        return [parse_kline(k) for k in data]

    async def get_price(self, symbol: str) -> float:
        """Last traded spot price."""
        data = await self._get(
            f"{self.SPOT_BASE}/api/v3/ticker/price", {"symbol": normalize_symbol(symbol)}
        )
        return float(data["price"])

    async def get_funding_rate(self, symbol: str) -> float:
        """Last funding rate of the USDT perpetual (raw fraction)."""
        data = await self._get(
            f"{self.FUTURES_BASE}/fapi/v1/premiumIndex", {"symbol": normalize_symbol(symbol)}
        )
        return float(data["lastFundingRate"])

    async def get_24h_change(self, symbol: str) -> float:
        """24h price change percent."""
        data = await self._get(
            f"{self.SPOT_BASE}/api/v3/ticker/24hr", {"symbol": normalize_symbol(symbol)}
        )
        return float(data["priceChangePercent"])

    # =========================================================================
    # COLLABORATOR CONTRACT (never raise)
    # =========================================================================

    async def fetch_candles(self, symbol: str, interval: str, limit: int) -> List[Candle]:
        """Fetch candles, returning [] on any upstream failure."""
        try:
            return await self.get_klines(symbol, interval, limit)
        except Exception as e:
            logger.error(f"Error fetching klines for {symbol} {interval}: {e}")
            return []

    async def fetch_ticker(self, symbol: str) -> TickerData:
        """
        Fetch price, funding rate and 24h change concurrently.

        Each value falls back independently: price 0.0, funding '0.0100%',
        change 0.0.
        """
        price, funding, change = await asyncio.gather(
            self.get_price(symbol),
            self.get_funding_rate(symbol),
            self.get_24h_change(symbol),
            return_exceptions=True,
        )

        for outcome in (price, funding, change):
            if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
                raise outcome

        if isinstance(price, Exception):
            logger.error(f"Error fetching ticker for {symbol}: {price}")
            price = 0.0
        if isinstance(funding, Exception):
            logger.warning(f"Error fetching funding rate for {symbol}: {funding}")
            funding_text = DEFAULT_FUNDING_RATE
        else:
            funding_text = format_funding_rate(funding)
        if isinstance(change, Exception):
            logger.warning(f"Error fetching 24h stats for {symbol}: {change}")
            change = 0.0

        return TickerData(price=price, funding_rate=funding_text, change_24h=change)
