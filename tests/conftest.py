import os
import sys

import pytest


TESTS_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(TESTS_DIR, ".."))
for path in (PROJECT_ROOT, TESTS_DIR):
    if path not in sys.path:
        sys.path.insert(0, path)

from helpers import FakeMarketSource, make_candles  # noqa: E402


@pytest.fixture
def trend_closes():
    """Closes with a known 20-period mean (19.55) and variance (34.2475)."""
    return [10, 12, 11, 13, 15, 14, 16, 18, 17, 19, 21, 20, 22, 24, 23, 25, 27, 26, 28, 30]


@pytest.fixture
def rising_candles():
    """Strict uptrend, one candle per minute."""
    return make_candles([float(i) for i in range(1, 61)])


@pytest.fixture
def fake_source():
    return FakeMarketSource()
