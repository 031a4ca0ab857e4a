"""
Tests for shared math helpers and the Candle type.
"""

import math
from datetime import datetime, timezone

import pytest

from bandscope.engines.calculations import closes_of, mean, population_std_dev
from bandscope.engines.candle import Candle


class TestMean:
    def test_empty_is_zero(self):
        assert mean([]) == 0.0

    def test_average(self):
        assert mean([1.0, 2.0, 3.0, 4.0]) == 2.5


class TestPopulationStdDev:
    """Population (divide by n) standard deviation."""

    def test_empty_is_zero(self):
        assert population_std_dev([], 0.0) == 0.0

    def test_constant_is_zero(self):
        assert population_std_dev([5.0] * 10, 5.0) == 0.0

    def test_divides_by_n(self):
        """[2, 4, 4, 4, 5, 5, 7, 9] has population std exactly 2."""
        values = [2, 4, 4, 4, 5, 5, 7, 9]
        assert population_std_dev(values, mean(values)) == pytest.approx(2.0)

    def test_known_variance(self, trend_closes):
        assert population_std_dev(trend_closes, 19.55) == pytest.approx(
            math.sqrt(34.2475), abs=1e-9
        )


class TestCandle:
    def test_closes_of(self):
        candles = [Candle(time=i, open=1, high=2, low=0, close=float(i)) for i in range(3)]
        assert closes_of(candles) == [0.0, 1.0, 2.0]

    def test_datetime_is_utc_seconds(self):
        candle = Candle(time=86400, open=1, high=1, low=1, close=1)
        assert candle.datetime == datetime(1970, 1, 2, tzinfo=timezone.utc)

    def test_frozen(self):
        candle = Candle(time=0, open=1, high=1, low=1, close=1)
        with pytest.raises(Exception):
            candle.close = 2
