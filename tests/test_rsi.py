"""
Tests for the Wilder RSI series.
"""

import math

import pytest

from bandscope.engines.rsi import SEED_ZERO_LOSS_RS, compute_rsi_series

from helpers import make_candles


SEED_NO_LOSS_VALUE = 100 - 100 / (1 + SEED_ZERO_LOSS_RS)


class TestComputeRSISeries:
    """Tests for compute_rsi_series."""

    def test_needs_period_plus_one_candles(self):
        assert compute_rsi_series(make_candles([1.0] * 14), period=14) == []
        assert len(compute_rsi_series(make_candles([1.0] * 15), period=14)) == 1

    def test_non_positive_period(self):
        assert compute_rsi_series(make_candles([1.0] * 30), period=0) == []

    def test_alignment(self, rising_candles):
        series = compute_rsi_series(rising_candles, period=14)
        assert len(series) == len(rising_candles) - 14
        assert series[0].time == rising_candles[14].time
        assert series[-1].time == rising_candles[-1].time

    def test_strict_uptrend_seed_uses_forced_rs(self, rising_candles):
        """Seed with no losses is 100 - 100/101, every later point exactly 100."""
        series = compute_rsi_series(rising_candles, period=14)

        assert series[0].value == pytest.approx(SEED_NO_LOSS_VALUE)
        assert series[0].value == pytest.approx(99.00990099, abs=1e-8)
        assert all(p.value == 100.0 for p in series[1:])
        assert not any(math.isnan(p.value) for p in series)

    def test_fifteen_rising_closes_from_100(self):
        series = compute_rsi_series(make_candles([100.0 + i for i in range(15)]), period=14)
        assert len(series) == 1
        assert series[0].value == pytest.approx(SEED_NO_LOSS_VALUE)

    def test_flat_closes(self):
        """No gains and no losses take the same zero-loss paths."""
        series = compute_rsi_series(make_candles([50.0] * 20), period=14)
        assert series[0].value == pytest.approx(SEED_NO_LOSS_VALUE)
        assert all(p.value == 100.0 for p in series[1:])

    def test_strict_downtrend_is_zero(self):
        series = compute_rsi_series(make_candles([float(x) for x in range(40, 10, -1)]))
        assert all(p.value == 0.0 for p in series)

    def test_wilder_smoothing_by_hand(self):
        """
        period=2, closes 1, 2, 1, 2:
        seed avg_gain 0.5 / avg_loss 0.5 -> 50
        next avg_gain (0.5 + 1) / 2 = 0.75, avg_loss (0.5 + 0) / 2 = 0.25 -> 75
        """
        series = compute_rsi_series(make_candles([1.0, 2.0, 1.0, 2.0]), period=2)
        assert [p.value for p in series] == pytest.approx([50.0, 75.0])

    def test_bounded(self):
        closes = [100 + 10 * math.sin(i / 3) for i in range(100)]
        series = compute_rsi_series(make_candles(closes))
        assert all(0.0 <= p.value <= 100.0 for p in series)
