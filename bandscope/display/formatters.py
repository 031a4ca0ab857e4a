"""Formatting utilities for the band dashboard."""

from enum import Enum
from typing import Optional

from ..engines.bollinger_bandwidth import BandResult
from ..engines.indicator_config import BandThresholds, RSIThresholds
from .colors import Colors, paint


class BandZone(Enum):
    """Where the latest close sits relative to the bands."""

    ABOVE = "above"
    INSIDE = "inside"
    BELOW = "below"

    def __str__(self) -> str:
        return self.value


def band_zone(bands: BandResult, thresholds: Optional[BandThresholds] = None) -> BandZone:
    """Classify %B: above 1 is over the upper band, below 0 under the lower."""
    thresholds = thresholds or BandThresholds()
    if bands.percent_b > thresholds.above_band:
        return BandZone.ABOVE
    if bands.percent_b < thresholds.below_band:
        return BandZone.BELOW
    return BandZone.INSIDE


def zone_color(zone: BandZone) -> str:
    if zone is BandZone.ABOVE:
        return Colors.RED
    if zone is BandZone.BELOW:
        return Colors.GREEN
    return Colors.YELLOW


def percent_b_bar(percent_b: float, width: int = 10) -> str:
    """Position bar for %B, clamped to [0, 1] for display only.

    Args:
        percent_b: %B value (may be outside [0, 1])
        width: Bar width in characters

    Returns:
        Bar string
    """
    clamped = min(max(percent_b, 0.0), 1.0)
    filled = int(round(clamped * width))
    return paint("█" * filled, Colors.CYAN) + paint("░" * (width - filled), Colors.DIM)


def format_price(price: float) -> str:
    """'$86,451.13' style price."""
    return f"${price:,.2f}"


def format_change(change_pct: float) -> str:
    """24h change with arrow, green when >= 0."""
    if change_pct >= 0:
        return paint(f"▲ {abs(change_pct):.2f}%", Colors.GREEN)
    return paint(f"▼ {abs(change_pct):.2f}%", Colors.RED)


def format_bandwidth(bandwidth: float) -> str:
    """Bandwidth as a percent of the middle band, one decimal."""
    return f"{bandwidth * 100:.1f}%"


def rsi_color(value: float, thresholds: Optional[RSIThresholds] = None) -> str:
    thresholds = thresholds or RSIThresholds()
    if value >= thresholds.overbought:
        return Colors.RED
    if value <= thresholds.oversold:
        return Colors.GREEN
    return Colors.YELLOW
