"""Display utilities for the band dashboard."""

from .colors import Colors, paint
from .formatters import (
    BandZone,
    band_zone,
    format_bandwidth,
    format_change,
    format_price,
    percent_b_bar,
)
from .printers import (
    format_timeframe_card,
    print_chart_summary,
    print_header,
    print_timeframe_cards,
)

__all__ = [
    # Colors
    "Colors",
    "paint",
    # Formatters
    "BandZone",
    "band_zone",
    "format_bandwidth",
    "format_change",
    "format_price",
    "percent_b_bar",
    # Printers
    "format_timeframe_card",
    "print_chart_summary",
    "print_header",
    "print_timeframe_cards",
]
