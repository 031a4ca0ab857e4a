"""ANSI color codes for terminal output."""

import os


class Colors:
    """ANSI escape codes for terminal coloring."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    # Foreground
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    ORANGE = "\033[38;5;208m"  # 256-color, used for the headline price


def colors_enabled() -> bool:
    """False when NO_COLOR is set (https://no-color.org)."""
    return "NO_COLOR" not in os.environ


def paint(text: str, *codes: str) -> str:
    """Wrap text in the given codes, or return it unchanged if colors are off."""
    if not codes or not colors_enabled():
        return text
    return f"{''.join(codes)}{text}{Colors.RESET}"
