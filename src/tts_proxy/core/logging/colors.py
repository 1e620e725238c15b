"""
ANSI Colors for Console Logs.

Colors are disabled when stdout is not a TTY, when NO_COLOR is set
(https://no-color.org/), or when TTS_PROXY_NO_COLOR=1.
"""
from __future__ import annotations

import os
import sys


class Colors:
    """ANSI escape codes used by the console formatter."""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    GRAY = "\033[90m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_CYAN = "\033[96m"


def supports_color() -> bool:
    """Return True when ANSI colors should be written to stdout."""
    if os.getenv("TTS_PROXY_NO_COLOR", "0") == "1":
        return False
    if os.getenv("NO_COLOR"):
        return False
    isatty = getattr(sys.stdout, "isatty", None)
    if isatty is None or not isatty():
        return False
    # Windows terminals need explicit VT processing; serverless hosts are Linux
    return sys.platform != "win32"


# Re-evaluated by configure_logging(); tests may flip it directly
USE_COLORS = supports_color()


def colorize(text: str, color: str) -> str:
    """Wrap text in a color code when colors are enabled."""
    if not USE_COLORS:
        return text
    return f"{color}{text}{Colors.RESET}"


def get_tag_color(tag: str) -> str:
    """Color for a log tag such as INFO, WARN or FAIL."""
    tag_colors = {
        "SUCCESS": Colors.BRIGHT_GREEN,
        "FAIL": Colors.BRIGHT_RED,
        "ERROR": Colors.BRIGHT_RED,
        "WARN": Colors.BRIGHT_YELLOW,
        "WARNING": Colors.BRIGHT_YELLOW,
        "INFO": Colors.BRIGHT_CYAN,
        "DEBUG": Colors.GRAY,
    }
    return tag_colors.get(tag.upper(), Colors.WHITE)


def get_status_color(status: int) -> str:
    """Color for an HTTP status code: green 2xx, yellow 4xx, red 5xx."""
    if status < 300:
        return Colors.GREEN
    if status < 500:
        return Colors.YELLOW
    return Colors.RED
