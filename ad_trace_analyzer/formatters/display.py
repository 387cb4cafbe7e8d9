"""
Display helpers for audit output.
"""

from urllib.parse import urlparse

MAX_PATH_LENGTH = 40


def format_time(ms: float) -> str:
    """
    Format a simulated duration the way audit tables show it.

    Args:
        ms: Time in milliseconds

    Returns:
        Whole milliseconds below one second, else seconds to one decimal
        (e.g., "850 ms", "3.2 s", "75.0 s")
    """
    if round(ms) < 1000:
        return f"{ms:.0f} ms"
    return format_seconds(ms)


def format_seconds(ms: float) -> str:
    """Display value for a latency metric, e.g. 3.2 s."""
    return f"{ms / 1000:.1f} s"


def format_unitless(value: float) -> str:
    return f"{value:.3f}".rstrip('0').rstrip('.') or '0'


def abbreviate_url(url: str) -> str:
    """
    Shorten a URL to host and a truncated path for table display.

    Query strings and fragments are dropped.
    """
    parsed = urlparse(url)
    if not parsed.netloc:
        return url
    path = parsed.path or '/'
    if len(path) > MAX_PATH_LENGTH:
        path = path[:MAX_PATH_LENGTH - 1] + '…'
    return f"{parsed.netloc}{path}"
