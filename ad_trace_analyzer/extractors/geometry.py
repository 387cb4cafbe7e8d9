"""
Rectangle helpers for matching layout shifts against ad slots.
"""

from typing import Dict, Sequence


def to_client_rect(rect: Sequence[float]) -> Dict[str, float]:
    """
    Convert a trace rectangle [x, y, width, height] to a client rect.

    Short or empty input yields a zero-size rect at the origin.
    """
    x, y, width, height = (list(rect) + [0, 0, 0, 0])[:4]
    return {
        'left': x,
        'top': y,
        'right': x + width,
        'bottom': y + height,
        'width': width,
        'height': height,
    }


def overlaps(a: Dict[str, float], b: Dict[str, float]) -> bool:
    """True if the rects share a region of positive area."""
    return (a['left'] < b['right'] and b['left'] < a['right'] and
            a['top'] < b['bottom'] and b['top'] < a['bottom'])
