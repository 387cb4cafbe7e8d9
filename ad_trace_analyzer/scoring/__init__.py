"""Score curves for turning raw measurements into 0-1 scores."""

from .log_normal import clamp_passing, score, validate_params

__all__ = ["score", "clamp_passing", "validate_params"]
