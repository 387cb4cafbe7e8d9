"""
Log-normal score curve.

A curve is fixed by two control points: the point of diminishing returns
(p10), which scores 0.9, and the median, which scores 0.5. Lower raw values
are better.
"""

import math
from typing import Union

from ..core.errors import InvalidMeasurement
from ..core.types import ScoreCurveParams

# erfc(x) == 0.2, so a standardized value of -x scores 0.9
INVERSE_ERFC_ONE_FIFTH = 0.9061938024368232

# Largest floats strictly below 0.9 and 0.5
BELOW_P10_SCORE = 0.8999999999999999
BELOW_MEDIAN_SCORE = 0.49999999999999994


def validate_params(params: ScoreCurveParams) -> None:
    """
    Raises:
        InvalidMeasurement: If the control points cannot define a curve
    """
    for name in ('p10', 'median', 'floor'):
        value = getattr(params, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise InvalidMeasurement(f"{name} must be a finite number, got {value!r}")
    if params.median <= 0:
        raise InvalidMeasurement("median must be greater than zero")
    if params.p10 <= 0:
        raise InvalidMeasurement("p10 must be greater than zero")
    if params.p10 >= params.median:
        raise InvalidMeasurement("p10 must be less than the median")
    if params.floor < 0:
        raise InvalidMeasurement("floor must not be negative")


def score(value: Union[int, float], params: ScoreCurveParams) -> float:
    """
    Score a raw measurement against a log-normal curve.

    Args:
        value: Raw measurement (ms, unitless shift, ...), finite and >= 0
        params: Curve control points

    Returns:
        Score in [0, 1]; exactly 1 at or below params.floor

    Raises:
        InvalidMeasurement: If value is negative or not finite, or params are invalid
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidMeasurement(f"Measurement must be a number, got {value!r}")
    if not math.isfinite(value):
        raise InvalidMeasurement(f"Measurement must be finite, got {value!r}")
    if value < 0:
        raise InvalidMeasurement(f"Measurement must not be negative, got {value!r}")
    validate_params(params)

    if value <= params.floor:
        return 1.0

    x_log_ratio = math.log(max(value / params.median, 5e-324))
    p10_log_ratio = -math.log(params.p10 / params.median)
    standardized_x = x_log_ratio * INVERSE_ERFC_ONE_FIFTH / p10_log_ratio
    complementary_percentile = math.erfc(standardized_x) / 2

    # Clamp per segment so float error never crosses a control point
    if value <= params.p10:
        return max(0.9, min(1.0, complementary_percentile))
    if value <= params.median:
        return max(0.5, min(BELOW_P10_SCORE, complementary_percentile))
    return max(0.0, min(BELOW_MEDIAN_SCORE, complementary_percentile))


def clamp_passing(value: float) -> float:
    """Round any passing score (>= 0.9) up to 1, as audits do for display."""
    return 1.0 if value >= 0.9 else value
