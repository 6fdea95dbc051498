"""
Numeric helpers shared by the scheduling engine and the gap scorer.

Every value that crosses the core boundary is noisy: qualities come from a
UI or a grader, mastery values from an LLM. These helpers turn anything into
a bounded number instead of raising.
"""

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import Any


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp value into [lower, upper]."""
    return max(lower, min(upper, value))


def clamp_unit(value: float) -> float:
    """Clamp value into [0, 1]."""
    return clamp(value, 0.0, 1.0)


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves away from zero.

    The builtin round() uses banker's rounding (round(2.5) == 2), which
    would make interval growth depend on parity.
    """
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def coerce_float(value: Any, default: float) -> float:
    """
    Convert value to a finite float.

    Accepts ints, floats and numeric strings. Booleans, None, NaN, infinities
    and anything unparsable fall back to default.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip()
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(result):
        return default
    return result


def coerce_quality(value: Any, lower: int = 0, upper: int = 5) -> int:
    """Convert a response quality to an int in [lower, upper]; invalid input maps to lower."""
    number = coerce_float(value, float(lower))
    return int(clamp(round_half_up(number), lower, upper))


def add_days(start: date, days: int) -> date:
    """Calendar-day arithmetic, saturating at date.min and date.max."""
    try:
        return start + timedelta(days=days)
    except OverflowError:
        return date.max if days > 0 else date.min
