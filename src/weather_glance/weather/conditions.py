"""WMO weather code classification and rounding helpers."""

from __future__ import annotations

import math

from .models import WeatherCondition

_RAINY_CODES = frozenset({51, 53, 55, 56, 57, 61, 63, 65, 66, 67, 80, 81, 82})
_SNOWY_CODES = frozenset({71, 73, 75, 77, 85, 86})
_STORMY_CODES = frozenset({95, 96, 99})


def condition_from_wmo(code: int) -> WeatherCondition:
    """Map a WMO weather interpretation code to a condition tag.

    Codes outside the known groups (fog, unlisted drizzle variants, garbage)
    are reported as cloudy.
    """
    if code == 0:
        return "sunny"
    if code in (1, 2):
        return "partly-cloudy"
    if code == 3:
        return "cloudy"
    if code in _RAINY_CODES:
        return "rainy"
    if code in _SNOWY_CODES:
        return "snowy"
    if code in _STORMY_CODES:
        return "stormy"
    return "cloudy"


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero (21.5 -> 22, -2.5 -> -3).

    The builtin round() uses banker's rounding and would report 22.5 as 22.
    The fractional part is compared directly; ``floor(x + 0.5)`` is inexact
    just below a half and for odd integers above 2**52.
    """
    magnitude = abs(value)
    whole = math.floor(magnitude)
    if magnitude - whole >= 0.5:
        whole += 1
    return -whole if value < 0 else whole
