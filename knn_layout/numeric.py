from __future__ import annotations

import math


def clamp(value: float, min_value: float, max_value: float) -> float:
    return min(max(value, min_value), max_value)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up, not to even."""
    return int(math.floor(value + 0.5))
