"""Numeric helpers shared by the scoring and rewards rules."""
from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Nearest integer with halves rounded up: 2.5 -> 3, -2.5 -> -2."""
    return math.floor(value + 0.5)
