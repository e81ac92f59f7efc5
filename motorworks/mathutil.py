from __future__ import annotations

import math


def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with .5 going up, unlike the banker's rounding of ``round``."""
    scale = 10 ** digits
    rounded = math.floor(value * scale + 0.5) / scale
    return int(rounded) if digits == 0 else rounded
