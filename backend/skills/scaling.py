"""
Range scaling skill — min/max and linear rescale to 0–100.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

import numpy as np


def compute_min_max(values: Sequence[float]) -> Tuple[Optional[float], Optional[float]]:
    """Running minimum/maximum.

    Returns ``(None, None)`` for an empty sequence. NaN never wins a comparison,
    so an all-NaN input comes back as ``(inf, -inf)``; callers must not assume
    the result is finite.
    """
    if not values:
        return None, None
    lo = math.inf
    hi = -math.inf
    for v in values:
        if v < lo:
            lo = v
        if v > hi:
            hi = v
    return lo, hi


def min_max_normalize(values: Optional[Sequence[float]]):
    """Rescale *values* so the minimum maps to 0 and the maximum to 100.

    ``None`` and empty input are returned as given. When every value is equal
    the result is all zeros.
    """
    if values is None or len(values) == 0:
        return values
    lo, hi = compute_min_max(values)
    if lo == hi:
        return [0.0] * len(values)
    arr = np.asarray(values, dtype=float)
    with np.errstate(invalid="ignore", divide="ignore", over="ignore"):
        span = hi - lo
        if math.isinf(span) and math.isfinite(lo) and math.isfinite(hi):
            # range wider than float max: halve both ends (exact) before subtracting
            arr, lo, hi = arr * 0.5, lo * 0.5, hi * 0.5
            span = hi - lo
        scaled = (arr - lo) / span * 100.0
    return scaled.tolist()
