"""
Shared utility helpers.

Pure functions — no I/O, no side effects.
"""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Any

import numpy as np


# ---------------------------------------------------------------------------
# Numeric coercion
# ---------------------------------------------------------------------------

def safe_number(val: Any) -> float:
    """Coerce a value to a finite float; anything else becomes 0.0.

    ``None`` and blank strings count as zero, booleans as 0/1. Strings using
    digit-group underscores ("1_000") are not numbers here and give 0.0.
    """
    if val is None:
        return 0.0
    if isinstance(val, (bool, np.bool_)):
        return 1.0 if val else 0.0
    if isinstance(val, (int, float, Decimal, np.integer, np.floating)):
        try:
            num = float(val)
        except (OverflowError, ValueError):
            return 0.0
    elif isinstance(val, str):
        text = val.strip()
        if not text or "_" in text:
            return 0.0
        try:
            num = float(text)
        except ValueError:
            return 0.0
    else:
        return 0.0
    return num if math.isfinite(num) else 0.0


# ---------------------------------------------------------------------------
# Display formatting
# ---------------------------------------------------------------------------

def format_number(val: Any) -> str:
    """Thousands separators, at most two decimals; non-numbers pass through str()."""
    if isinstance(val, bool) or not isinstance(val, (int, float, np.integer, np.floating)):
        return str(val)
    num = float(val)
    if not math.isfinite(num):
        return str(val)
    if num.is_integer():
        return f"{int(num):,}"
    text = f"{num:,.2f}".rstrip("0").rstrip(".")
    return text


# ---------------------------------------------------------------------------
# JSON safety
# ---------------------------------------------------------------------------

def json_safe(value: Any) -> Any:
    """Recursively replace +/-inf and NaN with None and unwrap numpy scalars."""
    if isinstance(value, dict):
        return {str(k): json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(v) for v in value]
    if isinstance(value, np.ndarray):
        return [json_safe(v) for v in value.tolist()]
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value
