from __future__ import annotations

import math
from typing import Any

_STRIP_CHARS = "$%,"


def parse_amount(value: Any) -> float | None:
    """
    Parse a money/rate field like "$0.1234", "4.21%", " 1,024.50 ".

    Returns None when the field is not numeric (caller decides the default).
    Blank fields are 0.0, matching how distribution files leave empty columns.
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        f = float(value)
        return None if math.isnan(f) or math.isinf(f) else f
    s = str(value).strip()
    for ch in _STRIP_CHARS:
        s = s.replace(ch, "")
    s = s.strip()
    if s == "":
        return 0.0
    try:
        f = float(s)
    except ValueError:
        return None
    if math.isnan(f) or math.isinf(f):
        return None
    return f


def pct(numerator: float, denominator: float) -> float:
    """Percentage change guarded against a zero base."""
    if not denominator:
        return 0.0
    return (numerator / denominator) * 100.0
