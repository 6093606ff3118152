"""
Display formatting for report output.

Everything returns "n/a" for missing values so renderers never branch on None.
"""
from __future__ import annotations

from typing import Optional


def fmt_units(x: Optional[float], decimals: int = 6) -> str:
    """Share/unit counts, fixed decimals with separators."""
    if x is None or not isinstance(x, (int, float)):
        return "n/a"
    return f"{float(x):,.{decimals}f}"


def fmt_pct(x: Optional[float], decimals: int = 4) -> str:
    """Format a value that is already a percentage (5.0 -> 5.0000%)."""
    if x is None or not isinstance(x, (int, float)):
        return "n/a"
    return f"{float(x):.{decimals}f}%"


def fmt_usd(x: Optional[float], decimals: int = 2) -> str:
    if x is None or not isinstance(x, (int, float)):
        return "n/a"
    return f"${float(x):,.{decimals}f}"


def fmt_signed_usd(x: Optional[float]) -> str:
    """Signed USD with + prefix for positives."""
    if x is None or not isinstance(x, (int, float)):
        return "n/a"
    return f"${float(x):+,.2f}"


def signed_style(x: Optional[float]) -> str:
    """Rich style name for a gain/loss figure."""
    if x is None:
        return "dim"
    return "green" if float(x) >= 0 else "red"
