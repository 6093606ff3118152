"""
Date normalization for distribution files and NAV series.

Distribution files mix `MM/DD/YY`, `MM/DD/YYYY` and ISO `YYYY-MM-DD` dates.
Everything that can be read becomes a `datetime.date`; anything else is handed
back unchanged so callers can report it instead of crashing.
"""
from __future__ import annotations

import logging
import re
from datetime import date, datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)

_MDY = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})$")
_MDY_DASH = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$")
_YMD = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")


def _build(year: int, month: int, day: int, raw: str) -> date | str:
    try:
        return date(year, month, day)
    except ValueError:
        logger.warning("Unparseable date %r (not a calendar date)", raw)
        return raw


def normalize_date(value: Any) -> date | str:
    """
    Normalize a date value to `datetime.date`.

    Accepted:
    - `MM/DD/YY` (two-digit years are 20YY)
    - `MM/DD/YYYY`
    - `YYYY-MM-DD`
    - `MM-DD-YYYY`
    - date / datetime objects (passthrough)

    Unrecognized input comes back as the stripped string and a warning is logged.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    raw = str(value or "").strip()

    m = _MDY.match(raw)
    if m:
        month, day, year = m.groups()
        if len(year) == 2:
            year = "20" + year
        return _build(int(year), int(month), int(day), raw)

    m = _YMD.match(raw)
    if m:
        year, month, day = m.groups()
        return _build(int(year), int(month), int(day), raw)

    m = _MDY_DASH.match(raw)
    if m:
        month, day, year = m.groups()
        return _build(int(year), int(month), int(day), raw)

    logger.warning("Unrecognized date format %r; leaving as-is", raw)
    return raw


def is_canonical(value: Any) -> bool:
    """True when a normalized value can take part in date ordering."""
    return isinstance(value, date) and not isinstance(value, datetime)


def parse_date_option(value: str | date | None) -> date | None:
    """Parse a user-supplied date (CLI/settings). Raises ValueError on junk."""
    if value is None or value == "":
        return None
    d = normalize_date(value)
    if not is_canonical(d):
        raise ValueError(f"Unrecognized date: {value!r} (use YYYY-MM-DD or MM/DD/YYYY)")
    return d  # type: ignore[return-value]


def format_mdy(d: date | str | None) -> str:
    """Format as MM/DD/YYYY; non-dates are returned as text, None as 'N/A'."""
    if d is None:
        return "N/A"
    if not is_canonical(d):
        return str(d)
    return d.strftime("%m/%d/%Y")  # type: ignore[union-attr]


def to_unix_seconds(d: date) -> int:
    """Midnight UTC of `d` as a unix timestamp."""
    return int(datetime(d.year, d.month, d.day, tzinfo=timezone.utc).timestamp())


def from_unix_seconds(ts: float | int) -> date:
    return datetime.fromtimestamp(float(ts), tz=timezone.utc).date()
