from __future__ import annotations

from datetime import date

import pytest

from reinvest.utils.dates import (
    format_mdy,
    from_unix_seconds,
    is_canonical,
    normalize_date,
    parse_date_option,
    to_unix_seconds,
)
from reinvest.utils.numbers import parse_amount, pct


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("12/31/24", date(2024, 12, 31)),
        ("1/2/25", date(2025, 1, 2)),
        ("12/31/2024", date(2024, 12, 31)),
        ("2024-12-31", date(2024, 12, 31)),
        ("12-31-2024", date(2024, 12, 31)),
        (" 2025-01-02 ", date(2025, 1, 2)),
    ],
)
def test_normalize_date_accepted_formats(raw, expected):
    assert normalize_date(raw) == expected


def test_normalize_date_returns_raw_text_for_unknown_or_impossible_dates():
    assert normalize_date("Dec 31") == "Dec 31"
    assert normalize_date("02/30/24") == "02/30/24"
    assert not is_canonical(normalize_date("02/30/24"))


def test_normalize_date_passthrough_for_date_objects():
    d = date(2025, 3, 1)
    assert normalize_date(d) is d


def test_parse_date_option():
    assert parse_date_option(None) is None
    assert parse_date_option("") is None
    assert parse_date_option("12/30/2024") == date(2024, 12, 30)
    with pytest.raises(ValueError):
        parse_date_option("yesterday")


def test_format_mdy():
    assert format_mdy(date(2024, 12, 30)) == "12/30/2024"
    assert format_mdy("junk") == "junk"
    assert format_mdy(None) == "N/A"


def test_unix_seconds_roundtrip_is_utc_midnight():
    d = date(2025, 1, 2)
    assert to_unix_seconds(d) % 86400 == 0
    assert from_unix_seconds(to_unix_seconds(d)) == d


def test_parse_amount_strips_currency_and_percent():
    assert parse_amount("$0.1234") == pytest.approx(0.1234)
    assert parse_amount("4.21%") == pytest.approx(4.21)
    assert parse_amount(" 1,024.50 ") == pytest.approx(1024.5)
    assert parse_amount("") == 0.0
    assert parse_amount("n/a") is None
    assert parse_amount("nan") is None


def test_pct_zero_base():
    assert pct(5.0, 0.0) == 0.0
    assert pct(5.0, 100.0) == pytest.approx(5.0)
