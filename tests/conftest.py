"""
Pytest configuration and shared fixtures for reinvest tests.

Usage:
    @pytest.fixture functions are automatically available to all tests.
    Import helpers from conftest when needed.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

import pytest

from reinvest.config import Settings
from reinvest.distributions.models import DistributionRecord, FundKind
from reinvest.nav.models import NavPoint


# =============================================================================
# Settings Fixture
# =============================================================================

@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings isolated from the developer's .env and environment."""
    return Settings(
        _env_file=None,
        REINVEST_START_DATE="2025-01-02",
        REINVEST_MONEY_MARKET_FUNDS="AFAXX",
        REINVEST_MUTUAL_FUNDS="ANCFX,AGTHX",
        REINVEST_DISTRIBUTIONS_PATH=str(tmp_path / "distributions.txt"),
        REINVEST_DISTRIBUTIONS_DIR=None,
        REINVEST_NAV_CACHE_DIR=str(tmp_path / "cache"),
    )


@pytest.fixture
def fund_kinds() -> dict[str, FundKind]:
    return {"AFAXX": FundKind.MONEY_MARKET, "ANCFX": FundKind.MUTUAL, "AGTHX": FundKind.MUTUAL}


# =============================================================================
# Sample Data Fixtures
# =============================================================================

SAMPLE_DISTRIBUTIONS = (
    "AFAXX\n"
    "Rate\tDate\n"
    "4.20\t01/02/25\n"
    "4.10\t01/03/25\n"
    "4.00\t01/06/25\n"
    "\n"
    "ANCFX\n"
    "Record Date\tEx Date\tPay Date\tRegular Income Dividend\tSpecial Income Dividend\t"
    "Long-Term Capital Gains\tShort-Term Capital Gains\tReinvest NAV\n"
    "03/19/25\t03/20/25\t03/21/25\t$0.1000\t$0.0000\t$0.0000\t$0.0000\t$49.50\n"
    "06/17/25\t06/18/25\t06/19/25\t$0.1200\t$0.0500\t$0.3000\t$0.0000\t$51.00\n"
    "\n"
    "AGTHX\n"
    "Record Date\tEx Date\tPay Date\tRegular Income Dividend\tSpecial Income Dividend\t"
    "Long-Term Capital Gains\tShort-Term Capital Gains\tReinvest NAV\n"
    "06/17/25\t06/18/25\t06/19/25\t$0.2000\t$0.0000\t$1.1000\t$0.0500\t$70.00\n"
)


@pytest.fixture
def sample_distribution_text() -> str:
    """Combined three-fund distribution file."""
    return SAMPLE_DISTRIBUTIONS


@pytest.fixture
def ancfx_series() -> list[NavPoint]:
    return [
        NavPoint(date(2025, 1, 2), 50.00),
        NavPoint(date(2025, 3, 20), 49.50),
        NavPoint(date(2025, 6, 18), 51.00),
        NavPoint(date(2025, 6, 30), 52.00),
    ]


@pytest.fixture
def agthx_series() -> list[NavPoint]:
    return [
        NavPoint(date(2025, 1, 2), 72.00),
        NavPoint(date(2025, 6, 18), 70.00),
        NavPoint(date(2025, 6, 30), 74.00),
    ]


class StaticNavSource:
    """In-memory NavSource for tests."""

    def __init__(self, series: dict[str, list[NavPoint]] | None = None, fail: set[str] | None = None):
        self.series = series or {}
        self.fail = fail or set()
        self.calls: list[str] = []

    def fetch_nav_series(self, symbol: str, start: date, end: date | None = None) -> list[NavPoint]:
        self.calls.append(symbol)
        if symbol in self.fail:
            raise RuntimeError(f"boom for {symbol}")
        return [p for p in self.series.get(symbol, []) if p.date >= start and (end is None or p.date <= end)]


@pytest.fixture
def nav_source(ancfx_series, agthx_series) -> StaticNavSource:
    return StaticNavSource({"ANCFX": ancfx_series, "AGTHX": agthx_series})


# =============================================================================
# Test Data Helpers
# =============================================================================

def make_record(d: date | str, amount: float, reinvest_nav: float | None = None, line_no: int = 0) -> DistributionRecord:
    """
    Create a DistributionRecord for testing.

    Usage:
        rec = make_record(date(2025, 1, 2), 4.2)
    """
    return DistributionRecord(date=d, amount_per_unit=amount, reinvest_nav=reinvest_nav, line_no=line_no)


def make_chart_payload(rows: list[tuple[date, Any]]) -> dict:
    """
    Minimal Yahoo v8 chart payload.

    Usage:
        payload = make_chart_payload([(date(2025, 1, 2), 50.0)])
    """
    ts = [int(datetime(d.year, d.month, d.day, 14, 30, tzinfo=timezone.utc).timestamp()) for d, _ in rows]
    return {
        "chart": {
            "result": [
                {
                    "timestamp": ts,
                    "indicators": {"quote": [{"close": [px for _, px in rows]}]},
                }
            ],
            "error": None,
        }
    }
