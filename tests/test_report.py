from __future__ import annotations

from datetime import date

import pytest
from rich.console import Console

from conftest import make_record
from reinvest.distributions.models import FundKind
from reinvest.nav.models import NavPoint
from reinvest.portfolio.accumulator import calculate_money_market, calculate_mutual_fund
from reinvest.portfolio.models import FundResult, PortfolioResult
from reinvest.report.console import render_portfolio
from reinvest.report.html import render_portfolio_html

START = date(2024, 12, 30)


@pytest.fixture
def result() -> PortfolioResult:
    mmf = calculate_money_market("AFAXX", [make_record(date(2024, 12, 31), 5.0)], 1000.0, START)
    mf = calculate_mutual_fund(
        "ANCFX",
        [make_record(date(2025, 3, 20), 1.0)],
        [NavPoint(date(2024, 12, 30), 50.0), NavPoint(date(2025, 3, 20), 49.5), NavPoint(date(2025, 6, 30), 52.0)],
        100.0,
        START,
    )
    bad = FundResult(symbol="AGTHX", kind=FundKind.MUTUAL, initial_units=10.0, error="No NAV data available for <AGTHX>")
    return PortfolioResult(
        initial_value=mmf.initial_value + mf.initial_value,
        current_value=mmf.current_value + mf.current_value,
        per_fund={"AFAXX": mmf, "ANCFX": mf, "AGTHX": bad},
        errors={"AGTHX": bad.error, "VFIAX": "Unknown fund kind for VFIAX"},
        start_date=START,
    )


def test_render_portfolio_console(result):
    console = Console(record=True, width=200)
    render_portfolio(result, console)
    text = console.export_text()
    assert "AFAXX" in text
    assert "ANCFX distribution details" in text
    assert "No NAV data available" in text
    assert "VFIAX" in text


def test_render_portfolio_html_sections(result):
    html = render_portfolio_html(result)
    assert "<h2>MMF Portfolio (AFAXX)</h2>" in html
    assert "Starting with 1,000.0 units on 12/30/2024" in html
    assert "<h2>Mutual Fund Portfolio</h2>" in html
    assert "<h3>ANCFX Details</h3>" in html
    assert "Distribution Reinvestment Details" in html
    assert "$5,305.05" in html
    assert "Unknown fund kind for VFIAX" in html


def test_render_portfolio_html_escapes_text(result):
    html = render_portfolio_html(result)
    assert "&lt;AGTHX&gt;" in html
    assert "<AGTHX>" not in html
