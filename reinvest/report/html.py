"""
HTML report fragment.

One section per fund kind: money-market holdings with their daily accumulation
table, and mutual funds with a portfolio summary followed by per-fund details
and the distribution reinvestment table.
"""
from __future__ import annotations

from html import escape

from reinvest.distributions.models import FundKind
from reinvest.portfolio.models import FundResult, PortfolioResult
from reinvest.utils.dates import format_mdy
from reinvest.utils.formatting import fmt_pct, fmt_units, fmt_usd
from reinvest.utils.numbers import pct


def _kv_table(rows: list[tuple[str, str]]) -> str:
    body = "".join(
        f"""
            <tr>
                <th>{escape(k)}</th>
                <td>{escape(v)}</td>
            </tr>"""
        for k, v in rows
    )
    return f"""
        <table>{body}
        </table>"""


def _start_label(result: PortfolioResult) -> str:
    return format_mdy(result.start_date) if result.start_date else "start"


def _money_market_section(r: FundResult, since: str) -> str:
    if not r.ok:
        return f"""
    <div class="section">
        <h2>MMF Portfolio ({escape(r.symbol)})</h2>
        <p class="error">{escape(r.error or "")}</p>
    </div>"""

    detail_rows = ""
    for s in r.steps:
        detail_rows += f"""
                <tr>
                    <td>{s.date.isoformat()}</td>
                    <td>{s.rate_or_amount:g}</td>
                    <td>{s.daily_rate or 0.0:.10f}</td>
                    <td>{s.distribution_amount:.6f}</td>
                    <td>{s.units_after:.6f}</td>
                </tr>"""

    summary = _kv_table(
        [
            ("Initial Units", f"{r.initial_units:.2f}"),
            ("Current Units", f"{r.current_units:.2f}"),
            ("Initial Value", fmt_usd(r.initial_value)),
            ("Current Value", fmt_usd(r.current_value)),
            ("Total Return", fmt_usd(r.total_return)),
            ("Percentage Return", fmt_pct(r.percentage_return)),
        ]
    )
    return f"""
    <div class="section">
        <h2>MMF Portfolio ({escape(r.symbol)})</h2>
        <p>Starting with {fmt_units(r.initial_units, decimals=1)} units on {since}</p>
        {summary}

        <h3>Distribution Accumulation Details</h3>
        <table>
            <thead>
                <tr>
                    <th>Date</th>
                    <th>Rate</th>
                    <th>Daily Rate</th>
                    <th>Distribution Amount</th>
                    <th>Running Units</th>
                </tr>
            </thead>
            <tbody>{detail_rows}
            </tbody>
        </table>
    </div>"""


def _mutual_fund_details(r: FundResult, since: str) -> str:
    header = f"<h3>{escape(r.symbol)} Details</h3>"
    if not r.ok:
        return f"""
        {header}
        <p class="error">{escape(r.error or "")}</p>"""

    initial_nav_date = r.initial_nav_date.isoformat() if r.initial_nav_date else "n/a"
    current_nav_date = r.current_nav_date.isoformat() if r.current_nav_date else "n/a"
    summary = _kv_table(
        [
            ("Initial Shares", f"{r.initial_units:.6f}"),
            ("Current Shares", f"{r.current_units:.6f}"),
            (f"Initial NAV ({initial_nav_date})", fmt_usd(r.initial_nav)),
            (f"Current NAV ({current_nav_date})", fmt_usd(r.current_nav)),
            ("Initial Value", fmt_usd(r.initial_value)),
            ("Current Value", fmt_usd(r.current_value)),
            ("Value Change from NAV", fmt_usd(r.value_change_from_price_movement)),
            ("Value Change from Distributions", fmt_usd(r.value_change_from_reinvestment)),
            ("Total Return", fmt_usd(r.total_return)),
            ("Percentage Return", fmt_pct(r.percentage_return)),
        ]
    )
    if not r.steps:
        return f"""
        {header}
        {summary}
        <p>No distributions since {since}</p>"""

    rows = ""
    for s in r.steps:
        rows += f"""
                <tr>
                    <td>{s.date.isoformat()}</td>
                    <td>${s.rate_or_amount:.4f}</td>
                    <td>{fmt_usd(s.distribution_amount)}</td>
                    <td>{fmt_usd(s.reinvestment_nav)}</td>
                    <td>{s.additional_units:.6f}</td>
                    <td>{s.units_after:.6f}</td>
                </tr>"""
    return f"""
        {header}
        {summary}

        <h4>Distribution Reinvestment Details</h4>
        <table>
            <thead>
                <tr>
                    <th>Date</th>
                    <th>Distribution/Share</th>
                    <th>Total Distribution</th>
                    <th>Reinvestment NAV</th>
                    <th>Additional Shares</th>
                    <th>Running Shares</th>
                </tr>
            </thead>
            <tbody>{rows}
            </tbody>
        </table>"""


def _mutual_section(funds: list[FundResult], since: str) -> str:
    ok = [r for r in funds if r.ok]
    initial = sum(r.initial_value for r in ok)
    current = sum(r.current_value for r in ok)
    total = current - initial
    holdings = "".join(f"\n            <li>{escape(r.symbol)}: {r.initial_units:g} shares</li>" for r in funds)
    summary = _kv_table(
        [
            ("Initial Portfolio Value", fmt_usd(initial)),
            ("Current Portfolio Value", fmt_usd(current)),
            ("Total Return", fmt_usd(total)),
            ("Percentage Return", fmt_pct(pct(total, initial))),
        ]
    )
    details = "".join(_mutual_fund_details(r, since) for r in funds)
    return f"""
    <div class="section">
        <h2>Mutual Fund Portfolio</h2>
        <p>Holdings as of {since}:</p>
        <ul>{holdings}
        </ul>

        <h3>Portfolio Summary</h3>
        {summary}
        {details}
    </div>"""


def render_portfolio_html(result: PortfolioResult) -> str:
    """HTML fragment (no <html>/<body>) for embedding in a page."""
    since = _start_label(result)
    out = ""
    mmf = [r for r in result.per_fund.values() if r.kind is FundKind.MONEY_MARKET]
    mutual = [r for r in result.per_fund.values() if r.kind is FundKind.MUTUAL]
    for r in mmf:
        out += _money_market_section(r, since)
    if mutual:
        out += _mutual_section(mutual, since)

    orphan_errors = {s: e for s, e in result.errors.items() if s not in result.per_fund}
    if orphan_errors:
        items = "".join(f"\n            <li>{escape(s)}: {escape(e)}</li>" for s, e in orphan_errors.items())
        out += f"""
    <div class="section">
        <h2>Errors</h2>
        <ul class="error">{items}
        </ul>
    </div>"""
    return out
