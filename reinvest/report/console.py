from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from reinvest.distributions.models import FundKind
from reinvest.portfolio.models import FundResult, PortfolioResult
from reinvest.utils.formatting import fmt_pct, fmt_signed_usd, fmt_units, fmt_usd, signed_style


def _summary_panel(result: PortfolioResult) -> Panel:
    ret_style = signed_style(result.total_return)
    start = result.start_date.isoformat() if result.start_date else "n/a"
    body = (
        f"Initial: {fmt_usd(result.initial_value)}  |  Current: {fmt_usd(result.current_value)}  |  "
        f"Return: [{ret_style}]{fmt_signed_usd(result.total_return)} ({fmt_pct(result.percentage_return)})[/{ret_style}]\n"
        f"From NAV movement: {fmt_signed_usd(result.value_change_from_price_movement)}  |  "
        f"From reinvestment: {fmt_signed_usd(result.value_change_from_reinvestment)}  |  Since {start}"
    )
    return Panel(body, title="Portfolio", expand=False)


def _fund_table(result: PortfolioResult) -> Table:
    tbl = Table(title="Holdings")
    tbl.add_column("Fund", style="bold cyan")
    tbl.add_column("Kind")
    tbl.add_column("Units", justify="right")
    tbl.add_column("NAV", justify="right")
    tbl.add_column("Value", justify="right", style="green")
    tbl.add_column("From NAV", justify="right")
    tbl.add_column("From Dist.", justify="right")
    tbl.add_column("Return", justify="right")

    for sym, r in result.per_fund.items():
        if not r.ok:
            tbl.add_row(sym, r.kind.label, fmt_units(r.initial_units), "n/a", "n/a", "", "", f"[red]{r.error}[/red]")
            continue
        style = signed_style(r.total_return)
        tbl.add_row(
            sym,
            r.kind.label,
            f"{fmt_units(r.initial_units)} -> {fmt_units(r.current_units)}",
            f"{fmt_usd(r.initial_nav)} -> {fmt_usd(r.current_nav)}",
            fmt_usd(r.current_value),
            fmt_signed_usd(r.value_change_from_price_movement),
            fmt_signed_usd(r.value_change_from_reinvestment),
            f"[{style}]{fmt_signed_usd(r.total_return)} ({fmt_pct(r.percentage_return)})[/{style}]",
        )
    return tbl


def _steps_table(r: FundResult) -> Table:
    tbl = Table(title=f"{r.symbol} distribution details")
    tbl.add_column("Date")
    if r.kind is FundKind.MONEY_MARKET:
        tbl.add_column("Rate", justify="right")
        tbl.add_column("Daily Rate", justify="right")
        tbl.add_column("Distribution Amount", justify="right")
        tbl.add_column("Running Units", justify="right")
        for s in r.steps:
            tbl.add_row(
                s.date.isoformat(),
                f"{s.rate_or_amount:g}",
                f"{s.daily_rate or 0.0:.10f}",
                fmt_units(s.distribution_amount),
                fmt_units(s.units_after),
            )
    else:
        tbl.add_column("Distribution/Share", justify="right")
        tbl.add_column("Total Distribution", justify="right")
        tbl.add_column("Reinvestment NAV", justify="right")
        tbl.add_column("Additional Shares", justify="right")
        tbl.add_column("Running Shares", justify="right")
        for s in r.steps:
            tbl.add_row(
                s.date.isoformat(),
                fmt_usd(s.rate_or_amount, decimals=4),
                fmt_usd(s.distribution_amount),
                fmt_usd(s.reinvestment_nav),
                fmt_units(s.additional_units),
                fmt_units(s.units_after),
            )
    return tbl


def render_portfolio(result: PortfolioResult, console: Console | None = None, *, details: bool = True) -> None:
    c = console or Console()
    c.print(_summary_panel(result))
    c.print(_fund_table(result))

    if details:
        for r in result.per_fund.values():
            if r.ok and r.steps:
                c.print(_steps_table(r))
            elif r.ok:
                start = result.start_date.isoformat() if result.start_date else "start"
                c.print(f"[dim]{r.symbol}: no distributions since {start}[/dim]")
            for w in r.warnings:
                c.print(f"[yellow]{r.symbol}: {w}[/yellow]")

    for sym, err in result.errors.items():
        if sym not in result.per_fund:
            c.print(f"[red]{sym}:[/red] {err}")
