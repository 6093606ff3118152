from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from reinvest.config import load_settings
from reinvest.data.yahoo import YahooNavClient
from reinvest.portfolio.service import compute_portfolio, load_portfolio_inputs
from reinvest.report.console import render_portfolio
from reinvest.report.html import render_portfolio_html
from reinvest.utils.dates import parse_date_option
from reinvest.utils.logging import log_event

# Reference holdings used when no --holding is given.
DEFAULT_HOLDINGS = {"AFAXX": 77650.8, "AGTHX": 104.855, "ANCFX": 860.672}


def parse_holdings(items: list[str]) -> dict[str, float]:
    """`["ANCFX=860.672", ...]` -> {"ANCFX": 860.672}. Raises typer.BadParameter on junk."""
    out: dict[str, float] = {}
    for item in items:
        sym, sep, units = item.partition("=")
        if not sep or not sym.strip():
            raise typer.BadParameter(f"expected SYMBOL=UNITS, got {item!r}")
        try:
            out[sym.strip().upper()] = float(units.replace(",", ""))
        except ValueError as e:
            raise typer.BadParameter(f"invalid units in {item!r}") from e
    return out


def register(app: typer.Typer) -> None:
    @app.command("report")
    def report(
        holding: list[str] = typer.Option(
            None, "--holding", "-H", help="Holding as SYMBOL=UNITS (repeatable)"
        ),
        start: str = typer.Option(None, "--start", help="Start date (YYYY-MM-DD or MM/DD/YYYY)"),
        raw_rate: bool = typer.Option(
            False, "--raw-rate", help="Money-market rate column is already a per-period fraction"
        ),
        distributions: str = typer.Option(None, "--distributions", help="Distribution file path or URL"),
        html: str = typer.Option(None, "--html", help="Also write an HTML report to this path"),
        details: bool = typer.Option(True, "--details/--no-details", help="Show per-distribution tables"),
        refresh: bool = typer.Option(False, "--refresh", help="Ignore the cached NAV history"),
        use_distribution_nav: bool = typer.Option(
            False, "--use-distribution-nav", help="Reinvest at the NAV column of the distribution file when present"
        ),
        json_out: bool = typer.Option(False, "--json", help="Print the full result as JSON"),
    ):
        """
        Reinvestment-adjusted portfolio value since the start date.

        Examples:
            reinvest report
            reinvest report -H AFAXX=1000 -H ANCFX=100 --start 2025-01-02
            reinvest report --html report.html
        """
        console = Console()
        settings = load_settings()
        if distributions:
            settings.REINVEST_DISTRIBUTIONS_PATH = distributions
            settings.REINVEST_DISTRIBUTIONS_DIR = None

        try:
            start_date = parse_date_option(start) or settings.start_date
        except ValueError as e:
            raise typer.BadParameter(str(e), param_hint="--start") from e

        holdings = parse_holdings(holding) if holding else dict(DEFAULT_HOLDINGS)
        rate_is_annual = settings.rate_is_annual_percentage and not raw_rate

        client = YahooNavClient(
            mirrors=settings.nav_mirrors,
            cache_dir=settings.REINVEST_NAV_CACHE_DIR,
            timeout=settings.http_timeout,
        )
        if refresh:
            nav_source = _RefreshingSource(client)
        else:
            nav_source = client

        with console.status("[bold green]Loading distributions and NAV history..."):
            inputs = load_portfolio_inputs(
                list(holdings), settings=settings, nav_source=nav_source, start_date=start_date
            )

        result = compute_portfolio(
            holdings,
            inputs.distributions,
            inputs.nav_series,
            fund_kinds=settings.fund_kinds,
            start_date=start_date,
            rate_is_annual_percentage=rate_is_annual,
            use_distribution_nav=use_distribution_nav,
            load_errors=inputs.load_errors,
        )
        if json_out:
            log_event("portfolio", {"result": result})
        else:
            render_portfolio(result, console, details=details)

        if html:
            path = Path(html)
            path.write_text(render_portfolio_html(result), encoding="utf-8")
            console.print(f"\n[green]Report saved to:[/green] {path}")

        if result.errors and len(result.errors) == len(holdings):
            raise typer.Exit(code=1)


class _RefreshingSource:
    def __init__(self, client: YahooNavClient):
        self.client = client

    def fetch_nav_series(self, symbol, start, end=None):
        return self.client.fetch_nav_series(symbol, start, end, refresh=True)
