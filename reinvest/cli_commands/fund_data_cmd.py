from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from reinvest.config import load_settings
from reinvest.data.yahoo import YahooNavClient
from reinvest.nav.service import get_fund_data_by_date, list_fund_tickers
from reinvest.utils.dates import parse_date_option
from reinvest.utils.formatting import fmt_usd


def register(app: typer.Typer) -> None:
    @app.command("fund-data")
    def fund_data(
        ticker: str = typer.Argument(None, help="Fund ticker (omit to list configured funds)"),
        start: str = typer.Option(None, "--start", help="First date to show (default: configured start)"),
        distributions_only: bool = typer.Option(False, "--distributions-only", help="Only days with a distribution"),
    ):
        """Merged per-date NAV and distribution view of one fund."""
        console = Console()
        settings = load_settings()

        if not ticker:
            kinds = settings.fund_kinds
            for sym in list_fund_tickers(settings):
                console.print(f"{sym}  [dim]{kinds[sym].label}[/dim]")
            return

        try:
            start_date = parse_date_option(start) or settings.start_date
        except ValueError as e:
            raise typer.BadParameter(str(e), param_hint="--start") from e

        client = YahooNavClient(
            mirrors=settings.nav_mirrors,
            cache_dir=settings.REINVEST_NAV_CACHE_DIR,
            timeout=settings.http_timeout,
        )
        view = get_fund_data_by_date(ticker, start_date, settings=settings, nav_source=client)
        if view.error:
            console.print(f"[red]{view.ticker}:[/red] {view.error}")
            raise typer.Exit(code=1)

        tbl = Table(title=f"{view.ticker} since {view.start_date.isoformat()}")
        tbl.add_column("Date")
        tbl.add_column("NAV", justify="right")
        tbl.add_column("Distribution", justify="right")
        tbl.add_column("NAV Source", style="dim")
        for d, day in view.data.items():
            if distributions_only and not day.distribution:
                continue
            tbl.add_row(
                d.isoformat(),
                fmt_usd(day.nav),
                f"{day.distribution:.6f}" if day.distribution else "",
                day.nav_source,
            )
        console.print(tbl)
