from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from reinvest.config import load_settings
from reinvest.distributions.models import FundKind
from reinvest.distributions.parser import parse_distribution_text, parse_fund_file
from reinvest.distributions.sources import read_distribution_text
from reinvest.errors import ReinvestError
from reinvest.utils.dates import is_canonical


def register(app: typer.Typer) -> None:
    @app.command("parse")
    def parse(
        source: str = typer.Argument(..., help="Distribution file path or URL"),
        symbol: str = typer.Option(None, "--symbol", "-s", help="Treat SOURCE as a single-fund file for SYMBOL"),
        kind: FundKind = typer.Option(FundKind.MUTUAL, "--kind", help="Fund kind for --symbol"),
        show_issues: bool = typer.Option(False, "--issues", help="List skipped/degraded rows"),
    ):
        """Parse a distribution file and summarize each fund block."""
        console = Console()
        settings = load_settings()
        try:
            text = read_distribution_text(source, timeout=settings.http_timeout)
        except ReinvestError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(code=1)

        if symbol:
            parsed = {symbol.upper(): parse_fund_file(text, symbol, kind)}
        else:
            parsed = parse_distribution_text(text, settings.fund_kinds)

        if not parsed:
            console.print("[yellow]No configured fund blocks found.[/yellow]")
            raise typer.Exit(code=1)

        tbl = Table(title=f"Distributions in {source}")
        tbl.add_column("Fund", style="bold cyan")
        tbl.add_column("Kind")
        tbl.add_column("Records", justify="right")
        tbl.add_column("First", justify="right")
        tbl.add_column("Last", justify="right")
        tbl.add_column("Issues", justify="right")
        for sym, fd in parsed.items():
            dates = sorted(r.date for r in fd.records if is_canonical(r.date))
            tbl.add_row(
                sym,
                fd.kind.label,
                str(len(fd)),
                dates[0].isoformat() if dates else "n/a",
                dates[-1].isoformat() if dates else "n/a",
                f"[yellow]{len(fd.issues)}[/yellow]" if fd.issues else "0",
            )
        console.print(tbl)

        if show_issues:
            for fd in parsed.values():
                for issue in fd.issues:
                    console.print(f"[yellow]{issue}[/yellow]")
