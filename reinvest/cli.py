"""
reinvest CLI

Primary commands:
- reinvest report        Reinvestment-adjusted portfolio value
- reinvest fund-data     Merged NAV/distribution view of one fund
- reinvest parse         Parse a distribution file and summarize it
"""
from __future__ import annotations

import typer

from reinvest.utils.logging import configure_logging

app = typer.Typer(
    add_completion=False,
    help="""Reinvest: fund distribution reinvestment calculator

\b
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
REPORTING
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
  reinvest report -H AFAXX=77650.8 -H ANCFX=860.672
  reinvest report --html out.html

\b
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
DATA
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
  reinvest fund-data ANCFX --start 2024-12-30
  reinvest parse data/distributions.txt

\b
Run 'reinvest <command> --help' for details.
""",
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging to stderr"),
):
    configure_logging(verbose)


_COMMANDS_REGISTERED = False


def _register_commands() -> None:
    global _COMMANDS_REGISTERED
    if _COMMANDS_REGISTERED:
        return

    from reinvest.cli_commands.fund_data_cmd import register as register_fund_data
    from reinvest.cli_commands.parse_cmd import register as register_parse
    from reinvest.cli_commands.report_cmd import register as register_report

    register_report(app)
    register_fund_data(app)
    register_parse(app)

    _COMMANDS_REGISTERED = True


def main():
    _register_commands()
    app()


# Register on import
_register_commands()


if __name__ == "__main__":
    main()
