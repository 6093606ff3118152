from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable

from reinvest.config import Settings
from reinvest.data.yahoo import NavSource
from reinvest.distributions.models import FundDistributions, FundKind
from reinvest.distributions.parser import parse_distribution_text, parse_fund_file
from reinvest.distributions.sources import distribution_source_for, read_distribution_text
from reinvest.errors import ReinvestError
from reinvest.nav.merge import filter_on_or_after, merge_fund_data
from reinvest.nav.models import FundDay

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FundDataView:
    ticker: str
    kind: FundKind | None
    start_date: date
    data: dict[date, FundDay] = field(default_factory=dict)
    error: str | None = None


def list_fund_tickers(settings: Settings) -> list[str]:
    """Configured tickers, money-market first."""
    mmf = settings.money_market_funds
    return mmf + [s for s in settings.mutual_funds if s not in mmf]


def _load_fund_distributions(
    ticker: str,
    kind: FundKind,
    settings: Settings,
    text_loader: Callable[[str], str],
) -> FundDistributions | None:
    if settings.REINVEST_DISTRIBUTIONS_DIR:
        source = distribution_source_for(ticker, kind, settings.REINVEST_DISTRIBUTIONS_DIR)
        return parse_fund_file(text_loader(source), ticker, kind)
    parsed = parse_distribution_text(text_loader(settings.REINVEST_DISTRIBUTIONS_PATH), {ticker: kind})
    return parsed.get(ticker)


def get_fund_data_by_date(
    ticker: str,
    start: date,
    *,
    settings: Settings,
    nav_source: NavSource,
    text_loader: Callable[[str], str] | None = None,
) -> FundDataView:
    """
    Merged per-date NAV/distribution view of one fund from `start` onward.

    Money-market funds skip the NAV fetch (their NAV is 1.00). Failures give an
    empty view with `error` set.
    """
    ticker = ticker.strip().upper()
    kind = settings.fund_kinds.get(ticker)
    if kind is None:
        return FundDataView(ticker=ticker, kind=None, start_date=start, error=f"Unknown fund: {ticker}")

    def _default(source: str) -> str:
        return read_distribution_text(source, timeout=settings.http_timeout)

    loader = text_loader or _default
    try:
        dists = _load_fund_distributions(ticker, kind, settings, loader)
    except ReinvestError as e:
        logger.warning("%s: distributions unavailable: %s", ticker, e)
        return FundDataView(ticker=ticker, kind=kind, start_date=start, error=str(e))

    records = dists.records if dists is not None else ()
    nav_series = []
    if kind is FundKind.MUTUAL:
        try:
            nav_series = list(nav_source.fetch_nav_series(ticker, start))
        except Exception as e:
            logger.warning("NAV fetch for %s raised: %s", ticker, e)
            return FundDataView(ticker=ticker, kind=kind, start_date=start, error=f"NAV fetch failed for {ticker}: {e}")
    if kind is FundKind.MUTUAL and not nav_series:
        return FundDataView(ticker=ticker, kind=kind, start_date=start, error=f"No NAV data available for {ticker}")

    merged = merge_fund_data(nav_series, records, kind=kind)
    data = filter_on_or_after(merged, start)
    logger.info("%s: %d merged days from %s", ticker, len(data), start.isoformat())
    return FundDataView(ticker=ticker, kind=kind, start_date=start, data=data)
