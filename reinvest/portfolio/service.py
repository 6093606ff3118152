from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Mapping, Sequence

from reinvest.config import Settings
from reinvest.data.yahoo import NavSource
from reinvest.distributions.models import FundDistributions, FundKind
from reinvest.distributions.parser import parse_distribution_text, parse_fund_file
from reinvest.distributions.sources import distribution_source_for, read_distribution_text
from reinvest.errors import ReinvestError
from reinvest.nav.models import NavPoint
from reinvest.portfolio.accumulator import calculate_money_market, calculate_mutual_fund
from reinvest.portfolio.models import FundResult, PortfolioResult
from reinvest.utils.numbers import pct

logger = logging.getLogger(__name__)

TextLoader = Callable[[str], str]


@dataclass
class PortfolioInputs:
    distributions: dict[str, FundDistributions] = field(default_factory=dict)
    nav_series: dict[str, list[NavPoint]] = field(default_factory=dict)
    load_errors: dict[str, str] = field(default_factory=dict)


def compute_fund(
    symbol: str,
    units: float,
    *,
    kind: FundKind,
    distributions: FundDistributions | None,
    nav_series: Sequence[NavPoint] | None,
    start_date: date,
    rate_is_annual_percentage: bool = True,
    fallback_nav: float | None = None,
    use_distribution_nav: bool = False,
) -> FundResult:
    records = distributions.records if distributions is not None else None
    if kind is FundKind.MONEY_MARKET:
        result = calculate_money_market(
            symbol,
            records,
            units,
            start_date,
            rate_is_annual_percentage=rate_is_annual_percentage,
        )
    else:
        result = calculate_mutual_fund(
            symbol,
            records,
            nav_series,
            units,
            start_date,
            fallback_nav=fallback_nav,
            use_distribution_nav=use_distribution_nav,
        )
    return result


def compute_portfolio(
    holdings: Mapping[str, float],
    distributions: Mapping[str, FundDistributions],
    nav_series: Mapping[str, Sequence[NavPoint]],
    *,
    fund_kinds: Mapping[str, FundKind],
    start_date: date,
    rate_is_annual_percentage: bool = True,
    fallback_navs: Mapping[str, float] | None = None,
    use_distribution_nav: bool = False,
    load_errors: Mapping[str, str] | None = None,
) -> PortfolioResult:
    """
    Value every holding and aggregate the funds that computed cleanly.

    A fund that fails (missing data, unknown kind, unexpected exception) lands in
    `errors` and does not stop its siblings.
    """
    fallback_navs = fallback_navs or {}
    load_errors = load_errors or {}
    per_fund: dict[str, FundResult] = {}
    errors: dict[str, str] = {}

    for raw_symbol, units in holdings.items():
        symbol = raw_symbol.strip().upper()
        kind = fund_kinds.get(symbol)
        if kind is None:
            errors[symbol] = f"Unknown fund kind for {symbol}"
            continue
        try:
            result = compute_fund(
                symbol,
                units,
                kind=kind,
                distributions=distributions.get(symbol),
                nav_series=nav_series.get(symbol),
                start_date=start_date,
                rate_is_annual_percentage=rate_is_annual_percentage,
                fallback_nav=fallback_navs.get(symbol),
                use_distribution_nav=use_distribution_nav,
            )
        except Exception as e:
            logger.exception("%s: portfolio computation failed", symbol)
            errors[symbol] = f"Computation failed for {symbol}: {e}"
            continue
        per_fund[symbol] = result
        if result.error:
            detail = load_errors.get(symbol)
            errors[symbol] = f"{result.error} ({detail})" if detail else result.error

    ok = [r for r in per_fund.values() if r.ok]
    initial = sum(r.initial_value for r in ok)
    current = sum(r.current_value for r in ok)
    return PortfolioResult(
        initial_value=initial,
        current_value=current,
        total_return=current - initial,
        percentage_return=pct(current - initial, initial),
        value_change_from_price_movement=sum(r.value_change_from_price_movement for r in ok),
        value_change_from_reinvestment=sum(r.value_change_from_reinvestment for r in ok),
        per_fund=per_fund,
        errors=errors,
        start_date=start_date,
    )


def _default_loader(settings: Settings) -> TextLoader:
    def _load(source: str) -> str:
        return read_distribution_text(source, timeout=settings.http_timeout)

    return _load


def _load_distributions(
    symbols: Sequence[str],
    fund_kinds: Mapping[str, FundKind],
    settings: Settings,
    text_loader: TextLoader,
) -> tuple[dict[str, FundDistributions], dict[str, str]]:
    errors: dict[str, str] = {}
    if settings.REINVEST_DISTRIBUTIONS_DIR:
        out: dict[str, FundDistributions] = {}
        for sym in symbols:
            kind = fund_kinds[sym]
            source = distribution_source_for(sym, kind, settings.REINVEST_DISTRIBUTIONS_DIR)
            try:
                out[sym] = parse_fund_file(text_loader(source), sym, kind)
            except ReinvestError as e:
                logger.warning("No distribution file for %s: %s", sym, e)
                errors[sym] = str(e)
        return out, errors

    try:
        text = text_loader(settings.REINVEST_DISTRIBUTIONS_PATH)
    except ReinvestError as e:
        logger.warning("Distribution file unavailable: %s", e)
        return {}, {sym: str(e) for sym in symbols}
    return parse_distribution_text(text, {s: fund_kinds[s] for s in symbols}), errors


def load_portfolio_inputs(
    symbols: Sequence[str],
    *,
    settings: Settings,
    nav_source: NavSource,
    start_date: date | None = None,
    end_date: date | None = None,
    text_loader: TextLoader | None = None,
) -> PortfolioInputs:
    """
    Fetch distribution text and NAV series concurrently, then parse.

    NAV series are only fetched for mutual funds; money-market NAV is 1.00.
    Loader failures become empty inputs plus an entry in `load_errors`.
    """
    fund_kinds = settings.fund_kinds
    symbols = [s.strip().upper() for s in symbols if s and s.strip()]
    known = [s for s in symbols if s in fund_kinds]
    start = start_date or settings.start_date
    loader = text_loader or _default_loader(settings)
    mutual = [s for s in known if fund_kinds[s] is FundKind.MUTUAL]

    inputs = PortfolioInputs()
    with ThreadPoolExecutor(max_workers=max(2, len(mutual) + 1), thread_name_prefix="reinvest") as pool:
        dist_future = pool.submit(_load_distributions, known, fund_kinds, settings, loader)
        nav_futures = {sym: pool.submit(nav_source.fetch_nav_series, sym, start, end_date) for sym in mutual}

        inputs.distributions, inputs.load_errors = dist_future.result()
        for sym, fut in nav_futures.items():
            try:
                inputs.nav_series[sym] = list(fut.result())
            except Exception as e:
                logger.warning("NAV fetch for %s raised: %s", sym, e)
                inputs.nav_series[sym] = []
                inputs.load_errors.setdefault(sym, str(e))

    return inputs
