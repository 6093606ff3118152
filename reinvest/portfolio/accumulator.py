"""
Reinvestment accumulation.

Both fund kinds are a fold over chronologically ordered distribution events:
each step is a pure function of (previous state, next event) and returns a new
`AccumulationState` with one more `AccumulationStep` in its history.

Money-market (NAV fixed at 1.00):
    daily_rate = rate / 100 / 365          (rate_is_annual_percentage=True)
    daily_rate = rate                      (rate_is_annual_percentage=False)
    earned     = units * daily_rate
    units     += earned

Mutual fund:
    cash        = per_share * units_before
    additional  = cash / reinvestment_nav
    units      += additional

Compounding is order-sensitive, so events are stably sorted by date (ties keep
input order) and nothing else reorders them.
"""
from __future__ import annotations

import logging
import math
from datetime import date
from functools import partial, reduce
from typing import Callable, Iterable, Sequence

from reinvest.distributions.models import MONEY_MARKET_NAV, DistributionRecord, FundKind
from reinvest.nav.merge import nav_on_or_after, nav_on_or_before, sort_series
from reinvest.nav.models import NavPoint
from reinvest.portfolio.models import AccumulationState, AccumulationStep, FundResult
from reinvest.utils.dates import is_canonical
from reinvest.utils.numbers import pct

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365

UNRESOLVED_NAV_FLAG = "unresolvable reinvestment NAV; distribution not reinvested"

Step = Callable[[AccumulationState, DistributionRecord], AccumulationState]


def daily_rate_for(rate: float, *, rate_is_annual_percentage: bool = True) -> float:
    if rate_is_annual_percentage:
        return rate / 100.0 / DAYS_PER_YEAR
    return rate


def _sanitize(amount: float | None) -> tuple[float, str | None]:
    """Distributions are non-negative numbers; anything else counts as 0 and is flagged."""
    if amount is None or not isinstance(amount, (int, float)) or math.isnan(amount) or math.isinf(amount):
        return 0.0, f"non-numeric amount {amount!r} treated as 0"
    if amount < 0:
        return 0.0, f"negative amount {amount} treated as 0"
    return float(amount), None


def money_market_step(
    state: AccumulationState,
    record: DistributionRecord,
    *,
    rate_is_annual_percentage: bool = True,
) -> AccumulationState:
    rate, flag = _sanitize(record.amount_per_unit)
    daily = daily_rate_for(rate, rate_is_annual_percentage=rate_is_annual_percentage)
    before = state.running_units
    earned = before * daily
    after = before + earned
    step = AccumulationStep(
        date=record.date,  # type: ignore[arg-type]
        rate_or_amount=rate,
        units_before=before,
        distribution_amount=earned,
        units_after=after,
        additional_units=earned,
        daily_rate=daily,
        reinvestment_nav=None,
        flag=flag,
    )
    return AccumulationState(running_units=after, history=state.history + (step,))


def mutual_fund_step(
    state: AccumulationState,
    record: DistributionRecord,
    reinvestment_nav: float | None,
) -> AccumulationState:
    per_share, flag = _sanitize(record.amount_per_unit)
    before = state.running_units
    # Cash is computed on the holding *before* this distribution is reinvested.
    cash = per_share * before
    if reinvestment_nav is None or not reinvestment_nav > 0:
        additional = 0.0
        if cash > 0:
            flag = UNRESOLVED_NAV_FLAG
    else:
        additional = cash / reinvestment_nav
    after = before + additional
    step = AccumulationStep(
        date=record.date,  # type: ignore[arg-type]
        rate_or_amount=per_share,
        units_before=before,
        distribution_amount=cash,
        units_after=after,
        additional_units=additional,
        reinvestment_nav=reinvestment_nav,
        flag=flag,
    )
    return AccumulationState(running_units=after, history=state.history + (step,))


def accumulate(initial_units: float, events: Iterable[DistributionRecord], step: Step) -> AccumulationState:
    return reduce(step, events, AccumulationState(running_units=float(initial_units)))


def events_since(records: Iterable[DistributionRecord], start: date) -> tuple[list[DistributionRecord], list[str]]:
    """
    Events dated on/after `start`, oldest first (stable for equal dates).

    Records whose date could not be read are excluded and reported.
    """
    kept: list[DistributionRecord] = []
    warnings: list[str] = []
    for rec in records:
        if not is_canonical(rec.date):
            warnings.append(f"line {rec.line_no}: unreadable date {rec.date!r}; event excluded")
            continue
        if rec.date >= start:  # type: ignore[operator]
            kept.append(rec)
    kept.sort(key=lambda r: r.date)
    return kept, warnings


def resolve_reinvestment_nav(
    series: Sequence[NavPoint],
    record: DistributionRecord,
    *,
    fallback_nav: float | None = None,
    use_distribution_nav: bool = False,
) -> float | None:
    """
    NAV used to buy shares with a distribution.

    Order: the record's own reinvest NAV (only when `use_distribution_nav`),
    first series point on/after the date, last point on/before it, the caller's
    fallback NAV, then the record's reinvest NAV as a last known price.
    """
    if use_distribution_nav and record.reinvest_nav:
        return record.reinvest_nav
    d: date = record.date  # type: ignore[assignment]
    point = nav_on_or_after(series, d) or nav_on_or_before(series, d)
    if point is not None:
        return point.nav
    if fallback_nav is not None:
        return fallback_nav
    return record.reinvest_nav


def initial_nav_point(series: Sequence[NavPoint], start: date) -> NavPoint | None:
    """First point on/after start; else the last point before it."""
    return nav_on_or_after(series, start) or nav_on_or_before(series, start)


def _flag_warnings(state: AccumulationState) -> list[str]:
    return [f"{s.date.isoformat()}: {s.flag}" for s in state.history if s.flag]


def calculate_money_market(
    symbol: str,
    records: Sequence[DistributionRecord] | None,
    initial_units: float,
    start_date: date,
    *,
    rate_is_annual_percentage: bool = True,
) -> FundResult:
    """Compound daily money-market rates onto `initial_units` from `start_date`."""
    initial_units = float(initial_units)
    initial_value = initial_units * MONEY_MARKET_NAV
    if not records:
        logger.warning("%s: no money-market rate data", symbol)
        return FundResult(
            symbol=symbol,
            kind=FundKind.MONEY_MARKET,
            initial_units=initial_units,
            current_units=initial_units,
            initial_nav=MONEY_MARKET_NAV,
            current_nav=MONEY_MARKET_NAV,
            initial_value=initial_value,
            current_value=initial_value,
            error="No distribution data available",
        )

    events, warnings = events_since(records, start_date)
    step = partial(money_market_step, rate_is_annual_percentage=rate_is_annual_percentage)
    state = accumulate(initial_units, events, step)
    warnings.extend(_flag_warnings(state))

    current_value = state.running_units * MONEY_MARKET_NAV
    total = current_value - initial_value
    logger.info("%s: %d rate events, units %.6f -> %.6f", symbol, len(events), initial_units, state.running_units)
    return FundResult(
        symbol=symbol,
        kind=FundKind.MONEY_MARKET,
        initial_units=initial_units,
        current_units=state.running_units,
        initial_nav=MONEY_MARKET_NAV,
        current_nav=MONEY_MARKET_NAV,
        initial_nav_date=start_date,
        current_nav_date=events[-1].date if events else start_date,  # type: ignore[arg-type]
        initial_value=initial_value,
        current_value=current_value,
        total_return=total,
        percentage_return=pct(total, initial_value),
        value_change_from_price_movement=0.0,
        value_change_from_reinvestment=total,
        steps=state.history,
        warnings=tuple(warnings),
    )


def calculate_mutual_fund(
    symbol: str,
    records: Sequence[DistributionRecord] | None,
    nav_series: Iterable[NavPoint] | None,
    initial_shares: float,
    start_date: date,
    *,
    fallback_nav: float | None = None,
    use_distribution_nav: bool = False,
) -> FundResult:
    """
    Reinvest mutual-fund distributions and split the change in value into
    price movement and reinvestment.
    """
    initial_shares = float(initial_shares)
    series = sort_series(nav_series or [])
    if not series:
        logger.warning("%s: no NAV series", symbol)
        return FundResult(
            symbol=symbol,
            kind=FundKind.MUTUAL,
            initial_units=initial_shares,
            current_units=initial_shares,
            error=f"No NAV data available for {symbol}",
        )
    if not records:
        logger.warning("%s: no distribution data", symbol)
        return FundResult(
            symbol=symbol,
            kind=FundKind.MUTUAL,
            initial_units=initial_shares,
            current_units=initial_shares,
            error=f"No distribution data available for {symbol}",
        )

    start_point = initial_nav_point(series, start_date)
    latest = series[-1]
    # series is non-empty, so a start point always exists
    initial_nav = start_point.nav if start_point is not None else latest.nav

    events, warnings = events_since(records, start_date)

    def _step(state: AccumulationState, rec: DistributionRecord) -> AccumulationState:
        nav = resolve_reinvestment_nav(
            series, rec, fallback_nav=fallback_nav, use_distribution_nav=use_distribution_nav
        )
        return mutual_fund_step(state, rec, nav)

    state = accumulate(initial_shares, events, _step)
    warnings.extend(_flag_warnings(state))

    current_value = state.running_units * latest.nav
    initial_value = initial_shares * initial_nav
    value_from_price_only = initial_shares * latest.nav
    total = current_value - initial_value
    logger.info(
        "%s: %d distributions, shares %.6f -> %.6f, NAV %.2f -> %.2f",
        symbol,
        len(events),
        initial_shares,
        state.running_units,
        initial_nav,
        latest.nav,
    )
    return FundResult(
        symbol=symbol,
        kind=FundKind.MUTUAL,
        initial_units=initial_shares,
        current_units=state.running_units,
        initial_nav=initial_nav,
        current_nav=latest.nav,
        initial_nav_date=start_point.date if start_point is not None else None,
        current_nav_date=latest.date,
        initial_value=initial_value,
        current_value=current_value,
        total_return=total,
        percentage_return=pct(total, initial_value),
        value_change_from_price_movement=initial_shares * (latest.nav - initial_nav),
        value_change_from_reinvestment=current_value - value_from_price_only,
        steps=state.history,
        warnings=tuple(warnings),
    )
