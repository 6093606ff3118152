from __future__ import annotations

import bisect
import logging
from datetime import date
from typing import Iterable, Mapping, Sequence

from reinvest.distributions.models import (
    MONEY_MARKET_NAV,
    DistributionBreakdown,
    DistributionRecord,
    FundKind,
)
from reinvest.nav.models import FundDay, NavPoint
from reinvest.utils.dates import is_canonical

logger = logging.getLogger(__name__)


def sort_series(points: Iterable[NavPoint]) -> list[NavPoint]:
    """Chronological copy; on duplicate dates the later input point wins."""
    by_date = {p.date: p for p in points}
    return [by_date[d] for d in sorted(by_date)]


def nav_on_or_after(points: Sequence[NavPoint], d: date) -> NavPoint | None:
    """First point dated >= d. `points` must be sorted."""
    i = bisect.bisect_left([p.date for p in points], d)
    return points[i] if i < len(points) else None


def nav_on_or_before(points: Sequence[NavPoint], d: date) -> NavPoint | None:
    """Last point dated <= d. `points` must be sorted."""
    i = bisect.bisect_right([p.date for p in points], d)
    return points[i - 1] if i > 0 else None


def _add_breakdowns(
    a: DistributionBreakdown | None, b: DistributionBreakdown | None
) -> DistributionBreakdown | None:
    if a is None or b is None:
        return a or b
    return DistributionBreakdown(
        regular_dividend=a.regular_dividend + b.regular_dividend,
        special_dividend=a.special_dividend + b.special_dividend,
        long_term_gains=a.long_term_gains + b.long_term_gains,
        short_term_gains=a.short_term_gains + b.short_term_gains,
    )


def merge_fund_data(
    nav_series: Iterable[NavPoint],
    records: Iterable[DistributionRecord],
    *,
    kind: FundKind,
    fallback_nav: float | None = None,
) -> dict[date, FundDay]:
    """
    Combine a NAV series and distribution records into one date-keyed view.

    - NAV-only dates: distribution 0.
    - Same date on both sides: the record's own reinvest NAV (if any) wins.
    - Distribution-only dates: reinvest NAV, else nearest later series NAV,
      else nearest earlier, else `fallback_nav`, else the fund-type default
      (1.00 for money-market), else unresolved (nav=None).
    - Several records on one date are summed into that day.

    Records without a readable date are left out (they were reported by the parser).
    """
    series = sort_series(nav_series)
    merged: dict[date, FundDay] = {p.date: FundDay(date=p.date, nav=p.nav) for p in series}

    for rec in records:
        if not is_canonical(rec.date):
            logger.debug("Merge skips record with unreadable date %r", rec.date)
            continue
        d: date = rec.date  # type: ignore[assignment]
        existing = merged.get(d)

        if rec.reinvest_nav is not None:
            nav, source = rec.reinvest_nav, "distribution"
        elif existing is not None and existing.nav is not None:
            nav, source = existing.nav, existing.nav_source
        elif kind is FundKind.MONEY_MARKET:
            nav, source = MONEY_MARKET_NAV, "fund_default"
        else:
            after = nav_on_or_after(series, d)
            before = nav_on_or_before(series, d)
            if after is not None:
                nav, source = after.nav, "nearest_after"
            elif before is not None:
                nav, source = before.nav, "nearest_before"
            elif fallback_nav is not None:
                nav, source = fallback_nav, "fallback"
            else:
                nav, source = None, "unresolved"

        amount = rec.amount_per_unit
        breakdown = rec.breakdown
        if existing is not None and existing.distribution:
            amount += existing.distribution
            breakdown = _add_breakdowns(existing.breakdown, breakdown)
        merged[d] = FundDay(date=d, nav=nav, distribution=amount, breakdown=breakdown, nav_source=source)

    return {d: merged[d] for d in sorted(merged)}


def filter_on_or_after(merged: Mapping[date, FundDay], start: date) -> dict[date, FundDay]:
    return {d: day for d, day in merged.items() if d >= start}
