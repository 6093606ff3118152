from __future__ import annotations

from datetime import date

import pytest

from conftest import make_record
from reinvest.distributions.models import DistributionBreakdown, DistributionRecord, FundKind
from reinvest.nav.merge import (
    filter_on_or_after,
    merge_fund_data,
    nav_on_or_after,
    nav_on_or_before,
    sort_series,
)
from reinvest.nav.models import NavPoint


def test_sort_series_later_duplicate_wins():
    pts = [NavPoint(date(2025, 1, 3), 2.0), NavPoint(date(2025, 1, 2), 1.0), NavPoint(date(2025, 1, 3), 3.0)]
    out = sort_series(pts)
    assert [p.date for p in out] == [date(2025, 1, 2), date(2025, 1, 3)]
    assert out[-1].nav == 3.0


def test_nearest_lookups(ancfx_series):
    assert nav_on_or_after(ancfx_series, date(2025, 3, 19)).nav == 49.50
    assert nav_on_or_after(ancfx_series, date(2025, 3, 20)).nav == 49.50
    assert nav_on_or_after(ancfx_series, date(2025, 7, 1)) is None
    assert nav_on_or_before(ancfx_series, date(2025, 3, 19)).nav == 50.00
    assert nav_on_or_before(ancfx_series, date(2024, 12, 31)) is None


def test_nav_only_days_have_zero_distribution(ancfx_series):
    merged = merge_fund_data(ancfx_series, [], kind=FundKind.MUTUAL)
    assert list(merged) == [p.date for p in ancfx_series]
    assert all(day.distribution == 0.0 for day in merged.values())
    assert all(day.nav_source == "series" for day in merged.values())


def test_distribution_reinvest_nav_wins_on_same_date(ancfx_series):
    merged = merge_fund_data(ancfx_series, [make_record(date(2025, 3, 20), 0.1, reinvest_nav=49.0)], kind=FundKind.MUTUAL)
    day = merged[date(2025, 3, 20)]
    assert day.nav == 49.0
    assert day.distribution == pytest.approx(0.1)
    assert day.nav_source == "distribution"


def test_same_date_without_reinvest_nav_keeps_series_nav(ancfx_series):
    merged = merge_fund_data(ancfx_series, [make_record(date(2025, 3, 20), 0.1)], kind=FundKind.MUTUAL)
    assert merged[date(2025, 3, 20)].nav == 49.50
    assert merged[date(2025, 3, 20)].nav_source == "series"


def test_distribution_only_day_uses_nearest_later_then_earlier(ancfx_series):
    merged = merge_fund_data(
        ancfx_series,
        [make_record(date(2025, 3, 19), 0.1), make_record(date(2025, 7, 15), 0.2)],
        kind=FundKind.MUTUAL,
    )
    assert merged[date(2025, 3, 19)].nav == 49.50
    assert merged[date(2025, 3, 19)].nav_source == "nearest_after"
    assert merged[date(2025, 7, 15)].nav == 52.00
    assert merged[date(2025, 7, 15)].nav_source == "nearest_before"
    assert list(merged) == sorted(merged)


def test_distribution_only_day_fallback_and_unresolved():
    rec = make_record(date(2025, 3, 19), 0.1)
    assert merge_fund_data([], [rec], kind=FundKind.MUTUAL, fallback_nav=48.0)[date(2025, 3, 19)].nav == 48.0
    unresolved = merge_fund_data([], [rec], kind=FundKind.MUTUAL)[date(2025, 3, 19)]
    assert unresolved.nav is None
    assert unresolved.nav_source == "unresolved"


def test_money_market_days_default_to_unit_nav():
    merged = merge_fund_data([], [make_record(date(2025, 1, 2), 4.2)], kind=FundKind.MONEY_MARKET)
    assert merged[date(2025, 1, 2)].nav == 1.00
    assert merged[date(2025, 1, 2)].nav_source == "fund_default"


def test_same_date_records_are_summed():
    d = date(2025, 6, 18)
    recs = [
        DistributionRecord(d, 0.1, breakdown=DistributionBreakdown(regular_dividend=0.1)),
        DistributionRecord(d, 0.3, breakdown=DistributionBreakdown(long_term_gains=0.3)),
    ]
    day = merge_fund_data([NavPoint(d, 51.0)], recs, kind=FundKind.MUTUAL)[d]
    assert day.distribution == pytest.approx(0.4)
    assert day.breakdown.regular_dividend == pytest.approx(0.1)
    assert day.breakdown.long_term_gains == pytest.approx(0.3)


def test_records_with_unreadable_dates_are_left_out(ancfx_series):
    merged = merge_fund_data(ancfx_series, [make_record("soon", 1.0)], kind=FundKind.MUTUAL)
    assert len(merged) == len(ancfx_series)


def test_filter_on_or_after(ancfx_series):
    merged = merge_fund_data(ancfx_series, [], kind=FundKind.MUTUAL)
    kept = filter_on_or_after(merged, date(2025, 3, 20))
    assert min(kept) == date(2025, 3, 20)
    assert len(kept) == 3
