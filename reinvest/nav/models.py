from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from reinvest.distributions.models import DistributionBreakdown


@dataclass(frozen=True)
class NavPoint:
    date: date
    nav: float


@dataclass(frozen=True)
class FundDay:
    """One row of the merged per-date view of a fund."""

    date: date
    nav: float | None
    distribution: float = 0.0
    breakdown: DistributionBreakdown | None = None
    # series | distribution | nearest_after | nearest_before | fallback | fund_default | unresolved
    nav_source: str = "series"
