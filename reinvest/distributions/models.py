from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


class FundKind(str, Enum):
    MONEY_MARKET = "money_market"  # NAV pinned at 1.00, return paid as daily rate
    MUTUAL = "mutual"  # variable NAV, periodic dividends/gains

    @property
    def label(self) -> str:
        return "MMF" if self is FundKind.MONEY_MARKET else "Mutual Fund"


MONEY_MARKET_NAV = 1.00


@dataclass(frozen=True)
class DistributionBreakdown:
    regular_dividend: float = 0.0
    special_dividend: float = 0.0
    long_term_gains: float = 0.0
    short_term_gains: float = 0.0

    @property
    def total(self) -> float:
        return self.regular_dividend + self.special_dividend + self.long_term_gains + self.short_term_gains


@dataclass(frozen=True)
class DistributionRecord:
    """
    One distribution event (one data line).

    `date` is a `datetime.date` when the source date was readable, otherwise the
    raw text (such records never take part in date-ordered operations).
    For money-market rows `amount_per_unit` holds the parsed rate.
    """

    date: date | str
    amount_per_unit: float
    breakdown: DistributionBreakdown | None = None
    reinvest_nav: float | None = None
    raw_amount: str = ""
    line_no: int = 0


@dataclass(frozen=True)
class FundDistributions:
    symbol: str
    kind: FundKind
    headers: tuple[str, ...] = ()
    records: tuple[DistributionRecord, ...] = ()
    issues: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.records)
