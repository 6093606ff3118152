from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from reinvest.distributions.models import FundKind


@dataclass(frozen=True)
class AccumulationStep:
    date: date
    rate_or_amount: float  # money-market: rate as parsed; mutual: distribution per share
    units_before: float
    distribution_amount: float  # money-market: units earned; mutual: cash distributed
    units_after: float
    additional_units: float = 0.0
    daily_rate: float | None = None  # money-market only
    reinvestment_nav: float | None = None  # mutual only
    flag: str | None = None  # set when the event was degraded or could not be applied


@dataclass(frozen=True)
class AccumulationState:
    running_units: float
    history: tuple[AccumulationStep, ...] = ()


@dataclass(frozen=True)
class FundResult:
    symbol: str
    kind: FundKind
    initial_units: float
    current_units: float = 0.0
    initial_nav: float | None = None
    current_nav: float | None = None
    initial_nav_date: date | None = None
    current_nav_date: date | None = None
    initial_value: float = 0.0
    current_value: float = 0.0
    total_return: float = 0.0
    percentage_return: float = 0.0
    value_change_from_price_movement: float = 0.0
    value_change_from_reinvestment: float = 0.0
    steps: tuple[AccumulationStep, ...] = ()
    error: str | None = None
    warnings: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class PortfolioResult:
    initial_value: float = 0.0
    current_value: float = 0.0
    total_return: float = 0.0
    percentage_return: float = 0.0
    value_change_from_price_movement: float = 0.0
    value_change_from_reinvestment: float = 0.0
    per_fund: dict[str, FundResult] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)
    start_date: date | None = None
