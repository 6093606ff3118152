from __future__ import annotations

from datetime import date

from pydantic_settings import BaseSettings, SettingsConfigDict

from reinvest.distributions.models import FundKind
from reinvest.utils.dates import parse_date_option

# Yahoo chart mirrors, tried in order. Entries containing "{url}" are proxy
# templates; everything else is a chart API base URL.
DEFAULT_NAV_MIRRORS = (
    "https://query1.finance.yahoo.com/v8/finance/chart",
    "https://query2.finance.yahoo.com/v8/finance/chart",
    "https://api.allorigins.win/get?url={url}",
    "https://corsproxy.io/?{url}",
)


def _split_csv(s: str | None) -> list[str]:
    return [p.strip() for p in (s or "").split(",") if p.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Holdings are valued from this date forward (inclusive).
    REINVEST_START_DATE: str = "2024-12-30"

    # Comma-separated tickers per fund kind.
    REINVEST_MONEY_MARKET_FUNDS: str = "AFAXX"
    REINVEST_MUTUAL_FUNDS: str = "ANCFX,AGTHX"

    # Combined multi-fund distribution file, or a directory of per-fund files
    # named mmf_<TICKER>_distributions.txt / mutual_<TICKER>_distributions.txt.
    # Either may be a local path or an http(s) URL.
    REINVEST_DISTRIBUTIONS_PATH: str = "data/distributions.txt"
    REINVEST_DISTRIBUTIONS_DIR: str | None = None

    # Money-market rate column: True => annual percentage (rate/100/365 per day),
    # False => already the realized per-period fraction.
    REINVEST_RATE_IS_ANNUAL_PERCENTAGE: bool = True

    REINVEST_NAV_MIRRORS: str | None = None
    REINVEST_NAV_CACHE_DIR: str = "data/cache/yahoo"
    REINVEST_HTTP_TIMEOUT: float = 15.0

    @property
    def start_date(self) -> date:
        d = parse_date_option(self.REINVEST_START_DATE)
        if d is None:
            raise ValueError("REINVEST_START_DATE is empty")
        return d

    @property
    def money_market_funds(self) -> list[str]:
        return [s.upper() for s in _split_csv(self.REINVEST_MONEY_MARKET_FUNDS)]

    @property
    def mutual_funds(self) -> list[str]:
        return [s.upper() for s in _split_csv(self.REINVEST_MUTUAL_FUNDS)]

    @property
    def fund_kinds(self) -> dict[str, FundKind]:
        kinds = {s: FundKind.MUTUAL for s in self.mutual_funds}
        # Money-market wins if a ticker is listed twice.
        kinds.update({s: FundKind.MONEY_MARKET for s in self.money_market_funds})
        return kinds

    @property
    def nav_mirrors(self) -> list[str]:
        return _split_csv(self.REINVEST_NAV_MIRRORS) or list(DEFAULT_NAV_MIRRORS)

    @property
    def rate_is_annual_percentage(self) -> bool:
        return self.REINVEST_RATE_IS_ANNUAL_PERCENTAGE

    @property
    def http_timeout(self) -> float:
        return float(self.REINVEST_HTTP_TIMEOUT)


def load_settings() -> Settings:
    return Settings()
