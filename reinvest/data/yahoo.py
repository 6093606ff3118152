"""
Yahoo Finance chart API client for daily NAV history.

The chart endpoint is often blocked or rate-limited, so requests go through an
ordered list of mirrors (direct hosts first, then URL-wrapping proxies). The
first mirror returning a usable payload wins. Results are cached per symbol as
CSV; on total network failure the cache is served instead.
"""
from __future__ import annotations

import json
import logging
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Protocol, Sequence, runtime_checkable
from urllib.parse import quote

import pandas as pd
import requests
from requests.exceptions import RequestException

from reinvest.config import DEFAULT_NAV_MIRRORS
from reinvest.errors import NavSourceError
from reinvest.nav.models import NavPoint
from reinvest.utils.dates import from_unix_seconds, to_unix_seconds

logger = logging.getLogger(__name__)

_HEADERS = {"User-Agent": "Mozilla/5.0 (reinvest NAV fetcher)"}


@runtime_checkable
class NavSource(Protocol):
    def fetch_nav_series(self, symbol: str, start: date, end: date | None = None) -> list[NavPoint]: ...


def chart_url(symbol: str, start: date, end: date, base: str = DEFAULT_NAV_MIRRORS[0]) -> str:
    # period2 is exclusive on Yahoo's side; include the whole end day.
    p1 = to_unix_seconds(start)
    p2 = to_unix_seconds(end + timedelta(days=1))
    return f"{base.rstrip('/')}/{symbol.upper()}?period1={p1}&period2={p2}&interval=1d"


def mirror_url(mirror: str, symbol: str, start: date, end: date) -> str:
    """Resolve a mirror entry to a request URL (proxy templates wrap the direct URL)."""
    if "{url}" in mirror:
        return mirror.replace("{url}", quote(chart_url(symbol, start, end), safe=""))
    return chart_url(symbol, start, end, base=mirror)


def unwrap_payload(body: Any) -> Any:
    """Some proxies return {"contents": "<json text>"}; unwrap it."""
    if isinstance(body, dict) and isinstance(body.get("contents"), str):
        return json.loads(body["contents"])
    return body


def _indicator_values(indicators: dict[str, Any], key: str, field: str) -> list[Any]:
    """`indicators[key][0][field]` as a list; raises ValueError when the shape is wrong."""
    block = indicators.get(key) or [{}]
    if not isinstance(block, list) or not isinstance(block[0] or {}, dict):
        raise ValueError(f"malformed chart indicator {key!r}")
    values = (block[0] or {}).get(field) or []
    if not isinstance(values, list):
        raise ValueError(f"malformed chart indicator {key}.{field}")
    return values


def parse_chart_payload(payload: Any, *, use_adjclose: bool = False) -> list[NavPoint]:
    """
    Reduce a v8 chart payload to chronological NavPoints.

    Null / negative closes and unreadable timestamps are dropped. Raises
    ValueError for payloads without a chart result (unknown symbol, API error)
    or with an unexpected shape (proxy error pages, truncated bodies).
    """
    chart = payload.get("chart") if isinstance(payload, dict) else None
    if not isinstance(chart, dict):
        raise ValueError(f"malformed chart payload: {type(chart).__name__}")
    results = chart.get("result") or []
    if not results:
        err = chart.get("error")
        raise ValueError(f"empty chart result{f': {err}' if err else ''}")
    if not isinstance(results, list) or not isinstance(results[0], dict):
        raise ValueError("malformed chart result")

    res = results[0]
    timestamps = res.get("timestamp") or []
    indicators = res.get("indicators") or {}
    if not isinstance(indicators, dict) or not isinstance(timestamps, list):
        raise ValueError("malformed chart indicators")
    closes: Sequence[Any] = []
    if use_adjclose:
        closes = _indicator_values(indicators, "adjclose", "adjclose")
    if not closes:
        closes = _indicator_values(indicators, "quote", "close")

    by_date: dict[date, float] = {}
    for ts, px in zip(timestamps, closes):
        if px is None:
            continue
        try:
            nav = float(px)
        except (TypeError, ValueError):
            continue
        if nav != nav or nav < 0:
            continue
        try:
            d = from_unix_seconds(ts)
        except (TypeError, ValueError, OverflowError, OSError):
            continue
        # Last quote of a day wins (intraday duplicates near the close).
        by_date[d] = nav

    return [NavPoint(d, by_date[d]) for d in sorted(by_date)]


def _filter_range(points: list[NavPoint], start: date, end: date) -> list[NavPoint]:
    return [p for p in points if start <= p.date <= end]


def cache_covers(cached: Sequence[NavPoint], start: date, end: date, today: date) -> bool:
    """
    True when a cached series spans [start, end] well enough to skip the network.

    The start may fall up to 4 days before the first point (long weekend). The
    last point must reach two business days before min(end, today), which
    leaves room for the latest close not being published yet and one holiday.
    """
    if not cached:
        return False
    covers_start = cached[0].date <= start + timedelta(days=4)
    expected_end = (pd.Timestamp(min(end, today)) - pd.offsets.BDay(2)).date()
    return covers_start and cached[-1].date >= expected_end


class YahooNavClient:
    def __init__(
        self,
        mirrors: Sequence[str] | None = None,
        cache_dir: str | None = "data/cache/yahoo",
        timeout: float = 15.0,
        session: requests.Session | None = None,
    ):
        self.mirrors = list(mirrors or DEFAULT_NAV_MIRRORS)
        self.cache_dir = Path(cache_dir) if cache_dir else None
        if self.cache_dir is not None:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.timeout = timeout
        self.session = session or requests.Session()

    def _cache_path(self, symbol: str) -> Path | None:
        if self.cache_dir is None:
            return None
        return self.cache_dir / f"{symbol.upper()}.csv"

    def _read_cache(self, symbol: str) -> list[NavPoint]:
        path = self._cache_path(symbol)
        if path is None or not path.exists():
            return []
        df = pd.read_csv(path)
        if df.empty:
            return []
        df["date"] = pd.to_datetime(df["date"]).dt.date
        df = df.dropna(subset=["nav"]).sort_values("date")
        return [NavPoint(d, float(v)) for d, v in zip(df["date"], df["nav"])]

    def _write_cache(self, symbol: str, points: list[NavPoint]) -> None:
        path = self._cache_path(symbol)
        if path is None or not points:
            return
        # Merge with what is already cached so narrower fetches don't shrink it.
        merged = {p.date: p.nav for p in self._read_cache(symbol)}
        merged.update({p.date: p.nav for p in points})
        df = pd.DataFrame({"date": [d.isoformat() for d in sorted(merged)], "nav": [merged[d] for d in sorted(merged)]})
        df.to_csv(path, index=False)

    def fetch_payload(self, symbol: str, start: date, end: date) -> dict[str, Any]:
        """Try each mirror in order; return the first parsable chart payload."""
        attempts: list[str] = []
        for i, mirror in enumerate(self.mirrors, start=1):
            url = mirror_url(mirror, symbol, start, end)
            logger.debug("NAV mirror #%d for %s: %s", i, symbol, url)
            try:
                r = self.session.get(url, timeout=self.timeout, headers=_HEADERS)
                r.raise_for_status()
                payload = unwrap_payload(r.json())
                parse_chart_payload(payload)
            except (RequestException, ValueError) as e:
                logger.info("NAV mirror #%d failed for %s: %s", i, symbol, e)
                attempts.append(f"#{i} {e}")
                continue
            return payload
        raise NavSourceError(symbol, attempts)

    def fetch_nav_series(
        self,
        symbol: str,
        start: date,
        end: date | None = None,
        refresh: bool = False,
    ) -> list[NavPoint]:
        """
        Daily NAV points for `symbol` between start and end (inclusive), oldest first.

        Never raises: failures are logged and give an empty list (or cached data).
        """
        end = end or date.today()
        cached = self._read_cache(symbol)
        if cached and not refresh:
            window = _filter_range(cached, start, end)
            if window and cache_covers(cached, start, end, date.today()):
                return window

        try:
            points = parse_chart_payload(self.fetch_payload(symbol, start, end))
        except NavSourceError as e:
            if cached:
                logger.warning("%s; serving cached NAV history", e)
                return _filter_range(cached, start, end)
            logger.warning("%s", e)
            return []

        self._write_cache(symbol, points)
        return _filter_range(points, start, end)
