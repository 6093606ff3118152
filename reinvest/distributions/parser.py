"""
Parser for tab-delimited fund distribution files.

A combined file is a series of blocks:

    AFAXX
    Rate<TAB>Date
    4.21<TAB>12/31/24
    ...

    ANCFX
    Record Date<TAB>Ex Date<TAB>Pay Date<TAB>Regular Income Dividend<TAB>...
    12/18/24<TAB>12/19/24<TAB>12/20/24<TAB>$0.1234<TAB>$0.00<TAB>$1.2345<TAB>$0.0456<TAB>$52.10

Money-market blocks carry `(rate, date)` pairs. Mutual-fund blocks carry
dividend/gains columns; their header is resolved once per block into fixed
column indices (falling back to the standard 8-column layout).

Malformed rows never abort a parse: they are skipped (or degraded to 0) and
recorded in `FundDistributions.issues`.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Mapping

from reinvest.distributions.models import (
    DistributionBreakdown,
    DistributionRecord,
    FundDistributions,
    FundKind,
)
from reinvest.utils.dates import is_canonical, normalize_date
from reinvest.utils.numbers import parse_amount

logger = logging.getLogger(__name__)

# Ordered: each field tries its candidates in order against every header, and a
# column claimed by an earlier field is not reused ("Special Income Dividend"
# must not be taken as the regular dividend).
FIELD_CANDIDATES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("date", ("record date", "ex-div", "ex date", "date")),
    ("special_dividend", ("special",)),
    ("long_term_gains", ("long-term", "long term")),
    ("short_term_gains", ("short-term", "short term")),
    ("regular_dividend", ("regular", "income dividend", "dividend")),
    ("reinvest_nav", ("reinvest", "nav")),
    ("amount", ("total", "distribution", "amount")),
)

COMPONENT_FIELDS = ("regular_dividend", "special_dividend", "long_term_gains", "short_term_gains")

MMF_FIELD_COUNT = 2
POSITIONAL_MIN_FIELDS = 8

_TICKER_LINE = re.compile(r"^[A-Z][A-Z0-9.\-]{1,9}$")


@dataclass(frozen=True)
class ColumnMap:
    date: int
    regular_dividend: int | None = None
    special_dividend: int | None = None
    long_term_gains: int | None = None
    short_term_gains: int | None = None
    reinvest_nav: int | None = None
    amount: int | None = None
    min_fields: int = POSITIONAL_MIN_FIELDS
    positional: bool = True

    @property
    def has_components(self) -> bool:
        return any(getattr(self, f) is not None for f in COMPONENT_FIELDS)


POSITIONAL_COLUMNS = ColumnMap(
    date=0,
    regular_dividend=3,
    special_dividend=4,
    long_term_gains=5,
    short_term_gains=6,
    reinvest_nav=7,
    min_fields=POSITIONAL_MIN_FIELDS,
    positional=True,
)


def resolve_columns(headers: tuple[str, ...] | list[str]) -> ColumnMap:
    """
    Resolve a mutual-fund header into column indices.

    Header-keyed when a date column and at least one amount-bearing column are
    found; otherwise the standard positional layout.
    """
    lowered = [h.strip().lower() for h in headers]
    claimed: set[int] = set()
    found: dict[str, int] = {}
    for name, candidates in FIELD_CANDIDATES:
        for cand in candidates:
            idx = next((i for i, h in enumerate(lowered) if i not in claimed and cand in h), None)
            if idx is not None:
                found[name] = idx
                claimed.add(idx)
                break

    has_amount = "amount" in found or any(f in found for f in COMPONENT_FIELDS)
    if "date" not in found or not has_amount:
        logger.debug("Header %r not recognized; using positional columns", list(headers))
        return POSITIONAL_COLUMNS

    return ColumnMap(min_fields=len(lowered), positional=False, **found)


def _split_row(line: str) -> list[str]:
    return [p.strip() for p in line.rstrip("\r\n").split("\t")]


@dataclass
class _BlockBuilder:
    symbol: str
    kind: FundKind
    headers: tuple[str, ...] = ()
    columns: ColumnMap = POSITIONAL_COLUMNS
    expect_header: bool = True
    records: list[DistributionRecord] = field(default_factory=list)
    issues: list[str] = field(default_factory=list)

    def _issue(self, line_no: int, msg: str) -> None:
        text = f"{self.symbol} line {line_no}: {msg}"
        self.issues.append(text)
        logger.debug(text)

    def _number(self, raw: str, what: str, line_no: int) -> float:
        value = parse_amount(raw)
        if value is None:
            self._issue(line_no, f"non-numeric {what} {raw!r} treated as 0")
            return 0.0
        return value

    def _date(self, raw: str, line_no: int):
        d = normalize_date(raw)
        if not is_canonical(d):
            self._issue(line_no, f"unrecognized date {raw!r}; excluded from date ordering")
        return d

    def feed(self, line: str, line_no: int) -> None:
        if self.expect_header:
            # Surrounding whitespace (including a trailing tab) is not a column.
            self.headers = tuple(_split_row(line.strip()))
            if self.kind is FundKind.MUTUAL:
                self.columns = resolve_columns(self.headers)
            self.expect_header = False
            return
        fields = _split_row(line)
        if self.kind is FundKind.MONEY_MARKET:
            self._feed_money_market(fields, line_no)
        else:
            self._feed_mutual(fields, line_no)

    def _feed_money_market(self, fields: list[str], line_no: int) -> None:
        if len(fields) != MMF_FIELD_COUNT:
            self._issue(line_no, f"expected {MMF_FIELD_COUNT} fields (rate, date), got {len(fields)}; skipped")
            return
        raw_rate, raw_date = fields
        self.records.append(
            DistributionRecord(
                date=self._date(raw_date, line_no),
                amount_per_unit=self._number(raw_rate, "rate", line_no),
                raw_amount=raw_rate,
                line_no=line_no,
            )
        )

    def _feed_mutual(self, fields: list[str], line_no: int) -> None:
        cols = self.columns
        if len(fields) < cols.min_fields:
            self._issue(line_no, f"expected at least {cols.min_fields} fields, got {len(fields)}; skipped")
            return

        def _col(name: str) -> str | None:
            idx = getattr(cols, name)
            return None if idx is None else fields[idx]

        breakdown = None
        if cols.has_components:
            parts = {}
            for name in COMPONENT_FIELDS:
                raw = _col(name)
                parts[name] = 0.0 if raw is None else self._number(raw, name.replace("_", " "), line_no)
            breakdown = DistributionBreakdown(**parts)
            total = breakdown.total
            raw_amount = "\t".join(_col(n) or "" for n in COMPONENT_FIELDS)
        else:
            raw_amount = _col("amount") or ""
            total = self._number(raw_amount, "distribution amount", line_no)

        reinvest_nav = None
        raw_nav = _col("reinvest_nav")
        if raw_nav:
            nav = parse_amount(raw_nav)
            if nav is None:
                self._issue(line_no, f"non-numeric reinvest NAV {raw_nav!r} ignored")
            elif nav > 0:
                reinvest_nav = nav

        self.records.append(
            DistributionRecord(
                date=self._date(fields[cols.date], line_no),
                amount_per_unit=total,
                breakdown=breakdown,
                reinvest_nav=reinvest_nav,
                raw_amount=raw_amount,
                line_no=line_no,
            )
        )

    def build(self) -> FundDistributions:
        if self.issues:
            logger.warning("%s: %d distribution row issue(s)", self.symbol, len(self.issues))
        return FundDistributions(
            symbol=self.symbol,
            kind=self.kind,
            headers=self.headers,
            records=tuple(self.records),
            issues=tuple(self.issues),
        )


def parse_distribution_text(text: str, fund_kinds: Mapping[str, FundKind]) -> dict[str, FundDistributions]:
    """
    Parse a combined multi-fund distribution file.

    `fund_kinds` maps ticker -> FundKind; only those tickers start a block.
    Other ticker-looking lines start a block that is skipped. A repeated ticker
    appends to its earlier block.
    """
    kinds = {str(k).strip().upper(): v for k, v in fund_kinds.items()}
    blocks: dict[str, _BlockBuilder] = {}
    current: _BlockBuilder | None = None
    skipping: str | None = None

    for line_no, line in enumerate((text or "").splitlines(), start=1):
        stripped = line.strip()
        if not stripped:
            current = None
            skipping = None
            continue

        token = stripped.upper()
        if "\t" not in stripped and token in kinds:
            current = blocks.get(token)
            if current is None:
                current = blocks[token] = _BlockBuilder(symbol=token, kind=kinds[token])
            current.expect_header = True
            skipping = None
            continue

        if current is not None and current.expect_header:
            current.feed(line, line_no)
            continue

        if "\t" not in stripped and _TICKER_LINE.match(stripped):
            logger.info("Skipping block for unconfigured symbol %s (line %d)", stripped, line_no)
            if current is not None:
                current._issue(line_no, f"block ended by unconfigured symbol line {stripped!r}; later rows skipped")
                logger.warning("%s block cut short at line %d by %r", current.symbol, line_no, stripped)
            current = None
            skipping = stripped
            continue

        if current is None:
            if skipping is None:
                logger.warning("Line %d is outside any fund block; skipped", line_no)
            continue

        current.feed(line, line_no)

    return {sym: b.build() for sym, b in blocks.items()}


def parse_fund_file(text: str, symbol: str, kind: FundKind) -> FundDistributions:
    """Parse a single-fund file: header line then data lines, no symbol line."""
    builder = _BlockBuilder(symbol=symbol.strip().upper(), kind=kind)
    for line_no, line in enumerate((text or "").splitlines(), start=1):
        if not line.strip():
            continue
        builder.feed(line, line_no)
    return builder.build()
