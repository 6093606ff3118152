from __future__ import annotations

import logging
from pathlib import Path

import requests
from requests.exceptions import RequestException

from reinvest.distributions.models import FundKind
from reinvest.errors import DistributionSourceError

logger = logging.getLogger(__name__)


def is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def distribution_file_name(symbol: str, kind: FundKind) -> str:
    prefix = "mmf" if kind is FundKind.MONEY_MARKET else "mutual"
    return f"{prefix}_{symbol.strip().upper()}_distributions.txt"


def distribution_source_for(symbol: str, kind: FundKind, base: str) -> str:
    """Location of a per-fund distribution file under `base` (directory or URL prefix)."""
    name = distribution_file_name(symbol, kind)
    if is_url(base):
        return base.rstrip("/") + "/" + name
    return str(Path(base) / name)


def read_distribution_text(source: str, *, timeout: float = 15.0) -> str:
    """
    Read distribution text from a local path or an http(s) URL.

    Raises DistributionSourceError when the source is missing or unreachable.
    """
    if is_url(source):
        try:
            r = requests.get(source, timeout=timeout)
            r.raise_for_status()
        except RequestException as e:
            raise DistributionSourceError(source, str(e)) from e
        logger.debug("Fetched %d chars from %s", len(r.text), source)
        return r.text

    path = Path(source)
    if not path.exists():
        raise DistributionSourceError(source, "file not found")
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise DistributionSourceError(source, str(e)) from e
