from __future__ import annotations


class ReinvestError(Exception):
    """Base error for I/O-edge failures (loaders, sources)."""


class DistributionSourceError(ReinvestError):
    """A distribution file could not be read or downloaded."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class NavSourceError(ReinvestError):
    """Every NAV mirror failed for a symbol."""

    def __init__(self, symbol: str, attempts: list[str]):
        detail = "; ".join(attempts) if attempts else "no mirrors configured"
        super().__init__(f"NAV fetch failed for {symbol}: {detail}")
        self.symbol = symbol
        self.attempts = attempts
