"""Exception types raised across the fetch cycle."""

from __future__ import annotations


class RetailOddsError(Exception):
    """Base class for RetailOdds errors."""


class SourceUnavailableError(RetailOddsError):
    """An upstream listing could not be fetched (network error, non-2xx, bad payload)."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class CycleFailedError(RetailOddsError):
    """Every upstream listing failed in one fetch cycle. Callers should offer a retry."""

    def __init__(self, failures: dict[str, str]) -> None:
        names = ", ".join(sorted(failures)) or "none"
        super().__init__(f"All market sources failed: {names}")
        self.failures = failures
