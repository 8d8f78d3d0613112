"""Polymarket CLOB prices-history client - probability series for one outcome token."""

from __future__ import annotations

import time
from typing import Any

import structlog

from retailodds.errors import SourceUnavailableError
from retailodds.ingestion.base import HttpSource
from retailodds.models import PricePoint

log = structlog.get_logger(__name__)

CLOB_API_BASE = "https://clob.polymarket.com"


def parse_history(data: Any) -> list[PricePoint]:
    """``{"history": [{"t": ..., "p": ...}, ...]}`` -> PricePoints; skips malformed rows."""
    if not isinstance(data, dict):
        return []
    out: list[PricePoint] = []
    for row in data.get("history") or []:
        if not isinstance(row, dict):
            continue
        try:
            out.append(PricePoint(int(row["t"]), float(row["p"])))
        except (KeyError, TypeError, ValueError):
            continue
    return out


def default_window(days: int = 7, now: float | None = None) -> tuple[int, int]:
    """(start_ts, end_ts) in seconds covering the last ``days`` days."""
    end_ts = int(now if now is not None else time.time())
    return end_ts - days * 24 * 60 * 60, end_ts


class ClobClient(HttpSource):
    """Async CLOB client. fetch_price_series returns [] on failure."""

    source_id = "clob_history"

    def __init__(self, base_url: str = CLOB_API_BASE, *, fidelity_min: int = 60, **kwargs: Any) -> None:
        super().__init__(base_url, **kwargs)
        self.fidelity_min = fidelity_min

    async def fetch_price_series(self, token_id: str, start_ts: int, end_ts: int) -> list[PricePoint]:
        params = {
            "market": token_id,
            "startTs": start_ts,
            "endTs": end_ts,
            "fidelity": self.fidelity_min,
        }
        try:
            data = await self.get_json("/prices-history", params)
        except SourceUnavailableError as e:
            log.warning("price_history_failed", token_id=token_id, reason=e.reason)
            return []
        return parse_history(data)
