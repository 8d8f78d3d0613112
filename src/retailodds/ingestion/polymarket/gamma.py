"""Polymarket Gamma API client - market and event listings."""

from __future__ import annotations

from typing import Any

import structlog

from retailodds.classify.earnings import is_earnings_related
from retailodds.classify.patterns import PatternRegistry, RetailerPatterns, default_registry
from retailodds.errors import SourceUnavailableError
from retailodds.ingestion.base import HttpSource
from retailodds.ingestion.polymarket.normalize import normalize_event, normalize_market
from retailodds.models import POLYMARKET_EVENT_URL, NormalizedMarket

log = structlog.get_logger(__name__)

GAMMA_API_BASE = "https://gamma-api.polymarket.com"

_LIVE = {"active": "true", "closed": "false"}


def _as_rows(data: Any, source: str) -> list[dict[str, Any]]:
    if isinstance(data, dict):
        data = data.get("data", [data])
    if not isinstance(data, list):
        raise SourceUnavailableError(source, f"unexpected payload type {type(data).__name__}")
    return [row for row in data if isinstance(row, dict)]


def _title_names(patterns: RetailerPatterns, event: dict[str, Any]) -> bool:
    """Event title mentions the retailer and none of its exclusion rules."""
    title = str(event.get("title") or "")
    return patterns.matched_keyword(title) is not None and patterns.rejecting_rule(title) is None


class GammaClient(HttpSource):
    """Async Gamma client. Listing methods raise SourceUnavailableError on failure."""

    source_id = "gamma"

    def __init__(
        self,
        base_url: str = GAMMA_API_BASE,
        *,
        market_url_base: str = POLYMARKET_EVENT_URL,
        **kwargs: Any,
    ) -> None:
        super().__init__(base_url, **kwargs)
        self.market_url_base = market_url_base

    def _normalize_rows(self, rows: list[dict[str, Any]]) -> list[NormalizedMarket]:
        return [normalize_market(row, url_base=self.market_url_base) for row in rows]

    def _flatten_events(self, events: list[dict[str, Any]]) -> list[NormalizedMarket]:
        return [m for event in events for m in normalize_event(event, self.market_url_base)]

    async def fetch_raw_events(self, params: dict[str, Any], *, source: str = "gamma_events") -> list[dict[str, Any]]:
        data = await self.get_json("/events", params, source=source)
        return _as_rows(data, source)

    async def fetch_active_markets(self, limit: int = 200, offset: int = 0) -> list[NormalizedMarket]:
        """General active-markets listing (no parent event metadata)."""
        params = {**_LIVE, "limit": limit, "offset": offset}
        data = await self.get_json("/markets", params, source="gamma_markets")
        return self._normalize_rows(_as_rows(data, "gamma_markets"))

    async def fetch_active_events(self, limit: int = 200, offset: int = 0) -> list[NormalizedMarket]:
        """General active-events listing, flattened to markets."""
        params = {**_LIVE, "limit": limit, "offset": offset}
        return self._flatten_events(await self.fetch_raw_events(params, source="gamma_events"))

    async def fetch_events_by_tag(self, tag_id: str, limit: int = 200) -> list[NormalizedMarket]:
        """Active events under a Gamma tag (e.g. Stocks, or a ticker tag), flattened to markets."""
        params = {**_LIVE, "tag_id": tag_id, "limit": limit}
        return self._flatten_events(await self.fetch_raw_events(params, source=f"gamma_tag_{tag_id}"))

    async def fetch_earnings_markets(self, limit: int = 25) -> list[NormalizedMarket]:
        """Live markets from the earnings category, top ``limit`` by volume."""
        params = {**_LIVE, "tag_slug": "earnings", "limit": 50}
        markets = [
            m
            for m in self._flatten_events(await self.fetch_raw_events(params, source="gamma_earnings"))
            if m.is_live
        ]
        markets.sort(key=lambda m: m.volume, reverse=True)
        return markets[:limit]

    async def fetch_resolved_earnings(
        self,
        retailer: str,
        *,
        earnings_tag_id: str = "1013",
        stocks_tag_id: str = "604",
        registry: PatternRegistry | None = None,
    ) -> list[NormalizedMarket]:
        """Closed earnings markets for one retailer, most recent end date first.

        Looks under the earnings tag first; if nothing turns up, scans the
        stocks tag for the retailer's events whose first market is about earnings.
        """
        registry = registry or default_registry()
        patterns = registry.get(retailer)
        order = {"order": "endDate", "ascending": "false", "limit": 200}
        found: dict[str, NormalizedMarket] = {}

        try:
            events = await self.fetch_raw_events({**order, "tag_id": earnings_tag_id}, source="gamma_earnings_tag")
        except SourceUnavailableError as e:
            log.warning("source_failed", source=e.source, reason=e.reason)
            events = []
        for event in events:
            if not _title_names(patterns, event):
                continue
            for m in self._flatten_events([event]):
                if m.closed:
                    found.setdefault(m.id, m)

        if not found:
            try:
                events = await self.fetch_raw_events({**order, "tag_id": stocks_tag_id}, source="gamma_stocks_tag")
            except SourceUnavailableError as e:
                log.warning("source_failed", source=e.source, reason=e.reason)
                events = []
            for event in events:
                if not _title_names(patterns, event):
                    continue
                markets = self._flatten_events([event])
                if not markets or not is_earnings_related(markets[0], registry):
                    continue
                for m in markets:
                    if m.closed:
                        found.setdefault(m.id, m)

        return sorted(found.values(), key=lambda m: m.end_date or "", reverse=True)
