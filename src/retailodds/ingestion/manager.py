"""Fetch cycle orchestrator - concurrent source fan-out, degraded merge, retailer snapshot."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import structlog

from retailodds.aggregation.aggregator import (
    PRIORITY_GENERAL_EVENTS,
    PRIORITY_GENERAL_MARKETS,
    PRIORITY_STOCKS_TAG,
    PRIORITY_TICKER_TAG,
    SourceBatch,
    aggregate,
)
from retailodds.classify.patterns import PatternRegistry, default_registry
from retailodds.errors import CycleFailedError, SourceUnavailableError
from retailodds.ingestion.polymarket.gamma import GammaClient
from retailodds.models import NormalizedMarket, RetailerSnapshot, SourceReport

log = structlog.get_logger(__name__)


@dataclass
class SourceSpec:
    """One listing to fetch in a cycle and where it sits in the merge order."""

    name: str
    priority: int
    fetch: Callable[[], Awaitable[list[NormalizedMarket]]]
    stock_titles: bool = False


class FetchCycle:
    """Runs one stateless fetch cycle: every listing concurrently, then aggregate.

    A failed listing contributes an empty batch; only a cycle in which every
    listing failed raises CycleFailedError.
    """

    def __init__(
        self,
        gamma: GammaClient,
        *,
        registry: PatternRegistry | None = None,
        markets_limit: int = 200,
        events_limit: int = 200,
        stocks_tag_id: str = "604",
        stocks_tag_limit: int = 500,
        ticker_tag_ids: dict[str, str] | None = None,
        ticker_tag_limit: int = 50,
        earnings_limit: int = 25,
        include_earnings: bool = True,
    ):
        self.gamma = gamma
        self.registry = registry or default_registry()
        self.markets_limit = markets_limit
        self.events_limit = events_limit
        self.stocks_tag_id = stocks_tag_id
        self.stocks_tag_limit = stocks_tag_limit
        self.ticker_tag_ids = ticker_tag_ids if ticker_tag_ids is not None else {"amazon": "102681"}
        self.ticker_tag_limit = ticker_tag_limit
        self.earnings_limit = earnings_limit
        self.include_earnings = include_earnings
        self._cycle_count = 0
        self._last_duration_sec: float | None = None
        self._last_reports: list[SourceReport] = []

    @classmethod
    def from_settings(cls, settings: Any, gamma: GammaClient | None = None, **kwargs: Any) -> FetchCycle:
        gamma = gamma or GammaClient(
            settings.gamma_api_base,
            market_url_base=settings.market_url_base,
            timeout=settings.request_timeout_sec,
        )
        return cls(
            gamma,
            markets_limit=settings.markets_limit,
            events_limit=settings.events_limit,
            stocks_tag_id=settings.stocks_tag_id,
            stocks_tag_limit=settings.stocks_tag_limit,
            ticker_tag_ids=settings.ticker_tag_ids,
            ticker_tag_limit=settings.ticker_tag_limit,
            earnings_limit=settings.earnings_limit,
            **kwargs,
        )

    def source_plan(self) -> list[SourceSpec]:
        """Listings for one cycle, ticker tags first, general listings last."""
        plan = [
            SourceSpec(
                name=f"ticker_tag:{retailer}",
                priority=PRIORITY_TICKER_TAG,
                fetch=lambda tag_id=tag_id: self.gamma.fetch_events_by_tag(tag_id, self.ticker_tag_limit),
                stock_titles=True,
            )
            for retailer, tag_id in self.ticker_tag_ids.items()
        ]
        plan.append(
            SourceSpec(
                name="stocks_tag",
                priority=PRIORITY_STOCKS_TAG,
                fetch=lambda: self.gamma.fetch_events_by_tag(self.stocks_tag_id, self.stocks_tag_limit),
                stock_titles=True,
            )
        )
        plan.append(
            SourceSpec(
                name="active_markets",
                priority=PRIORITY_GENERAL_MARKETS,
                fetch=lambda: self.gamma.fetch_active_markets(self.markets_limit),
            )
        )
        plan.append(
            SourceSpec(
                name="active_events",
                priority=PRIORITY_GENERAL_EVENTS,
                fetch=lambda: self.gamma.fetch_active_events(self.events_limit),
            )
        )
        return plan

    async def _run_source(self, spec: SourceSpec) -> tuple[SourceBatch, SourceReport]:
        try:
            markets = await spec.fetch()
        except SourceUnavailableError as e:
            log.warning("source_failed", source=spec.name, reason=e.reason)
            return (
                SourceBatch(spec.name, spec.priority, stock_titles=spec.stock_titles),
                SourceReport(name=spec.name, priority=spec.priority, ok=False, error=e.reason),
            )
        log.debug("source_fetched", source=spec.name, count=len(markets))
        return (
            SourceBatch(spec.name, spec.priority, markets, stock_titles=spec.stock_titles),
            SourceReport(name=spec.name, priority=spec.priority, ok=True, count=len(markets)),
        )

    async def _fetch_earnings(self) -> list[NormalizedMarket]:
        if not self.include_earnings:
            return []
        try:
            return await self.gamma.fetch_earnings_markets(self.earnings_limit)
        except SourceUnavailableError as e:
            log.warning("source_failed", source="earnings", reason=e.reason)
            return []

    async def run(self) -> RetailerSnapshot:
        """Fetch every listing, merge, and bucket. Raises CycleFailedError if all listings failed."""
        start = time.monotonic()
        plan = self.source_plan()
        results, earnings = await asyncio.gather(
            asyncio.gather(*(self._run_source(spec) for spec in plan)),
            self._fetch_earnings(),
        )
        batches = [batch for batch, _ in results]
        reports = [report for _, report in results]
        self._cycle_count += 1
        self._last_reports = reports
        self._last_duration_sec = time.monotonic() - start
        if reports and not any(r.ok for r in reports):
            failures = {r.name: r.error or "" for r in reports}
            log.error("cycle_failed", failures=failures)
            raise CycleFailedError(failures)
        buckets = aggregate(batches, self.registry)
        snapshot = RetailerSnapshot(
            retailers=buckets,
            earnings=earnings,
            sources=reports,
            timestamp=datetime.now(timezone.utc),
        )
        log.info(
            "cycle_complete",
            duration_sec=round(self._last_duration_sec, 2),
            degraded=snapshot.degraded,
            **{bucket: len(markets) for bucket, markets in buckets.items()},
        )
        return snapshot

    def get_status(self) -> dict[str, Any]:
        """Return cycle_count, last_duration_sec and the last cycle's source reports."""
        return {
            "cycle_count": self._cycle_count,
            "last_duration_sec": round(self._last_duration_sec, 2) if self._last_duration_sec is not None else None,
            "sources": [r.model_dump() for r in self._last_reports],
        }

    async def close(self) -> None:
        await self.gamma.aclose()
