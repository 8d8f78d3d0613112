"""Merge overlapping market listings into deduplicated, volume-sorted retailer buckets."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import structlog

from retailodds.classify.classifier import classify_market
from retailodds.classify.earnings import is_other_earnings_market
from retailodds.classify.patterns import PatternRegistry, default_registry
from retailodds.models import BUCKETS, OTHER_BUCKET, NormalizedMarket

log = structlog.get_logger(__name__)

# Merge order: company-specific listings before general ones, so the more
# specific source's copy of a market is the one kept.
PRIORITY_TICKER_TAG = 0
PRIORITY_STOCKS_TAG = 1
PRIORITY_GENERAL_MARKETS = 2
PRIORITY_GENERAL_EVENTS = 3


@dataclass
class SourceBatch:
    """Markets returned by one upstream listing, with its merge priority (lower first)."""

    name: str
    priority: int
    markets: list[NormalizedMarket] = field(default_factory=list)
    # Stock-tag listings: assign by ticker in the event title before keyword classification.
    stock_titles: bool = False


def _as_batches(sources: Sequence[SourceBatch | list[NormalizedMarket]]) -> list[SourceBatch]:
    batches = [
        s if isinstance(s, SourceBatch) else SourceBatch(name=f"source_{i}", priority=i, markets=list(s))
        for i, s in enumerate(sources)
    ]
    # sorted() is stable: equal priorities keep the order they were given in.
    return sorted(batches, key=lambda b: b.priority)


def _merged(
    sources: Sequence[SourceBatch | list[NormalizedMarket]],
) -> list[tuple[SourceBatch, NormalizedMarket]]:
    seen: set[str] = set()
    merged: list[tuple[SourceBatch, NormalizedMarket]] = []
    for batch in _as_batches(sources):
        for market in batch.markets:
            if market.id in seen:
                continue
            seen.add(market.id)
            merged.append((batch, market))
    return merged


def merge_sources(sources: Sequence[SourceBatch | list[NormalizedMarket]]) -> list[NormalizedMarket]:
    """Concatenate sources in priority order, dropping repeated market ids (first seen wins)."""
    return [market for _, market in _merged(sources)]


def empty_buckets() -> dict[str, list[NormalizedMarket]]:
    return {bucket: [] for bucket in BUCKETS}


def aggregate(
    sources: Sequence[SourceBatch | list[NormalizedMarket]],
    registry: PatternRegistry | None = None,
) -> dict[str, list[NormalizedMarket]]:
    """Dedup, classify and bucket live markets; each bucket sorted by volume, descending.

    Markets from stock-tag batches are first assigned by the ticker in their
    event title. Unclassified markets go to "other" only if they pass the stricter
    earnings rule; the rest are dropped. Every bucket key is always present.
    """
    registry = registry or default_registry()
    buckets = empty_buckets()
    unclassified = 0
    for batch, market in _merged(sources):
        if not market.is_live:
            continue
        retailer = None
        if batch.stock_titles:
            retailer = registry.stock_title_retailer(market.event_title)
        if retailer is None:
            retailer = classify_market(market, registry)
        if retailer is not None:
            buckets[retailer].append(market)
        elif is_other_earnings_market(market, registry):
            buckets[OTHER_BUCKET].append(market)
        else:
            unclassified += 1
    for markets in buckets.values():
        markets.sort(key=lambda m: m.volume, reverse=True)
    log.debug(
        "aggregate_done",
        unclassified=unclassified,
        **{bucket: len(markets) for bucket, markets in buckets.items()},
    )
    return buckets
