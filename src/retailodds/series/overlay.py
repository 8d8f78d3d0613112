"""Probability history + retailer stock price -> aligned overlay for charting."""

from __future__ import annotations

import structlog

from retailodds.classify.patterns import PatternRegistry, default_registry
from retailodds.ingestion.base import PriceSource, SeriesSource
from retailodds.ingestion.polymarket.clob import default_window
from retailodds.models import Overlay
from retailodds.series.aligner import DEFAULT_WINDOW_SEC, align

log = structlog.get_logger(__name__)


async def build_overlay(
    retailer: str,
    token_id: str,
    series_source: SeriesSource,
    price_source: PriceSource,
    *,
    registry: PatternRegistry | None = None,
    window_sec: int = DEFAULT_WINDOW_SEC,
    history_days: int = 7,
    now: float | None = None,
) -> Overlay:
    """Fetch the token's recent probability history, then the stock series over the same span, and align."""
    registry = registry or default_registry()
    symbol = registry.ticker(retailer)
    start_ts, end_ts = default_window(history_days, now)
    probabilities = await series_source.fetch_price_series(token_id, start_ts, end_ts)
    stock = []
    if probabilities:
        span_start = min(p.timestamp for p in probabilities)
        span_end = max(p.timestamp for p in probabilities)
        stock = await price_source.fetch_stock_series(symbol, span_start, span_end)
    points = align(probabilities, stock, window_sec)
    overlay = Overlay(
        retailer=retailer,
        symbol=symbol,
        token_id=token_id,
        window_sec=window_sec,
        points=points,
    )
    log.info(
        "overlay_built",
        retailer=retailer,
        token_id=token_id,
        points=len(points),
        matched=overlay.matched_count,
        stock_points=len(stock),
    )
    return overlay
