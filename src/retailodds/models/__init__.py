"""Canonical schema (Pydantic) - markets, snapshots, series."""

from retailodds.models.market import (
    BUCKETS,
    OTHER_BUCKET,
    POLYMARKET_EVENT_URL,
    RETAILERS,
    NormalizedMarket,
    Retailer,
    RetailerSnapshot,
    SourceReport,
    StockQuote,
)
from retailodds.models.series import AlignedPoint, Overlay, PricePoint

__all__ = [
    "BUCKETS",
    "OTHER_BUCKET",
    "POLYMARKET_EVENT_URL",
    "RETAILERS",
    "NormalizedMarket",
    "Retailer",
    "RetailerSnapshot",
    "SourceReport",
    "StockQuote",
    "AlignedPoint",
    "Overlay",
    "PricePoint",
]
