"""Derived display metrics for a market card - probability, volume, consensus, movement."""

from __future__ import annotations

from typing import Literal

from retailodds.models import NormalizedMarket

Consensus = Literal["likely", "unlikely", "uncertain"]


def format_probability(price: float) -> str:
    """0.1234 -> '12.3%'."""
    return f"{price * 100:.1f}%"


def format_volume(volume: float) -> str:
    """Dollar volume, abbreviated: $1.23M, $4.5K, $12."""
    if volume >= 1_000_000:
        return f"${volume / 1_000_000:.2f}M"
    if volume >= 1_000:
        return f"${volume / 1_000:.1f}K"
    return f"${volume:.0f}"


def consensus(price: float) -> Consensus:
    if price >= 0.7:
        return "likely"
    if price <= 0.3:
        return "unlikely"
    return "uncertain"


def has_significant_movement(market: NormalizedMarket, threshold: float = 0.1) -> bool:
    """Absolute 24h price change at or above threshold (probability points)."""
    return abs(market.price_change_24h) >= threshold
