"""Time series points for probability history, stock prices and their overlay."""

from __future__ import annotations

from typing import NamedTuple

from pydantic import BaseModel


class PricePoint(NamedTuple):
    """(unix seconds, value). Probability or currency depending on the series."""

    timestamp: int
    value: float


class AlignedPoint(BaseModel):
    """Probability sample with the nearest stock price inside the window, if any."""

    timestamp: int
    probability: float
    matched_price: float | None = None


class Overlay(BaseModel):
    """Aligned probability/stock series for one market and retailer."""

    retailer: str
    symbol: str
    token_id: str
    window_sec: int
    points: list[AlignedPoint]

    @property
    def matched_count(self) -> int:
        return sum(1 for p in self.points if p.matched_price is not None)
