"""NormalizedMarket, retailer buckets and the per-cycle snapshot."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, computed_field

Retailer = Literal["walmart", "amazon", "costco", "target"]

# Classification evaluation order. Fixed so that a text naming two retailers
# always lands in the same bucket.
RETAILERS: tuple[Retailer, ...] = ("walmart", "amazon", "costco", "target")
OTHER_BUCKET = "other"
BUCKETS: tuple[str, ...] = RETAILERS + (OTHER_BUCKET,)

POLYMARKET_EVENT_URL = "https://polymarket.com/event"


class NormalizedMarket(BaseModel):
    """Canonical Gamma market with parsed prices, token ids and numeric volume."""

    id: str
    question: str = ""
    slug: str = ""
    event_slug: str = ""  # parent event slug, else the market's own slug
    event_id: str | None = None
    event_title: str = ""
    description: str = ""
    category: str = ""
    end_date: str | None = None
    outcomes: list[str] = Field(default_factory=lambda: ["Yes", "No"])
    prices: list[float] = Field(default_factory=list)
    clob_token_ids: list[str] = Field(default_factory=list)
    volume: float = 0.0
    volume_24h: float = 0.0
    liquidity: float = 0.0
    price_change_1h: float = 0.0
    price_change_24h: float = 0.0
    price_change_1w: float = 0.0
    active: bool = True
    closed: bool = False
    url_base: str = Field(default=POLYMARKET_EVENT_URL, exclude=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def yes_price(self) -> float:
        return self.prices[0] if self.prices and self.prices[0] else 0.0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def no_price(self) -> float:
        return self.prices[1] if len(self.prices) > 1 and self.prices[1] else 0.0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def url(self) -> str:
        return f"{self.url_base.rstrip('/')}/{self.event_slug}"

    @property
    def is_live(self) -> bool:
        return self.active and not self.closed


class SourceReport(BaseModel):
    """Outcome of one upstream listing in a fetch cycle."""

    name: str
    priority: int
    ok: bool
    count: int = 0
    error: str | None = None


class RetailerSnapshot(BaseModel):
    """Result of one fetch cycle: retailer buckets plus the earnings feed."""

    retailers: dict[str, list[NormalizedMarket]]
    earnings: list[NormalizedMarket] = Field(default_factory=list)
    sources: list[SourceReport] = Field(default_factory=list)
    timestamp: datetime

    @property
    def degraded(self) -> bool:
        return any(not s.ok for s in self.sources)


class StockQuote(BaseModel):
    """Latest stock quote for a retailer ticker."""

    symbol: str
    name: str
    price: float
    change: float = 0.0
    change_percent: float = 0.0
    market_cap: float = 0.0
