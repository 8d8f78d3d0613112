"""Pydantic schemas for API request/response consistency and OpenAPI docs."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from retailodds.models import NormalizedMarket, StockQuote


# --- Health ---
class HealthResponse(BaseModel):
    status: str = "ok"
    registry_version: str | None = None


# --- Error (consistent shape for 4xx/5xx) ---
class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Human-readable message")
    code: str | None = Field(None, description="Machine-readable code, e.g. cycle_failed, invalid_retailer")


# --- Markets ---
class EarningsResponse(BaseModel):
    retailer: str | None = None
    earnings: list[NormalizedMarket]


class HistoryPoint(BaseModel):
    timestamp: int
    price: float


class HistoryResponse(BaseModel):
    token_id: str
    history: list[HistoryPoint]


# --- Stocks ---
class StocksResponse(BaseModel):
    stocks: dict[str, StockQuote] = Field(..., description="Keyed by lowercase ticker")
    timestamp: datetime


class StockHistoryResponse(BaseModel):
    symbol: str
    retailer: str
    history: list[HistoryPoint]
    timestamp: datetime
