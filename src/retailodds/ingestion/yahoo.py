"""Yahoo Finance chart API client - stock price history and quotes for retailer tickers."""

from __future__ import annotations

from typing import Any

import structlog

from retailodds.errors import SourceUnavailableError
from retailodds.ingestion.base import HttpSource
from retailodds.models import PricePoint, StockQuote

log = structlog.get_logger(__name__)

YAHOO_CHART_BASE = "https://query1.finance.yahoo.com/v8/finance/chart"
DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

COMPANY_NAMES = {"WMT": "Walmart", "AMZN": "Amazon", "COST": "Costco", "TGT": "Target"}


def _first_result(data: Any) -> dict[str, Any] | None:
    if not isinstance(data, dict):
        return None
    results = (data.get("chart") or {}).get("result") or []
    if not results or not isinstance(results[0], dict):
        return None
    return results[0]


def parse_chart_series(data: Any) -> list[PricePoint]:
    """Pair chart timestamps with quote closes, dropping null closes (halts, partial bars)."""
    result = _first_result(data)
    if result is None:
        return []
    timestamps = result.get("timestamp") or []
    quotes = (result.get("indicators") or {}).get("quote") or []
    closes = quotes[0].get("close") if quotes and isinstance(quotes[0], dict) else None
    if not timestamps or not closes:
        return []
    return [
        PricePoint(int(ts), float(close))
        for ts, close in zip(timestamps, closes)
        if close is not None
    ]


def parse_quote(data: Any, symbol: str, shares_outstanding: float = 0.0) -> StockQuote | None:
    result = _first_result(data)
    if result is None:
        return None
    meta = result.get("meta") or {}
    price = float(meta.get("regularMarketPrice") or 0)
    previous_close = float(meta.get("chartPreviousClose") or meta.get("previousClose") or price)
    change = price - previous_close
    change_percent = (change / previous_close) * 100 if previous_close > 0 else 0.0
    return StockQuote(
        symbol=symbol,
        name=COMPANY_NAMES.get(symbol, symbol),
        price=price,
        change=change,
        change_percent=change_percent,
        market_cap=price * shares_outstanding,
    )


class YahooClient(HttpSource):
    """Async Yahoo chart client. Failures log and return [] / None."""

    source_id = "yahoo_chart"

    def __init__(
        self,
        base_url: str = YAHOO_CHART_BASE,
        *,
        interval: str = "1h",
        shares_outstanding: dict[str, float] | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("headers", {"User-Agent": user_agent})
        super().__init__(base_url, **kwargs)
        self.interval = interval
        self.shares_outstanding = shares_outstanding or {}

    async def fetch_stock_series(self, symbol: str, start_ts: int, end_ts: int) -> list[PricePoint]:
        params = {"period1": start_ts, "period2": end_ts, "interval": self.interval}
        try:
            data = await self.get_json(f"/{symbol}", params)
        except SourceUnavailableError as e:
            log.warning("stock_history_failed", symbol=symbol, reason=e.reason)
            return []
        return parse_chart_series(data)

    async def fetch_quote(self, symbol: str) -> StockQuote | None:
        try:
            data = await self.get_json(f"/{symbol}", {"interval": "1d", "range": "1d"})
        except SourceUnavailableError as e:
            log.warning("stock_quote_failed", symbol=symbol, reason=e.reason)
            return None
        return parse_quote(data, symbol, self.shares_outstanding.get(symbol, 0.0))
