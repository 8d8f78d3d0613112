"""Source protocols and the shared async HTTP plumbing for upstream APIs."""

from __future__ import annotations

from typing import Any, Protocol

import httpx
import structlog

from retailodds.errors import SourceUnavailableError
from retailodds.models import NormalizedMarket, PricePoint, StockQuote

log = structlog.get_logger(__name__)


class MarketSource(Protocol):
    """Prediction-market listings and probability history."""

    async def fetch_active_markets(self, limit: int = 200, offset: int = 0) -> list[NormalizedMarket]: ...
    async def fetch_active_events(self, limit: int = 200, offset: int = 0) -> list[NormalizedMarket]: ...
    async def fetch_events_by_tag(self, tag_id: str, limit: int = 200) -> list[NormalizedMarket]: ...


class SeriesSource(Protocol):
    """Probability history for one outcome token. Returns [] on failure."""

    async def fetch_price_series(self, token_id: str, start_ts: int, end_ts: int) -> list[PricePoint]: ...


class PriceSource(Protocol):
    """Stock prices. Returns [] / None on failure."""

    async def fetch_stock_series(self, symbol: str, start_ts: int, end_ts: int) -> list[PricePoint]: ...
    async def fetch_quote(self, symbol: str) -> StockQuote | None: ...


class HttpSource:
    """Owns (or borrows) an httpx.AsyncClient and turns transport failures into SourceUnavailableError."""

    source_id: str = ""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 15.0,
        headers: dict[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, headers=headers)

    async def get_json(self, path: str, params: dict[str, Any] | None = None, *, source: str | None = None) -> Any:
        """GET base_url + path and decode JSON. Raises SourceUnavailableError on any failure."""
        name = source or self.source_id
        url = f"{self.base_url}/{path.lstrip('/')}" if path else self.base_url
        try:
            resp = await self._client.get(url, params=params)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            raise SourceUnavailableError(name, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise SourceUnavailableError(name, f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise SourceUnavailableError(name, f"invalid JSON: {e}") from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()
