"""FastAPI backend for the retail markets dashboard."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from retailodds.api.schemas import (
    EarningsResponse,
    ErrorResponse,
    HealthResponse,
    HistoryPoint,
    HistoryResponse,
    StockHistoryResponse,
    StocksResponse,
)
from retailodds.classify.earnings import earnings_markets
from retailodds.classify.patterns import default_registry
from retailodds.config import Settings, get_settings
from retailodds.errors import CycleFailedError, SourceUnavailableError
from retailodds.ingestion.manager import FetchCycle
from retailodds.ingestion.polymarket.clob import ClobClient, default_window
from retailodds.ingestion.polymarket.gamma import GammaClient
from retailodds.ingestion.yahoo import YahooClient
from retailodds.models import RETAILERS, NormalizedMarket, Overlay, RetailerSnapshot
from retailodds.series.overlay import build_overlay

log = structlog.get_logger(__name__)

# Set by run_api() so the app factory picks up the CLI profile.
_config_profile: str | None = None


def _error_json(code: str, message: str, status_code: int = 404) -> JSONResponse:
    """Return consistent error JSON: { detail, code }."""
    return JSONResponse(
        status_code=status_code,
        content={"detail": message, "code": code},
    )


def _invalid_retailer(retailer: str) -> JSONResponse:
    return _error_json(
        "invalid_retailer",
        f"Invalid or missing retailer: {retailer!r} (expected one of {', '.join(RETAILERS)})",
        status_code=400,
    )


def create_app(
    settings: Settings | None = None,
    *,
    gamma: GammaClient | None = None,
    clob: ClobClient | None = None,
    yahoo: YahooClient | None = None,
) -> FastAPI:
    """Build the app. Clients not passed in are created from settings at startup."""
    settings = settings or get_settings(_config_profile)
    registry = default_registry()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        timeout = settings.request_timeout_sec
        app.state.gamma = gamma or GammaClient(
            settings.gamma_api_base, market_url_base=settings.market_url_base, timeout=timeout
        )
        app.state.clob = clob or ClobClient(
            settings.clob_api_base, fidelity_min=settings.history_fidelity_min, timeout=timeout
        )
        app.state.yahoo = yahoo or YahooClient(
            settings.yahoo_chart_base,
            interval=settings.stock_interval,
            shares_outstanding=settings.shares_outstanding,
            user_agent=settings.user_agent,
            timeout=timeout,
        )
        app.state.cycle = FetchCycle.from_settings(settings, app.state.gamma, registry=registry)
        yield
        for client in (app.state.gamma, app.state.clob, app.state.yahoo):
            await client.aclose()

    app = FastAPI(title="RetailOdds API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok", registry_version=registry.version)

    @app.get(
        "/markets",
        response_model=RetailerSnapshot,
        responses={503: {"description": "Every market source failed", "model": ErrorResponse}},
    )
    async def markets(request: Request):
        """Run one fetch cycle and return retailer buckets plus the earnings feed."""
        try:
            return await request.app.state.cycle.run()
        except CycleFailedError as e:
            return _error_json("cycle_failed", str(e), status_code=503)

    @app.get(
        "/markets/earnings",
        response_model=EarningsResponse,
        responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    )
    async def markets_earnings(request: Request, retailer: str | None = Query(None)):
        """Earnings feed; with ?retailer=, that retailer's bucket filtered to earnings markets."""
        if retailer is None:
            earnings = await _earnings_feed(request.app.state.gamma, settings.earnings_limit)
            return EarningsResponse(earnings=earnings)
        if retailer not in RETAILERS:
            return _invalid_retailer(retailer)
        try:
            snapshot = await request.app.state.cycle.run()
        except CycleFailedError as e:
            return _error_json("cycle_failed", str(e), status_code=503)
        return EarningsResponse(
            retailer=retailer,
            earnings=earnings_markets(snapshot.retailers[retailer], registry),
        )

    @app.get(
        "/markets/resolved",
        response_model=EarningsResponse,
        responses={400: {"model": ErrorResponse}},
    )
    async def markets_resolved(request: Request, retailer: str = Query("walmart")):
        """Closed earnings markets for a retailer, newest first."""
        if retailer not in RETAILERS:
            return _invalid_retailer(retailer)
        resolved = await request.app.state.gamma.fetch_resolved_earnings(
            retailer,
            earnings_tag_id=settings.earnings_tag_id,
            stocks_tag_id=settings.stocks_tag_id,
            registry=registry,
        )
        return EarningsResponse(retailer=retailer, earnings=resolved)

    @app.get("/markets/history", response_model=HistoryResponse)
    async def markets_history(request: Request, token_id: str = Query(..., description="CLOB outcome token id")):
        start_ts, end_ts = default_window(settings.history_days)
        points = await request.app.state.clob.fetch_price_series(token_id, start_ts, end_ts)
        return HistoryResponse(
            token_id=token_id,
            history=[HistoryPoint(timestamp=p.timestamp, price=p.value) for p in points],
        )

    @app.get("/stocks", response_model=StocksResponse)
    async def stocks(request: Request) -> StocksResponse:
        """Latest quotes for the four retailer tickers; failed lookups are left out."""
        symbols = [registry.ticker(r) for r in registry.order]
        quotes = await asyncio.gather(*(request.app.state.yahoo.fetch_quote(s) for s in symbols))
        return StocksResponse(
            stocks={q.symbol.lower(): q for q in quotes if q is not None},
            timestamp=datetime.now(timezone.utc),
        )

    @app.get(
        "/stocks/history",
        response_model=StockHistoryResponse,
        responses={400: {"model": ErrorResponse}},
    )
    async def stocks_history(
        request: Request,
        retailer: str = Query(...),
        start_ts: int | None = Query(None),
        end_ts: int | None = Query(None),
    ):
        if retailer not in RETAILERS:
            return _invalid_retailer(retailer)
        default_start, default_end = default_window(settings.history_days)
        symbol = registry.ticker(retailer)
        points = await request.app.state.yahoo.fetch_stock_series(
            symbol,
            start_ts if start_ts is not None else default_start,
            end_ts if end_ts is not None else default_end,
        )
        return StockHistoryResponse(
            symbol=symbol,
            retailer=retailer,
            history=[HistoryPoint(timestamp=p.timestamp, price=p.value) for p in points],
            timestamp=datetime.now(timezone.utc),
        )

    @app.get("/overlay", response_model=Overlay, responses={400: {"model": ErrorResponse}})
    async def overlay(
        request: Request,
        retailer: str = Query(...),
        token_id: str = Query(..., description="CLOB outcome token id"),
        window_sec: int | None = Query(None, ge=0, description="Alignment window (default from config)"),
    ):
        """Market probability history aligned against the retailer's stock price."""
        if retailer not in RETAILERS:
            return _invalid_retailer(retailer)
        return await build_overlay(
            retailer,
            token_id,
            request.app.state.clob,
            request.app.state.yahoo,
            registry=registry,
            window_sec=window_sec if window_sec is not None else settings.align_window_sec,
            history_days=settings.history_days,
        )

    return app


async def _earnings_feed(gamma: GammaClient, limit: int) -> list[NormalizedMarket]:
    try:
        return await gamma.fetch_earnings_markets(limit)
    except SourceUnavailableError as e:
        log.warning("source_failed", source=e.source, reason=e.reason)
        return []


def run_api(
    host: str = "127.0.0.1",
    port: int = 8000,
    profile: str | None = None,
) -> None:
    global _config_profile
    _config_profile = profile
    import uvicorn
    uvicorn.run("retailodds.api.main:create_app", factory=True, host=host, port=port, reload=False)
