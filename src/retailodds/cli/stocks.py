"""Stocks subcommand: quotes and the probability/stock overlay."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import typer

from retailodds.classify.patterns import default_registry
from retailodds.ingestion.polymarket.clob import ClobClient
from retailodds.ingestion.yahoo import YahooClient
from retailodds.metrics import format_probability
from retailodds.models import RETAILERS, Overlay, StockQuote
from retailodds.series.overlay import build_overlay

app = typer.Typer(help="Retailer stock quotes and market/stock overlays")


def _yahoo(settings) -> YahooClient:
    return YahooClient(
        settings.yahoo_chart_base,
        interval=settings.stock_interval,
        shares_outstanding=settings.shares_outstanding,
        user_agent=settings.user_agent,
        timeout=settings.request_timeout_sec,
    )


@app.command("quotes")
def quotes(ctx: typer.Context) -> None:
    """Latest price, daily change and market cap for WMT, AMZN, COST, TGT."""
    settings = ctx.obj["settings"]
    registry = default_registry()

    async def _run() -> list[StockQuote | None]:
        async with _yahoo(settings) as yahoo:
            return await asyncio.gather(*(yahoo.fetch_quote(registry.ticker(r)) for r in registry.order))

    for q in asyncio.run(_run()):
        if q is None:
            continue
        typer.echo(
            f"  {q.symbol:<5} {q.name:<8} ${q.price:>9.2f}  {q.change_percent:+6.2f}%  "
            f"cap ${q.market_cap / 1e9:,.1f}B"
        )


@app.command("overlay")
def overlay(
    ctx: typer.Context,
    retailer: str = typer.Option(..., "--retailer", "-r"),
    token_id: str = typer.Option(..., "--token-id", "-t", help="CLOB outcome token id (usually the Yes token)"),
    window_sec: int | None = typer.Option(None, "--window", help="Alignment window in seconds"),
) -> None:
    """Align a market's probability history with the retailer's stock price."""
    if retailer not in RETAILERS:
        typer.echo(f"Unknown retailer {retailer!r}; choose from {', '.join(RETAILERS)}")
        raise typer.Exit(2)
    settings = ctx.obj["settings"]

    async def _run() -> Overlay:
        async with ClobClient(
            settings.clob_api_base,
            fidelity_min=settings.history_fidelity_min,
            timeout=settings.request_timeout_sec,
        ) as clob, _yahoo(settings) as yahoo:
            return await build_overlay(
                retailer,
                token_id,
                clob,
                yahoo,
                window_sec=window_sec if window_sec is not None else settings.align_window_sec,
                history_days=settings.history_days,
            )

    result = asyncio.run(_run())
    for p in result.points:
        when = datetime.fromtimestamp(p.timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")
        price = f"${p.matched_price:.2f}" if p.matched_price is not None else "-"
        typer.echo(f"  {when}  {format_probability(p.probability):>6}  {result.symbol} {price}")
    typer.echo(f"Points: {len(result.points)}, matched: {result.matched_count}")
