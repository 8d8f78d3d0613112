"""Markets subcommand: list buckets, earnings, resolved earnings, history."""

from __future__ import annotations

import asyncio

import typer

from retailodds.classify.earnings import earnings_markets
from retailodds.errors import CycleFailedError
from retailodds.ingestion.manager import FetchCycle
from retailodds.ingestion.polymarket.gamma import GammaClient
from retailodds.metrics import consensus, format_probability, format_volume
from retailodds.models import BUCKETS, RETAILERS, NormalizedMarket, RetailerSnapshot

app = typer.Typer(help="Retailer market buckets and earnings markets")


def _echo_market(m: NormalizedMarket) -> None:
    question = (m.question or "")[:70]
    typer.echo(
        f"  {format_probability(m.yes_price):>6}  {consensus(m.yes_price):<9}  "
        f"{format_volume(m.volume):>9}  {question}"
    )


def _run_cycle(settings) -> RetailerSnapshot:
    async def _run() -> RetailerSnapshot:
        cycle = FetchCycle.from_settings(settings)
        try:
            return await cycle.run()
        finally:
            await cycle.close()

    return asyncio.run(_run())


@app.command("list")
def list_markets(
    ctx: typer.Context,
    retailer: str | None = typer.Option(None, "--retailer", "-r", help="Only this bucket"),
    limit: int = typer.Option(10, "--limit", "-n", help="Markets shown per bucket"),
) -> None:
    """Run one fetch cycle and print each retailer bucket."""
    if retailer is not None and retailer not in BUCKETS:
        typer.echo(f"Unknown bucket {retailer!r}; choose from {', '.join(BUCKETS)}")
        raise typer.Exit(2)
    try:
        snapshot = _run_cycle(ctx.obj["settings"])
    except CycleFailedError as e:
        typer.echo(f"{e}. Try again shortly.")
        raise typer.Exit(1)
    for bucket in BUCKETS:
        if retailer is not None and bucket != retailer:
            continue
        markets = snapshot.retailers[bucket]
        typer.echo(f"{bucket} ({len(markets)})")
        for m in markets[:limit]:
            _echo_market(m)
    failed = [s.name for s in snapshot.sources if not s.ok]
    if failed:
        typer.echo(f"Partial data: {', '.join(failed)} unavailable")


@app.command("earnings")
def earnings(
    ctx: typer.Context,
    retailer: str | None = typer.Option(
        None, "--retailer", "-r", help="Filter this retailer's bucket instead of the earnings feed"
    ),
) -> None:
    """Earnings markets: the Polymarket earnings feed, or one retailer's earnings markets."""
    if retailer is not None and retailer not in RETAILERS:
        typer.echo(f"Unknown retailer {retailer!r}; choose from {', '.join(RETAILERS)}")
        raise typer.Exit(2)
    try:
        snapshot = _run_cycle(ctx.obj["settings"])
    except CycleFailedError as e:
        typer.echo(f"{e}. Try again shortly.")
        raise typer.Exit(1)
    markets = snapshot.earnings if retailer is None else earnings_markets(snapshot.retailers[retailer])
    for m in markets:
        _echo_market(m)
    typer.echo(f"Total: {len(markets)} earnings markets")


@app.command("resolved")
def resolved(
    ctx: typer.Context,
    retailer: str = typer.Option("walmart", "--retailer", "-r"),
) -> None:
    """Closed earnings markets for a retailer, newest first."""
    if retailer not in RETAILERS:
        typer.echo(f"Unknown retailer {retailer!r}; choose from {', '.join(RETAILERS)}")
        raise typer.Exit(2)
    settings = ctx.obj["settings"]

    async def _run() -> list[NormalizedMarket]:
        async with GammaClient(
            settings.gamma_api_base,
            market_url_base=settings.market_url_base,
            timeout=settings.request_timeout_sec,
        ) as gamma:
            return await gamma.fetch_resolved_earnings(
                retailer,
                earnings_tag_id=settings.earnings_tag_id,
                stocks_tag_id=settings.stocks_tag_id,
            )

    markets = asyncio.run(_run())
    for m in markets:
        typer.echo(f"  {m.end_date or '-':<25}  {format_probability(m.yes_price):>6}  {m.question[:60]}")
    typer.echo(f"Total: {len(markets)} resolved markets")
