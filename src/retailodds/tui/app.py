"""Textual TUI dashboard - cycle health and retailer bucket table."""

from __future__ import annotations

from typing import Any

from textual.app import App, ComposeResult
from textual.reactive import reactive
from textual.widgets import DataTable, Footer, Header, Static

from retailodds.errors import CycleFailedError
from retailodds.ingestion.manager import FetchCycle
from retailodds.metrics import consensus, format_probability, format_volume
from retailodds.models import BUCKETS, RetailerSnapshot


class CyclePanel(Static):
    """Last fetch cycle: status, source health, timing."""

    status = reactive("Starting...")
    sources_ok = reactive(0)
    sources_total = reactive(0)
    duration_sec = reactive(0.0)

    def render(self) -> str:
        return (
            f"[bold]Status[/] {self.status}  |  "
            f"Sources: {self.sources_ok}/{self.sources_total}  |  "
            f"Cycle: {self.duration_sec:.1f}s"
        )


class MarketTable(DataTable):
    """Markets per bucket, volume-sorted within each bucket."""

    COLUMNS = ("Bucket", "Yes", "Consensus", "Volume", "Question")

    def on_mount(self) -> None:
        self.add_columns(*self.COLUMNS)

    def show(self, snapshot: RetailerSnapshot, per_bucket: int = 15) -> None:
        self.clear(columns=True)
        self.add_columns(*self.COLUMNS)
        for bucket in BUCKETS:
            for m in snapshot.retailers.get(bucket, [])[:per_bucket]:
                question = m.question
                self.add_row(
                    bucket,
                    format_probability(m.yes_price),
                    consensus(m.yes_price),
                    format_volume(m.volume),
                    question[:70] + "..." if len(question) > 70 else question,
                )


class RetailOddsTUI(App[None]):
    """RetailOdds TUI - retailer buckets from one fetch cycle, refreshed on demand."""

    TITLE = "RetailOdds"
    BINDINGS = [("q", "quit", "Quit"), ("r", "refresh", "Refresh")]

    def __init__(self, cycle: FetchCycle, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._cycle = cycle

    def compose(self) -> ComposeResult:
        yield Header()
        yield CyclePanel(id="cycle")
        yield MarketTable(id="markets")
        yield Footer()

    def on_mount(self) -> None:
        self.run_worker(self._run_cycle(), exclusive=True)

    def action_refresh(self) -> None:
        self.query_one(CyclePanel).status = "Refreshing..."
        self.run_worker(self._run_cycle(), exclusive=True)

    async def _run_cycle(self) -> None:
        panel = self.query_one(CyclePanel)
        try:
            snapshot = await self._cycle.run()
        except CycleFailedError:
            panel.status = "All sources failed - press r to retry"
            panel.sources_ok = 0
            return
        status = self._cycle.get_status()
        panel.status = "Partial data" if snapshot.degraded else "OK"
        panel.sources_ok = sum(1 for s in snapshot.sources if s.ok)
        panel.sources_total = len(snapshot.sources)
        panel.duration_sec = status["last_duration_sec"] or 0.0
        self.query_one(MarketTable).show(snapshot)

    async def on_unmount(self) -> None:
        await self._cycle.close()


def run_tui(settings: Any) -> None:
    """Entry point: build the fetch cycle from settings and run the TUI."""
    app = RetailOddsTUI(FetchCycle.from_settings(settings))
    app.run()
