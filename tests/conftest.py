"""Shared test helpers: market factories and a fake Gamma API."""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx

from retailodds.models import NormalizedMarket


def make_market(id: str, question: str = "", **kwargs: Any) -> NormalizedMarket:
    kwargs.setdefault("slug", f"slug-{id}")
    kwargs.setdefault("event_slug", kwargs["slug"])
    return NormalizedMarket(id=id, question=question, **kwargs)


def raw_market(id: str, question: str, **kwargs: Any) -> dict[str, Any]:
    """Gamma-shaped market dict with JSON-string encoded outcome fields."""
    row = {
        "id": id,
        "question": question,
        "slug": f"slug-{id}",
        "description": "",
        "category": "",
        "outcomes": json.dumps(["Yes", "No"]),
        "outcomePrices": json.dumps(["0.5", "0.5"]),
        "clobTokenIds": json.dumps([f"{id}-yes", f"{id}-no"]),
        "volume": "100",
        "volumeNum": 100,
        "liquidity": "10",
        "liquidityNum": 10,
        "active": True,
        "closed": False,
    }
    row.update(kwargs)
    return row


def raw_event(id: str, title: str, markets: list[dict[str, Any]], slug: str | None = None) -> dict[str, Any]:
    return {"id": id, "title": title, "slug": slug or f"event-{id}", "markets": markets}


Handler = Callable[[httpx.Request], httpx.Response]


def gamma_handler(
    *,
    markets: list[dict[str, Any]] | None = None,
    events: list[dict[str, Any]] | None = None,
    events_by_tag: dict[str, list[dict[str, Any]]] | None = None,
    earnings: list[dict[str, Any]] | None = None,
    fail: set[str] | None = None,
) -> Handler:
    """Route /markets and /events (by tag_id / tag_slug) to canned payloads.

    ``fail`` names routes answered with HTTP 500: "markets", "events",
    "earnings" or "tag:<id>".
    """
    fail = fail or set()
    events_by_tag = events_by_tag or {}

    def handler(request: httpx.Request) -> httpx.Response:
        params = request.url.params
        if request.url.path.endswith("/markets"):
            route, payload = "markets", markets or []
        elif params.get("tag_slug") == "earnings":
            route, payload = "earnings", earnings or []
        elif params.get("tag_id"):
            tag = params["tag_id"]
            route, payload = f"tag:{tag}", events_by_tag.get(tag, [])
        else:
            route, payload = "events", events or []
        if route in fail:
            return httpx.Response(500, json={"error": "boom"})
        return httpx.Response(200, json=payload)

    return handler


def mock_client(handler: Handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
