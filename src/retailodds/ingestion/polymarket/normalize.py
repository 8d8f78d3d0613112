"""Gamma API market/event dicts -> canonical NormalizedMarket.

Gamma encodes ``outcomes``, ``outcomePrices`` and ``clobTokenIds`` as JSON
strings (sometimes as real lists). Malformed values never raise here: prices
fall back to ``[0, 0]`` and token ids to ``[]``.
"""

from __future__ import annotations

import json
from typing import Any

from retailodds.models import POLYMARKET_EVENT_URL, NormalizedMarket

_MALFORMED_PRICES = [0.0, 0.0]
_DEFAULT_OUTCOMES = ["Yes", "No"]


def _float(s: Any) -> float:
    if s is None or isinstance(s, bool):
        return 0.0
    try:
        return float(s)
    except (TypeError, ValueError):
        return 0.0


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _json_list(value: Any) -> list[Any] | None:
    """Decode a JSON-encoded list (or pass a list through). None means absent; raises on malformed."""
    if value is None or value == "":
        return None
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        decoded = json.loads(value)
        if not isinstance(decoded, list):
            raise ValueError("expected JSON array")
        return decoded
    raise TypeError(f"unsupported type {type(value).__name__}")


def parse_prices(value: Any) -> list[float]:
    try:
        items = _json_list(value)
        if items is None:
            return []
        return [float(p) for p in items]
    except (json.JSONDecodeError, TypeError, ValueError):
        return list(_MALFORMED_PRICES)


def parse_token_ids(value: Any) -> list[str]:
    try:
        items = _json_list(value)
    except (json.JSONDecodeError, TypeError, ValueError):
        return []
    return [str(t) for t in items] if items else []


def parse_outcome_names(value: Any) -> list[str]:
    try:
        items = _json_list(value)
    except (json.JSONDecodeError, TypeError, ValueError):
        items = None
    return [str(n) for n in items] if items else list(_DEFAULT_OUTCOMES)


def coerce_amount(numeric: Any, text: Any) -> float:
    """Numeric field if set, else the decimal string field, else 0.

    Gamma has moved the reliable value between ``volumeNum`` and ``volume``
    (likewise liquidity) across API revisions.
    """
    if isinstance(numeric, (int, float)) and not isinstance(numeric, bool) and numeric:
        return float(numeric)
    return _float(text)


def normalize_market(
    raw: dict[str, Any],
    event_slug: str | None = None,
    *,
    event_title: str | None = None,
    event_id: str | None = None,
    url_base: str = POLYMARKET_EVENT_URL,
) -> NormalizedMarket:
    """Convert a Gamma market object to NormalizedMarket. Never raises on malformed fields."""
    slug = _text(raw.get("slug"))
    return NormalizedMarket(
        id=_text(raw.get("id") or raw.get("conditionId")),
        question=_text(raw.get("question")),
        slug=slug,
        event_slug=event_slug or slug,
        event_id=event_id,
        event_title=event_title or "",
        description=_text(raw.get("description")),
        category=_text(raw.get("category")),
        end_date=_text(raw.get("endDate")) or None,
        outcomes=parse_outcome_names(raw.get("outcomes")),
        prices=parse_prices(raw.get("outcomePrices")),
        clob_token_ids=parse_token_ids(raw.get("clobTokenIds")),
        volume=coerce_amount(raw.get("volumeNum"), raw.get("volume")),
        volume_24h=_float(raw.get("volume24hr")),
        liquidity=coerce_amount(raw.get("liquidityNum"), raw.get("liquidity")),
        price_change_1h=_float(raw.get("oneHourPriceChange")),
        price_change_24h=_float(raw.get("oneDayPriceChange")),
        price_change_1w=_float(raw.get("oneWeekPriceChange")),
        active=bool(raw.get("active", True)),
        closed=bool(raw.get("closed", False)),
        url_base=url_base,
    )


def normalize_event(event: dict[str, Any], url_base: str = POLYMARKET_EVENT_URL) -> list[NormalizedMarket]:
    """Flatten a Gamma event into its markets, each carrying the event's id/title/slug."""
    markets = event.get("markets")
    if not isinstance(markets, list):
        return []
    event_id = _text(event.get("id")) or None
    return [
        normalize_market(
            m,
            _text(event.get("slug")) or None,
            event_title=_text(event.get("title")),
            event_id=event_id,
            url_base=url_base,
        )
        for m in markets
        if isinstance(m, dict)
    ]
