"""Earnings-market heuristics: focused retailer view and the "other" overflow bucket."""

from __future__ import annotations

import re

from retailodds.classify.patterns import PatternRegistry, default_registry
from retailodds.models.market import NormalizedMarket

_DIGIT = re.compile(r"\$?\d")
_MAGNITUDE = re.compile(r"\$?\d|billion|million")


def is_earnings_related(market: NormalizedMarket, registry: PatternRegistry | None = None) -> bool:
    """Question mentions any earnings vocabulary (plain substring, case-insensitive)."""
    registry = registry or default_registry()
    question = market.question.lower()
    return any(k in question for k in registry.earnings_keywords)


def earnings_markets(
    markets: list[NormalizedMarket], registry: PatternRegistry | None = None
) -> list[NormalizedMarket]:
    """Filter a bucket to its earnings-related markets, keeping order."""
    return [m for m in markets if is_earnings_related(m, registry)]


def is_financial_category(category: str, registry: PatternRegistry | None = None) -> bool:
    registry = registry or default_registry()
    lowered = (category or "").lower()
    return any(c in lowered for c in registry.financial_categories)


def _ticker_pattern(registry: PatternRegistry) -> re.Pattern[str]:
    # Case-sensitive: "V" and "MA" only count as tickers in capitals.
    return re.compile(r"\b(" + "|".join(re.escape(t) for t in registry.large_cap_tickers) + r")\b")


def has_earnings_context(question: str, registry: PatternRegistry | None = None) -> bool:
    """Stricter earnings test used for the overflow bucket."""
    registry = registry or default_registry()
    lowered = question.lower()
    if "earnings" in lowered and any(q in lowered for q in registry.quarter_markers):
        return True
    if "eps" in lowered and _DIGIT.search(lowered):
        return True
    if "revenue" in lowered and _MAGNITUDE.search(lowered):
        return True
    return _ticker_pattern(registry).search(question) is not None


def is_other_earnings_market(market: NormalizedMarket, registry: PatternRegistry | None = None) -> bool:
    """Unclassified market that still belongs in the "other" bucket.

    Requires a financial category and a concrete earnings context (quarter
    marker, EPS/revenue figure, or a large-cap ticker).
    """
    registry = registry or default_registry()
    return is_financial_category(market.category, registry) and has_earnings_context(
        market.question, registry
    )
