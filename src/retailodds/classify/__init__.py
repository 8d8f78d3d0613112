"""Retailer classification and earnings heuristics."""

from retailodds.classify.classifier import (
    ClassificationTrace,
    classify,
    classify_market,
    explain,
    market_text,
)
from retailodds.classify.earnings import (
    earnings_markets,
    is_earnings_related,
    is_other_earnings_market,
)
from retailodds.classify.patterns import PatternRegistry, build_registry, default_registry

__all__ = [
    "ClassificationTrace",
    "PatternRegistry",
    "build_registry",
    "classify",
    "classify_market",
    "default_registry",
    "earnings_markets",
    "explain",
    "is_earnings_related",
    "is_other_earnings_market",
    "market_text",
]
