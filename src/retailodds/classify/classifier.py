"""Retailer classification: whole-word keywords, exclusion rules, first match wins."""

from __future__ import annotations

from dataclasses import dataclass, field

from retailodds.classify.patterns import PatternRegistry, default_registry
from retailodds.models.market import NormalizedMarket, Retailer


def market_text(market: NormalizedMarket) -> str:
    """Text the classifier sees: event title, question, description."""
    return f"{market.event_title} {market.question} {market.description}"


def classify(text: str, registry: PatternRegistry | None = None) -> Retailer | None:
    """Return the first retailer (in registry order) whose keywords match and exclusions don't.

    A retailer rejected by one of its exclusion rules is skipped; evaluation
    moves on to the next retailer. No scoring across retailers.
    """
    registry = registry or default_registry()
    for patterns in registry.retailers:
        if patterns.matched_keyword(text) is None:
            continue
        if patterns.rejecting_rule(text) is not None:
            continue
        return patterns.retailer
    return None


def classify_market(market: NormalizedMarket, registry: PatternRegistry | None = None) -> Retailer | None:
    return classify(market_text(market), registry)


@dataclass
class RetailerCheck:
    retailer: Retailer
    keyword: str | None = None
    rejected_by: str | None = None  # exclusion regex source

    @property
    def accepted(self) -> bool:
        return self.keyword is not None and self.rejected_by is None


@dataclass
class ClassificationTrace:
    """Per-retailer decision log for one text."""

    text: str
    result: Retailer | None
    checks: list[RetailerCheck] = field(default_factory=list)
    context_keywords: list[str] = field(default_factory=list)


def explain(text: str, registry: PatternRegistry | None = None) -> ClassificationTrace:
    """Like classify(), but records every retailer's keyword hit and rejecting rule.

    Checks stop at the winning retailer, mirroring classify().
    """
    registry = registry or default_registry()
    lowered = text.lower()
    trace = ClassificationTrace(
        text=text,
        result=None,
        context_keywords=[k for k in registry.context_keywords if k in lowered],
    )
    for patterns in registry.retailers:
        check = RetailerCheck(retailer=patterns.retailer, keyword=patterns.matched_keyword(text))
        if check.keyword is not None:
            rule = patterns.rejecting_rule(text)
            if rule is not None:
                check.rejected_by = rule.pattern.pattern
        trace.checks.append(check)
        if check.accepted:
            trace.result = patterns.retailer
            break
    return trace
