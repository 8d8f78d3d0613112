"""Retailer keyword and exclusion rule registry.

The registry is plain immutable data, built once at startup with
``default_registry()`` and handed to the classifier, the earnings rules and the
aggregator. Exclusion rules are versioned: each carries the false positive it
was added for, and ``tests/test_patterns.py`` replays every example so that a
new rule cannot silently change an older classification.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache

from retailodds.models.market import RETAILERS, Retailer

REGISTRY_VERSION = "2025.3"


@dataclass(frozen=True)
class ExclusionRule:
    """Regex for a known false-positive context of a retailer keyword."""

    pattern: re.Pattern[str]
    rationale: str
    example: str

    @classmethod
    def of(cls, regex: str, rationale: str, example: str) -> ExclusionRule:
        return cls(re.compile(regex, re.IGNORECASE), rationale, example)

    def search(self, text: str) -> bool:
        return self.pattern.search(text) is not None


@dataclass(frozen=True)
class RetailerPatterns:
    """Keywords, exclusions and display metadata for one retailer."""

    retailer: Retailer
    display_name: str
    ticker: str
    color: str
    keywords: tuple[str, ...]
    exclusions: tuple[ExclusionRule, ...] = ()
    # Matched against stock-event titles only; no exclusions apply there.
    stock_title_regex: str = ""
    keyword_patterns: tuple[re.Pattern[str], ...] = field(init=False, repr=False, compare=False)
    stock_title_pattern: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Whole-word, case-insensitive: "cost" must not fire inside "costume".
        compiled = tuple(re.compile(rf"\b{re.escape(k)}\b", re.IGNORECASE) for k in self.keywords)
        object.__setattr__(self, "keyword_patterns", compiled)
        title_regex = self.stock_title_regex or rf"\b{re.escape(self.ticker)}\b"
        object.__setattr__(self, "stock_title_pattern", re.compile(title_regex))

    def matched_keyword(self, text: str) -> str | None:
        for keyword, pattern in zip(self.keywords, self.keyword_patterns):
            if pattern.search(text):
                return keyword
        return None

    def rejecting_rule(self, text: str) -> ExclusionRule | None:
        for rule in self.exclusions:
            if rule.search(text):
                return rule
        return None

    def matches_stock_title(self, title: str) -> bool:
        return self.stock_title_pattern.search(title) is not None


@dataclass(frozen=True)
class PatternRegistry:
    """Every retailer's patterns, in classification order, plus shared vocabularies."""

    retailers: tuple[RetailerPatterns, ...]
    context_keywords: tuple[str, ...]
    earnings_keywords: tuple[str, ...]
    quarter_markers: tuple[str, ...]
    financial_categories: tuple[str, ...]
    large_cap_tickers: tuple[str, ...]
    version: str = REGISTRY_VERSION

    def get(self, retailer: str) -> RetailerPatterns:
        for patterns in self.retailers:
            if patterns.retailer == retailer:
                return patterns
        raise KeyError(retailer)

    @property
    def order(self) -> tuple[Retailer, ...]:
        return tuple(p.retailer for p in self.retailers)

    def ticker(self, retailer: str) -> str:
        return self.get(retailer).ticker

    def stock_title_retailer(self, title: str) -> Retailer | None:
        """First retailer whose ticker (or company name) appears in a stock-event title."""
        for patterns in self.retailers:
            if patterns.matches_stock_title(title):
                return patterns.retailer
        return None


_AMAZON_EXCLUSIONS = (
    ExclusionRule.of(
        r"amazon\s+mgm",
        "Amazon MGM Studios box-office and awards markets",
        "Will Amazon MGM win Best Picture?",
    ),
    ExclusionRule.of(
        r"amazon\s+river",
        "geography: the river",
        "Will the Amazon River hit a record low water level?",
    ),
    ExclusionRule.of(
        r"amazon\s+rainforest",
        "climate and deforestation markets",
        "Will the Amazon rainforest fire season be severe in 2025?",
    ),
    ExclusionRule.of(
        r"amazon\s+forest",
        "climate and deforestation markets",
        "Will Amazon forest loss exceed 10,000 km2?",
    ),
    ExclusionRule.of(
        r"amazon\s+prime\s+video",
        "streaming viewership and show markets",
        "Will Rings of Power top Amazon Prime Video charts?",
    ),
    ExclusionRule.of(
        r"amazon\s+studios",
        "film studio release markets",
        "Will Amazon Studios release a Bond film in 2026?",
    ),
)

_TARGET_EXCLUSIONS = (
    ExclusionRule.of(
        r"target\s+(range|rate|area|zone|strike|military|attack|bombing|price|audience|demographic)",
        "target used as a noun for rates, strikes or audiences",
        "Will the Fed lower the target range in March?",
    ),
    ExclusionRule.of(
        r"federal\s+funds?\s+target",
        "monetary policy",
        "Will the federal funds target be above 4%?",
    ),
    ExclusionRule.of(
        r"inflation\s+target",
        "central bank inflation goals",
        "Will the Fed hit its 2% inflation target this year?",
    ),
    ExclusionRule.of(
        r"price\s+target",
        "analyst price targets on other tickers",
        "Will NVDA reach the analyst price target?",
    ),
    ExclusionRule.of(
        r"\btarget(s|ed|ing)?\s+(of|by|at|for)\b",
        "verb usage: targets of, targeted by, targeting",
        "Will the embassy be a target for protesters in June?",
    ),
)


def build_registry(
    order: tuple[Retailer, ...] = RETAILERS,
) -> PatternRegistry:
    """Build the registry, retailers laid out in ``order``."""
    by_name = {
        "walmart": RetailerPatterns(
            retailer="walmart",
            display_name="Walmart",
            ticker="WMT",
            color="#0071ce",
            keywords=("walmart", "wmt"),
            stock_title_regex=r"\bWMT\b|(?i:\bwalmart\b)",
        ),
        "amazon": RetailerPatterns(
            retailer="amazon",
            display_name="Amazon",
            ticker="AMZN",
            color="#ff9900",
            keywords=("amzn", "amazon"),
            exclusions=_AMAZON_EXCLUSIONS,
        ),
        # No bare "cost": "Will X cost $100?" is not about Costco.
        "costco": RetailerPatterns(
            retailer="costco",
            display_name="Costco",
            ticker="COST",
            color="#e31837",
            keywords=("costco",),
            stock_title_regex=r"\bCOST\b|(?i:\bcostco\b)",
        ),
        "target": RetailerPatterns(
            retailer="target",
            display_name="Target",
            ticker="TGT",
            color="#cc0000",
            keywords=("tgt", "target"),
            exclusions=_TARGET_EXCLUSIONS,
        ),
    }
    return PatternRegistry(
        retailers=tuple(by_name[r] for r in order),
        context_keywords=(
            "stock", "earnings", "revenue", "eps", "quarter", "fiscal",
            "shares", "price", "market cap", "retail", "acquire", "merger",
        ),
        earnings_keywords=(
            "earnings", "revenue", "eps", "quarterly", "q1", "q2", "q3", "q4",
            "fiscal", "beat", "guidance",
        ),
        quarter_markers=("beat", "q1", "q2", "q3", "q4", "quarter"),
        financial_categories=("finance", "stocks", "equities", "economics"),
        large_cap_tickers=(
            "AAPL", "GOOGL", "GOOG", "MSFT", "AMZN", "META", "NVDA", "TSLA",
            "NFLX", "AMD", "INTC", "JPM", "BAC", "GS", "V", "MA",
        ),
    )


@lru_cache(maxsize=1)
def default_registry() -> PatternRegistry:
    """Process-wide registry instance (immutable, safe to share)."""
    return build_registry()
