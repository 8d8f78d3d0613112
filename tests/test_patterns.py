"""Registry regression: every exclusion rule still rejects the false positive it was added for."""

import dataclasses

import pytest

from retailodds.classify import classify, default_registry
from retailodds.classify.patterns import REGISTRY_VERSION, build_registry

REGISTRY = default_registry()
RULES = [
    (patterns.retailer, rule)
    for patterns in REGISTRY.retailers
    for rule in patterns.exclusions
]


@pytest.mark.parametrize("retailer,rule", RULES, ids=[r.pattern.pattern for _, r in RULES])
def test_exclusion_rule_example(retailer, rule):
    patterns = REGISTRY.get(retailer)
    # The example must trip the keyword, otherwise the rule is not what rejects it.
    assert patterns.matched_keyword(rule.example) is not None
    assert rule.search(rule.example)
    assert classify(rule.example) != retailer
    assert rule.rationale


def test_retail_texts_survive_exclusions():
    assert classify("Will Amazon Prime Day sales beat last year?") == "amazon"
    assert classify("Will Target raise its dividend?") == "target"
    assert classify("Target to reopen stores in Canada?") == "target"


def test_default_order_and_metadata():
    assert REGISTRY.order == ("walmart", "amazon", "costco", "target")
    assert [REGISTRY.ticker(r) for r in REGISTRY.order] == ["WMT", "AMZN", "COST", "TGT"]
    assert REGISTRY.get("walmart").exclusions == ()
    assert REGISTRY.get("costco").keywords == ("costco",)
    assert REGISTRY.version == REGISTRY_VERSION


def test_registry_is_shared_and_immutable():
    assert default_registry() is REGISTRY
    with pytest.raises(dataclasses.FrozenInstanceError):
        REGISTRY.version = "other"  # type: ignore[misc]


def test_unknown_retailer():
    with pytest.raises(KeyError):
        build_registry().get("kroger")


def test_stock_title_retailer():
    assert REGISTRY.stock_title_retailer("COST Up or Down on Friday?") == "costco"
    assert REGISTRY.stock_title_retailer("Walmart weekly close") == "walmart"
    assert REGISTRY.stock_title_retailer("Target (TGT) price target above $150?") == "target"
    assert REGISTRY.stock_title_retailer("Amazon (AMZN) closes green") == "amazon"
    # Bare tickers are case-sensitive; company names are not needed for Amazon or Target.
    assert REGISTRY.stock_title_retailer("Will it cost more?") is None
    assert REGISTRY.stock_title_retailer("Fed inflation target") is None
