"""Upstream clients: payload parsing, failure mapping, resolved-earnings lookup."""

import asyncio

import httpx
import pytest

from retailodds.errors import SourceUnavailableError
from retailodds.ingestion.base import HttpSource
from retailodds.ingestion.polymarket.clob import ClobClient, default_window, parse_history
from retailodds.ingestion.polymarket.gamma import GammaClient
from retailodds.ingestion.yahoo import YahooClient, parse_chart_series, parse_quote
from retailodds.models import PricePoint

from conftest import gamma_handler, mock_client, raw_event, raw_market


def _chart(timestamps, closes, **meta):
    return {
        "chart": {
            "result": [
                {
                    "meta": meta,
                    "timestamp": timestamps,
                    "indicators": {"quote": [{"close": closes}]},
                }
            ]
        }
    }


def _static(status: int = 200, **kwargs):
    return lambda request: httpx.Response(status, **kwargs)


# --- CLOB ---


def test_parse_history_skips_bad_rows():
    data = {"history": [{"t": 100, "p": 0.4}, {"t": "x", "p": 0.5}, {"p": 0.6}, "junk", {"t": 200, "p": "0.7"}]}
    assert parse_history(data) == [PricePoint(100, 0.4), PricePoint(200, 0.7)]
    assert parse_history([]) == []
    assert parse_history({"history": None}) == []


def test_default_window():
    assert default_window(7, now=1_000_000) == (1_000_000 - 7 * 86_400, 1_000_000)


def test_clob_series_request_and_parse():
    seen = {}

    def handler(request):
        seen.update(request.url.params)
        return httpx.Response(200, json={"history": [{"t": 1, "p": 0.25}]})

    clob = ClobClient("https://clob.test", fidelity_min=30, client=mock_client(handler))
    points = asyncio.run(clob.fetch_price_series("tok", 0, 10))
    assert points == [PricePoint(1, 0.25)]
    assert seen["market"] == "tok"
    assert seen["fidelity"] == "30"


def test_clob_series_failure_returns_empty():
    clob = ClobClient("https://clob.test", client=mock_client(_static(500)))
    assert asyncio.run(clob.fetch_price_series("tok", 0, 10)) == []


# --- Yahoo ---


def test_parse_chart_drops_null_closes():
    data = _chart([10, 20, 30], [100.0, None, 102.5])
    assert parse_chart_series(data) == [PricePoint(10, 100.0), PricePoint(30, 102.5)]


@pytest.mark.parametrize("data", [None, {}, {"chart": {"result": []}}, _chart([], [])])
def test_parse_chart_empty(data):
    assert parse_chart_series(data) == []


def test_parse_quote_change_and_market_cap():
    quote = parse_quote(_chart([], [], regularMarketPrice=110.0, chartPreviousClose=100.0), "WMT", 8e9)
    assert quote is not None
    assert quote.name == "Walmart"
    assert quote.change == pytest.approx(10.0)
    assert quote.change_percent == pytest.approx(10.0)
    assert quote.market_cap == pytest.approx(880e9)


def test_parse_quote_without_previous_close():
    quote = parse_quote(_chart([], [], regularMarketPrice=50.0), "XYZ")
    assert quote.change == 0.0
    assert quote.change_percent == 0.0
    assert quote.name == "XYZ"
    assert parse_quote({}, "WMT") is None


def test_yahoo_failures_degrade():
    yahoo = YahooClient("https://yahoo.test", client=mock_client(_static(404)))
    assert asyncio.run(yahoo.fetch_stock_series("WMT", 0, 10)) == []
    assert asyncio.run(yahoo.fetch_quote("WMT")) is None


def test_yahoo_series_uses_symbol_path():
    paths = []

    def handler(request):
        paths.append(request.url.path)
        return httpx.Response(200, json=_chart([5], [1.5]))

    yahoo = YahooClient("https://yahoo.test/chart", client=mock_client(handler))
    assert asyncio.run(yahoo.fetch_stock_series("TGT", 0, 10)) == [PricePoint(5, 1.5)]
    assert paths == ["/chart/TGT"]


# --- HttpSource ---


@pytest.mark.parametrize(
    "handler,reason",
    [
        (_static(503), "HTTP 503"),
        (_static(200, text="not json"), "invalid JSON"),
    ],
)
def test_get_json_maps_failures(handler, reason):
    source = HttpSource("https://x.test", client=mock_client(handler))
    with pytest.raises(SourceUnavailableError) as exc:
        asyncio.run(source.get_json("/path", source="thing"))
    assert exc.value.source == "thing"
    assert reason in exc.value.reason


def test_get_json_transport_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    source = HttpSource("https://x.test", client=mock_client(handler))
    with pytest.raises(SourceUnavailableError) as exc:
        asyncio.run(source.get_json("/path"))
    assert "ConnectError" in exc.value.reason


def test_borrowed_client_not_closed():
    client = mock_client(_static(200, json={}))
    source = HttpSource("https://x.test", client=client)
    asyncio.run(source.aclose())
    assert not client.is_closed


# --- Gamma ---


def test_gamma_keeps_rows_with_odd_field_types():
    markets = [raw_market("1", "Will Walmart beat?"), raw_market("2", 123, slug=None), "junk"]
    gamma = GammaClient("https://gamma.test", client=mock_client(gamma_handler(markets=markets)))
    out = asyncio.run(gamma.fetch_active_markets())
    assert [m.id for m in out] == ["1", "2"]
    assert out[1].question == "123"


def test_gamma_market_url_base():
    events = [raw_event("e1", "Retail", [raw_market("1", "Will Target beat?")], slug="retail")]
    gamma = GammaClient(
        "https://gamma.test",
        market_url_base="https://mirror.test/event/",
        client=mock_client(gamma_handler(events=events)),
    )
    out = asyncio.run(gamma.fetch_active_events())
    assert out[0].url == "https://mirror.test/event/retail"


def test_earnings_markets_top_by_volume_live_only():
    events = [
        raw_event(
            "e1",
            "Earnings",
            [
                raw_market("a", "A Q1 EPS?", volumeNum=10),
                raw_market("b", "B Q1 EPS?", volumeNum=30),
                raw_market("c", "C Q1 EPS?", volumeNum=20),
                raw_market("d", "D Q1 EPS?", volumeNum=99, closed=True),
            ],
        )
    ]
    gamma = GammaClient("https://gamma.test", client=mock_client(gamma_handler(earnings=events)))
    out = asyncio.run(gamma.fetch_earnings_markets(limit=2))
    assert [m.id for m in out] == ["b", "c"]


def test_resolved_earnings_from_earnings_tag():
    events = [
        raw_event(
            "e1",
            "Walmart Q2 earnings",
            [
                raw_market("old", "Will WMT beat Q1?", closed=True, endDate="2025-05-15T00:00:00Z"),
                raw_market("new", "Will WMT beat Q2?", closed=True, endDate="2025-08-21T00:00:00Z"),
                raw_market("open", "Will WMT beat Q3?", closed=False),
            ],
        ),
        raw_event("e2", "Nike Q2 earnings", [raw_market("nike", "Will NKE beat?", closed=True)]),
    ]
    gamma = GammaClient("https://gamma.test", client=mock_client(gamma_handler(events_by_tag={"1013": events})))
    out = asyncio.run(gamma.fetch_resolved_earnings("walmart"))
    assert [m.id for m in out] == ["new", "old"]


def test_resolved_earnings_falls_back_to_stocks_tag():
    stocks = [
        raw_event(
            "e1",
            "Target (TGT) earnings",
            [raw_market("t1", "Will Target beat Q3 earnings?", closed=True, endDate="2025-11-19T00:00:00Z")],
        ),
        raw_event("e2", "Target (TGT) weekly close", [raw_market("t2", "Up or down?", closed=True)]),
    ]
    handler = gamma_handler(events_by_tag={"604": stocks}, fail={"tag:1013"})
    gamma = GammaClient("https://gamma.test", client=mock_client(handler))
    out = asyncio.run(gamma.fetch_resolved_earnings("target"))
    assert [m.id for m in out] == ["t1"]


def test_resolved_earnings_respects_exclusions():
    events = [
        raw_event("e1", "Will the Fed hit its inflation target?", [raw_market("fed", "Q3 CPI beat?", closed=True)]),
        raw_event("e2", "Target Q3 earnings", [raw_market("tgt", "Will Target beat Q3?", closed=True)]),
    ]
    gamma = GammaClient("https://gamma.test", client=mock_client(gamma_handler(events_by_tag={"1013": events})))
    out = asyncio.run(gamma.fetch_resolved_earnings("target"))
    assert [m.id for m in out] == ["tgt"]


def test_resolved_earnings_fallback_respects_exclusions():
    stocks = [raw_event("e1", "Fed target range decision", [raw_market("fed", "Rates beat?", closed=True)])]
    handler = gamma_handler(events_by_tag={"604": stocks})
    gamma = GammaClient("https://gamma.test", client=mock_client(handler))
    assert asyncio.run(gamma.fetch_resolved_earnings("target")) == []
