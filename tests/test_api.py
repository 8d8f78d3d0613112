"""FastAPI routes against fake upstreams: snapshot, error shapes, stocks, overlay."""

import httpx
import pytest
from fastapi.testclient import TestClient

from retailodds.api.main import create_app
from retailodds.config import Settings
from retailodds.ingestion.polymarket.clob import ClobClient
from retailodds.ingestion.polymarket.gamma import GammaClient
from retailodds.ingestion.yahoo import YahooClient

from conftest import gamma_handler, mock_client, raw_event, raw_market

PRICES = {"WMT": 100.0, "AMZN": 200.0, "COST": 900.0, "TGT": 150.0}


def _yahoo_handler(request: httpx.Request) -> httpx.Response:
    symbol = request.url.path.rsplit("/", 1)[-1]
    if symbol == "COST":
        return httpx.Response(500)
    price = PRICES[symbol]
    return httpx.Response(
        200,
        json={
            "chart": {
                "result": [
                    {
                        "meta": {"regularMarketPrice": price, "chartPreviousClose": price - 1},
                        "timestamp": [1_000, 4_600],
                        "indicators": {"quote": [{"close": [price, None]}]},
                    }
                ]
            }
        },
    )


def _clob_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"history": [{"t": 1_000, "p": 0.6}, {"t": 900_000, "p": 0.7}]})


def _client(gamma_routes=None) -> TestClient:
    gamma_routes = gamma_routes or gamma_handler(
        markets=[raw_market("1", "Will Walmart beat Q2 earnings?", volumeNum=50)],
        events=[raw_event("e", "Target holiday sales", [raw_market("2", "Will Target beat?", volumeNum=70)])],
        earnings=[raw_event("x", "Earnings", [raw_market("3", "Nike Q2 EPS above $1?")])],
    )
    app = create_app(
        Settings(),
        gamma=GammaClient("https://gamma.test", client=mock_client(gamma_routes)),
        clob=ClobClient("https://clob.test", client=mock_client(_clob_handler)),
        yahoo=YahooClient(
            "https://yahoo.test",
            shares_outstanding=Settings().shares_outstanding,
            client=mock_client(_yahoo_handler),
        ),
    )
    return TestClient(app)


@pytest.fixture
def client():
    with _client() as c:
        yield c


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert body["registry_version"]


def test_markets_snapshot(client):
    r = client.get("/markets")
    assert r.status_code == 200
    body = r.json()
    assert list(body["retailers"]) == ["walmart", "amazon", "costco", "target", "other"]
    assert [m["id"] for m in body["retailers"]["walmart"]] == ["1"]
    assert [m["id"] for m in body["retailers"]["target"]] == ["2"]
    assert body["retailers"]["target"][0]["url"] == "https://polymarket.com/event/event-e"
    assert body["retailers"]["walmart"][0]["yes_price"] == 0.5
    assert [m["id"] for m in body["earnings"]] == ["3"]
    assert {s["name"] for s in body["sources"]} >= {"stocks_tag", "active_markets"}


def test_markets_all_sources_failed():
    handler = gamma_handler(fail={"markets", "events", "tag:604", "tag:102681"})
    with _client(handler) as c:
        r = c.get("/markets")
    assert r.status_code == 503
    body = r.json()
    assert body["code"] == "cycle_failed"
    assert "All market sources failed" in body["detail"]


def test_earnings_feed_and_retailer_filter(client):
    assert [m["id"] for m in client.get("/markets/earnings").json()["earnings"]] == ["3"]
    body = client.get("/markets/earnings", params={"retailer": "walmart"}).json()
    assert body["retailer"] == "walmart"
    assert [m["id"] for m in body["earnings"]] == ["1"]


@pytest.mark.parametrize(
    "path",
    [
        "/markets/earnings?retailer=kroger",
        "/markets/resolved?retailer=kroger",
        "/stocks/history?retailer=kroger",
        "/overlay?retailer=kroger&token_id=t",
    ],
)
def test_invalid_retailer(client, path):
    r = client.get(path)
    assert r.status_code == 400
    assert r.json()["code"] == "invalid_retailer"


def test_history(client):
    body = client.get("/markets/history", params={"token_id": "tok"}).json()
    assert body["token_id"] == "tok"
    assert body["history"][0] == {"timestamp": 1_000, "price": 0.6}


def test_stocks_leave_out_failed_quotes(client):
    body = client.get("/stocks").json()
    assert set(body["stocks"]) == {"wmt", "amzn", "tgt"}
    assert body["stocks"]["wmt"]["change"] == pytest.approx(1.0)
    assert body["stocks"]["wmt"]["market_cap"] == pytest.approx(100.0 * 8.04e9)


def test_stock_history(client):
    body = client.get("/stocks/history", params={"retailer": "target", "start_ts": 0, "end_ts": 10}).json()
    assert body["symbol"] == "TGT"
    assert body["history"] == [{"timestamp": 1_000, "price": 150.0}]


def test_overlay(client):
    body = client.get("/overlay", params={"retailer": "walmart", "token_id": "tok", "window_sec": 3600}).json()
    assert body["symbol"] == "WMT"
    assert body["window_sec"] == 3600
    assert [p["matched_price"] for p in body["points"]] == [100.0, None]


def test_overlay_default_window(client):
    body = client.get("/overlay", params={"retailer": "walmart", "token_id": "tok"}).json()
    assert body["window_sec"] == 259_200
