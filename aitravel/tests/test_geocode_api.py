from unittest.mock import patch

import httpx
from fastapi.testclient import TestClient

from aitravel.analytics.store import clear_events, get_events
from aitravel.app import app
from aitravel.geocode.errors import UpstreamError, UpstreamUnavailable

client = TestClient(app)

TOKYO_CANDIDATES = [
    {"name": "A", "display_name": "A, Chiyoda, Tokyo", "lat": "35.681", "lon": "139.767", "type": "station", "importance": 0.8},
    {"name": "B", "display_name": "B, Chiyoda, Tokyo", "lat": "35.682", "lon": "139.766", "type": "station", "importance": 0.5},
    {"name": "C", "display_name": "C, Chiyoda, Tokyo", "lat": "35.683", "lon": "139.765", "type": "bus_stop", "importance": 0.2},
]


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_missing_query_returns_400():
    resp = client.get("/api/geocode")
    assert resp.status_code == 400
    assert resp.json() == {"error": "Query parameter required"}


@patch("aitravel.geocode.service.fetch_candidates", return_value=TOKYO_CANDIDATES)
def test_unbiased_search_keeps_provider_order(mock_fetch):
    resp = client.get("/api/geocode", params={"q": "Tokyo Station", "limit": "3"})
    assert resp.status_code == 200
    body = resp.json()
    assert [r["name"] for r in body] == ["A", "B", "C"]
    assert body[0] == {
        "name": "A",
        "full_name": "A, Chiyoda, Tokyo",
        "lat": 35.681,
        "lng": 139.767,
        "type": "station",
        "importance": 0.8,
    }
    plan = mock_fetch.call_args.args[0]
    assert plan.fetch_limit == 3
    assert plan.viewbox is None


@patch("aitravel.geocode.service.fetch_candidates")
def test_biased_search_puts_local_result_first(mock_fetch):
    mock_fetch.return_value = [
        {"display_name": "Q Ramen, Far Town", "lat": "36.8", "lon": "135.0", "type": "restaurant", "importance": 0.9},
        {"display_name": "P Ramen, Near Town", "lat": "35.045", "lon": "135.0", "type": "restaurant", "importance": 0.05},
    ]
    resp = client.get("/api/geocode", params={"q": "ramen", "limit": "2", "lat": "35.0", "lng": "135.0"})
    assert resp.status_code == 200
    body = resp.json()
    assert [r["name"] for r in body] == ["P Ramen", "Q Ramen"]
    assert {"distance", "score"} <= set(body[0])
    assert body[0]["score"] > body[1]["score"]
    plan = mock_fetch.call_args.args[0]
    assert plan.fetch_limit == 20
    assert plan.viewbox is not None


@patch("aitravel.geocode.service.fetch_candidates")
def test_biased_search_truncates_to_limit(mock_fetch):
    mock_fetch.return_value = [
        {"display_name": f"Spot {i}", "lat": str(35.0 + i * 0.01), "lon": "135.0", "importance": 0.1}
        for i in range(25)
    ]
    resp = client.get("/api/geocode", params={"q": "spot", "limit": "5", "lat": "35.0", "lng": "135.0"})
    assert resp.status_code == 200
    assert len(resp.json()) == 5
    assert mock_fetch.call_args.args[0].fetch_limit == 25


@patch("aitravel.geocode.service.fetch_candidates", return_value=TOKYO_CANDIDATES)
def test_partial_location_is_unbiased(mock_fetch):
    resp = client.get("/api/geocode", params={"q": "Tokyo Station", "lat": "35.0"})
    assert resp.status_code == 200
    assert all("score" not in r for r in resp.json())
    assert mock_fetch.call_args.args[0].viewbox is None


@patch("aitravel.geocode.service.fetch_candidates", return_value=TOKYO_CANDIDATES)
def test_bad_limit_falls_back_to_default(mock_fetch):
    resp = client.get("/api/geocode", params={"q": "Tokyo Station", "limit": "lots"})
    assert resp.status_code == 200
    assert mock_fetch.call_args.args[0].fetch_limit == 5


@patch("aitravel.geocode.service.fetch_candidates", return_value=[])
def test_no_candidates_returns_empty_list(mock_fetch):
    resp = client.get("/api/geocode", params={"q": "nowhere at all"})
    assert resp.status_code == 200
    assert resp.json() == []


@patch("aitravel.geocode.service.fetch_candidates", side_effect=UpstreamError("API returned status 502"))
def test_upstream_error_returns_500(mock_fetch):
    resp = client.get("/api/geocode", params={"q": "Tokyo Station"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "API returned status 502"}


@patch("aitravel.geocode.service.fetch_candidates", side_effect=UpstreamUnavailable("Geocoding provider unreachable: timed out"))
def test_upstream_unavailable_returns_500(mock_fetch):
    resp = client.get("/api/geocode", params={"q": "Tokyo Station", "lat": "35", "lng": "139"})
    assert resp.status_code == 500
    assert "unreachable" in resp.json()["error"]


@patch("aitravel.geocode.fetcher.build_client")
def test_corrupt_provider_body_is_logged_and_recorded(mock_build_client):
    mock_build_client.return_value = httpx.Client(
        transport=httpx.MockTransport(
            lambda r: httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"garbage")
        )
    )
    clear_events()
    resp = client.get("/api/geocode", params={"q": "Kyoto", "lat": "35", "lng": "135.7"})
    assert resp.status_code == 500
    assert "unreadable" in resp.json()["error"]
    events = get_events("search")
    assert len(events) == 1
    assert events[0]["error"] == "UpstreamError"
    assert events[0]["biased"] is True


@patch("aitravel.app.search_locations", side_effect=RuntimeError("ranker exploded"))
def test_unexpected_error_logged_with_traceback(mock_search, caplog):
    lenient_client = TestClient(app, raise_server_exceptions=False)
    with caplog.at_level("ERROR", logger="aitravel.app"):
        resp = lenient_client.get("/api/geocode", params={"q": "Kyoto"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "ranker exploded"}
    record = next(r for r in caplog.records if r.name == "aitravel.app")
    assert record.exc_info is not None
    assert record.exc_info[0] is RuntimeError
