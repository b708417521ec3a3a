"""Tests for the JSON API routes."""

import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from pulse_analytics import AnalyticsConfig, setup_analytics
from pulse_analytics.core.client import UpstreamFetchError
from pulse_analytics.core.models import Event, Site
from pulse_analytics.routes import create_analytics_router
from pulse_analytics.service import AnalyticsService
from pulse_analytics.visitor import hash_visitor

from helpers import NOW


def _config(**kwargs):
    return AnalyticsConfig(supabase_url="https://x.supabase.co", supabase_key="key", **kwargs)


@pytest.fixture
def store(example_events):
    store = AsyncMock()
    store.fetch_events = AsyncMock(return_value=example_events)
    store.list_active_sites = AsyncMock(return_value=[Site(site_id="site-1")])
    store.insert_event = AsyncMock(return_value=None)
    return store


@pytest.fixture
def client(store):
    service = AnalyticsService(source=store, registry=store, clock=lambda: NOW)
    app = FastAPI()
    app.include_router(
        create_analytics_router(service, store, _config(), script=lambda: "console.log(1)"),
        prefix="/api",
    )
    return TestClient(app)


class TestAnalyticsEndpoint:
    """Test GET /analytics."""

    def test_missing_site_id(self, client):
        response = client.get("/api/analytics")
        assert response.status_code == 400
        assert response.json()["detail"] == "Missing siteId"

    def test_single_site(self, client):
        response = client.get("/api/analytics", params={"siteId": "site-1", "range": "24h"})
        data = response.json()

        assert response.status_code == 200
        assert data["site_id"] == "site-1"
        assert data["time_range"] == "24h"
        assert data["total_page_views"] == 3
        assert data["unique_visitors"] == 2
        assert data["bounce_rate"] == 50.0
        assert data["avg_session_duration"] == 5
        assert len(data["time_series"]) == 24
        assert data["cached"] is False

    def test_invalid_range_defaults(self, client):
        data = client.get("/api/analytics", params={"siteId": "site-1", "range": "nope"}).json()
        assert data["time_range"] == "7d"
        assert len(data["time_series"]) == 7

    def test_all_sites(self, client):
        data = client.get("/api/analytics", params={"siteId": "all"}).json()

        assert data["total_sites"] == 1
        assert data["sites"][0]["site_id"] == "site-1"
        assert "top_referrers" not in data["sites"][0]

    def test_upstream_failure_is_502(self, client, store):
        store.fetch_events.side_effect = UpstreamFetchError("down")

        response = client.get("/api/analytics", params={"siteId": "site-1"})
        assert response.status_code == 502

    def test_cache_control_follows_ttl(self, client):
        response = client.get("/api/analytics", params={"siteId": "site-1"})
        assert response.headers["cache-control"] == "private, max-age=60"

    def test_cache_control_custom_ttl(self, store):
        service = AnalyticsService(source=store, registry=store, clock=lambda: NOW)
        app = FastAPI()
        app.include_router(create_analytics_router(service, store, _config(cache_ttl_seconds=15)))

        response = TestClient(app).get("/analytics", params={"siteId": "site-1"})
        assert response.headers["cache-control"] == "private, max-age=15"

    def test_no_store_when_caching_disabled(self, store):
        service = AnalyticsService(source=store, registry=store, clock=lambda: NOW)
        app = FastAPI()
        app.include_router(create_analytics_router(service, store, _config(cache_ttl_seconds=0)))

        response = TestClient(app).get("/analytics", params={"siteId": "site-1"})
        assert response.headers["cache-control"] == "no-store"


class TestTrackEndpoint:
    """Test POST /track."""

    def test_json_body(self, client, store):
        response = client.post(
            "/api/track",
            json={"siteId": "site-1", "path": "/pricing", "referrer": "https://t.co/x", "userAgent": "UA"},
            headers={"x-forwarded-for": "1.2.3.4, 10.0.0.1"},
        )

        assert response.status_code == 200
        assert response.json() == {"ok": True, "tracked": True}
        assert response.headers["access-control-allow-origin"] == "*"

        event = store.insert_event.await_args.args[0]
        assert isinstance(event, Event)
        assert event.path == "/pricing"
        assert event.visitor_key == hash_visitor("1.2.3.4", "site-1")
        assert event.referrer == "https://t.co/x"

    def test_text_plain_beacon(self, client, store):
        response = client.post(
            "/api/track",
            content=json.dumps({"siteId": "site-1", "path": "/"}),
            headers={"content-type": "text/plain"},
        )

        assert response.status_code == 200
        event = store.insert_event.await_args.args[0]
        assert event.referrer is None
        assert event.user_agent is None

    def test_missing_path_rejected(self, client, store):
        response = client.post("/api/track", json={"siteId": "site-1"})

        assert response.status_code == 400
        assert response.headers["access-control-allow-origin"] == "*"
        store.insert_event.assert_not_awaited()

    def test_blank_site_rejected(self, client):
        response = client.post("/api/track", json={"siteId": "  ", "path": "/"})
        assert response.status_code == 400

    def test_invalid_json_rejected(self, client):
        response = client.post("/api/track", content="{not json", headers={"content-type": "text/plain"})
        assert response.status_code == 400

    def test_store_failure_is_500(self, client, store):
        store.insert_event.side_effect = UpstreamFetchError("down")

        response = client.post("/api/track", json={"siteId": "site-1", "path": "/"})
        assert response.status_code == 500

    def test_preflight(self, client):
        response = client.options("/api/track")

        assert response.status_code == 200
        assert response.headers["access-control-allow-methods"] == "POST, OPTIONS"


class TestSetup:
    """Test the setup_analytics facade."""

    def test_serves_script(self, client):
        response = client.get("/api/track.js")

        assert response.status_code == 200
        assert response.text == "console.log(1)"
        assert "javascript" in response.headers["content-type"]

    def test_wires_components(self):
        analytics = setup_analytics(_config(), collect_url="https://example.com/api/")

        assert analytics.cache is not None
        assert analytics.service.cache is analytics.cache
        assert '"https://example.com/api/track"' in analytics.script_source()
        assert 'data-site-id="blog"' in analytics.tracking_script("blog")

    def test_cache_disabled(self):
        analytics = setup_analytics(_config(cache_ttl_seconds=0))
        assert analytics.cache is None
