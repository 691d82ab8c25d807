"""
Route tests for the FastAPI application.

Upstream services are replaced through dependency overrides, so no network
traffic leaves the process.
"""
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_http_client, get_pipeline_config
from conftest import CHAT_PATH, INPUT_TIPS_PATH, PLACE_AROUND_PATH, chat_payload, geocode_payload
from core.config import Settings, get_settings
from main import app


@pytest.fixture
def client(upstream, pipeline_config):
    shared = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
    app.dependency_overrides[get_http_client] = lambda: shared
    app.dependency_overrides[get_pipeline_config] = lambda: pipeline_config
    with TestClient(app) as test_client:
        yield test_client
        test_client.portal.call(shared.aclose)
    app.dependency_overrides.clear()
    assert shared.is_closed


def _events(body: str):
    frames = [frame for frame in body.split("\n\n") if frame]
    assert all(frame.startswith("data: ") for frame in frames)
    return [json.loads(frame[len("data: "):]) for frame in frames]


# ═══════════════════════════════════════════════════════════════════════════
# Health
# ═══════════════════════════════════════════════════════════════════════════

class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["service"] == "food-recommendation-api"
        assert "timestamp" in body

    def test_security_headers(self, client):
        resp = client.get("/health")
        assert resp.headers["x-frame-options"] == "DENY"
        assert "max-age=31536000" in resp.headers["strict-transport-security"]


# ═══════════════════════════════════════════════════════════════════════════
# POST /api/v1/ai
# ═══════════════════════════════════════════════════════════════════════════

class TestRecommendEnvelope:
    def test_success(self, client):
        resp = client.post("/api/v1/ai", json={"location": "星海广场"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["message"] == "Food recommendations generated successfully"
        assert body["error"] is None
        data = body["data"]
        assert data["coordinates"] == [121.5, 38.9]
        assert [v["name"] for v in data["venues"]][0] == "海之韵海鲜酒楼"
        assert data["model"] == "qwen3-235b-a22b"
        assert "test-amap-key" not in resp.text

    def test_empty_body_uses_defaults(self, client, upstream):
        resp = client.post("/api/v1/ai", json={})
        assert resp.status_code == 200
        assert upstream.requests[0].url.params["keywords"] == "星海广场"

    def test_ai_failure_is_partial_success(self, client, upstream):
        upstream.set(CHAT_PATH, httpx.Response(500, text="down"))

        resp = client.post("/api/v1/ai", json={"location": "星海广场"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is False
        assert body["message"] == "Failed to generate AI recommendations"
        assert body["data"]["recommendation"] is None
        assert len(body["data"]["venues"]) == 3
        assert "both primary and backup models" in body["error"]

    def test_ai_failure_status_is_configurable(self, client, upstream):
        app.dependency_overrides[get_settings] = lambda: Settings(AI_FAILURE_STATUS_CODE=503)
        upstream.set(CHAT_PATH, httpx.Response(500, text="down"))

        resp = client.post("/api/v1/ai", json={"location": "星海广场"})

        assert resp.status_code == 503
        assert resp.json()["data"] is not None

    def test_unknown_place(self, client, upstream):
        upstream.set(INPUT_TIPS_PATH, httpx.Response(200, json=geocode_payload()))

        resp = client.post("/api/v1/ai", json={"location": "zzz_nonexistent_place"})

        assert resp.status_code == 404
        body = resp.json()
        assert body["success"] is False
        assert body["message"] == "Failed to get location coordinates"
        assert body["data"] is None
        assert upstream.requests_to(PLACE_AROUND_PATH) == []
        assert upstream.requests_to(CHAT_PATH) == []

    def test_search_upstream_error(self, client, upstream):
        upstream.set(PLACE_AROUND_PATH, httpx.Response(500, text="oops"))

        resp = client.post("/api/v1/ai", json={"location": "星海广场"})

        assert resp.status_code == 502
        assert resp.json()["message"] == "Failed to search for food"

    def test_location_too_long(self, client):
        resp = client.post("/api/v1/ai", json={"location": "x" * 201})
        assert resp.status_code == 422


# ═══════════════════════════════════════════════════════════════════════════
# Text and stream variants
# ═══════════════════════════════════════════════════════════════════════════

class TestRecommendContent:
    def test_plain_text(self, client):
        resp = client.post("/api/v1/ai/content", json={"location": "星海广场"})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/plain")
        assert resp.text == "1. 海之韵海鲜酒楼\n\n2. 老地方面馆"

    def test_ai_failure(self, client, upstream):
        upstream.set(CHAT_PATH, httpx.Response(500, text="down"))
        resp = client.post("/api/v1/ai/content", json={"location": "星海广场"})
        assert resp.status_code == 500
        assert resp.text.startswith("Failed to generate AI recommendations")


class TestRecommendStream:
    def test_chunks_then_end(self, client):
        resp = client.post("/api/v1/ai/stream", json={"location": "星海广场"})

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/event-stream")
        assert _events(resp.text) == [
            {"type": "chunk", "content": "1. 海之韵海鲜酒楼"},
            {"type": "chunk", "content": "2. 老地方面馆"},
            {"type": "end", "content": "stream_completed"},
        ]

    def test_geocode_failure_is_single_error_event(self, client, upstream):
        upstream.set(INPUT_TIPS_PATH, httpx.Response(200, json=geocode_payload()))

        resp = client.post("/api/v1/ai/stream", json={"location": "zzz_nonexistent_place"})

        assert resp.status_code == 404
        (event,) = _events(resp.text)
        assert event["type"] == "error"
        assert event["content"].startswith("Failed to get location coordinates")

    def test_fallback_answer_is_streamed(self, client, upstream):
        upstream.set(
            CHAT_PATH,
            httpx.Response(429, json={"error": {"message": "rate limited"}}),
            httpx.Response(200, json=chat_payload("只有一行")),
        )
        resp = client.post("/api/v1/ai/stream", json={"location": "星海广场"})
        assert _events(resp.text)[0] == {"type": "chunk", "content": "只有一行"}


# ═══════════════════════════════════════════════════════════════════════════
# Map metadata
# ═══════════════════════════════════════════════════════════════════════════

class TestVenueMap:
    def test_map_without_ai_call(self, client, upstream):
        resp = client.post("/api/v1/ai/map", json={"location": "星海广场"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["coordinates"] == [121.5, 38.9]
        assert len(body["venues"]) == 3
        assert body["static_map_url"].startswith("https://restapi.amap.com/v3/staticmap?")
        assert upstream.requests_to(CHAT_PATH) == []

    def test_map_unknown_place(self, client, upstream):
        upstream.set(INPUT_TIPS_PATH, httpx.Response(200, json=geocode_payload()))
        resp = client.post("/api/v1/ai/map", json={"location": "zzz_nonexistent_place"})
        assert resp.status_code == 404
        assert resp.json()["detail"].startswith("Failed to get location coordinates")
