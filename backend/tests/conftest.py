"""
Pytest configuration for NearBite tests.

Sets up the test environment and an in-process fake of the three upstream
services (AMap input tips, AMap place/around, DashScope chat completions)
served through ``httpx.MockTransport``.
"""
import json
import os
from typing import Any, Dict, List, Optional

import httpx
import pytest

# Settings are read at import time by main / core.security
os.environ.setdefault("AMAP_API_KEY", "test-amap-key")
os.environ.setdefault("DASHSCOPE_API_KEY", "test-dashscope-key")

from models.pipeline import PipelineConfig  # noqa: E402

INPUT_TIPS_PATH = "/v3/assistant/inputtips"
PLACE_AROUND_PATH = "/v3/place/around"
CHAT_PATH = "/compatible-mode/v1/chat/completions"


def geocode_payload(*locations: Any) -> Dict[str, Any]:
    """Input-tips body with one tip per location value."""
    return {
        "status": "1",
        "count": str(len(locations)),
        "info": "OK",
        "infocode": "10000",
        "tips": [
            {"name": f"tip {i}", "district": "辽宁省大连市沙河口区", "location": loc}
            for i, loc in enumerate(locations)
        ],
    }


def poi(name: str, **fields: Any) -> Dict[str, Any]:
    data = {
        "name": name,
        "address": "中山路1号",
        "distance": "120",
        "typecode": "050100",
        "location": "121.501,38.901",
    }
    data.update(fields)
    return data


def search_payload(pois: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "status": "1",
        "count": str(len(pois)),
        "info": "OK",
        "infocode": "10000",
        "pois": pois,
    }


def chat_payload(content: Optional[str]) -> Dict[str, Any]:
    return {
        "id": "chatcmpl-test",
        "model": "qwen-test",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }


def corrupt_gzip(request: httpx.Request) -> httpx.Response:
    """Claims gzip but is not, so httpx fails while decoding the body."""
    return httpx.Response(
        200,
        headers={"Content-Encoding": "gzip", "Content-Type": "application/json"},
        stream=httpx.ByteStream(b"not gzip at all"),
    )


DEFAULT_POIS = [
    poi("海之韵海鲜酒楼", typecode="050119", tel="0411-84801234"),
    poi("星巴克(星海广场店)", address=[], distance="260", typecode="050500", tel=[]),
    poi("老地方面馆", address="西安路88号", distance="410", typecode="050300|050100"),
]


class FakeUpstream:
    """
    Routes requests by path to canned responses and records every request.

    Each route holds a list of replies consumed in order (the last one repeats).
    A reply is a status/JSON ``httpx.Response`` template, an exception to raise,
    or a callable taking the request.
    """

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.routes: Dict[str, List[Any]] = {
            INPUT_TIPS_PATH: [httpx.Response(200, json=geocode_payload("121.5,38.9"))],
            PLACE_AROUND_PATH: [httpx.Response(200, json=search_payload(DEFAULT_POIS))],
            CHAT_PATH: [httpx.Response(200, json=chat_payload("1. 海之韵海鲜酒楼\n\n2. 老地方面馆"))],
        }

    # ── configuration helpers ───────────────────────────────────────────
    def set(self, path: str, *replies: Any) -> None:
        self.routes[path] = list(replies)

    def requests_to(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def chat_bodies(self) -> List[Dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests_to(CHAT_PATH)]

    # ── transport handler ───────────────────────────────────────────────
    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        replies = self.routes.get(request.url.path)
        if not replies:
            return httpx.Response(404, text="no fake route")
        calls = len(self.requests_to(request.url.path))
        reply = replies[min(calls, len(replies)) - 1]

        if isinstance(reply, Exception):
            raise reply
        if callable(reply) and not isinstance(reply, httpx.Response):
            return reply(request)
        # Fresh copy so a template can be served more than once
        return httpx.Response(reply.status_code, headers=reply.headers, content=reply.content)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def http_client(upstream: FakeUpstream) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream), timeout=15.0)


@pytest.fixture
def pipeline_config() -> PipelineConfig:
    return PipelineConfig(
        username="tester",
        keywords="星海广场",
        city="大连",
        amap_api_key="test-amap-key",
        qwen_api_key="test-dashscope-key",
        radius=1000,
        food_types="050000",
        max_results=5,
        qwen_model="qwen3-235b-a22b",
        prompt_venue_limit=5,
    )
