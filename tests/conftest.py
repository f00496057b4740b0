from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Tuple, Union

import httpx
import pytest
from fastapi.testclient import TestClient

from vrchat_relay.config import settings
from vrchat_relay.main import app
from vrchat_relay.upstream import UpstreamClient, get_upstream_client

API_PREFIX = "/api/1/"

Route = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


def json_response(payload: Any, status_code: int = 200, set_cookies: Tuple[str, ...] = ()) -> httpx.Response:
    headers = [("content-type", "application/json")]
    headers.extend(("set-cookie", c) for c in set_cookies)
    return httpx.Response(status_code, headers=headers, content=json.dumps(payload).encode("utf-8"))


class FakeUpstream:
    """Records every outbound call and answers from a (method, path) table."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Route] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, route: Route) -> None:
        self.routes[(method, API_PREFIX + path)] = route

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return json_response({"error": {"message": "not found", "status_code": 404}}, status_code=404)
        if callable(route):
            return route(request)
        return route


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def client(upstream: FakeUpstream):
    async def _override_upstream():
        transport = httpx.MockTransport(upstream.handler)
        async with UpstreamClient.from_settings(settings, transport=transport) as c:
            yield c

    app.dependency_overrides[get_upstream_client] = _override_upstream
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
