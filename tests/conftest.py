"""Shared fixtures: an in-process fake of the learning platform API."""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from dashboard_sync.client import DashboardApiClient
from dashboard_sync.config import Settings
from dashboard_sync.telemetry import TelemetryEvent, clear_listeners, register_listener


class FakeBackend:
    """Serves canned ``(status, body)`` pairs keyed by request path."""

    def __init__(self) -> None:
        self.responses: Dict[str, Tuple[int, Any]] = {}
        self.calls: List[Tuple[str, Dict[str, str]]] = []
        self.app = FastAPI()

        @self.app.get("/{path:path}")
        async def serve(path: str, request: Request) -> Response:
            route = f"/{path}"
            self.calls.append((route, dict(request.query_params)))
            if route not in self.responses:
                return JSONResponse({"error": "not found"}, status_code=404)
            status_code, body = self.responses[route]
            if isinstance(body, str):
                return PlainTextResponse(body, status_code=status_code)
            return JSONResponse(body, status_code=status_code)

    def respond(self, path: str, body: Any, status_code: int = 200) -> None:
        self.responses[path] = (status_code, body)

    def calls_to(self, path: str) -> List[Dict[str, str]]:
        return [params for route, params in self.calls if route == path]


def make_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "DASHBOARD_API_BASE_URL": "http://testserver",
        "DASHBOARD_IDENTITY_TIMEOUT": 10.0,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest_asyncio.fixture
async def api_client(fake_backend: FakeBackend):
    transport = httpx.ASGITransport(app=fake_backend.app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield DashboardApiClient(make_settings(), client=http)


@pytest.fixture
def telemetry_events():
    events: List[TelemetryEvent] = []
    clear_listeners()
    register_listener(events.append)
    yield events
    clear_listeners()


@pytest_asyncio.fixture
async def client_for():
    """Build a ``DashboardApiClient`` around an arbitrary httpx transport."""
    opened: List[httpx.AsyncClient] = []

    def build(transport: httpx.AsyncBaseTransport, **overrides: Any) -> DashboardApiClient:
        http = httpx.AsyncClient(transport=transport, base_url="http://testserver")
        opened.append(http)
        return DashboardApiClient(make_settings(**overrides), client=http)

    yield build
    for http in opened:
        await http.aclose()
