"""Pytest configuration and shared fixtures."""

import asyncio
import json

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from device_gateway.api.main import create_app
from device_gateway.config import Settings

UPSTREAM_URL = "https://upstream.test/v1/chat/completions"


# ============================================================================
# Time
# ============================================================================

class FakeClock:
    """Manually advanced clock standing in for time.monotonic."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


# ============================================================================
# Upstream
# ============================================================================

class FakeUpstream:
    """Scriptable upstream completion API behind httpx.MockTransport."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.body = {
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "choices": [{"index": 0, "message": {"role": "assistant", "content": "Hello!"}}],
        }
        self.error: Exception | None = None
        self.delay: float = 0.0

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json=self.body)

    def last_payload(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def upstream():
    return FakeUpstream()


# ============================================================================
# Application
# ============================================================================

@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        API_KEY="sk-test-secret",
        UPSTREAM_URL=UPSTREAM_URL,
        UPSTREAM_TIMEOUT_SECONDS=0.5,
    )


@pytest.fixture
def app(settings, clock, upstream):
    http = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
    return create_app(settings, clock=clock, http=http)


@pytest.fixture
def store(app):
    return app.state.token_store


@pytest.fixture
async def client(app):
    """Create an async HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def token(client):
    """A freshly issued token for the allow-listed device."""
    response = await client.post("/checka", json={"aaa": "D85ED35351D2"})
    assert response.status_code == 200
    return response.json()["token"]
