"""Shared fixtures for the Pirsch MCP test suite."""

import httpx
import pytest

from pirsch_mcp.core.client import PirschClient

FAR_FUTURE = "2099-01-01T00:00:00Z"


class FakePirsch:
    """Scripted stand-in for the Pirsch API behind an httpx.MockTransport.

    ``responses`` maps a path (without the /api/v1 prefix) to a list of
    responses returned in order; the last one repeats.
    """

    def __init__(self, responses=None, token_status=200):
        self.responses = responses or {}
        self.token_status = token_status
        self.token_calls = 0
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api/v1")
        if path == "/token":
            self.token_calls += 1
            if self.token_status != 200:
                return httpx.Response(self.token_status, text="invalid client credentials")
            return httpx.Response(200, json={
                "access_token": f"token-{self.token_calls}",
                "expires_at": FAR_FUTURE,
            })

        self.requests.append(request)
        queue = self.responses.get(path)
        if not queue:
            return httpx.Response(404, text=f"no route for {path}")
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def calls_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.removeprefix("/api/v1") == path]


@pytest.fixture
def fake_api():
    return FakePirsch()


@pytest.fixture
def make_client():
    """Build a PirschClient wired to a FakePirsch."""
    def _make(fake: FakePirsch, **kwargs) -> PirschClient:
        return PirschClient(
            client_id="test-client",
            client_secret="test-secret",
            transport=httpx.MockTransport(fake),
            **kwargs,
        )
    return _make


@pytest.fixture
def visitors_series():
    """Daily visitor buckets as returned by /statistics/visitor."""
    return [
        {"day": "2024-03-11", "visitors": 10, "views": 25, "sessions": 12, "bounces": 4,
         "bounce_rate": 0.33, "cr": 0},
        {"day": "2024-03-12", "visitors": 5, "views": 9, "sessions": 6, "bounces": 2,
         "bounce_rate": 0.33, "cr": 0},
    ]
