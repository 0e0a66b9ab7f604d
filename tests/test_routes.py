"""Tests for the HTTP tool routes."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from pirsch_mcp import setup_pirsch
from pirsch_mcp.routes import create_tools_router
from pirsch_mcp.tools.dispatcher import ToolDispatcher
from pirsch_mcp.tools.schemas import TOOLS


@pytest.fixture
def pirsch_client():
    client = MagicMock()
    client.get_statistics = AsyncMock(return_value={"visitors": 7})
    client.list_domains = AsyncMock(return_value=[])
    return client


@pytest.fixture
def http(pirsch_client):
    app = FastAPI()
    dispatcher = ToolDispatcher(pirsch_client, default_domain_id="dom-1")
    app.include_router(create_tools_router(dispatcher), prefix="/pirsch")
    return TestClient(app)


class TestListTools:
    """Test GET /tools."""

    def test_lists_catalogue(self, http):
        response = http.get("/pirsch/tools")

        assert response.status_code == 200
        tools = response.json()["tools"]
        assert [t["name"] for t in tools] == [t.name for t in TOOLS]
        assert all("inputSchema" in t for t in tools)


class TestCallTool:
    """Test POST /tools/{name}."""

    def test_successful_call(self, http, pirsch_client):
        response = http.post("/pirsch/tools/pirsch_total", json={"filter": {"from": "2024-03-01"}})

        assert response.status_code == 200
        assert response.json() == {"domain_id": "dom-1", "total": {"visitors": 7}}
        pirsch_client.get_statistics.assert_awaited_once_with(
            "/statistics/total", "dom-1", {"from": "2024-03-01"}
        )

    def test_no_body(self, http):
        response = http.post("/pirsch/tools/pirsch_growth")
        assert response.status_code == 200
        assert response.json()["domain_id"] == "dom-1"

    def test_unknown_tool_is_envelope(self, http):
        response = http.post("/pirsch/tools/pirsch_nope", json={})
        assert response.status_code == 200
        assert response.json() == {"error": True, "message": "Unknown tool: pirsch_nope"}

    def test_invalid_arguments_is_envelope(self, http):
        response = http.post("/pirsch/tools/pirsch_utm", json={"type": "keyword"})
        assert response.status_code == 200
        assert response.json()["error"] is True


class TestSetupPirsch:
    """Test the setup_pirsch factory."""

    def test_wires_components(self):
        pirsch = setup_pirsch(
            client_id="id",
            client_secret="secret",
            default_domain_id="dom-1",
            timezone="UTC",
        )
        assert pirsch.dispatcher.client is pirsch.client
        assert pirsch.dispatcher.default_domain_id == "dom-1"
        assert pirsch.client.timezone_name == "UTC"
        paths = {route.path for route in pirsch.tools_router.routes}
        assert paths == {"/tools", "/tools/{name}"}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
