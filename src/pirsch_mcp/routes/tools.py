"""
HTTP surface for the tool catalogue.

Mirrors the stdio server: the same tools, the same result envelopes.
Tool failures are returned as ``{"error": true, ...}`` with status 200;
only a malformed request body is rejected at the HTTP level.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body

from ..tools.dispatcher import ToolDispatcher
from ..tools.schemas import TOOLS

logger = logging.getLogger(__name__)


def create_tools_router(dispatcher: ToolDispatcher) -> APIRouter:
    """Create the tools router.

    Args:
        dispatcher: Dispatcher the routes delegate to

    Returns:
        APIRouter with ``GET /tools`` and ``POST /tools/{name}``
    """
    router = APIRouter()

    @router.get("/tools")
    async def list_tools() -> dict[str, Any]:
        return {
            "tools": [
                {
                    "name": tool.name,
                    "description": tool.description,
                    "inputSchema": tool.input_schema,
                }
                for tool in TOOLS
            ]
        }

    @router.post("/tools/{name}")
    async def call_tool(
        name: str,
        arguments: dict[str, Any] | None = Body(default=None),
    ) -> dict[str, Any]:
        return await dispatcher.dispatch(name, arguments)

    return router
