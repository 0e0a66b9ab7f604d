"""
MCP server for Pirsch analytics over stdio.

Exposes the tool catalogue to MCP clients. Each call returns a single
JSON text payload; failures are returned as an error envelope rather
than a protocol error.
"""

import asyncio
import json
import logging
import sys
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from . import Pirsch, __version__
from .config import PirschConfig, load_config
from .core.errors import ConfigurationError
from .tools.dispatcher import ToolDispatcher
from .tools.schemas import TOOLS

logger = logging.getLogger(__name__)

SERVER_NAME = "mcp-pirsch"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def tool_definitions() -> list[Tool]:
    """The tool catalogue as MCP tool definitions."""
    return [
        Tool(name=tool.name, description=tool.description, inputSchema=tool.input_schema)
        for tool in TOOLS
    ]


def text_response(payload: dict[str, Any]) -> list[TextContent]:
    return [TextContent(type="text", text=json.dumps(payload, indent=2, default=str))]


def create_server(dispatcher: ToolDispatcher) -> Server:
    """Create an MCP server that routes tool calls to the dispatcher."""
    server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return tool_definitions()

    # The dispatcher validates arguments; schema failures become envelopes
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
        return text_response(await dispatcher.dispatch(name, arguments))

    return server


async def serve(config: PirschConfig) -> None:
    """Run the stdio server until the client disconnects."""
    pirsch = Pirsch.from_config(config)
    server = create_server(pirsch.dispatcher)

    async with stdio_server() as (read_stream, write_stream):
        logger.info("Pirsch MCP server running")
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


def main() -> None:
    """Console entry point. Exits with status 1 on missing credentials."""
    try:
        config = load_config()
    except ConfigurationError as e:
        logging.basicConfig(level=logging.ERROR, format=LOG_FORMAT, stream=sys.stderr)
        logger.error(str(e))
        sys.exit(1)

    # stdout carries the protocol, so logs go to stderr
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )

    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
