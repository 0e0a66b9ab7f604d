"""
Tool layer: the catalogue exposed to MCP clients and its dispatcher.
"""

from .dispatcher import ToolDispatcher, error_envelope
from .schemas import TOOLS, TOOLS_BY_NAME, ToolSpec

__all__ = ["ToolDispatcher", "ToolSpec", "TOOLS", "TOOLS_BY_NAME", "error_envelope"]
