"""
HTTP routes exposing the tool catalogue.
"""

from .tools import create_tools_router

__all__ = ["create_tools_router"]
