"""MCP tool handlers.

This package contains handlers for MCP tools, organized by functionality.
"""

from intelx_mcp.mcp.tools import files, search

__all__ = [
    "files",
    "search",
]
