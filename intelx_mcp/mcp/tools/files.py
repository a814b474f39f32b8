"""File and item handlers for MCP tools.

Handles intelx_file_preview, intelx_file_view, intelx_file_read,
intelx_file_treeview, intelx_get_selectors and intelx_get_capabilities.
Identifier arguments are the integers returned by earlier searches.
"""

from typing import Any

from intelx_mcp.mcp.helpers import parse_request
from intelx_mcp.search.orchestrator import get_orchestrator
from intelx_mcp.utils.schemas import (
    FilePreviewRequest,
    FileReadRequest,
    FileTreeViewRequest,
    FileViewRequest,
    GetSelectorsRequest,
)


async def handle_file_preview(args: dict[str, Any]) -> dict[str, Any]:
    """Handle intelx_file_preview tool call."""
    request = parse_request(FilePreviewRequest, args)
    preview = await get_orchestrator().file_preview(request)

    return {"ok": True, "preview": preview}


async def handle_file_view(args: dict[str, Any]) -> dict[str, Any]:
    """Handle intelx_file_view tool call."""
    request = parse_request(FileViewRequest, args)
    content = await get_orchestrator().file_view(request)

    return {"ok": True, "content": content}


async def handle_file_read(args: dict[str, Any]) -> dict[str, Any]:
    """
    Handle intelx_file_read tool call.

    Returns the item base64-encoded together with its size in bytes.
    """
    request = parse_request(FileReadRequest, args)
    data = await get_orchestrator().file_read(request)

    result: dict[str, Any] = {"ok": True, **data}
    if request.filename:
        result["filename"] = request.filename
    return result


async def handle_file_treeview(args: dict[str, Any]) -> dict[str, Any]:
    """Handle intelx_file_treeview tool call."""
    request = parse_request(FileTreeViewRequest, args)
    tree = await get_orchestrator().file_tree_view(request)

    return {"ok": True, "tree": tree}


async def handle_get_selectors(args: dict[str, Any]) -> dict[str, Any]:
    """Handle intelx_get_selectors tool call."""
    request = parse_request(GetSelectorsRequest, args)
    selectors = await get_orchestrator().get_selectors(request)

    return {"ok": True, "count": len(selectors), "selectors": selectors}


async def handle_get_capabilities(args: dict[str, Any]) -> dict[str, Any]:
    """Handle intelx_get_capabilities tool call."""
    capabilities = await get_orchestrator().get_capabilities()

    return {"ok": True, "capabilities": capabilities}
