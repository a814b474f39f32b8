"""Search handlers for MCP tools.

Handles intelx_intelligent_search, intelx_phonebook_search,
intelx_identity_search, intelx_export_accounts and intelx_terminate_search.
"""

from typing import Any

from intelx_mcp.mcp.helpers import parse_request
from intelx_mcp.search.normalizer import search_stats
from intelx_mcp.search.orchestrator import get_orchestrator
from intelx_mcp.utils.logging import get_logger
from intelx_mcp.utils.schemas import (
    ExportAccountsRequest,
    IdentitySearchRequest,
    IntelligentSearchRequest,
    PhonebookSearchRequest,
    TerminateSearchRequest,
)

logger = get_logger(__name__)


async def handle_intelligent_search(args: dict[str, Any]) -> dict[str, Any]:
    """
    Handle intelx_intelligent_search tool call.

    Returns pseudonymized records plus a per-bucket count.
    """
    request = parse_request(IntelligentSearchRequest, args)
    results = await get_orchestrator().intelligent_search(request)

    return {
        "ok": True,
        "count": len(results),
        "search_stats": search_stats(results),
        "results": results,
    }


async def handle_phonebook_search(args: dict[str, Any]) -> dict[str, Any]:
    """Handle intelx_phonebook_search tool call."""
    request = parse_request(PhonebookSearchRequest, args)
    results = await get_orchestrator().phonebook_search(request)

    return {"ok": True, "count": len(results), "results": results}


async def handle_identity_search(args: dict[str, Any]) -> dict[str, Any]:
    """Handle intelx_identity_search tool call."""
    request = parse_request(IdentitySearchRequest, args)
    results = await get_orchestrator().identity_search(request)

    return {"ok": True, "count": len(results), "results": results}


async def handle_export_accounts(args: dict[str, Any]) -> dict[str, Any]:
    """Handle intelx_export_accounts tool call."""
    request = parse_request(ExportAccountsRequest, args)
    accounts = await get_orchestrator().export_accounts(request)

    return {"ok": True, "count": len(accounts), "accounts": accounts}


async def handle_terminate_search(args: dict[str, Any]) -> dict[str, Any]:
    """
    Handle intelx_terminate_search tool call.

    An upstream error status is reported as success=False, not as an error.
    """
    request = parse_request(TerminateSearchRequest, args)
    success = await get_orchestrator().terminate_search(request.search_id)

    logger.info("Terminate requested", search_id=str(request.search_id), success=success)
    return {
        "ok": True,
        "success": success,
        "message": "Search terminated successfully" if success else "Failed to terminate search",
    }
