"""
MCP Server implementation for intelx-mcp.
Exposes Intelligence X search and file operations as tools over stdio.

Provides 11 MCP tools:
- Search: intelligent search, phonebook search, terminate search
- Files: preview, view, read, tree view, selector extraction
- Account: capabilities
- Identity: identity search, account export
"""

import asyncio
import json
import sys
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from intelx_mcp.mcp.errors import (
    InternalError,
    InvalidParamsError,
    MCPError,
    generate_error_id,
)
from intelx_mcp.mcp.tools import files, search
from intelx_mcp.search.orchestrator import close_orchestrator
from intelx_mcp.utils.config import get_settings
from intelx_mcp.utils.logging import ensure_logging_configured, get_logger

ensure_logging_configured()
logger = get_logger(__name__)

# Create MCP server instance
app = Server("intelx-server")

_BUCKETS_HELP = (
    "darknet, dns, documents.public, dumpster, leaks.logs, leaks.private, "
    "leaks.public, pastes, usenet, web.gov.ru, web.public, whois"
)

_DATE_PROPERTY = {"type": "string", "description": 'Date "YYYY-MM-DD HH:MM:SS"'}
_TERMINATE_PROPERTY = {
    "type": "array",
    "items": {"type": "string"},
    "description": "Search IDs to terminate before starting this one.",
}


# ============================================================
# Tool Definitions (11 tools)
# ============================================================

TOOLS = [
    # ============================================================
    # 1. Search (3 tools)
    # ============================================================
    Tool(
        name="intelx_intelligent_search",
        title="Intelligence X Search",
        description=f"""Search Intelligence X data archive for STRONG SELECTORS ONLY.

SUPPORTED SELECTORS: email, domain (wildcards supported), URL, IPv4/IPv6, CIDR, phone,
Bitcoin address, MAC address, IPFS hash, UUID, storage/system ID, simhash, credit card, IBAN.
Generic search terms are NOT supported.

RETURNS: records with integer systemid/storageid/indexfile. Pass these integers
unchanged to the file tools.

BUCKETS: {_BUCKETS_HELP}. Invalid bucket names cause a 401 error; use [] for all.""",
        inputSchema={
            "type": "object",
            "properties": {
                "term": {"type": "string", "description": "The selector to search."},
                "maxresults": {
                    "type": "integer",
                    "description": "Maximum number of records (default: 100).",
                    "default": 100,
                },
                "buckets": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Bucket names (empty for all buckets).",
                },
                "timeout": {
                    "type": "integer",
                    "description": "Search timeout in seconds (default: 5).",
                    "default": 5,
                },
                "datefrom": _DATE_PROPERTY,
                "dateto": _DATE_PROPERTY,
                "sort": {
                    "type": "integer",
                    "description": "0=none, 1=score_asc, 2=score_desc, 3=date_asc, 4=date_desc (default: 4).",
                    "default": 4,
                },
                "media": {
                    "type": "integer",
                    "description": "Media type 0-25 (0=all, 1=paste, 15=PDF, 16=Word, ...).",
                    "default": 0,
                },
                "terminate": _TERMINATE_PROPERTY,
            },
            "required": ["term"],
        },
    ),
    Tool(
        name="intelx_phonebook_search",
        title="Intelligence X Phonebook Search",
        description="""Search phonebook for selectors related to a domain, email or URL.

USE CASES: all emails of a domain ("@example.com"), all domains of an email,
all URLs containing a domain.

RETURNS: list of {type, value} selectors.""",
        inputSchema={
            "type": "object",
            "properties": {
                "term": {"type": "string", "description": "Selector to search."},
                "maxresults": {
                    "type": "integer",
                    "description": "Maximum number of selectors (default: 100).",
                    "default": 100,
                },
                "buckets": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": f"Optional bucket filter. Available: {_BUCKETS_HELP}",
                },
                "timeout": {
                    "type": "integer",
                    "description": "Search timeout in seconds (default: 5).",
                    "default": 5,
                },
                "target": {
                    "type": "string",
                    "enum": ["all", "domains", "emails", "urls"],
                    "description": "Selector type filter (default: all).",
                    "default": "all",
                },
            },
            "required": ["term"],
        },
    ),
    Tool(
        name="intelx_terminate_search",
        title="Terminate Search",
        description="Terminate an ongoing Intelligence X search by ID",
        inputSchema={
            "type": "object",
            "properties": {
                "search_id": {"type": "string", "description": "Search ID (UUID)."},
            },
            "required": ["search_id"],
        },
    ),
    # ============================================================
    # 2. Files (5 tools)
    # ============================================================
    Tool(
        name="intelx_file_preview",
        title="File Preview",
        description="""Preview first N lines of a file from Intelligence X search results.

REQUIRED FROM SEARCH RESULTS: storage_id ("storageid"), bucket, media_type ("media"),
content_type ("type").""",
        inputSchema={
            "type": "object",
            "properties": {
                "storage_id": {"type": "integer", "description": '"storageid" from a search result.'},
                "bucket": {"type": "string", "description": '"bucket" from a search result.'},
                "media_type": {"type": "integer", "description": '"media" from a search result.'},
                "content_type": {"type": "integer", "description": '"type" from a search result.'},
                "lines": {
                    "type": "integer",
                    "description": "Number of lines to preview (default: 8).",
                    "default": 8,
                },
                "format": {
                    "type": "string",
                    "enum": ["text", "picture"],
                    "default": "text",
                },
            },
            "required": ["storage_id", "bucket", "media_type", "content_type"],
        },
    ),
    Tool(
        name="intelx_file_view",
        title="File View",
        description="""View full file contents with automatic format conversion.

CONVERSIONS: PDF (15), Word (16), Excel (17), PowerPoint (18), HTML (9, 23) and
Ebook (25) are converted to plain text. Other text items are returned as-is,
binary items as hex.""",
        inputSchema={
            "type": "object",
            "properties": {
                "storage_id": {"type": "integer", "description": '"storageid" from a search result.'},
                "bucket": {"type": "string", "description": '"bucket" from a search result.'},
                "media_type": {"type": "integer", "description": '"media" from a search result.'},
                "content_type": {"type": "integer", "description": '"type" from a search result.'},
            },
            "required": ["storage_id", "bucket", "media_type", "content_type"],
        },
    ),
    Tool(
        name="intelx_file_read",
        title="File Read",
        description="""Download raw binary file contents from Intelligence X.

RETURNS: {size, base64}""",
        inputSchema={
            "type": "object",
            "properties": {
                "system_id": {"type": "integer", "description": '"systemid" from a search result.'},
                "bucket": {"type": "string", "description": '"bucket" from a search result.'},
                "filename": {"type": "string", "description": "Optional file name."},
            },
            "required": ["system_id", "bucket"],
        },
    ),
    Tool(
        name="intelx_file_treeview",
        title="File Tree View",
        description="""Get hierarchical tree of related files (archive contents, stealer logs,
historical copies, multi-part files).

REQUIRED: bucket, and one of storage_id ("storageid"), index_file ("indexfile")
or system_id ("systemid"). Each integer must come from the matching result field.""",
        inputSchema={
            "type": "object",
            "properties": {
                "bucket": {"type": "string", "description": '"bucket" from a search result.'},
                "storage_id": {"type": "integer", "description": '"storageid" from a search result.'},
                "index_file": {"type": "integer", "description": '"indexfile" from a search result.'},
                "system_id": {"type": "integer", "description": '"systemid" from a search result.'},
            },
            "required": ["bucket"],
        },
    ),
    Tool(
        name="intelx_get_selectors",
        title="Extract Selectors",
        description="""Extract all selectors (emails, IPs, domains, URLs, ...) found in a document.""",
        inputSchema={
            "type": "object",
            "properties": {
                "system_id": {"type": "integer", "description": '"systemid" from a search result.'},
            },
            "required": ["system_id"],
        },
    ),
    # ============================================================
    # 3. Account (1 tool)
    # ============================================================
    Tool(
        name="intelx_get_capabilities",
        title="Get Account Capabilities",
        description="Get current API account capabilities and permissions",
        inputSchema={"type": "object", "properties": {}},
    ),
    # ============================================================
    # 4. Identity (2 tools)
    # ============================================================
    Tool(
        name="intelx_identity_search",
        title="Identity Search",
        description="""Search identity/breach database for compromised data.

SEARCH TERMS: email, domain, or "@domain" for all emails in a domain.

RETURNS: breach records with systemid, storageid, bucket, filename, date and the
matching lines merged per item.""",
        inputSchema={
            "type": "object",
            "properties": {
                "selector": {"type": "string", "description": "Email or domain."},
                "maxresults": {"type": "integer", "default": 100},
                "buckets": {"type": "string", "description": "Comma-separated bucket filter."},
                "datefrom": _DATE_PROPERTY,
                "dateto": _DATE_PROPERTY,
                "analyze": {"type": "boolean", "default": False},
                "skip_invalid": {"type": "boolean", "default": False},
                "terminate": _TERMINATE_PROPERTY,
            },
            "required": ["selector"],
        },
    ),
    Tool(
        name="intelx_export_accounts",
        title="Export Leaked Accounts",
        description="""Export leaked usernames and passwords from breaches.

RETURNS: {user, password, passwordtype, source, systemid, date, added}

WARNING: Contains sensitive credential data. Handle responsibly.""",
        inputSchema={
            "type": "object",
            "properties": {
                "selector": {"type": "string", "description": "Email or domain."},
                "maxresults": {"type": "integer", "default": 100},
                "buckets": {"type": "string", "description": "Comma-separated bucket filter."},
                "datefrom": _DATE_PROPERTY,
                "dateto": _DATE_PROPERTY,
                "terminate": _TERMINATE_PROPERTY,
            },
            "required": ["selector"],
        },
    ),
]


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    return TOOLS


@app.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls.

    Args:
        name: Tool name.
        arguments: Tool arguments.

    Returns:
        List of text content responses.
    """
    logger.info("Tool called", tool=name, arguments=arguments)

    try:
        result = await _dispatch_tool(name, arguments)
        return [TextContent(type="text", text=json.dumps(result, ensure_ascii=False, indent=2))]
    except MCPError as e:
        # Structured MCP error with error code
        logger.warning(
            "Tool MCP error",
            tool=name,
            error_code=e.code.value,
            error=e.message,
        )
        return [
            TextContent(type="text", text=json.dumps(e.to_dict(), ensure_ascii=False, indent=2))
        ]
    except Exception as e:
        # Unexpected error: details stay in the log, the response carries only the ID
        error_id = generate_error_id()
        logger.error(
            "Tool internal error",
            tool=name,
            error=str(e),
            error_id=error_id,
            exc_info=True,
        )
        error_result = InternalError(error_id=error_id).to_dict()
        return [
            TextContent(type="text", text=json.dumps(error_result, ensure_ascii=False, indent=2))
        ]


async def _dispatch_tool(name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    """Dispatch tool call to appropriate handler.

    Args:
        name: Tool name.
        arguments: Tool arguments.

    Returns:
        Tool result.
    """
    handlers = {
        # Search
        "intelx_intelligent_search": search.handle_intelligent_search,
        "intelx_phonebook_search": search.handle_phonebook_search,
        "intelx_terminate_search": search.handle_terminate_search,
        # Files
        "intelx_file_preview": files.handle_file_preview,
        "intelx_file_view": files.handle_file_view,
        "intelx_file_read": files.handle_file_read,
        "intelx_file_treeview": files.handle_file_treeview,
        "intelx_get_selectors": files.handle_get_selectors,
        # Account
        "intelx_get_capabilities": files.handle_get_capabilities,
        # Identity
        "intelx_identity_search": search.handle_identity_search,
        "intelx_export_accounts": search.handle_export_accounts,
    }

    handler = handlers.get(name)
    if handler is None:
        raise InvalidParamsError(f"Unknown tool: {name}", param_name="name", received=name)

    return await handler(arguments or {})


# ============================================================
# Server Lifecycle
# ============================================================


def mask_api_key(api_key: str) -> str:
    """Mask an API key for logging (first 8 and last 4 characters)."""
    if len(api_key) <= 12:
        return "*" * len(api_key)
    return f"{api_key[:8]}...{api_key[-4:]}"


async def run_server() -> None:
    """Run the MCP server."""
    logger.info("Starting intelx-mcp server (11 tools)")

    try:
        async with stdio_server() as (read_stream, write_stream):
            await app.run(
                read_stream,
                write_stream,
                app.create_initialization_options(),
            )
    finally:
        await close_orchestrator()
        logger.info("intelx-mcp server stopped")


def main() -> None:
    """Main entry point."""
    api_key = get_settings().api_key
    if not api_key:
        logger.error("INTELX_API_KEY environment variable is required")
        sys.exit(1)

    logger.info("API key loaded", api_key=mask_api_key(api_key))
    asyncio.run(run_server())


if __name__ == "__main__":
    main()
