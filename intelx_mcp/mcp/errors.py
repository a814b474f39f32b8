"""
MCP Error Code definitions for intelx-mcp.

Every failure that reaches the calling agent is one of these typed errors.
Each error code has a specific meaning and recommended action for the agent.

Error codes follow the pattern:
- INVALID_*: Input or upstream-rejected request errors (client-side fix needed)
- UNKNOWN_*: Reference to something this process never handed out
- *_ERROR / *_FAILED: Upstream or internal processing errors
"""

from enum import Enum
from typing import Any


class MCPErrorCode(str, Enum):
    """
    MCP Error codes.

    Each code indicates a specific error condition with recommended agent action.
    """

    # Input validation errors
    INVALID_PARAMS = "INVALID_PARAMS"
    """Tool arguments are invalid or malformed.
    Action: Check parameters and re-call with corrected values."""

    # Upstream rejected the submission
    INVALID_REQUEST = "INVALID_REQUEST"
    """Upstream rejected the search submission (bad buckets, search limit).
    Action: Fix the request, or wait for running searches to finish."""

    INVALID_SEARCH_TERM = "INVALID_SEARCH_TERM"
    """Upstream rejected the search term.
    Action: Use a strong selector (email, domain, URL, IP, ...)."""

    INVALID_HANDLE = "INVALID_HANDLE"
    """Upstream returned an unusable search handle.
    Action: Retry later; upstream is signalling an error."""

    # Upstream transport
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    """Upstream call failed (non-success HTTP status or network error).
    Action: Check details.status; 401 usually means invalid bucket names or key."""

    # Identifier recovery
    UNKNOWN_IDENTIFIER = "UNKNOWN_IDENTIFIER"
    """An integer identifier was never returned by this server.
    Action: Use identifiers exactly as returned by a previous search."""

    # File tree
    TREE_GENERATION_FAILED = "TREE_GENERATION_FAILED"
    """Upstream could not build a tree view for the item.
    Action: Use file_view or file_read on the item instead."""

    # Internal errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    """Unexpected internal error.
    Action: Check error_id in logs, report to operator if persistent."""


class MCPError(Exception):
    """
    Base exception for MCP tool errors.

    Provides structured error responses for MCP protocol.
    """

    def __init__(
        self,
        code: MCPErrorCode,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        error_id: str | None = None,
    ):
        """
        Initialize MCP error.

        Args:
            code: Error code from MCPErrorCode enum.
            message: Human-readable error message.
            details: Optional additional error details.
            error_id: Optional unique error ID for log correlation.
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.error_id = error_id

    def to_dict(self) -> dict[str, Any]:
        """
        Convert error to MCP response format.

        Returns:
            Dictionary suitable for MCP error response.
        """
        result: dict[str, Any] = {
            "ok": False,
            "error_code": self.code.value,
            "error": self.message,
        }

        if self.error_id:
            result["error_id"] = self.error_id

        if self.details:
            result["details"] = self.details

        return result


class InvalidParamsError(MCPError):
    """Raised when tool arguments are invalid."""

    def __init__(
        self,
        message: str,
        *,
        param_name: str | None = None,
        expected: str | None = None,
        received: Any = None,
    ):
        details = {}
        if param_name:
            details["param_name"] = param_name
        if expected:
            details["expected"] = expected
        if received is not None:
            details["received"] = str(received)

        super().__init__(
            MCPErrorCode.INVALID_PARAMS,
            message,
            details=details if details else None,
        )


class InvalidRequestError(MCPError):
    """Raised when upstream rejects a search submission."""

    def __init__(
        self,
        message: str = "Upstream rejected the search request",
        *,
        status: int | None = None,
        code: MCPErrorCode = MCPErrorCode.INVALID_REQUEST,
    ):
        details: dict[str, Any] = {}
        if status is not None:
            details["status"] = status

        super().__init__(
            code,
            message,
            details=details if details else None,
        )


class InvalidSearchTermError(InvalidRequestError):
    """Raised when upstream rejects the search term (submit status 1)."""

    def __init__(self, term: str | None = None):
        super().__init__(
            "Invalid search term",
            status=1,
            code=MCPErrorCode.INVALID_SEARCH_TERM,
        )
        if term:
            self.details["term"] = term[:100]


class InvalidHandleError(MCPError):
    """Raised when the handle returned by a submit call fails the length check."""

    def __init__(self, handle: Any):
        super().__init__(
            MCPErrorCode.INVALID_HANDLE,
            f"Invalid search ID: {handle}",
            details={"handle": str(handle)},
        )


class TransportError(MCPError):
    """Raised when an upstream call returns a non-success status or fails on the wire.

    status is 0 when no HTTP response was received.
    """

    def __init__(
        self,
        status: int,
        reason: str = "",
        *,
        body: str | None = None,
        endpoint: str | None = None,
    ):
        message = f"API error {status}: {reason}" if reason else f"API error {status}"
        if body:
            message = f"{message} - {body[:200]}"

        details: dict[str, Any] = {"status": status}
        if endpoint:
            details["endpoint"] = endpoint

        super().__init__(
            MCPErrorCode.TRANSPORT_ERROR,
            message,
            details=details,
        )
        self.status = status


class UnknownIdentifierError(MCPError):
    """Raised when a pseudonymized integer cannot be resolved to an upstream identifier."""

    def __init__(self, field: str, value: Any):
        param_name = {
            "storageid": "storage_id",
            "systemid": "system_id",
            "indexfile": "index_file",
        }.get(field, field)
        super().__init__(
            MCPErrorCode.UNKNOWN_IDENTIFIER,
            f"Invalid {param_name}: {value}",
            details={"field": field, "value": value},
        )


class TreeGenerationFailedError(MCPError):
    """Raised when upstream reports it could not generate a tree view."""

    def __init__(self, bucket: str | None = None):
        details: dict[str, Any] = {}
        if bucket:
            details["bucket"] = bucket

        super().__init__(
            MCPErrorCode.TREE_GENERATION_FAILED,
            "Could not generate tree view",
            details=details if details else None,
        )


class InternalError(MCPError):
    """Raised for unexpected internal errors."""

    def __init__(
        self,
        message: str = "An unexpected internal error occurred",
        *,
        error_id: str | None = None,
    ):
        super().__init__(
            MCPErrorCode.INTERNAL_ERROR,
            message,
            error_id=error_id,
        )


def generate_error_id() -> str:
    """
    Generate unique error ID for log correlation.

    Returns:
        Unique error ID string.
    """
    import uuid

    return f"err_{uuid.uuid4().hex[:12]}"


def create_error_response(
    code: MCPErrorCode,
    message: str,
    *,
    details: dict[str, Any] | None = None,
    error_id: str | None = None,
) -> dict[str, Any]:
    """
    Create standardized MCP error response.

    Utility function for handlers that prefer dict responses over exceptions.

    Args:
        code: Error code from MCPErrorCode enum.
        message: Human-readable error message.
        details: Optional additional details.
        error_id: Optional error ID for log correlation.

    Returns:
        Dictionary suitable for MCP error response.
    """
    return MCPError(code, message, details=details, error_id=error_id).to_dict()
