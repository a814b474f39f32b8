"""
intelx-mcp utilities module.
"""

from intelx_mcp.utils.config import get_settings
from intelx_mcp.utils.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)

__all__ = [
    "get_settings",
    "get_logger",
    "configure_logging",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
