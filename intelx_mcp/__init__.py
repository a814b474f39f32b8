"""
intelx-mcp: Intelligence X search exposed as MCP tools.

Upstream identifiers never reach the calling agent verbatim; they are
replaced with small per-field integers by the identifier registry.
"""

__version__ = "0.1.0"
