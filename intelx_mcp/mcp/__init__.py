"""MCP surface: tool definitions, handlers and error codes."""
