"""
Intelligence X API clients.

Provides clients for the two upstream service roots:
- Main (search, phonebook, files, selectors, capabilities)
- Identity (identity search, account export)
"""

from intelx_mcp.search.apis.base import BaseIntelXClient
from intelx_mcp.search.apis.identity import IdentityClient
from intelx_mcp.search.apis.intelx import IntelXClient

__all__ = [
    "BaseIntelXClient",
    "IntelXClient",
    "IdentityClient",
]
