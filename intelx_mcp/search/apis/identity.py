"""
Intelligence X identity API client.

Covers the identity service root: identity (breach) search and leaked
account export. Both families are live searches drained through the same
result and terminate endpoints.

Result status codes: 0=records (more may follow), 2=done, 3=search ID
not found. Anything else is treated as expired.
"""

import json
from typing import Any

from intelx_mcp.search.apis.base import BaseIntelXClient
from intelx_mcp.search.poll_engine import PollOutcome, PollState
from intelx_mcp.utils.logging import get_logger
from intelx_mcp.utils.schemas import ExportAccountsRequest, IdentitySearchRequest

logger = get_logger(__name__)

LIVE_RESULT_STATES: dict[int, PollState] = {
    0: PollState.CONTINUE,
    2: PollState.COMPLETE,
    3: PollState.EXPIRED,
}


def _flag(value: bool) -> str:
    return "true" if value else "false"


class IdentityClient(BaseIntelXClient):
    """Client for the Intelligence X identity service root."""

    def __init__(self, api_key: str, base_url: str | None = None, **kwargs: Any) -> None:
        if base_url is None:
            from intelx_mcp.utils.config import get_settings

            base_url = get_settings().api.identity_root

        super().__init__("identity", api_key, base_url, **kwargs)

    async def submit_identity(self, request: IdentitySearchRequest) -> str:
        """Start an identity search.

        Returns:
            Job handle (validated by the poll engine).
        """
        params = {
            "selector": request.selector,
            "bucket": request.buckets,
            "skipinvalid": _flag(request.skip_invalid),
            "limit": request.maxresults,
            "analyze": _flag(request.analyze),
            "datefrom": request.datefrom,
            "dateto": request.dateto,
            "terminate": json.dumps(request.terminate),
        }
        response = await self._request("GET", "/live/search/internal", params=params)
        return response.json().get("id", "")

    async def submit_export(self, request: ExportAccountsRequest) -> str:
        """Start a leaked account export.

        Returns:
            Job handle.
        """
        params = {
            "selector": request.selector,
            "bucket": request.buckets,
            "limit": request.maxresults,
            "datefrom": request.datefrom,
            "dateto": request.dateto,
            "terminate": json.dumps(request.terminate),
        }
        response = await self._request("GET", "/accounts/csv", params=params)
        return response.json().get("id", "")

    async def poll(self, handle: str, limit: int) -> PollOutcome:
        """Fetch up to `limit` records of a live search (identity or export)."""
        response = await self._request(
            "GET",
            "/live/search/result",
            params={"id": handle, "format": 1, "limit": limit},
        )
        data = response.json()
        status = data.get("status")
        state = LIVE_RESULT_STATES.get(status)
        if state is None:
            logger.warning("Unknown live search status, treating as expired", handle=handle, status=status)
            state = PollState.EXPIRED

        return PollOutcome(state=state, records=data.get("records") or [], raw=data)

    async def terminate(self, handle: str) -> None:
        """Terminate a live search."""
        await self._request("GET", "/live/search/terminate", params={"id": handle})
        logger.debug("Live search terminated", handle=handle)
