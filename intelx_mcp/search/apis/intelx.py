"""
Intelligence X main API client.

Covers the main service root: intelligent (full-text) search, phonebook
search, search termination, file operations, selector extraction and
account capabilities.

Search families expose submit/poll/terminate bindings for the poll engine;
status codes are mapped onto PollState here:
- submit: 0=ok, 1=invalid term, 2=concurrent search limit reached
- result: 0=records (more may follow), 1=no more results, 2=search ID
  not found, 3=no records yet (more may follow)
"""

import json
from typing import Any

from intelx_mcp.mcp.errors import (
    InvalidRequestError,
    InvalidSearchTermError,
    TreeGenerationFailedError,
)
from intelx_mcp.search.apis.base import BaseIntelXClient
from intelx_mcp.search.poll_engine import PollOutcome, PollState
from intelx_mcp.utils.logging import get_logger
from intelx_mcp.utils.schemas import IntelligentSearchRequest, PhonebookSearchRequest

logger = get_logger(__name__)

SEARCH_RESULT_STATES: dict[int, PollState] = {
    0: PollState.CONTINUE,
    1: PollState.COMPLETE,
    2: PollState.EXPIRED,
    3: PollState.CONTINUE,
}

# /file/view conversion formats
FORMAT_TEXT = 0
FORMAT_HEX = 1
FORMAT_PDF_TEXT = 6
FORMAT_HTML_TEXT = 7
FORMAT_WORD_TEXT = 8
FORMAT_EXCEL_TEXT = 9
FORMAT_POWERPOINT_TEXT = 10
FORMAT_EBOOK_TEXT = 11
FORMAT_TREE_VIEW_JSON = 12

MEDIA_VIEW_FORMATS: dict[int, int] = {
    9: FORMAT_HTML_TEXT,
    23: FORMAT_HTML_TEXT,
    15: FORMAT_PDF_TEXT,
    16: FORMAT_WORD_TEXT,
    17: FORMAT_EXCEL_TEXT,
    18: FORMAT_POWERPOINT_TEXT,
    25: FORMAT_EBOOK_TEXT,
}

CONTENT_TYPE_TEXT = 1


def view_format(media_type: int, content_type: int) -> int:
    """Pick the /file/view conversion format for an item.

    Document media types are converted to text; other text items are
    returned as-is; everything else is rendered as hex.
    """
    if media_type in MEDIA_VIEW_FORMATS:
        return MEDIA_VIEW_FORMATS[media_type]
    if content_type == CONTENT_TYPE_TEXT:
        return FORMAT_TEXT
    return FORMAT_HEX


def _result_state(status: Any, family: str) -> PollState:
    state = SEARCH_RESULT_STATES.get(status)
    if state is None:
        logger.warning("Unknown result status, treating as expired", family=family, status=status)
        return PollState.EXPIRED
    return state


class IntelXClient(BaseIntelXClient):
    """Client for the Intelligence X main service root."""

    def __init__(self, api_key: str, base_url: str | None = None, **kwargs: Any) -> None:
        """Initialize client.

        Args:
            api_key: Intelligence X API key.
            base_url: Service root (if None, loaded from config).
            **kwargs: Passed to BaseIntelXClient (user_agent, timeout, rate_gate, transport).
        """
        if base_url is None:
            from intelx_mcp.utils.config import get_settings

            base_url = get_settings().api.main_root

        super().__init__("intelx", api_key, base_url, **kwargs)

    def _check_submit_status(self, data: dict[str, Any], term: str) -> str:
        status = data.get("status", 0)
        if status == 1:
            raise InvalidSearchTermError(term)
        if status == 2:
            raise InvalidRequestError("Max concurrent searches per API key reached", status=2)
        return data.get("id", "")

    # ---------------------------------------------------------------------
    # Intelligent search
    # ---------------------------------------------------------------------

    async def submit_search(self, request: IntelligentSearchRequest) -> str:
        """Submit an intelligent search.

        Returns:
            Job handle (validated by the poll engine).

        Raises:
            InvalidSearchTermError: Upstream rejected the term.
            InvalidRequestError: Upstream rejected the request.
            TransportError: Non-success HTTP status (401 for bad bucket names).
        """
        payload = {
            "term": request.term,
            "buckets": request.buckets,
            "lookuplevel": 0,
            "maxresults": request.maxresults,
            "timeout": request.timeout,
            "datefrom": request.datefrom,
            "dateto": request.dateto,
            "sort": request.sort,
            "media": request.media,
            "terminate": request.terminate,
        }
        response = await self._request("POST", "/intelligent/search", json=payload)
        return self._check_submit_status(response.json(), request.term)

    async def poll_search(self, handle: str, limit: int) -> PollOutcome:
        """Fetch up to `limit` intelligent search records."""
        response = await self._request(
            "GET",
            "/intelligent/search/result",
            params={"id": handle, "limit": limit},
        )
        data = response.json()
        return PollOutcome(
            state=_result_state(data.get("status"), "search"),
            records=data.get("records") or [],
            raw=data,
        )

    async def terminate(self, handle: str) -> None:
        """Terminate a search job (intelligent or phonebook)."""
        await self._request("GET", "/intelligent/search/terminate", params={"id": handle})
        logger.debug("Search terminated", handle=handle)

    # ---------------------------------------------------------------------
    # Phonebook search
    # ---------------------------------------------------------------------

    async def submit_phonebook(self, request: PhonebookSearchRequest) -> str:
        """Submit a phonebook search.

        Returns:
            Job handle.
        """
        payload = {
            "term": request.term,
            "buckets": request.buckets,
            "lookuplevel": 0,
            "maxresults": request.maxresults,
            "timeout": request.timeout,
            "datefrom": request.datefrom,
            "dateto": request.dateto,
            "sort": request.sort,
            "media": request.media,
            "terminate": request.terminate,
            "target": request.target_value,
        }
        response = await self._request("POST", "/phonebook/search", json=payload)
        return self._check_submit_status(response.json(), request.term)

    async def poll_phonebook(self, handle: str, limit: int) -> PollOutcome:
        """Fetch up to `limit` phonebook selectors (offset -1: next unread)."""
        response = await self._request(
            "GET",
            "/phonebook/search/result",
            params={"id": handle, "limit": limit, "offset": -1},
        )
        data = response.json()
        return PollOutcome(
            state=_result_state(data.get("status"), "phonebook"),
            records=data.get("selectors") or [],
            raw=data,
        )

    # ---------------------------------------------------------------------
    # File operations
    # ---------------------------------------------------------------------

    async def file_preview(
        self,
        storage_id: str,
        bucket: str,
        media_type: int,
        content_type: int,
        lines: int = 8,
        format: int = FORMAT_TEXT,
    ) -> str:
        """Preview the first lines of an item."""
        response = await self._request(
            "GET",
            "/file/preview",
            params={
                "c": content_type,
                "m": media_type,
                "f": format,
                "sid": storage_id,
                "b": bucket,
                "e": 0,
                "l": lines,
                "k": self.api_key,
            },
        )
        return response.text

    async def file_view(
        self,
        storage_id: str,
        bucket: str,
        media_type: int,
        content_type: int,
    ) -> str:
        """View full item contents, converted to text where possible."""
        response = await self._request(
            "GET",
            "/file/view",
            params={
                "f": view_format(media_type, content_type),
                "storageid": storage_id,
                "bucket": bucket,
                "escape": 0,
                "k": self.api_key,
            },
        )
        return response.text

    async def file_read(self, system_id: str, bucket: str) -> bytes:
        """Download raw item contents."""
        response = await self._request(
            "GET",
            "/file/read",
            params={"type": 0, "systemid": system_id, "bucket": bucket},
        )
        return response.content

    async def file_tree_view(
        self,
        bucket: str,
        storage_id: str | None = None,
        system_id: str | None = None,
    ) -> Any:
        """Get the tree of items related to a container or archive item.

        storage_id takes precedence when both are given.

        Raises:
            TreeGenerationFailedError: Upstream could not build the tree.
        """
        params: dict[str, Any] = {"f": FORMAT_TREE_VIEW_JSON, "bucket": bucket}
        if storage_id:
            params["storageid"] = storage_id
        elif system_id:
            params["systemid"] = system_id
        params["k"] = self.api_key

        response = await self._request("GET", "/file/view", params=params)
        text = response.text
        if "Could not generate" in text:
            raise TreeGenerationFailedError(bucket)
        return json.loads(text)

    # ---------------------------------------------------------------------
    # Item and account info
    # ---------------------------------------------------------------------

    async def get_selectors(self, system_id: str) -> list[dict[str, Any]]:
        """List the selectors extracted from an item."""
        response = await self._request(
            "GET",
            "/item/selector/list/human",
            params={"id": system_id, "k": self.api_key},
        )
        return response.json().get("selectors") or []

    async def get_capabilities(self) -> dict[str, Any]:
        """Get the account's capabilities and permissions."""
        response = await self._request("GET", "/authenticate/info")
        return response.json()
