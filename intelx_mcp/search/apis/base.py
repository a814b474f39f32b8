"""
Base class for Intelligence X API clients.
"""

from typing import Any

import httpx

from intelx_mcp.mcp.errors import TransportError
from intelx_mcp.search.rate_limiter import RateGate, get_rate_gate
from intelx_mcp.utils.logging import get_logger

logger = get_logger(__name__)


class BaseIntelXClient:
    """Base class for clients of one Intelligence X service root.

    Every call goes through the process-wide rate gate for base_url and is
    authenticated with the X-Key header.
    """

    def __init__(
        self,
        name: str,
        api_key: str,
        base_url: str | None = None,
        *,
        user_agent: str | None = None,
        timeout: float | None = None,
        rate_gate: RateGate | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize client.

        Args:
            name: Client name (for logs)
            api_key: Intelligence X API key
            base_url: Service root (if None, subclass default from config)
            user_agent: User-Agent header (if None, loaded from config)
            timeout: Timeout in seconds (if None, loaded from config)
            rate_gate: Rate gate (if None, the process-wide gate)
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        if user_agent is None or timeout is None:
            from intelx_mcp.utils.config import get_settings

            api_config = get_settings().api
            if user_agent is None:
                user_agent = api_config.user_agent
            if timeout is None:
                timeout = api_config.timeout_seconds

        self.name = name
        self.api_key = api_key
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.default_headers = {
            "X-Key": api_key,
            "User-Agent": user_agent,
        }
        self._rate_gate = rate_gate
        self._transport = transport
        self._session: httpx.AsyncClient | None = None

    @property
    def rate_gate(self) -> RateGate:
        if self._rate_gate is None:
            self._rate_gate = get_rate_gate()
        return self._rate_gate

    async def _get_session(self) -> httpx.AsyncClient:
        """Get HTTP session (lazy initialization)."""
        if self._session is None:
            self._session = httpx.AsyncClient(
                timeout=self.timeout,
                headers=self.default_headers,
                transport=self._transport,
            )
        return self._session

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Issue one rate-gated call against this service root.

        Args:
            method: HTTP method.
            path: Endpoint path (e.g., "/intelligent/search").
            params: Query parameters.
            json: JSON body.

        Returns:
            Successful (2xx) response.

        Raises:
            TransportError: Non-success status, or no response at all (status 0).
        """
        await self.rate_gate.acquire(self.base_url)
        session = await self._get_session()

        try:
            response = await session.request(
                method,
                f"{self.base_url}{path}",
                params=params,
                json=json,
            )
        except httpx.HTTPError as e:
            logger.error("Upstream call failed", client=self.name, endpoint=path, error=str(e))
            raise TransportError(0, type(e).__name__, body=str(e), endpoint=path) from e

        if not response.is_success:
            logger.warning(
                "Upstream returned error status",
                client=self.name,
                endpoint=path,
                status=response.status_code,
            )
            raise TransportError(
                response.status_code,
                response.reason_phrase,
                body=response.text,
                endpoint=path,
            )

        return response

    async def close(self) -> None:
        """Close the session."""
        if self._session:
            await self._session.aclose()
            self._session = None
            logger.debug("Intelligence X client closed", client=self.name)
