"""
Global rate gate for the Intelligence X API.

Enforces a minimum interval between consecutive upstream calls, per
service root, across every concurrent search session in the process.

Design:
- Each service root (main, identity) has its own clock and lock
- Waiters are serialized by an asyncio.Lock, so they wake in FIFO order
- The gate never fails; it only delays the caller
"""

from __future__ import annotations

import asyncio
import time

from intelx_mcp.utils.logging import get_logger

logger = get_logger(__name__)


class RateGate:
    """Process-wide minimum-spacing gate for upstream calls.

    Example:
        gate = get_rate_gate()
        await gate.acquire("https://2.intelx.io")
        response = await session.get(...)
    """

    def __init__(self, min_interval_seconds: float | None = None) -> None:
        """Initialize gate with empty per-root tracking.

        Args:
            min_interval_seconds: Spacing between calls. Loaded from settings if None.
        """
        if min_interval_seconds is None:
            from intelx_mcp.utils.config import get_settings

            min_interval_seconds = get_settings().rate_limit.min_interval_seconds

        self.min_interval_seconds = max(0.0, min_interval_seconds)
        # Per-root locks serialize waiters
        self._locks: dict[str, asyncio.Lock] = {}
        # Monotonic timestamp of the last call per root
        self._last_request: dict[str, float] = {}

    def _get_lock(self, service_root: str) -> asyncio.Lock:
        lock = self._locks.get(service_root)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[service_root] = lock
        return lock

    async def acquire(self, service_root: str) -> None:
        """Wait until the minimum interval since the last call to this root has passed.

        Records the new last-call timestamp before returning.

        Args:
            service_root: Upstream service root (e.g., "https://2.intelx.io").
        """
        async with self._get_lock(service_root):
            last = self._last_request.get(service_root)
            if last is not None:
                wait_time = self.min_interval_seconds - (time.monotonic() - last)
                if wait_time > 0:
                    logger.debug(
                        "Rate limiting: waiting",
                        service_root=service_root,
                        wait_seconds=round(wait_time, 3),
                    )
                    await asyncio.sleep(wait_time)

            self._last_request[service_root] = time.monotonic()

    def get_stats(self, service_root: str) -> dict[str, float | None]:
        """Get gate statistics for a service root.

        Args:
            service_root: Upstream service root.

        Returns:
            Dict with the last call timestamp (monotonic, None if never called)
            and the configured interval.
        """
        return {
            "last_request": self._last_request.get(service_root),
            "min_interval_seconds": self.min_interval_seconds,
        }


# Global instance
_rate_gate: RateGate | None = None


def get_rate_gate() -> RateGate:
    """Get or create the global rate gate.

    Returns:
        Global RateGate instance.
    """
    global _rate_gate
    if _rate_gate is None:
        _rate_gate = RateGate()
    return _rate_gate


def reset_rate_gate() -> None:
    """Reset the global rate gate (for testing only)."""
    global _rate_gate
    _rate_gate = None
