"""
Pytest fixtures and configuration for intelx-mcp tests.

=============================================================================
Test Classification
=============================================================================

- @pytest.mark.unit: Single class/function, no external dependencies
  - DEFAULT: Tests without marker are auto-classified as unit

- @pytest.mark.integration: Multiple components, upstream API mocked
  - HTTP is stubbed with httpx.MockTransport; no network access

=============================================================================
Environment
=============================================================================

Settings are read from the repository's config/ directory with the log file
disabled, a dummy API key, and zero rate-gate and polling intervals so tests
never sleep on real clocks. Global singletons (settings cache, rate gate,
identifier registry, orchestrator) are reset around every test.
"""

import json
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

PROJECT_ROOT = Path(__file__).parent.parent

os.environ.setdefault("INTELX_CONFIG_DIR", str(PROJECT_ROOT / "config"))
os.environ.setdefault("INTELX_API_KEY", "test-key-0123456789abcdef")
os.environ["INTELX_GENERAL__LOGS_DIR"] = ""
os.environ["INTELX_RATE_LIMIT__MIN_INTERVAL_SECONDS"] = "0.0"
os.environ["INTELX_POLLING__INTERVAL_SECONDS"] = "0.0"

from intelx_mcp.search.identifiers import reset_identifier_registry  # noqa: E402
from intelx_mcp.search.orchestrator import reset_orchestrator  # noqa: E402
from intelx_mcp.search.rate_limiter import RateGate, reset_rate_gate  # noqa: E402
from intelx_mcp.utils.config import get_settings  # noqa: E402


def pytest_collection_modifyitems(config, items):
    """Auto-mark tests without a speed marker as unit."""
    for item in items:
        if not any(item.get_closest_marker(m) for m in ("unit", "integration")):
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def reset_globals():
    """Reset process-wide singletons before and after each test."""
    get_settings.cache_clear()
    reset_rate_gate()
    reset_identifier_registry()
    reset_orchestrator()
    yield
    get_settings.cache_clear()
    reset_rate_gate()
    reset_identifier_registry()
    reset_orchestrator()


@pytest.fixture
def no_wait_gate() -> RateGate:
    """Rate gate with zero spacing."""
    return RateGate(min_interval_seconds=0.0)


class RecordingTransport:
    """Scripted upstream: routes by path, records every request.

    Routes map a URL path to either a response or a list of responses
    consumed in order (the last one repeats).
    """

    def __init__(self, routes: dict[str, Any]):
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, text="not found")
        if isinstance(route, list):
            route = route.pop(0) if len(route) > 1 else route[0]
        if callable(route):
            return route(request)
        # Fresh copy so one scripted response can serve several requests
        return httpx.Response(route.status_code, headers=route.headers, content=route.content)

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def params(self, path: str) -> list[dict[str, str]]:
        return [dict(r.url.params) for r in self.requests if r.url.path == path]

    def bodies(self, path: str) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests if r.url.path == path]


@pytest.fixture
def make_transport() -> Callable[[dict[str, Any]], tuple[httpx.MockTransport, RecordingTransport]]:
    """Factory for (httpx.MockTransport, recorder) pairs."""

    def _make(routes: dict[str, Any]) -> tuple[httpx.MockTransport, RecordingTransport]:
        recorder = RecordingTransport(routes)
        return httpx.MockTransport(recorder), recorder

    return _make
