"""
intelx-mcp search module.

Main entry point:
    SearchOrchestrator - One method per search family and per single-shot
    file/selector/capability operation.

Building blocks:
    JobPollEngine - Generic submit/poll/terminate state machine
    IdentifierRegistry - Pseudonymizes upstream identifiers in outbound payloads
    RateGate - Minimum spacing between calls per upstream service root
"""

from intelx_mcp.search.identifiers import (
    IdentifierField,
    IdentifierRegistry,
    get_identifier_registry,
    reset_identifier_registry,
)
from intelx_mcp.search.orchestrator import (
    SearchOrchestrator,
    close_orchestrator,
    create_orchestrator,
    get_orchestrator,
)
from intelx_mcp.search.poll_engine import (
    JobPollEngine,
    PollOutcome,
    PollState,
    SearchSession,
)
from intelx_mcp.search.rate_limiter import RateGate, get_rate_gate, reset_rate_gate

__all__ = [
    "IdentifierField",
    "IdentifierRegistry",
    "get_identifier_registry",
    "reset_identifier_registry",
    "JobPollEngine",
    "PollOutcome",
    "PollState",
    "SearchSession",
    "RateGate",
    "get_rate_gate",
    "reset_rate_gate",
    "SearchOrchestrator",
    "create_orchestrator",
    "get_orchestrator",
    "close_orchestrator",
]
