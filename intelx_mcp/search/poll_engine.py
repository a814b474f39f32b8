"""
Generic job polling engine for Intelligence X search families.

Every search family follows the same protocol: submit a query and receive a
job handle, poll the handle until upstream reports a terminal state or the
caller's record budget is spent, and cancel the job when the budget ran out
while upstream still had results.

The engine is family-agnostic. Each family supplies three bindings:
- submit(): coroutine returning the job handle
- poll(handle, wanted): coroutine returning a PollOutcome
- terminate(handle): coroutine cancelling the job (best effort)

The family's client maps its own status codes onto PollState before the
engine sees them.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from intelx_mcp.mcp.errors import InvalidHandleError
from intelx_mcp.utils.logging import get_logger

logger = get_logger(__name__)


class PollState(str, Enum):
    """Unified state of an upstream job after one poll."""

    CONTINUE = "continue"
    """The job may still produce records (this round may be empty)."""

    COMPLETE = "complete"
    """Upstream has no more records."""

    EXPIRED = "expired"
    """The handle is no longer valid upstream."""

    @property
    def is_terminal(self) -> bool:
        return self is not PollState.CONTINUE


@dataclass
class PollOutcome:
    """Result of one poll call.

    Attributes:
        state: Unified job state.
        records: Records returned this round.
        raw: Upstream response body (per-round metadata).
    """

    state: PollState
    records: list[Any] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class SearchSession:
    """State of one submitted job while it is being drained."""

    handle: str
    budget: int
    remaining_budget: int
    accumulated: list[Any] = field(default_factory=list)
    rounds: list[PollOutcome] = field(default_factory=list)
    finished: bool = False
    terminated: bool = False
    finish_reason: str | None = None


SubmitFn = Callable[[], Awaitable[str]]
PollFn = Callable[[str, int], Awaitable[PollOutcome]]
TerminateFn = Callable[[str], Awaitable[Any]]
NormalizeFn = Callable[[list[Any]], list[Any]]


class JobPollEngine:
    """Submit/poll/accumulate/terminate state machine.

    A fresh session is created per run(); the engine itself holds only
    configuration, so one instance can serve concurrent searches.

    Example:
        engine = JobPollEngine(poll_interval_seconds=1.0)
        session = await engine.run(submit, poll, terminate, budget=100)
        records = session.accumulated
    """

    def __init__(
        self,
        poll_interval_seconds: float = 1.0,
        handle_min_length: int = 3,
    ) -> None:
        self.poll_interval_seconds = poll_interval_seconds
        self.handle_min_length = handle_min_length

    def _check_handle(self, handle: Any) -> str:
        # Upstream signals submit errors with very short sentinel handles
        if handle is None or len(str(handle)) <= self.handle_min_length:
            raise InvalidHandleError(handle)
        return str(handle)

    async def run(
        self,
        submit: SubmitFn,
        poll: PollFn,
        terminate: TerminateFn,
        budget: int,
        *,
        normalize: NormalizeFn | None = None,
        keep_rounds: bool = False,
    ) -> SearchSession:
        """Drive one job from submission to completion.

        terminate is issued only when the budget runs out while upstream
        still reports CONTINUE. A COMPLETE or EXPIRED round that also uses
        up the budget finishes the session without terminate.

        Args:
            submit: Submits the job and returns its handle. Rejections raise.
            poll: Fetches up to `wanted` records for the handle.
            terminate: Cancels the job. Failures are logged and ignored.
            budget: Maximum number of records to accept.
            normalize: Optional per-round projection applied to accepted records.
            keep_rounds: Retain each round's PollOutcome (accepted records only).

        Returns:
            Finished SearchSession.

        Raises:
            InvalidHandleError: Submit returned an error sentinel handle.
            MCPError: Submit or poll failures propagate unchanged.
        """
        handle = self._check_handle(await submit())
        session = SearchSession(handle=handle, budget=budget, remaining_budget=budget)

        logger.debug("Search job submitted", handle=handle, budget=budget)

        while not session.finished:
            await asyncio.sleep(self.poll_interval_seconds)

            outcome = await poll(handle, session.remaining_budget)
            accepted = list(outcome.records[: max(session.remaining_budget, 0)])
            session.remaining_budget -= len(accepted)

            if keep_rounds:
                session.rounds.append(PollOutcome(outcome.state, accepted, outcome.raw))
            if normalize is not None:
                accepted = normalize(accepted)
            session.accumulated.extend(accepted)

            logger.debug(
                "Poll round",
                handle=handle,
                state=outcome.state.value,
                received=len(outcome.records),
                accepted=len(accepted),
                remaining_budget=session.remaining_budget,
            )

            if outcome.state.is_terminal:
                session.finished = True
                session.finish_reason = outcome.state.value
            elif session.remaining_budget <= 0:
                session.finished = True
                session.finish_reason = "budget_exhausted"
                await self._terminate(terminate, session)

        logger.info(
            "Search job finished",
            handle=handle,
            reason=session.finish_reason,
            records=len(session.accumulated),
            rounds=len(session.rounds) if keep_rounds else None,
            terminated=session.terminated,
        )
        return session

    async def _terminate(self, terminate: TerminateFn, session: SearchSession) -> None:
        try:
            await terminate(session.handle)
            session.terminated = True
        except Exception as e:
            logger.warning(
                "Terminate failed, ignoring",
                handle=session.handle,
                error=str(e),
            )
