"""Client-side request lifecycle for one user session.

One RequestLifecycle owns the session's submission state, so independent sessions
never share a cool-down clock. At most one analysis is in flight per instance.

    Idle ──submit──▶ Pending ──succeed──▶ Succeeded ──submit──▶ Pending
                        │                                         ▲
                        └──fail──▶ Failed ──retry / submit────────┘
"""

import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Union

from competitor_scan.exceptions import AnalysisRequestError, PipelineError
from competitor_scan.logging import get_logger
from competitor_scan.models import Query, Report
from competitor_scan.validation import validate_query

log = get_logger("competitor_scan.lifecycle")

DEFAULT_COOLDOWN_SECONDS = 5.0
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Pending:
    query: Query


@dataclass(frozen=True)
class Succeeded:
    query: Query
    report: Report


@dataclass(frozen=True)
class Failed:
    query: Query
    error: str


LifecycleState = Union[Idle, Pending, Succeeded, Failed]


class SubmissionRejected(Exception):
    """Raised synchronously when a submission is refused; the state is left unchanged."""

    def __init__(self, reason: str, retry_after: float = 0.0) -> None:
        self.reason = reason
        self.retry_after = retry_after
        message = "Please wait before submitting again"
        if reason == "in_flight":
            message = "An analysis is already in progress"
        super().__init__(message)


class InvalidTransition(Exception):
    """Raised when an event does not apply to the current state."""

    def __init__(self, event: str, state: LifecycleState) -> None:
        self.event = event
        self.state = state
        super().__init__(f"Cannot {event} from {type(state).__name__}")


class RequestLifecycle:
    """State machine governing one query's journey from submission to display.

    Args:
        analyze: Async callable that performs the remote analysis for a query string,
            normally ``AnalysisClient.analyze``. Failures it raises must carry a
            ``user_message`` (AnalysisRequestError, PipelineError); anything else
            moves the lifecycle to Failed and is re-raised.
        cooldown_seconds: Minimum interval between accepted submissions, measured
            from the start of the previous accepted submission.
        clock: Monotonic time source in seconds (injectable for tests).
    """

    def __init__(
        self,
        analyze: Callable[[str], Awaitable[Report]],
        *,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._analyze = analyze
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._state: LifecycleState = Idle()
        self._last_accepted_at: float | None = None

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def is_pending(self) -> bool:
        return isinstance(self._state, Pending)

    # --- Transitions ---

    def submit(self, raw_query: str) -> Pending:
        """Accept a new query, or raise without touching the state.

        Raises:
            SubmissionRejected: ``in_flight`` while Pending, ``cooling_down`` inside the window.
            InvalidQueryError: The query is empty or too long.
        """
        if self.is_pending:
            log.info("lifecycle.submit_rejected", reason="in_flight")
            raise SubmissionRejected("in_flight")

        now = self._clock()
        if self._last_accepted_at is not None:
            elapsed = now - self._last_accepted_at
            if elapsed < self.cooldown_seconds:
                log.info("lifecycle.submit_rejected", reason="cooling_down", elapsed=round(elapsed, 3))
                raise SubmissionRejected("cooling_down", retry_after=self.cooldown_seconds - elapsed)

        query = validate_query(raw_query)
        self._last_accepted_at = now
        return self._enter_pending(query)

    def retry(self) -> Pending:
        """Re-issue the failed query unchanged.

        Only reachable from Failed, where the previous invocation has already
        settled, so the cool-down does not apply.
        """
        if not isinstance(self._state, Failed):
            raise InvalidTransition("retry", self._state)
        return self._enter_pending(self._state.query)

    def succeed(self, report: Report) -> Succeeded:
        if not isinstance(self._state, Pending):
            raise InvalidTransition("succeed", self._state)
        self._state = Succeeded(query=self._state.query, report=report)
        return self._state

    def fail(self, error: str) -> Failed:
        if not isinstance(self._state, Pending):
            raise InvalidTransition("fail", self._state)
        self._state = Failed(query=self._state.query, error=error)
        return self._state

    def _enter_pending(self, query: Query) -> Pending:
        self._state = Pending(query=query)
        log.info("lifecycle.pending", query=query.text)
        return self._state

    # --- Driving the remote call ---

    async def run(self, raw_query: str) -> LifecycleState:
        """Submit ``raw_query`` and await its outcome. Rejections propagate before any call."""
        pending = self.submit(raw_query)
        return await self._execute(pending)

    async def run_retry(self) -> LifecycleState:
        pending = self.retry()
        return await self._execute(pending)

    async def _execute(self, pending: Pending) -> LifecycleState:
        try:
            report = await self._analyze(pending.query.text)
        except (AnalysisRequestError, PipelineError) as e:
            return self.fail(e.user_message)
        except Exception:
            self.fail(UNEXPECTED_ERROR_MESSAGE)
            raise
        return self.succeed(report)
