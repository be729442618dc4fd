"""Tests for the client-side request lifecycle state machine."""

import asyncio

import pytest

from competitor_scan.exceptions import AnalysisRequestError, InvalidQueryError, MalformedOutputError
from competitor_scan.lifecycle import (
    UNEXPECTED_ERROR_MESSAGE,
    Failed,
    Idle,
    InvalidTransition,
    Pending,
    RequestLifecycle,
    SubmissionRejected,
    Succeeded,
)
from competitor_scan.models import CompetitiveAnalysis, Query, Report


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingAnalyzer:
    """Async analyze callable that records queries and replays scripted outcomes."""

    def __init__(self, *outcomes: object) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[str] = []

    async def __call__(self, query: str) -> Report:
        self.calls.append(query)
        outcome = self.outcomes.pop(0) if self.outcomes else _make_report(query)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome  # type: ignore[return-value]


def _make_report(query: str = "Stripe") -> Report:
    analysis = CompetitiveAnalysis(
        overview="o", strengths=["s"], weaknesses=["w"], market_position="m", recommendations=["r"]
    )
    return Report(query=Query(text=query), analysis=analysis, markdown=f"# Competitive Analysis: {query}\n")


def _make_lifecycle(*outcomes: object) -> tuple[RequestLifecycle, FakeClock, RecordingAnalyzer]:
    clock = FakeClock()
    analyzer = RecordingAnalyzer(*outcomes)
    return RequestLifecycle(analyzer, clock=clock), clock, analyzer


class TestTransitions:
    """Tests for the synchronous transition methods."""

    def test__initial_state__is_idle(self) -> None:
        lifecycle, _, _ = _make_lifecycle()
        assert lifecycle.state == Idle()

    def test__submit_from_idle__enters_pending_with_trimmed_query(self) -> None:
        lifecycle, _, _ = _make_lifecycle()
        state = lifecycle.submit("  Stripe ")
        assert state == Pending(query=Query(text="Stripe"))
        assert lifecycle.state is state

    def test__succeed__moves_pending_to_succeeded(self) -> None:
        lifecycle, _, _ = _make_lifecycle()
        lifecycle.submit("Stripe")
        report = _make_report()
        assert lifecycle.succeed(report) == Succeeded(query=Query(text="Stripe"), report=report)

    def test__fail__moves_pending_to_failed(self) -> None:
        lifecycle, _, _ = _make_lifecycle()
        lifecycle.submit("Stripe")
        assert lifecycle.fail("boom") == Failed(query=Query(text="Stripe"), error="boom")

    @pytest.mark.parametrize("event", ["succeed", "fail", "retry"])
    def test__events_from_idle__raise_invalid_transition(self, event: str) -> None:
        lifecycle, _, _ = _make_lifecycle()
        args = {"succeed": (_make_report(),), "fail": ("x",), "retry": ()}[event]
        with pytest.raises(InvalidTransition):
            getattr(lifecycle, event)(*args)
        assert lifecycle.state == Idle()

    def test__retry_from_succeeded__raises_invalid_transition(self) -> None:
        lifecycle, _, _ = _make_lifecycle()
        lifecycle.submit("Stripe")
        lifecycle.succeed(_make_report())
        with pytest.raises(InvalidTransition):
            lifecycle.retry()

    def test__invalid_query__rejected_without_transition_or_cooldown(self) -> None:
        lifecycle, _, _ = _make_lifecycle()
        with pytest.raises(InvalidQueryError):
            lifecycle.submit("   ")
        assert lifecycle.state == Idle()
        # A rejected submission does not start the cool-down window.
        assert isinstance(lifecycle.submit("Stripe"), Pending)


class TestCooldown:
    """Tests for the submission cool-down guard."""

    def test__second_submit_while_pending__rejected_in_flight(self) -> None:
        lifecycle, clock, _ = _make_lifecycle()
        first = lifecycle.submit("Stripe")
        clock.advance(60)
        with pytest.raises(SubmissionRejected) as exc_info:
            lifecycle.submit("Adyen")
        assert exc_info.value.reason == "in_flight"
        assert lifecycle.state is first

    def test__submit_within_window_after_completion__rejected_and_state_kept(self) -> None:
        lifecycle, clock, _ = _make_lifecycle()
        lifecycle.submit("Stripe")
        clock.advance(1)
        succeeded = lifecycle.succeed(_make_report())
        clock.advance(3.9)

        with pytest.raises(SubmissionRejected) as exc_info:
            lifecycle.submit("Adyen")

        assert exc_info.value.reason == "cooling_down"
        assert exc_info.value.retry_after == pytest.approx(0.1)
        assert lifecycle.state is succeeded

    def test__window__measured_from_submission_start_not_completion(self) -> None:
        lifecycle, clock, _ = _make_lifecycle()
        lifecycle.submit("Stripe")
        clock.advance(4)
        lifecycle.succeed(_make_report())
        clock.advance(1)
        assert lifecycle.submit("Adyen") == Pending(query=Query(text="Adyen"))

    def test__submit_after_window_from_failed__enters_pending_with_new_query(self) -> None:
        lifecycle, clock, _ = _make_lifecycle()
        lifecycle.submit("Stripe")
        lifecycle.fail("nope")
        clock.advance(5)
        assert lifecycle.submit("Adyen") == Pending(query=Query(text="Adyen"))

    def test__custom_cooldown__respected(self) -> None:
        clock = FakeClock()
        lifecycle = RequestLifecycle(RecordingAnalyzer(), cooldown_seconds=30, clock=clock)
        lifecycle.submit("Stripe")
        lifecycle.succeed(_make_report())
        clock.advance(10)
        with pytest.raises(SubmissionRejected):
            lifecycle.submit("Adyen")

    def test__independent_sessions__do_not_share_cooldown(self) -> None:
        first, _, _ = _make_lifecycle()
        second, _, _ = _make_lifecycle()
        first.submit("Stripe")
        assert isinstance(second.submit("Stripe"), Pending)


class TestRun:
    """Tests for driving the remote analysis through the lifecycle."""

    @pytest.mark.asyncio
    async def test__successful_analysis__ends_succeeded(self) -> None:
        report = _make_report()
        lifecycle, _, analyzer = _make_lifecycle(report)

        state = await lifecycle.run(" Stripe ")

        assert state == Succeeded(query=Query(text="Stripe"), report=report)
        assert analyzer.calls == ["Stripe"]

    @pytest.mark.asyncio
    async def test__request_error__ends_failed_with_user_message(self) -> None:
        lifecycle, _, _ = _make_lifecycle(AnalysisRequestError("API configuration error", 500))
        state = await lifecycle.run("Stripe")
        assert state == Failed(query=Query(text="Stripe"), error="API configuration error")

    @pytest.mark.asyncio
    async def test__pipeline_error__ends_failed_with_safe_message(self) -> None:
        lifecycle, _, _ = _make_lifecycle(MalformedOutputError("parse_error", "raw provider text"))
        state = await lifecycle.run("Stripe")
        assert isinstance(state, Failed)
        assert "raw provider text" not in state.error

    @pytest.mark.asyncio
    async def test__unexpected_error__ends_failed_and_propagates(self) -> None:
        lifecycle, _, _ = _make_lifecycle(RuntimeError("bug"))
        with pytest.raises(RuntimeError):
            await lifecycle.run("Stripe")
        assert lifecycle.state == Failed(query=Query(text="Stripe"), error=UNEXPECTED_ERROR_MESSAGE)

    @pytest.mark.asyncio
    async def test__rejected_submission__never_calls_analyzer(self) -> None:
        lifecycle, _, analyzer = _make_lifecycle()
        await lifecycle.run("Stripe")
        with pytest.raises(SubmissionRejected):
            await lifecycle.run("Adyen")
        assert analyzer.calls == ["Stripe"]

    @pytest.mark.asyncio
    async def test__retry__reissues_identical_query_object(self) -> None:
        report = _make_report()
        lifecycle, _, analyzer = _make_lifecycle(AnalysisRequestError("Analysis failed"), report)

        failed = await lifecycle.run("Stripe")
        assert isinstance(failed, Failed)

        pending = lifecycle.retry()
        assert pending == Pending(query=failed.query)
        assert pending.query is failed.query

    @pytest.mark.asyncio
    async def test__run_retry__calls_analyzer_again_with_same_query(self) -> None:
        report = _make_report()
        lifecycle, _, analyzer = _make_lifecycle(AnalysisRequestError("Analysis failed"), report)

        await lifecycle.run("Stripe")
        state = await lifecycle.run_retry()

        assert analyzer.calls == ["Stripe", "Stripe"]
        assert state == Succeeded(query=Query(text="Stripe"), report=report)

    @pytest.mark.asyncio
    async def test__concurrent_submit_during_pending__rejected(self) -> None:
        release = asyncio.Event()

        async def _slow_analyze(query: str) -> Report:
            await release.wait()
            return _make_report(query)

        lifecycle = RequestLifecycle(_slow_analyze, clock=FakeClock())
        task = asyncio.create_task(lifecycle.run("Stripe"))
        await asyncio.sleep(0)

        assert isinstance(lifecycle.state, Pending)
        with pytest.raises(SubmissionRejected) as exc_info:
            lifecycle.submit("Adyen")
        assert exc_info.value.reason == "in_flight"

        release.set()
        assert isinstance(await task, Succeeded)
