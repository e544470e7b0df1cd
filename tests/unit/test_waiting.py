"""Tests for the blocking wait helpers and the shared helper core."""

from __future__ import annotations

import time
from datetime import timedelta

import pytest

from tests.helpers import render_from_thread
from tunit.config import TunitConfig, WaitConfig
from tunit.errors import WaitEvaluationError, WaitForFailedError, WaitTimeoutError
from tunit.rendering.fragment import StaticFragment
from tunit.waiting import (
    WaitForAssertionHelper,
    WaitForStateHelper,
    wait_for_assertion,
    wait_for_state,
)


@pytest.fixture
def fragment(exact_config: TunitConfig) -> StaticFragment:
    return StaticFragment("<p>0</p>", config=exact_config)


class TestWaitForStateHelper:
    def test_true_predicate_resolves_on_first_check(self, fragment: StaticFragment):
        calls = []

        def predicate() -> bool:
            calls.append(fragment.render_count)
            return True

        with WaitForStateHelper(fragment, predicate) as helper:
            assert helper.wait_task.done()
            assert helper.wait_task.result() is None

        assert calls == [0]
        assert fragment.listener_count == 0

    def test_resolves_after_nth_render_and_not_before(self, fragment: StaticFragment):
        with WaitForStateHelper(fragment, lambda: fragment.render_count >= 3, timeout=5) as helper:
            assert fragment.listener_count == 1

            fragment.update("<p>1</p>")
            assert not helper.wait_task.done()
            fragment.update("<p>2</p>")
            assert not helper.wait_task.done()
            fragment.update("<p>3</p>")

            assert helper.wait_task.done()
            assert helper.wait_task.exception() is None

        assert fragment.listener_count == 0

    def test_renders_after_success_do_not_reevaluate(self, fragment: StaticFragment):
        calls = []

        def predicate() -> bool:
            calls.append(fragment.render_count)
            return fragment.render_count >= 1

        with WaitForStateHelper(fragment, predicate, timeout=5):
            fragment.update("<p>1</p>")
            fragment.update("<p>2</p>")

        assert calls == [0, 1]

    def test_predicate_error_fails_immediately(self, fragment: StaticFragment):
        boom = ValueError("boom")

        def predicate() -> bool:
            if fragment.render_count:
                raise boom
            return False

        with WaitForStateHelper(fragment, predicate, timeout=5) as helper:
            fragment.update("<p>1</p>")
            error = helper.wait_task.exception()

        assert isinstance(error, WaitEvaluationError)
        assert error.__cause__ is boom
        assert fragment.listener_count == 0

    def test_close_is_idempotent_and_cancels_pending_task(self, fragment: StaticFragment):
        helper = WaitForStateHelper(fragment, lambda: False, timeout=5)
        helper.close()
        helper.close()

        assert helper.wait_task.cancelled()
        assert fragment.listener_count == 0

    def test_rejects_non_positive_timeout(self, fragment: StaticFragment):
        with pytest.raises(ValueError, match="greater than zero"):
            WaitForStateHelper(fragment, lambda: False, timeout=0)

        assert fragment.listener_count == 0

    def test_accepts_timedelta_timeout(self, fragment: StaticFragment):
        with WaitForStateHelper(fragment, lambda: False, timeout=timedelta(seconds=2)) as helper:
            assert helper.timeout == 2.0

    def test_default_timeout_comes_from_config(self):
        config = TunitConfig(wait=WaitConfig(default_timeout=3.5, scale_on_ci=False))
        fragment = StaticFragment(config=config)

        with WaitForStateHelper(fragment, lambda: False) as helper:
            assert helper.timeout == 3.5


class TestWaitForState:
    def test_returns_when_predicate_already_true(self, fragment: StaticFragment):
        started = time.monotonic()
        wait_for_state(fragment, lambda: True)

        assert time.monotonic() - started < 0.5
        assert fragment.listener_count == 0

    def test_waits_for_renders_from_another_thread(self, fragment: StaticFragment):
        render_from_thread(fragment, ["<p>1</p>", "<p>2</p>", "<p>3</p>"])

        wait_for_state(fragment, lambda: fragment.render_count >= 3, timeout=5)

        assert fragment.render_count >= 3
        assert fragment.listener_count == 0

    def test_times_out_after_configured_duration(self, fragment: StaticFragment):
        started = time.monotonic()
        with pytest.raises(WaitTimeoutError) as exc_info:
            wait_for_state(fragment, lambda: False, timeout=0.2)
        elapsed = time.monotonic() - started

        assert 0.19 <= elapsed < 1.5
        assert exc_info.value.timeout == pytest.approx(0.2)
        assert isinstance(exc_info.value.__cause__, TimeoutError)
        assert fragment.listener_count == 0

    def test_default_timeout_is_one_second(self, fragment: StaticFragment):
        started = time.monotonic()
        with pytest.raises(WaitTimeoutError):
            wait_for_state(fragment, lambda: False)
        elapsed = time.monotonic() - started

        assert 0.95 <= elapsed < 3.0

    def test_predicate_error_surfaces_without_waiting_for_timeout(
        self, fragment: StaticFragment
    ):
        def predicate() -> bool:
            raise KeyError("missing")

        started = time.monotonic()
        with pytest.raises(WaitEvaluationError) as exc_info:
            wait_for_state(fragment, predicate, timeout=5)

        assert time.monotonic() - started < 1.0
        assert isinstance(exc_info.value.__cause__, KeyError)

    def test_errors_share_the_wait_failed_base(self, fragment: StaticFragment):
        with pytest.raises(WaitForFailedError):
            wait_for_state(fragment, lambda: False, timeout=0.05)

    def test_single_error_group_collapses_to_its_cause(self, fragment: StaticFragment):
        inner = RuntimeError("only cause")

        def predicate() -> bool:
            raise ExceptionGroup("checks", [inner])

        with pytest.raises(WaitEvaluationError) as exc_info:
            wait_for_state(fragment, predicate, timeout=5)

        assert exc_info.value.__cause__ is inner

    def test_multiple_errors_are_reported_together(self, fragment: StaticFragment):
        def predicate() -> bool:
            raise ExceptionGroup("checks", [RuntimeError("a"), ValueError("b")])

        with pytest.raises(WaitEvaluationError) as exc_info:
            wait_for_state(fragment, predicate, timeout=5)

        cause = exc_info.value.__cause__
        assert isinstance(cause, ExceptionGroup)
        assert len(cause.exceptions) == 2


class TestWaitForAssertion:
    def test_passes_once_assertion_stops_failing(self, fragment: StaticFragment):
        render_from_thread(fragment, ["<p>1</p>", "<p>ready</p>"])

        def assertion() -> None:
            assert "ready" in fragment.markup

        wait_for_assertion(fragment, assertion, timeout=5)
        assert fragment.listener_count == 0

    def test_timeout_carries_last_assertion_failure(self, fragment: StaticFragment):
        def assertion() -> None:
            assert fragment.markup == "<p>never</p>", f"markup was {fragment.markup}"

        with pytest.raises(WaitTimeoutError) as exc_info:
            wait_for_assertion(fragment, assertion, timeout=0.1)

        cause = exc_info.value.__cause__
        assert isinstance(cause, AssertionError)
        assert "markup was <p>0</p>" in str(cause)

    def test_non_assertion_error_fails_immediately(self, fragment: StaticFragment):
        def assertion() -> None:
            raise ZeroDivisionError

        started = time.monotonic()
        with pytest.raises(WaitEvaluationError) as exc_info:
            wait_for_assertion(fragment, assertion, timeout=5)

        assert time.monotonic() - started < 1.0
        assert isinstance(exc_info.value.__cause__, ZeroDivisionError)

    def test_helper_records_transient_failures(self, fragment: StaticFragment):
        def assertion() -> None:
            assert fragment.render_count >= 2

        with WaitForAssertionHelper(fragment, assertion, timeout=5) as helper:
            fragment.update("<p>1</p>")
            assert isinstance(helper.last_error, AssertionError)
            assert not helper.wait_task.done()
            fragment.update("<p>2</p>")
            assert helper.wait_task.done()


class TestOnCiRunners:
    @pytest.fixture(autouse=True)
    def _on_ci(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("tunit.config.IS_CI", True)

    def test_explicit_timeout_is_honoured(self):
        fragment = StaticFragment("<p>0</p>")

        started = time.monotonic()
        with pytest.raises(WaitTimeoutError) as exc_info:
            wait_for_state(fragment, lambda: False, timeout=0.2)
        elapsed = time.monotonic() - started

        assert 0.19 <= elapsed < 0.6
        assert exc_info.value.timeout == pytest.approx(0.2)

    def test_default_timeout_is_scaled(self):
        fragment = StaticFragment("<p>0</p>")

        with WaitForStateHelper(fragment, lambda: False) as helper:
            assert helper.timeout == pytest.approx(5.0)


class TestBaseExceptionsInChecks:
    def test_pytest_fail_releases_the_subscription(self, fragment: StaticFragment):
        with pytest.raises(pytest.fail.Exception, match="not yet"):
            wait_for_assertion(fragment, lambda: pytest.fail("not yet"), timeout=5)

        assert fragment.listener_count == 0

    def test_system_exit_releases_the_subscription(self, fragment: StaticFragment):
        def predicate() -> bool:
            raise SystemExit(3)

        with pytest.raises(SystemExit):
            wait_for_state(fragment, predicate, timeout=5)

        assert fragment.listener_count == 0
