"""Wait for a rendered fragment to reach a state, or for an assertion to pass.

The predicate or assertion is checked once immediately, then again after every
render of the fragment, until it passes or the timeout elapses. Each helper
owns a single render subscription and releases it on every exit path.

Two façades share one core: the blocking functions wait on the helper's
future directly (renders must then arrive from another thread, as with a
synchronous ``TestContext``), and the ``*_async`` functions await it on the
running loop.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Future
from datetime import timedelta
from typing import TYPE_CHECKING, Self

from tunit.errors import (
    WaitEvaluationError,
    WaitForFailedError,
    WaitTimeoutError,
    collapse_exception_group,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from tunit.rendering.fragment import RenderedFragment

log = logging.getLogger(__name__)

type Timeout = float | timedelta | None


def _seconds(timeout: Timeout) -> float | None:
    if isinstance(timeout, timedelta):
        return timeout.total_seconds()
    return timeout


class WaitForHelper:
    """Base class for the state and assertion wait helpers.

    Subclasses implement :meth:`check`, which returns ``True`` once the wait is
    satisfied. Errors raised by ``check`` fail the wait immediately unless
    :meth:`is_transient` says otherwise.
    """

    timeout_message = "The wait timed out"

    def __init__(self, fragment: RenderedFragment, timeout: Timeout = None) -> None:
        self.fragment = fragment
        self.timeout = fragment.config.wait.effective_timeout(_seconds(timeout))
        if self.timeout <= 0:
            raise ValueError("timeout must be greater than zero")

        self.wait_task: Future[None] = Future()
        self.last_error: BaseException | None = None
        self.check_count = 0
        self._lock = threading.Lock()
        self._closed = False
        self._timer: threading.Timer | None = None

        # Subscribe before the first check so no render can slip in between.
        self.fragment.add_render_listener(self._on_render)
        try:
            self._evaluate()
        except BaseException:
            # pytest.fail(), KeyboardInterrupt and friends bypass _evaluate's handling.
            self.close()
            raise
        with self._lock:
            if self._closed:
                return
            self._timer = threading.Timer(self.timeout, self._on_timeout)
            self._timer.daemon = True
            self._timer.start()
        log.debug("%s subscribed to renders (timeout=%.3fs)", type(self).__name__, self.timeout)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def check(self) -> bool:
        raise NotImplementedError

    def is_transient(self, error: Exception) -> bool:
        return False

    def close(self) -> None:
        """Release the render subscription and the timer; safe to call repeatedly."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            timer, self._timer = self._timer, None
            if not self.wait_task.done():
                self.wait_task.cancel()
        if timer is not None:
            timer.cancel()
        self.fragment.remove_render_listener(self._on_render)
        log.debug("%s released after %d check(s)", type(self).__name__, self.check_count)

    def _on_render(self) -> None:
        if self.wait_task.done():
            return
        log.debug("%s re-checking after render %d", type(self).__name__, self.fragment.render_count)
        self._evaluate()

    def _evaluate(self) -> None:
        self.check_count += 1
        try:
            passed = self.check()
        except Exception as e:
            cause = collapse_exception_group(e)
            if isinstance(cause, Exception) and self.is_transient(cause):
                self.last_error = cause
                return
            error = WaitEvaluationError(
                f"{type(self).__name__} check raised {type(cause).__name__}: {cause}"
            )
            error.__cause__ = cause
            self._resolve(error)
            return
        if passed:
            self._resolve(None)

    def _on_timeout(self) -> None:
        error = WaitTimeoutError(
            f"{self.timeout_message} after {self.timeout:g}s", timeout=self.timeout
        )
        error.__cause__ = self.last_error or TimeoutError(
            f"No successful check within {self.timeout:g}s"
        )
        self._resolve(error)

    def _resolve(self, error: WaitForFailedError | None) -> None:
        with self._lock:
            if self.wait_task.done():
                return
            if error is None:
                self.wait_task.set_result(None)
            else:
                self.wait_task.set_exception(error)
        if error is None:
            log.debug("%s satisfied after %d check(s)", type(self).__name__, self.check_count)
        else:
            log.debug("%s failed: %s", type(self).__name__, error)
        self.close()


class WaitForStateHelper(WaitForHelper):
    """Waits until a predicate returns ``True``."""

    timeout_message = "The state predicate did not pass before the timeout period passed"

    def __init__(
        self,
        fragment: RenderedFragment,
        predicate: Callable[[], bool],
        timeout: Timeout = None,
    ) -> None:
        self._predicate = predicate
        super().__init__(fragment, timeout)

    def check(self) -> bool:
        return bool(self._predicate())


class WaitForAssertionHelper(WaitForHelper):
    """Waits until an assertion stops raising ``AssertionError``."""

    timeout_message = "The assertion did not pass within the timeout period"

    def __init__(
        self,
        fragment: RenderedFragment,
        assertion: Callable[[], object],
        timeout: Timeout = None,
    ) -> None:
        self._assertion = assertion
        super().__init__(fragment, timeout)

    def check(self) -> bool:
        self._assertion()
        return True

    def is_transient(self, error: Exception) -> bool:
        return isinstance(error, AssertionError)


def _block(helper: WaitForHelper) -> None:
    with helper:
        helper.wait_task.result()


async def _suspend(helper: WaitForHelper) -> None:
    with helper:
        await asyncio.wrap_future(helper.wait_task)


def wait_for_state(
    fragment: RenderedFragment,
    predicate: Callable[[], bool],
    timeout: Timeout = None,
) -> None:
    """Block until *predicate* returns ``True`` or *timeout* is reached.

    The predicate is evaluated immediately, then each time *fragment* renders.
    The default timeout comes from ``config.wait.default_timeout`` (one second).

    Raises:
        WaitTimeoutError: The predicate never returned ``True`` in time.
        WaitEvaluationError: The predicate raised; see ``__cause__``.
    """
    _block(WaitForStateHelper(fragment, predicate, timeout))


async def wait_for_state_async(
    fragment: RenderedFragment,
    predicate: Callable[[], bool],
    timeout: Timeout = None,
) -> None:
    """Awaitable form of :func:`wait_for_state` for async test bodies."""
    await _suspend(WaitForStateHelper(fragment, predicate, timeout))


def wait_for_assertion(
    fragment: RenderedFragment,
    assertion: Callable[[], object],
    timeout: Timeout = None,
) -> None:
    """Block until *assertion* passes (does not raise) or *timeout* is reached.

    ``AssertionError`` is treated as "not yet"; the last one captured becomes
    the ``__cause__`` of the timeout error. Any other error fails immediately.

    Raises:
        WaitTimeoutError: The assertion kept failing until the timeout.
        WaitEvaluationError: The assertion raised something other than
            ``AssertionError``; see ``__cause__``.
    """
    _block(WaitForAssertionHelper(fragment, assertion, timeout))


async def wait_for_assertion_async(
    fragment: RenderedFragment,
    assertion: Callable[[], object],
    timeout: Timeout = None,
) -> None:
    """Awaitable form of :func:`wait_for_assertion` for async test bodies."""
    await _suspend(WaitForAssertionHelper(fragment, assertion, timeout))


__all__ = [
    "WaitForAssertionHelper",
    "WaitForHelper",
    "WaitForStateHelper",
    "wait_for_assertion",
    "wait_for_assertion_async",
    "wait_for_state",
    "wait_for_state_async",
]
