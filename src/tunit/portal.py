"""Run coroutines on a dedicated event-loop thread for blocking callers."""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Future
from typing import TYPE_CHECKING, Self

from tunit.errors import collapse_exception_group
from tunit.limits import SHUTDOWN_TIMEOUT

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine
    from types import TracebackType

log = logging.getLogger(__name__)


class LoopPortal:
    """Owns an asyncio loop running forever on a background thread.

    Synchronous test bodies submit work with :meth:`run` and :meth:`call`
    and block until it finishes. Everything the loop does (including
    publishing render notifications) happens on the portal thread.
    """

    def __init__(self, name: str = "tunit-portal") -> None:
        self._name = name
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None

    def __enter__(self) -> Self:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            raise RuntimeError("LoopPortal is not started")
        return self._loop

    def start(self) -> None:
        if self._thread is not None:
            return
        loop = asyncio.new_event_loop()
        ready = threading.Event()

        def _run() -> None:
            asyncio.set_event_loop(loop)
            loop.call_soon(ready.set)
            loop.run_forever()

        self._loop = loop
        self._thread = threading.Thread(target=_run, name=self._name, daemon=True)
        self._thread.start()
        ready.wait()
        log.debug("Portal thread %s started", self._name)

    def stop(self) -> None:
        if self._thread is None or self._loop is None:
            return
        loop, thread = self._loop, self._thread
        self._loop = None
        self._thread = None
        loop.call_soon_threadsafe(loop.stop)
        thread.join(SHUTDOWN_TIMEOUT)
        if thread.is_alive():
            log.warning("Portal thread %s did not stop within %.1fs", self._name, SHUTDOWN_TIMEOUT)
            return
        loop.close()
        log.debug("Portal thread %s stopped", self._name)

    def submit[T](self, coro: Coroutine[object, object, T]) -> Future[T]:
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    def run[T](self, coro: Coroutine[object, object, T], timeout: float | None = None) -> T:
        """Run *coro* on the portal loop and block for its result."""
        future = self.submit(coro)
        try:
            return future.result(timeout)
        except BaseExceptionGroup as group:
            raise collapse_exception_group(group) from None

    def call[T](self, func: Callable[[], T], timeout: float | None = None) -> T:
        """Call a synchronous *func* on the portal thread and block for its result."""

        async def _call() -> T:
            return func()

        return self.run(_call(), timeout)


__all__ = ["LoopPortal"]
