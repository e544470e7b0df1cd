"""Test context wiring services, configuration and the renderer together.

Usage (synchronous test body, app runs on a portal thread):
    with TestContext() as ctx:
        fragment = ctx.render(lambda: [Counter(id="counter")])
        wait_for_state(fragment, lambda: fragment.find("#counter").count >= 3)

Usage (async test body, app runs on the current loop):
    async with TestContext() as ctx:
        fragment = await ctx.render_async(lambda: [Counter(id="counter")])
        await wait_for_state_async(fragment, lambda: fragment.find("#counter").count >= 3)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Self

from tunit.config import TunitConfig
from tunit.errors import RendererNotStartedError
from tunit.portal import LoopPortal
from tunit.rendering.renderer import TextualRenderer
from tunit.services import ServiceCollection

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine
    from types import TracebackType

    from tunit.rendering.renderer import Fragment, TextualRenderedFragment

log = logging.getLogger(__name__)


class TestContext:
    """Owns the services and the renderer for one test."""

    __test__ = False

    def __init__(self, config: TunitConfig | None = None) -> None:
        self.config = config if config is not None else TunitConfig()
        self.services = ServiceCollection()
        self.renderer = TextualRenderer(services=self.services, config=self.config)
        self._portal: LoopPortal | None = None

    # Synchronous mode

    def __enter__(self) -> Self:
        portal = LoopPortal()
        portal.start()
        try:
            portal.run(self.renderer.start())
        except BaseException:
            portal.stop()
            raise
        self._portal = portal
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        portal, self._portal = self._portal, None
        if portal is None:
            return
        try:
            portal.run(self.renderer.stop())
        finally:
            portal.stop()

    @property
    def portal(self) -> LoopPortal:
        if self._portal is None:
            raise RendererNotStartedError("TestContext is not running in synchronous mode")
        return self._portal

    def run[T](self, coro: Coroutine[object, object, T]) -> T:
        """Run a coroutine against the app on the portal thread."""
        return self.portal.run(coro)

    def call[T](self, func: Callable[[], T]) -> T:
        """Call *func* on the portal thread, e.g. to mutate widget state."""
        return self.portal.call(func)

    def render(self, fragment: Fragment) -> TextualRenderedFragment:
        render_id = self.portal.run(self.renderer.render_fragment(fragment))
        return self.renderer.get_fragment(render_id)

    # Asynchronous mode

    async def __aenter__(self) -> Self:
        await self.renderer.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.renderer.stop()

    async def render_async(self, fragment: Fragment) -> TextualRenderedFragment:
        render_id = await self.renderer.render_fragment(fragment)
        return self.renderer.get_fragment(render_id)


__all__ = ["TestContext"]
