"""Headless Textual renderer for fragments.

Usage:
    async with TextualRenderer() as renderer:
        render_id = await renderer.render_fragment(lambda: [Label("Hi", id="greeting")])
        fragment = renderer.get_fragment(render_id)
        assert "Hi" in renderer.get_markup(render_id)
"""

from __future__ import annotations

import asyncio
import contextvars
import logging
from collections.abc import Callable, Coroutine, Iterable
from typing import TYPE_CHECKING, NewType, Protocol, Self

from textual.app import App
from textual.containers import Container

from tunit.config import TunitConfig
from tunit.errors import RendererNotStartedError
from tunit.rendering.fragment import RenderedFragment
from tunit.rendering.markup import children_to_markup
from tunit.services import ServiceCollection

if TYPE_CHECKING:
    from types import TracebackType

    from textual.app import ComposeResult
    from textual.pilot import Pilot
    from textual.widget import Widget

log = logging.getLogger(__name__)

RenderId = NewType("RenderId", int)

type Fragment = Callable[[], Iterable[Widget]]
"""Zero-argument callable yielding the widgets to render.

Generator functions may use Textual's ``with Container():`` compose syntax.
"""


class Renderer(Protocol):
    """What the snapshot orchestration needs from a rendering engine."""

    async def render_fragment(self, fragment: Fragment) -> RenderId: ...

    def get_markup(self, render_id: RenderId) -> str: ...


class FragmentRoot(Container):
    """Container that composes one fragment."""

    DEFAULT_CSS = """
    FragmentRoot {
        height: auto;
    }
    """

    def __init__(self, fragment: Fragment, render_id: RenderId) -> None:
        super().__init__(id=f"fragment-{render_id}")
        self._fragment = fragment

    def compose(self) -> ComposeResult:
        yield from self._fragment()


class FragmentHostApp(App[None]):
    """Blank app that hosts rendered fragments and exposes test services."""

    def __init__(self, services: ServiceCollection) -> None:
        super().__init__()
        self.services = services


class TextualRenderedFragment(RenderedFragment):
    """A fragment mounted inside a running :class:`FragmentHostApp`."""

    def __init__(self, root: FragmentRoot, render_id: RenderId, config: TunitConfig) -> None:
        super().__init__(config=config)
        self.root = root
        self.render_id = render_id
        self._last_markup: str | None = None

    @property
    def markup(self) -> str:
        return children_to_markup(self.root)

    def find(self, selector: str) -> Widget:
        """Return the single widget matching *selector* inside this fragment."""
        return self.root.query_one(selector)

    def find_all(self, selector: str) -> list[Widget]:
        return list(self.root.query(selector))

    def check_for_render(self) -> bool:
        """Publish a render notification if the markup changed since the last one."""
        if not self.root.is_attached:
            return False
        current = self.markup
        if current == self._last_markup:
            return False
        self._last_markup = current
        self.notify_rendered()
        return True


class TextualRenderer:
    """Renders fragments into a headless Textual app.

    The app runs inside one long-lived task for its whole lifetime, so the
    renderer can be started and stopped from different tasks (fixture setup
    and teardown, or separate portal submissions). Render notifications are
    published from an interval timer inside the app whenever a fragment's
    serialized markup changes.
    """

    def __init__(
        self,
        *,
        services: ServiceCollection | None = None,
        config: TunitConfig | None = None,
    ) -> None:
        self.services = services if services is not None else ServiceCollection()
        self.config = config if config is not None else TunitConfig()
        self.app = FragmentHostApp(self.services)
        self._pilot: Pilot[None] | None = None
        self._app_context: contextvars.Context | None = None
        self._lifetime: asyncio.Task[None] | None = None
        self._stop_requested: asyncio.Event | None = None
        self._fragments: dict[RenderId, TextualRenderedFragment] = {}
        self._next_id = 1

    async def __aenter__(self) -> Self:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()

    @property
    def is_running(self) -> bool:
        return self._pilot is not None

    @property
    def pilot(self) -> Pilot[None]:
        if self._pilot is None:
            raise RendererNotStartedError("TextualRenderer is not running; use 'async with'")
        return self._pilot

    async def start(self) -> None:
        """Start the host app and return once it is ready to mount fragments."""
        if self._lifetime is not None:
            return
        ready = asyncio.Event()
        self._stop_requested = asyncio.Event()
        self._lifetime = asyncio.create_task(self._host(ready), name="tunit-renderer")

        ready_waiter = asyncio.create_task(ready.wait())
        done, _ = await asyncio.wait(
            {ready_waiter, self._lifetime}, return_when=asyncio.FIRST_COMPLETED
        )
        if ready_waiter not in done:
            ready_waiter.cancel()
            lifetime, self._lifetime = self._lifetime, None
            # The app exited before becoming ready; surface its error.
            lifetime.result()
            raise RendererNotStartedError("Textual host app exited during startup")
        log.debug("Renderer started (interval=%.4fs)", self.config.render.interval)

    async def _host(self, ready: asyncio.Event) -> None:
        assert self._stop_requested is not None
        async with self.app.run_test(headless=True, size=self.config.render.size) as pilot:
            self._pilot = pilot
            self._app_context = contextvars.copy_context()
            self.app.set_interval(self.config.render.interval, self._publish_renders)
            ready.set()
            try:
                await self._stop_requested.wait()
            finally:
                self._pilot = None
                self._app_context = None

    async def stop(self) -> None:
        """Shut the host app down; errors raised inside the app propagate here."""
        if self._lifetime is None:
            return
        lifetime, self._lifetime = self._lifetime, None
        assert self._stop_requested is not None
        self._stop_requested.set()
        try:
            await lifetime
        finally:
            self._fragments.clear()
            log.debug("Renderer stopped")

    async def _in_app_context[T](self, coro: Coroutine[object, object, T]) -> T:
        # Textual looks up the active app through context variables set by run_test.
        assert self._app_context is not None
        return await asyncio.create_task(coro, context=self._app_context.copy())

    async def render_fragment(self, fragment: Fragment) -> RenderId:
        """Mount *fragment* and return its render id once the first render is published."""
        pilot = self.pilot
        render_id = RenderId(self._next_id)
        self._next_id += 1

        async def _mount() -> TextualRenderedFragment:
            root = FragmentRoot(fragment, render_id)
            rendered = TextualRenderedFragment(root, render_id, self.config)
            self._fragments[render_id] = rendered
            await self.app.screen.mount(root)
            await pilot.pause()
            return rendered

        try:
            async with asyncio.timeout(self.config.render.settle_timeout):
                rendered = await self._in_app_context(_mount())
        except BaseException:
            self._fragments.pop(render_id, None)
            raise
        rendered.check_for_render()
        log.debug("Rendered fragment %d", render_id)
        return render_id

    def get_fragment(self, render_id: RenderId) -> TextualRenderedFragment:
        try:
            return self._fragments[render_id]
        except KeyError:
            raise KeyError(f"Unknown render id: {render_id}") from None

    def get_markup(self, render_id: RenderId) -> str:
        return self.get_fragment(render_id).markup

    async def settle(self) -> None:
        """Let pending messages run, then publish any renders they caused."""
        await self._in_app_context(self.pilot.pause())
        self._publish_renders()

    def _publish_renders(self) -> None:
        for rendered in list(self._fragments.values()):
            rendered.check_for_render()


__all__ = [
    "Fragment",
    "FragmentHostApp",
    "FragmentRoot",
    "RenderId",
    "Renderer",
    "TextualRenderedFragment",
    "TextualRenderer",
]
