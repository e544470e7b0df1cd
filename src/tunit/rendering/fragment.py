"""Rendered fragments and their render notifications."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from tunit.config import TunitConfig

if TYPE_CHECKING:
    from collections.abc import Callable

log = logging.getLogger(__name__)

type RenderListener = Callable[[], None]


class RenderedFragment:
    """A fragment that has been rendered at least once.

    Listeners run after every render, on whichever thread the renderer
    publishes from. A listener that raises is logged and skipped so one
    broken subscriber cannot starve the others.
    """

    def __init__(self, *, config: TunitConfig | None = None) -> None:
        self.config = config if config is not None else TunitConfig()
        self._listeners: list[RenderListener] = []
        self._lock = threading.Lock()
        self._render_count = 0

    @property
    def render_count(self) -> int:
        """Number of renders observed so far."""
        return self._render_count

    @property
    def markup(self) -> str:
        """Serialized markup of the most recent render."""
        raise NotImplementedError

    def add_render_listener(self, listener: RenderListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_render_listener(self, listener: RenderListener) -> None:
        """Detach *listener* (bound methods match by equality); unknown ones are ignored."""
        with self._lock:
            self._listeners = [
                registered for registered in self._listeners if registered != listener
            ]

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def notify_rendered(self) -> None:
        """Record a render and call every listener registered at this moment."""
        with self._lock:
            self._render_count += 1
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener()
            except Exception:
                log.exception("Render listener %r failed", listener)


class StaticFragment(RenderedFragment):
    """Fragment whose markup is set directly.

    Each ``update`` counts as one render.
    """

    def __init__(self, markup: str = "", *, config: TunitConfig | None = None) -> None:
        super().__init__(config=config)
        self._markup = markup

    @property
    def markup(self) -> str:
        return self._markup

    def update(self, markup: str) -> None:
        self._markup = markup
        self.notify_rendered()


__all__ = ["RenderListener", "RenderedFragment", "StaticFragment"]
