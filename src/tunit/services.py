"""Service registration for rendered fragments.

Rendered widgets reach test services through ``app.services`` on the host
app. Each test context owns its own collection, so nothing here is global.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, cast, runtime_checkable

from tunit.errors import MissingServiceError

log = logging.getLogger(__name__)


@runtime_checkable
class HostBridge(Protocol):
    """Capability for calls that leave the widget tree (clipboard, browser, host shell)."""

    def invoke(self, identifier: str, *args: object) -> object: ...

    def invoke_void(self, identifier: str, *args: object) -> None: ...


class PlaceholderHostBridge:
    """No-op bridge registered when a test has no real host to talk to."""

    def __init__(self) -> None:
        self.invocations: list[tuple[str, tuple[object, ...]]] = []

    def invoke(self, identifier: str, *args: object) -> object:
        log.debug("Placeholder host bridge ignored invoke(%s)", identifier)
        self.invocations.append((identifier, args))
        return None

    def invoke_void(self, identifier: str, *args: object) -> None:
        log.debug("Placeholder host bridge ignored invoke_void(%s)", identifier)
        self.invocations.append((identifier, args))


class ServiceCollection:
    """Singleton registry keyed by interface type."""

    def __init__(self) -> None:
        self._singletons: dict[type, object] = {}

    def add_singleton[T](self, interface: type[T], instance: T) -> None:
        """Register *instance* for *interface*, replacing any previous one."""
        if interface in self._singletons:
            log.debug("Replacing registered %s", interface.__name__)
        self._singletons[interface] = instance

    def get[T](self, interface: type[T]) -> T | None:
        return cast("T | None", self._singletons.get(interface))

    def get_required[T](self, interface: type[T]) -> T:
        try:
            return cast("T", self._singletons[interface])
        except KeyError:
            raise MissingServiceError(interface) from None

    def __contains__(self, interface: Any) -> bool:
        return interface in self._singletons

    def __len__(self) -> int:
        return len(self._singletons)


__all__ = ["HostBridge", "PlaceholderHostBridge", "ServiceCollection"]
