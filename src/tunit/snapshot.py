"""Snapshot tests: render two fragments and compare their markup semantically.

Usage:
    def greeting_card():
        with Vertical(classes="card"):
            yield Label("Hello, Ada", id="greeting")

    test = SnapshotTest(
        test_input=greeting_card,
        expected_output=lambda: [
            Vertical(Label("Hello, Ada", id="greeting"), classes="card")
        ],
    )
    async with TestContext() as ctx:
        await test.run(ctx)
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Any, Protocol

from tunit.config import TunitConfig
from tunit.diffing import compare, parse_markup
from tunit.errors import ConfigurationError, SnapshotMismatchError
from tunit.services import HostBridge, PlaceholderHostBridge, ServiceCollection

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from tunit.context import TestContext
    from tunit.rendering.renderer import Fragment, Renderer

log = logging.getLogger(__name__)

type Setup = Callable[[SnapshotTest], object]
type SetupAsync = Callable[[SnapshotTest], Awaitable[object]]

# Declarative parameter name -> constructor keyword.
_PARAMETER_NAMES: dict[str, str] = {
    "Setup": "setup",
    "SetupAsync": "setup_async",
    "TestInput": "test_input",
    "ExpectedOutput": "expected_output",
    "Description": "description",
    "Skip": "skip",
    "Timeout": "timeout",
}


class SnapshotHost(Protocol):
    """Anything that provides services, a renderer and configuration."""

    services: ServiceCollection
    renderer: Renderer
    config: TunitConfig


class SnapshotTest:
    """Renders ``test_input`` and ``expected_output`` and fails if their markup differs."""

    __test__ = False

    def __init__(
        self,
        *,
        test_input: Fragment | None,
        expected_output: Fragment | None,
        setup: Setup | None = None,
        setup_async: SetupAsync | None = None,
        description: str | None = None,
        skip: str | None = None,
        timeout: float | None = None,
    ) -> None:
        if test_input is None:
            raise ConfigurationError("No TestInput specified in the SnapshotTest")
        if expected_output is None:
            raise ConfigurationError("No ExpectedOutput specified in the SnapshotTest")
        if timeout is not None and timeout <= 0:
            raise ConfigurationError("SnapshotTest timeout must be greater than zero")
        self.test_input = test_input
        self.expected_output = expected_output
        self.setup = setup
        self.setup_async = setup_async
        self.description = description
        self.skip = skip
        self.timeout = timeout
        self.services: ServiceCollection | None = None

    @classmethod
    def from_parameters(cls, parameters: Mapping[str, Any]) -> SnapshotTest:
        """Build a test from declarative parameters (``TestInput=...``) or keywords."""
        kwargs: dict[str, Any] = {}
        for name, value in parameters.items():
            keyword = _PARAMETER_NAMES.get(name, name)
            if keyword not in _PARAMETER_NAMES.values():
                raise ConfigurationError(f"Unknown SnapshotTest parameter: {name}")
            kwargs[keyword] = value

        kwargs.setdefault("test_input", None)
        kwargs.setdefault("expected_output", None)
        return cls(**kwargs)

    async def run(self, host: SnapshotHost | TestContext) -> None:
        """Run setup, render both fragments and compare them.

        Raises:
            SnapshotMismatchError: The rendered markup differs.
        """
        if self.skip:
            log.info("Skipping snapshot test %r: %s", self.description or "", self.skip)
            return

        if self.timeout is None:
            await self._run(host)
        else:
            async with asyncio.timeout(self.timeout):
                await self._run(host)

    def run_sync(self, context: TestContext) -> None:
        """Run the test from a synchronous body against a ``with TestContext()`` context."""
        context.run(self.run(context))

    async def _run(self, host: SnapshotHost | TestContext) -> None:
        host.services.add_singleton(HostBridge, PlaceholderHostBridge())
        self.services = host.services

        if self.setup is not None:
            self.setup(self)
        if self.setup_async is not None:
            result = self.setup_async(self)
            if inspect.isawaitable(result):
                await result

        renderer = host.renderer
        input_id = await renderer.render_fragment(self.test_input)
        expected_id = await renderer.render_fragment(self.expected_output)

        input_markup = renderer.get_markup(input_id)
        expected_markup = renderer.get_markup(expected_id)
        log.debug("Snapshot input markup: %s", input_markup)
        log.debug("Snapshot expected markup: %s", expected_markup)

        actual_nodes = parse_markup(input_markup)
        expected_nodes = parse_markup(expected_markup)
        diffs = compare(actual_nodes, expected_nodes, host.config.diff)

        if diffs:
            raise SnapshotMismatchError(diffs, expected_nodes, actual_nodes, self.description)


__all__ = ["SnapshotHost", "SnapshotTest"]
