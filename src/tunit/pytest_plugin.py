"""Pytest fixtures for tunit.

Registered through the ``pytest11`` entry point. The async fixture expects
pytest-asyncio in ``asyncio_mode = "auto"``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from tunit.config import TunitConfig
from tunit.context import TestContext

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "tunit_config(**sections): override tunit config values")


@pytest.fixture
def tunit_config(request: pytest.FixtureRequest) -> Iterator[TunitConfig]:
    """Project configuration, with ``@pytest.mark.tunit_config(...)`` overrides applied.

    The ``tunit`` logger level is set from ``log_level`` for the test and
    restored afterwards.
    """
    config = TunitConfig.load()
    marker = request.node.get_closest_marker("tunit_config")
    if marker is not None:
        merged = config.model_dump()
        for section, values in marker.kwargs.items():
            if isinstance(values, dict) and isinstance(merged.get(section), dict):
                merged[section].update(values)
            else:
                merged[section] = values
        config = TunitConfig.from_mapping(merged)
    logger = logging.getLogger("tunit")
    previous = logger.level
    logger.setLevel(config.log_level)
    try:
        yield config
    finally:
        logger.setLevel(previous)


@pytest.fixture
async def tunit_context(tunit_config: TunitConfig) -> AsyncIterator[TestContext]:
    """A running context on the test's event loop, for async tests."""
    async with TestContext(tunit_config) as ctx:
        yield ctx


@pytest.fixture
def tunit_sync_context(tunit_config: TunitConfig) -> Iterator[TestContext]:
    """A running context on a portal thread, for synchronous tests."""
    with TestContext(tunit_config) as ctx:
        yield ctx
