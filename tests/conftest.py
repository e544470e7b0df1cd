"""Pytest configuration for tunit tests."""

from __future__ import annotations

import os

import pytest
from hypothesis import Phase, Verbosity, settings

from tunit.config import TunitConfig, WaitConfig

pytest_plugins = ["pytester"]

settings.register_profile(
    "ci",
    max_examples=100,
    deadline=None,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
)
settings.register_profile(
    "dev",
    max_examples=30,
    deadline=None,
)
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark tests by directory so ``-m unit`` and ``-m tui`` select them."""
    del config
    for item in items:
        path = str(item.path).replace("\\", "/")
        if "/tests/tui/" in path:
            item.add_marker(pytest.mark.tui)
        elif "/tests/unit/" in path:
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def exact_config() -> TunitConfig:
    """Config whose timeouts are not scaled on CI runners, for timing assertions."""
    return TunitConfig(wait=WaitConfig(scale_on_ci=False))
