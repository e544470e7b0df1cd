"""Tests for the fixtures registered by the tunit pytest plugin."""

from __future__ import annotations

import pytest
from textual.widgets import Label

from tunit import TestContext, wait_for_state, wait_for_state_async
from tunit.config import TunitConfig


@pytest.mark.tunit_config(wait={"default_timeout": 2.5}, log_level="DEBUG")
def test_marker_overrides_config(tunit_config: TunitConfig):
    assert tunit_config.wait.default_timeout == 2.5
    assert tunit_config.wait.ci_multiplier == 5.0
    assert tunit_config.log_level == "DEBUG"


async def test_async_context_fixture(tunit_context: TestContext):
    fragment = await tunit_context.render_async(lambda: [Label("ready", id="status")])

    await wait_for_state_async(fragment, lambda: "ready" in fragment.markup)


def test_sync_context_fixture(tunit_sync_context: TestContext):
    fragment = tunit_sync_context.render(lambda: [Label("ready", id="status")])

    wait_for_state(fragment, lambda: fragment.find("#status") is not None)


def test_log_level_override_is_restored_after_the_test(pytester: pytest.Pytester):
    pytester.makepyfile(
        """
        import logging

        import pytest

        LEVEL_AT_IMPORT = logging.getLogger("tunit").level


        @pytest.mark.tunit_config(log_level="DEBUG")
        def test_debug_inside(tunit_config):
            assert logging.getLogger("tunit").level == logging.DEBUG


        def test_level_restored_afterwards():
            assert logging.getLogger("tunit").level == LEVEL_AT_IMPORT
        """
    )

    result = pytester.runpytest()

    result.assert_outcomes(passed=2)
