"""Tests for how a test context wires services and configuration."""

from __future__ import annotations

from tunit.config import TunitConfig
from tunit.context import TestContext
from tunit.rendering import StaticFragment, TextualRenderer
from tunit.services import ServiceCollection


def test_app_shares_the_context_services():
    ctx = TestContext()

    assert len(ctx.services) == 0
    assert ctx.renderer.services is ctx.services
    assert ctx.renderer.app.services is ctx.services


def test_renderer_keeps_an_empty_collection_it_is_given():
    services = ServiceCollection()

    renderer = TextualRenderer(services=services)

    assert renderer.app.services is services


def test_config_is_passed_through_unchanged():
    config = TunitConfig()

    ctx = TestContext(config)

    assert ctx.config is config
    assert ctx.renderer.config is config
    assert StaticFragment(config=config).config is config
