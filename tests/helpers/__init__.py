"""Test helpers package."""

from tests.helpers.fragments import FakeHost, FakeRenderer, render_from_thread
from tests.helpers.widgets import BridgeCaller, Counter, Greeting, SlowMount

__all__ = [
    "BridgeCaller",
    "Counter",
    "FakeHost",
    "FakeRenderer",
    "Greeting",
    "SlowMount",
    "render_from_thread",
]
