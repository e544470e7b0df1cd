"""Numeric defaults and timeouts - no circular dependencies."""

from __future__ import annotations

import os

_CI_ENV_VARS = ("TUNIT_CI", "CI")
_ENABLED_VALUES = frozenset({"1", "true", "yes", "on"})


def _is_ci() -> bool:
    for name in _CI_ENV_VARS:
        raw = os.environ.get(name)
        if raw is not None and raw.strip().lower() in _ENABLED_VALUES:
            return True
    return False


IS_CI: bool = _is_ci()
"""True when running under a CI runner (``TUNIT_CI`` or ``CI`` set)."""


DEFAULT_WAIT_TIMEOUT = 1.0
CI_TIMEOUT_MULTIPLIER = 5.0

# Textual refreshes at most 60 times per second.
RENDER_INTERVAL = 1 / 60
RENDER_SETTLE_TIMEOUT = 5.0
SHUTDOWN_TIMEOUT = 5.0

DEFAULT_SCREEN_SIZE = (80, 24)
