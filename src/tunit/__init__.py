"""tunit: wait helpers and semantic snapshot tests for Textual components."""

from tunit.context import TestContext
from tunit.errors import (
    ConfigurationError,
    SnapshotMismatchError,
    TunitError,
    WaitEvaluationError,
    WaitForFailedError,
    WaitTimeoutError,
)
from tunit.snapshot import SnapshotTest
from tunit.waiting import (
    wait_for_assertion,
    wait_for_assertion_async,
    wait_for_state,
    wait_for_state_async,
)

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "SnapshotMismatchError",
    "SnapshotTest",
    "TestContext",
    "TunitError",
    "WaitEvaluationError",
    "WaitForFailedError",
    "WaitTimeoutError",
    "wait_for_assertion",
    "wait_for_assertion_async",
    "wait_for_state",
    "wait_for_state_async",
]
