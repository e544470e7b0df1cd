"""Error types raised by tunit helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tunit.diffing.compare import Diff
    from tunit.diffing.nodes import Node


class TunitError(Exception):
    """Base class for all tunit errors."""


class ConfigurationError(TunitError, ValueError):
    """A test declaration or configuration value is missing or invalid."""


class MissingServiceError(TunitError, LookupError):
    """No service is registered for the requested interface."""

    def __init__(self, interface: type) -> None:
        self.interface = interface
        super().__init__(f"No service registered for {interface.__name__}")


class RendererNotStartedError(TunitError, RuntimeError):
    """The renderer was used outside of its running context."""


class WaitForFailedError(TunitError):
    """A wait helper did not reach the desired state.

    Inspect ``__cause__`` for the underlying reason: a ``TimeoutError`` or the
    last captured assertion failure for timeouts, or the error raised by the
    predicate itself for evaluation failures.
    """


class WaitTimeoutError(WaitForFailedError):
    """The predicate or assertion did not pass before the timeout elapsed."""

    def __init__(self, message: str, *, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(message)


class WaitEvaluationError(WaitForFailedError):
    """The predicate or assertion raised an unexpected error."""


class SnapshotMismatchError(TunitError, AssertionError):
    """Rendered test input does not match the expected output."""

    def __init__(
        self,
        diffs: Sequence[Diff],
        expected: Sequence[Node],
        actual: Sequence[Node],
        description: str | None = None,
    ) -> None:
        self.diffs = list(diffs)
        self.expected = tuple(expected)
        self.actual = tuple(actual)
        self.description = description
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        from tunit.diffing.nodes import to_markup

        header = "Snapshot mismatch"
        if self.description:
            header = f"{header}: {self.description}"
        lines = [f"{header} ({len(self.diffs)} difference(s))"]
        lines.extend(f"  - {diff.describe()}" for diff in self.diffs)
        lines.append("")
        lines.append("Expected markup:")
        lines.append(to_markup(self.expected, indent="  "))
        lines.append("")
        lines.append("Actual markup:")
        lines.append(to_markup(self.actual, indent="  "))
        return "\n".join(lines)


def collapse_exception_group(error: BaseException) -> BaseException:
    """Unwrap an exception group that holds exactly one inner exception.

    Groups with several causes are returned unchanged so every cause is
    reported together.
    """
    while isinstance(error, BaseExceptionGroup) and len(error.exceptions) == 1:
        error = error.exceptions[0]
    return error


__all__ = [
    "ConfigurationError",
    "MissingServiceError",
    "RendererNotStartedError",
    "SnapshotMismatchError",
    "TunitError",
    "WaitEvaluationError",
    "WaitForFailedError",
    "WaitTimeoutError",
    "collapse_exception_group",
]
