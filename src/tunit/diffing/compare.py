"""Semantic comparison of parsed node trees.

Two trees are equivalent when they differ only in ways a reader would not
notice: attribute order, class order, runs of whitespace, whitespace-only
text between elements, and comments. Elements carrying the ignore attribute
(``diff:ignore`` by default) in the expected tree are not compared at all.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from tunit.config import DiffConfig
from tunit.diffing.nodes import Comment, Element, Text

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tunit.diffing.nodes import Node


class DiffKind(Enum):
    MISSING_NODE = "missing node"
    UNEXPECTED_NODE = "unexpected node"
    NODE_TYPE = "node type"
    TAG = "tag"
    MISSING_ATTR = "missing attribute"
    UNEXPECTED_ATTR = "unexpected attribute"
    ATTR_VALUE = "attribute value"
    TEXT = "text"


@dataclass(frozen=True, slots=True)
class Diff:
    """One difference between the actual and the expected tree."""

    kind: DiffKind
    path: str
    expected: str | None = None
    actual: str | None = None

    def describe(self) -> str:
        detail = []
        if self.expected is not None:
            detail.append(f"expected {self.expected!r}")
        if self.actual is not None:
            detail.append(f"actual {self.actual!r}")
        suffix = f": {', '.join(detail)}" if detail else ""
        return f"{self.kind.value} at {self.path}{suffix}"


def _label(node: Node) -> str:
    if isinstance(node, Element):
        return node.tag
    if isinstance(node, Text):
        return "#text"
    return "#comment"


def _summary(node: Node) -> str:
    if isinstance(node, Element):
        return f"<{node.tag}>"
    if isinstance(node, Text):
        return node.value.strip()
    return f"<!--{node.value}-->"


class Comparer:
    def __init__(self, config: DiffConfig | None = None) -> None:
        self.config = config or DiffConfig()

    def compare(self, actual: Sequence[Node], expected: Sequence[Node]) -> list[Diff]:
        diffs: list[Diff] = []
        self._compare_children(actual, expected, "", diffs)
        return diffs

    def _normalize_text(self, value: str) -> str:
        if self.config.collapse_whitespace:
            return " ".join(value.split())
        return value

    def _significant(self, nodes: Sequence[Node]) -> list[Node]:
        """Drop ignorable nodes and merge the text runs left next to each other."""
        result: list[Node] = []
        for node in nodes:
            if isinstance(node, Comment) and self.config.ignore_comments:
                continue
            if isinstance(node, Text):
                if result and isinstance(result[-1], Text):
                    result[-1] = Text(result[-1].value + node.value)
                    continue
            result.append(node)
        return [
            node for node in result if not (isinstance(node, Text) and not node.value.strip())
        ]

    def _compare_children(
        self,
        actual: Sequence[Node],
        expected: Sequence[Node],
        parent_path: str,
        diffs: list[Diff],
    ) -> None:
        actual_nodes = self._significant(actual)
        expected_nodes = self._significant(expected)
        for index in range(max(len(actual_nodes), len(expected_nodes))):
            if index >= len(actual_nodes):
                node = expected_nodes[index]
                path = _join(parent_path, f"{_label(node)}[{index}]")
                diffs.append(Diff(DiffKind.MISSING_NODE, path, expected=_summary(node)))
            elif index >= len(expected_nodes):
                node = actual_nodes[index]
                path = _join(parent_path, f"{_label(node)}[{index}]")
                diffs.append(Diff(DiffKind.UNEXPECTED_NODE, path, actual=_summary(node)))
            else:
                self._compare_node(
                    actual_nodes[index], expected_nodes[index], index, parent_path, diffs
                )

    def _compare_node(
        self,
        actual: Node,
        expected: Node,
        index: int,
        parent_path: str,
        diffs: list[Diff],
    ) -> None:
        path = _join(parent_path, f"{_label(expected)}[{index}]")
        if isinstance(expected, Element) and self.config.ignore_attribute in expected.attrs:
            return
        if type(actual) is not type(expected):
            diffs.append(
                Diff(DiffKind.NODE_TYPE, path, expected=_label(expected), actual=_label(actual))
            )
            return

        if isinstance(expected, Text):
            assert isinstance(actual, Text)
            expected_text = self._normalize_text(expected.value)
            actual_text = self._normalize_text(actual.value)
            if expected_text != actual_text:
                diffs.append(Diff(DiffKind.TEXT, path, expected=expected_text, actual=actual_text))
            return

        if isinstance(expected, Comment):
            assert isinstance(actual, Comment)
            if expected.value.strip() != actual.value.strip():
                diffs.append(
                    Diff(DiffKind.TEXT, path, expected=expected.value, actual=actual.value)
                )
            return

        assert isinstance(actual, Element)
        if actual.tag != expected.tag:
            diffs.append(Diff(DiffKind.TAG, path, expected=expected.tag, actual=actual.tag))
            return
        self._compare_attributes(actual, expected, path, diffs)
        self._compare_children(actual.children, expected.children, path, diffs)

    def _compare_attributes(
        self, actual: Element, expected: Element, path: str, diffs: list[Diff]
    ) -> None:
        for name in sorted(expected.attrs):
            expected_value = expected.attrs[name]
            if name not in actual.attrs:
                diffs.append(
                    Diff(DiffKind.MISSING_ATTR, f"{path} @{name}", expected=expected_value)
                )
                continue
            actual_value = actual.attrs[name]
            if not self._attribute_equal(name, actual_value, expected_value):
                diffs.append(
                    Diff(
                        DiffKind.ATTR_VALUE,
                        f"{path} @{name}",
                        expected=expected_value,
                        actual=actual_value,
                    )
                )
        for name in sorted(set(actual.attrs) - set(expected.attrs)):
            diffs.append(
                Diff(DiffKind.UNEXPECTED_ATTR, f"{path} @{name}", actual=actual.attrs[name])
            )

    def _attribute_equal(self, name: str, actual: str, expected: str) -> bool:
        if name == "class":
            if self.config.ignore_class_order:
                return set(actual.split()) == set(expected.split())
            return actual.split() == expected.split()
        return actual == expected


def _join(parent_path: str, segment: str) -> str:
    return f"{parent_path} > {segment}" if parent_path else segment


def compare(
    actual: Sequence[Node],
    expected: Sequence[Node],
    config: DiffConfig | None = None,
) -> list[Diff]:
    """Return the differences between *actual* and *expected*; empty means equivalent."""
    return Comparer(config).compare(actual, expected)


__all__ = ["Comparer", "Diff", "DiffKind", "compare"]
