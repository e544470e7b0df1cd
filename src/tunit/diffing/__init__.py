"""Markup parsing and semantic comparison."""

from tunit.diffing.compare import Comparer, Diff, DiffKind, compare
from tunit.diffing.nodes import Comment, Element, Node, Text, parse_markup, to_markup

__all__ = [
    "Comment",
    "Comparer",
    "Diff",
    "DiffKind",
    "Element",
    "Node",
    "Text",
    "compare",
    "parse_markup",
    "to_markup",
]
