"""Comparable node trees parsed from markup."""

from __future__ import annotations

from dataclasses import dataclass, field
from html import escape

from bs4 import BeautifulSoup
from bs4.element import Comment as SoupComment
from bs4.element import NavigableString, PageElement, Tag


@dataclass(frozen=True, slots=True)
class Text:
    value: str


@dataclass(frozen=True, slots=True)
class Comment:
    value: str


@dataclass(frozen=True, slots=True)
class Element:
    tag: str
    attrs: dict[str, str] = field(default_factory=dict, hash=False)
    children: tuple[Node, ...] = ()

    def get(self, name: str) -> str | None:
        return self.attrs.get(name)


type Node = Element | Text | Comment


def _convert(element: PageElement) -> Node | None:
    if isinstance(element, SoupComment):
        return Comment(str(element))
    if isinstance(element, NavigableString):
        # Doctype, CData and processing instructions are not compared.
        if type(element) is not NavigableString:
            return None
        return Text(str(element))
    if isinstance(element, Tag):
        attrs = {
            name: " ".join(value) if isinstance(value, list) else str(value)
            for name, value in element.attrs.items()
        }
        return Element(element.name, attrs, _convert_all(element.contents))
    return None


def _convert_all(elements: list[PageElement]) -> tuple[Node, ...]:
    return tuple(node for node in map(_convert, elements) if node is not None)


def parse_markup(markup: str) -> tuple[Node, ...]:
    """Parse *markup* into a tuple of top-level nodes.

    Tag and attribute names are lower-cased by the parser. Whitespace and
    comments are kept here; the comparer decides what is significant.
    """
    soup = BeautifulSoup(markup, "html.parser")
    return _convert_all(soup.contents)


def _format_element_open(element: Element) -> str:
    parts = [element.tag]
    for name, value in element.attrs.items():
        parts.append(name if value == "" else f'{name}="{escape(value, quote=True)}"')
    return "<" + " ".join(parts) + ">"


def to_markup(nodes: tuple[Node, ...] | list[Node], indent: str = "") -> str:
    """Pretty-print nodes one per line, skipping whitespace-only text."""
    lines: list[str] = []

    def _walk(node: Node, depth: int) -> None:
        pad = indent + "  " * depth
        if isinstance(node, Text):
            if node.value.strip():
                lines.append(pad + escape(node.value.strip(), quote=False))
        elif isinstance(node, Comment):
            lines.append(f"{pad}<!--{node.value}-->")
        else:
            lines.append(pad + _format_element_open(node))
            for child in node.children:
                _walk(child, depth + 1)
            lines.append(f"{pad}</{node.tag}>")

    for node in nodes:
        _walk(node, 0)
    return "\n".join(lines)


__all__ = ["Comment", "Element", "Node", "Text", "parse_markup", "to_markup"]
