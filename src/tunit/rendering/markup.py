"""Serialize mounted Textual widget trees to markup."""

from __future__ import annotations

import re
from html import escape
from typing import TYPE_CHECKING

from textual.widgets import Button, Checkbox, Input, RadioButton, Static, Switch

if TYPE_CHECKING:
    from collections.abc import Iterable

    from textual.widget import Widget

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")

# Names the HTML parser treats as void or raw-text elements; kept as-is they
# would lose their children when the markup is parsed back.
_RESERVED_TAGS = frozenset(
    {
        "area", "base", "basefont", "bgsound", "br", "col", "command", "embed",
        "frame", "hr", "image", "img", "input", "isindex", "keygen", "link",
        "menuitem", "meta", "nextid", "param", "source", "spacer", "track", "wbr",
        "noscript", "plaintext", "script", "style", "template", "textarea", "title",
        "xmp",
    }
)  # fmt: skip


def tag_for(widget: Widget) -> str:
    """Return the markup tag for a widget, e.g. ``KanbanColumn`` -> ``kanban-column``.

    Names that collide with void or raw-text HTML elements get a ``-widget``
    suffix, so ``Input`` becomes ``input-widget``.
    """
    tag = _CAMEL_BOUNDARY.sub("-", type(widget).__name__).lower()
    if tag in _RESERVED_TAGS:
        return f"{tag}-widget"
    return tag


def _attributes(widget: Widget) -> list[tuple[str, str | None]]:
    attrs: list[tuple[str, str | None]] = []
    if widget.id:
        attrs.append(("id", widget.id))
    # Classes with a leading dash are Textual's internal style classes.
    classes = sorted(name for name in widget.classes if not name.startswith("-"))
    if classes:
        attrs.append(("class", " ".join(classes)))
    if widget.disabled:
        attrs.append(("disabled", None))

    if isinstance(widget, Input):
        attrs.append(("value", widget.value))
        if widget.placeholder:
            attrs.append(("placeholder", widget.placeholder))
        if widget.password:
            attrs.append(("password", None))
    elif isinstance(widget, (Checkbox, RadioButton, Switch)):
        if widget.value:
            attrs.append(("checked", None))
    elif isinstance(widget, Button):
        attrs.append(("variant", str(widget.variant)))
    return attrs


def _text(widget: Widget) -> str:
    if isinstance(widget, (Button, Checkbox, RadioButton)):
        return str(widget.label)
    if isinstance(widget, Static):
        return str(widget.render())
    return ""


def _format_attributes(attrs: Iterable[tuple[str, str | None]]) -> str:
    parts = []
    for name, value in attrs:
        if value is None:
            parts.append(f" {name}")
        else:
            parts.append(f' {name}="{escape(value, quote=True)}"')
    return "".join(parts)


def widget_to_markup(widget: Widget) -> str:
    """Serialize *widget* and its mounted descendants."""
    tag = tag_for(widget)
    inner = escape(_text(widget), quote=False)
    inner += children_to_markup(widget)
    return f"<{tag}{_format_attributes(_attributes(widget))}>{inner}</{tag}>"


def children_to_markup(widget: Widget) -> str:
    """Serialize the children of *widget* without the widget itself."""
    return "".join(widget_to_markup(child) for child in widget.children)


__all__ = ["children_to_markup", "tag_for", "widget_to_markup"]
