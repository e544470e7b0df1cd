"""Rendering fragments into a headless Textual app."""

from tunit.rendering.fragment import RenderedFragment, RenderListener, StaticFragment
from tunit.rendering.markup import children_to_markup, tag_for, widget_to_markup
from tunit.rendering.renderer import (
    Fragment,
    RenderId,
    Renderer,
    TextualRenderedFragment,
    TextualRenderer,
)

__all__ = [
    "Fragment",
    "RenderId",
    "RenderListener",
    "RenderedFragment",
    "Renderer",
    "StaticFragment",
    "TextualRenderedFragment",
    "TextualRenderer",
    "children_to_markup",
    "tag_for",
    "widget_to_markup",
]
