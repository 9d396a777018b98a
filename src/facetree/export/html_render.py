"""HTML backend: annotation forest -> HTML AST.

Consecutive style attributes on the same span collapse into a single
``<span style="...">``: a chain of tag nodes each holding exactly one tag
child accumulates CSS declarations instead of nesting one element per
attribute.  Three attributes need structure rather than CSS:

- ``display``: a raised span is drawn twice, once absolutely positioned and
  once as an invisible placeholder that keeps the line's horizontal layout;
  a replacement string replaces the text.
- ``non-ascii``: two wrappers pin the glyphs to the monospace grid.
- ``invisible``: the subtree is dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from facetree.attributes import Attr
from facetree.config import get_settings
from facetree.errors import UnsupportedAttributeValueError
from facetree.export.html_ast import Element, HtmlNode, Text
from facetree.forest import build_forest
from facetree.normalize import AttributeNormalizer, Box, DisplayString, Raise, Underline
from facetree.tree import PriorityRanking, TagNode, TextNode

if TYPE_CHECKING:
    from facetree.attributes import AttributeProvider
    from facetree.config import Settings
    from facetree.tree import Node

logger = logging.getLogger(__name__)

HTML_RANKING = PriorityRanking(
    (
        Attr.FOREGROUND,
        Attr.WEIGHT,
        Attr.SLANT,
        Attr.HEIGHT,
        Attr.BACKGROUND,
        Attr.UNDERLINE,
        Attr.BOX,
        Attr.LINE_MARKER,
        Attr.NON_ASCII,
        Attr.INVISIBLE,
        Attr.DISPLAY,
    )
)

HTML_STYLESHEET = """\
.ft-non-ascii { display: inline-block; text-align: center; }
.ft-non-ascii-glyph { display: inline-block; max-width: 100%; overflow: visible; }
"""

_COARSE_WEIGHTS = {"light": "300", "regular": "normal", "bold": "bold"}
_UNDERLINE_STYLES = {"line": None, "wave": "wavy"}
_BORDER_STYLES = {
    None: "solid",
    "flat-button": "solid",
    "released-button": "outset",
    "pressed-button": "inset",
}

type Declarations = list[tuple[str, str]]


def _num(value: float) -> str:
    return f"{value:g}"


def _foreground(value: str) -> Declarations:
    return [("color", f"#{value}")]


def _background(value: str) -> Declarations:
    return [("background-color", f"#{value}")]


def _weight(value: Any) -> Declarations:
    if isinstance(value, int):
        return [("font-weight", str(value))]
    css = _COARSE_WEIGHTS.get(value)
    if css is None:
        raise UnsupportedAttributeValueError(Attr.WEIGHT, value, "no CSS font-weight")
    return [("font-weight", css)]


def _slant(value: str) -> Declarations:
    return [("font-style", value)]


def _height(value: float) -> Declarations:
    return [("font-size", f"{_num(value)}em")]


def _underline(value: Underline) -> Declarations:
    if value.style not in _UNDERLINE_STYLES:
        raise UnsupportedAttributeValueError(
            Attr.UNDERLINE, value, f"unknown underline style {value.style!r}"
        )
    decls: Declarations = [("text-decoration", "underline")]
    if style := _UNDERLINE_STYLES[value.style]:
        decls.append(("text-decoration-style", style))
    if value.color is not None:
        decls.append(("text-decoration-color", f"#{value.color}"))
    return decls


def _box(value: Box) -> Declarations:
    style = _BORDER_STYLES.get(value.style)
    if style is None:
        raise UnsupportedAttributeValueError(
            Attr.BOX, value, f"unknown box style {value.style!r}"
        )
    border = f"{value.line_width}px {style}"
    if value.color is not None:
        border += f" #{value.color}"
    return [("border", border)]


def _line_marker(value: Any) -> Declarations:
    if isinstance(value, float):
        return [("line-height", _num(value))]
    return []


_STYLE_HANDLERS: dict[str, Callable[[Any], Declarations]] = {
    Attr.FOREGROUND: _foreground,
    Attr.BACKGROUND: _background,
    Attr.WEIGHT: _weight,
    Attr.SLANT: _slant,
    Attr.HEIGHT: _height,
    Attr.UNDERLINE: _underline,
    Attr.BOX: _box,
    Attr.LINE_MARKER: _line_marker,
}


def _style_attr(decls: Declarations) -> str:
    return "; ".join(f"{prop}: {value}" for prop, value in decls)


def _append(out: list[HtmlNode], nodes: Sequence[HtmlNode]) -> None:
    """Extend *out*, merging adjacent text runs."""
    for node in nodes:
        if isinstance(node, Text) and out and isinstance(out[-1], Text):
            out[-1] = Text(out[-1].content + node.content)
        else:
            out.append(node)


class HtmlRenderer:
    """Render highlighted buffers to an HTML AST."""

    def __init__(
        self,
        settings: Settings | None = None,
        ranking: PriorityRanking = HTML_RANKING,
    ) -> None:
        settings = settings or get_settings()
        self.settings = settings
        self.ranking = ranking
        self.seed = settings.tree.seed
        self.normalizer = AttributeNormalizer(settings.face)
        self._structural: dict[str, Callable[[Any, TagNode, str], list[HtmlNode]]] = {
            Attr.DISPLAY: self._display,
            Attr.NON_ASCII: self._non_ascii,
            Attr.INVISIBLE: self._invisible,
        }
        missing = [
            a for a in ranking if a not in _STYLE_HANDLERS and a not in self._structural
        ]
        if missing:
            msg = f"No HTML handler for ranked attributes: {missing}"
            raise ValueError(msg)

    # -- entry points -------------------------------------------------------

    def compile(self, provider: AttributeProvider) -> list[Node]:
        """Build the annotation forest for *provider*."""
        return build_forest(
            provider,
            self.ranking,
            normalize=self.normalizer.normalize_set,
            seed=self.seed,
        )

    def render(self, provider: AttributeProvider) -> list[HtmlNode]:
        """Render a whole provider to HTML nodes."""
        source = provider.text(0, provider.length)
        return self.render_forest(source, self.compile(provider))

    def render_forest(self, source: str, forest: Sequence[Node]) -> list[HtmlNode]:
        return self._render_nodes(forest, source)

    def render_block(self, provider: AttributeProvider) -> Element:
        """Render as ``<pre class="ft-block">``."""
        attrs = {"class": self.settings.html.block_class}
        return Element("pre", attrs, self.render(provider))

    def render_inline(self, provider: AttributeProvider) -> Element:
        """Render as ``<code class="ft-inline">``."""
        attrs = {"class": self.settings.html.inline_class}
        return Element("code", attrs, self.render(provider))

    # -- tree walk ----------------------------------------------------------

    def _render_nodes(self, nodes: Sequence[Node], source: str) -> list[HtmlNode]:
        out: list[HtmlNode] = []
        for node in nodes:
            _append(out, self._render_node(node, source))
        return out

    def _render_node(self, node: Node, source: str) -> list[HtmlNode]:
        if isinstance(node, TextNode):
            return [Text(source[node.start : node.end])]
        if node.attribute in self._structural:
            return self._structural[node.attribute](node.value, node, source)
        if node.attribute not in _STYLE_HANDLERS:
            raise UnsupportedAttributeValueError(
                node.attribute, node.value, "no HTML handler"
            )

        # Collapse a chain of single-child style tags into one element.
        decls: Declarations = []
        current = node
        while True:
            decls.extend(_STYLE_HANDLERS[current.attribute](current.value))
            if len(current.children) != 1:
                break
            child = current.children[0]
            if not isinstance(child, TagNode) or child.attribute not in _STYLE_HANDLERS:
                break
            current = child

        body = self._render_nodes(current.children, source)
        if not decls:
            return body
        return [Element("span", {"style": _style_attr(decls)}, body)]

    # -- structural handlers ------------------------------------------------

    def _display(self, value: Any, node: TagNode, source: str) -> list[HtmlNode]:
        if isinstance(value, DisplayString):
            return [Text(value.text)]
        if not isinstance(value, Raise):
            raise UnsupportedAttributeValueError(
                Attr.DISPLAY, value, "unknown display form"
            )
        raised = Element(
            "span",
            {"style": f"position: absolute; bottom: {_num(value.amount)}em"},
            self._render_nodes(node.children, source),
        )
        placeholder = Element(
            "span",
            {"style": "visibility: hidden"},
            self._render_nodes(node.children, source),
        )
        return [Element("span", {"style": "position: relative"}, [raised, placeholder])]

    def _non_ascii(self, value: Any, node: TagNode, source: str) -> list[HtmlNode]:
        glyph = Element(
            "span",
            {"class": "ft-non-ascii-glyph"},
            self._render_nodes(node.children, source),
        )
        width = f"width: {node.end - node.start}ch"
        return [Element("span", {"class": "ft-non-ascii", "style": width}, [glyph])]

    def _invisible(self, value: Any, node: TagNode, source: str) -> list[HtmlNode]:
        return []
