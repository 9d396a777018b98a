"""LaTeX backend: annotation forest -> LaTeX markup.

Pipeline:
1. Attribute normalisation (coarse weights: light/regular/bold)
2. Forest construction (one tree per line, see ``facetree.forest``)
3. Tree walk: text leaves are escaped, tag nodes become nested macros
4. Optional line protection (``\\FTBol{}...\\FTEol{}`` around every line)

The macros emitted here are defined in ``facetree.export.preamble``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from facetree.attributes import Attr
from facetree.config import get_settings
from facetree.errors import UnsupportedAttributeValueError
from facetree.export.latex_render import NoEscape, latex_cmd
from facetree.export.unicode_latex import LatexEscaper
from facetree.forest import build_forest
from facetree.normalize import (
    AttributeNormalizer,
    Box,
    DisplayString,
    Raise,
    Underline,
)
from facetree.tree import PriorityRanking, TagNode, TextNode

if TYPE_CHECKING:
    from facetree.attributes import AttributeProvider
    from facetree.config import Settings
    from facetree.tree import Node

logger = logging.getLogger(__name__)

# Most splittable first.  Colours and fonts split invisibly; a split box or
# underline shows a seam; a split display replacement would be duplicated.
LATEX_RANKING = PriorityRanking(
    (
        Attr.FOREGROUND,
        Attr.WEIGHT,
        Attr.SLANT,
        Attr.HEIGHT,
        Attr.BACKGROUND,
        Attr.UNDERLINE,
        Attr.BOX,
        Attr.NON_ASCII,
        Attr.LINE_MARKER,
        Attr.INVISIBLE,
        Attr.DISPLAY,
    )
)

_WEIGHT_MACROS = {"light": "FTWeightLight", "regular": "textmd", "bold": "textbf"}
_SLANT_MACROS = {"italic": "textit", "oblique": "textsl", "normal": "textup"}
# style -> (plain macro, coloured macro)
_UNDERLINE_MACROS = {
    "line": ("FTUnderline", "FTColorUnderline"),
    "wave": ("FTUnderwave", "FTColorUnderwave"),
}
_BOX_STYLES = frozenset({None, "flat-button", "released-button", "pressed-button"})
# Attributes whose markup may sit on a bare newline.
_NEWLINE_ATTRS = frozenset({Attr.LINE_MARKER, Attr.INVISIBLE})

type _Handler = Callable[[Any, TagNode, str], str]


def _num(value: float) -> NoEscape:
    return NoEscape(f"{value:g}")


def protect_lines(markup: str) -> str:
    r"""Wrap every line in ``\FTBol{}`` / ``\FTEol{}``.

    A trailing newline is kept as is rather than producing an empty
    protected line.
    """
    if not markup:
        return markup
    lines = markup.split("\n")
    trailing = lines[-1] == ""
    if trailing:
        lines.pop()
    body = "\n".join(f"\\FTBol{{}}{line}\\FTEol{{}}" for line in lines)
    return body + "\n" if trailing else body


class LatexRenderer:
    """Render highlighted buffers to LaTeX.

    The handler table is checked against the ranking at construction, so
    a ranking naming an attribute without a LaTeX mapping fails immediately.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        ranking: PriorityRanking = LATEX_RANKING,
    ) -> None:
        settings = settings or get_settings()
        self.ranking = ranking
        self.seed = settings.tree.seed
        self.normalizer = AttributeNormalizer(settings.face, coarse_weights=True)
        self.escaper = LatexEscaper(
            substitute_unicode=settings.latex.substitute_unicode,
            translations=settings.latex.translations,
            special_char_macro=settings.latex.special_char_macro,
        )
        self._handlers: dict[str, _Handler] = {
            Attr.FOREGROUND: self._foreground,
            Attr.BACKGROUND: self._background,
            Attr.WEIGHT: self._weight,
            Attr.SLANT: self._slant,
            Attr.HEIGHT: self._height,
            Attr.UNDERLINE: self._underline,
            Attr.BOX: self._box,
            Attr.DISPLAY: self._display,
            Attr.INVISIBLE: self._invisible,
            Attr.LINE_MARKER: self._line_marker,
            Attr.NON_ASCII: self._body,
        }
        missing = [a for a in ranking if a not in self._handlers]
        if missing:
            msg = f"No LaTeX handler for ranked attributes: {missing}"
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

    def render(self, provider: AttributeProvider, *, protect: bool = False) -> str:
        """Render a whole provider to LaTeX."""
        source = provider.text(0, provider.length)
        return self.render_forest(source, self.compile(provider), protect=protect)

    def render_forest(
        self, source: str, forest: Sequence[Node], *, protect: bool = False
    ) -> str:
        """Render an already-built forest over *source*."""
        markup = self._render_nodes(forest, source)
        return protect_lines(markup) if protect else markup

    # -- tree walk ----------------------------------------------------------

    def _render_nodes(self, nodes: Sequence[Node], source: str) -> str:
        return "".join(self._render_node(node, source) for node in nodes)

    def _render_node(self, node: Node, source: str) -> str:
        if isinstance(node, TextNode):
            return self.escaper.escape(source[node.start : node.end])
        if node.attribute == Attr.DISPLAY and isinstance(node.value, DisplayString):
            # Replacement text takes no macro argument, so it may stand in
            # for a newline too.
            return self._display(node.value, node, source)
        text = source[node.start : node.end]
        if node.attribute not in _NEWLINE_ATTRS and not text.strip("\n"):
            # No macro argument may contain a line break.
            return self._body(node.value, node, source)
        handler = self._handlers.get(node.attribute)
        if handler is None:
            raise UnsupportedAttributeValueError(
                node.attribute, node.value, "no LaTeX handler"
            )
        return handler(node.value, node, source)

    def _body(self, value: Any, node: TagNode, source: str) -> NoEscape:
        return NoEscape(self._render_nodes(node.children, source))

    # -- handlers -----------------------------------------------------------

    def _foreground(self, value: str, node: TagNode, source: str) -> str:
        body = self._body(value, node, source)
        return latex_cmd("textcolor", value, body, options="HTML")

    def _background(self, value: str, node: TagNode, source: str) -> str:
        return latex_cmd("FTColorBox", value, self._body(value, node, source))

    def _weight(self, value: Any, node: TagNode, source: str) -> str:
        macro = _WEIGHT_MACROS.get(value)
        if macro is None:
            raise UnsupportedAttributeValueError(
                Attr.WEIGHT, value, "no LaTeX weight macro"
            )
        return latex_cmd(macro, self._body(value, node, source))

    def _slant(self, value: Any, node: TagNode, source: str) -> str:
        macro = _SLANT_MACROS.get(value)
        if macro is None:
            raise UnsupportedAttributeValueError(
                Attr.SLANT, value, "no LaTeX slant macro"
            )
        return latex_cmd(macro, self._body(value, node, source))

    def _height(self, value: float, node: TagNode, source: str) -> str:
        return latex_cmd("FTHeight", _num(value), self._body(value, node, source))

    def _underline(self, value: Underline, node: TagNode, source: str) -> str:
        macros = _UNDERLINE_MACROS.get(value.style)
        if macros is None:
            raise UnsupportedAttributeValueError(
                Attr.UNDERLINE, value, f"unknown underline style {value.style!r}"
            )
        plain, coloured = macros
        body = self._body(value, node, source)
        if value.color is None:
            return latex_cmd(plain, body)
        return latex_cmd(coloured, value.color, body)

    def _box(self, value: Box, node: TagNode, source: str) -> str:
        if value.style not in _BOX_STYLES:
            raise UnsupportedAttributeValueError(
                Attr.BOX, value, f"unknown box style {value.style!r}"
            )
        body = self._body(value, node, source)
        width = _num(value.line_width)
        if value.color is None:
            return latex_cmd("FTBox", width, body)
        return latex_cmd("FTColoredBox", width, value.color, body)

    def _display(self, value: Any, node: TagNode, source: str) -> str:
        if isinstance(value, Raise):
            body = self._body(value, node, source)
            return latex_cmd("FTRaise", _num(value.amount), body)
        if isinstance(value, DisplayString):
            return self.escaper.escape(value.text)
        raise UnsupportedAttributeValueError(
            Attr.DISPLAY, value, "unknown display form"
        )

    def _invisible(self, value: Any, node: TagNode, source: str) -> str:
        return ""

    def _line_marker(self, value: Any, node: TagNode, source: str) -> str:
        prefix = ""
        if node.start == 0 or source[node.start - 1] == "\n":
            # Blank line: an empty box avoids underfull \hbox warnings.
            prefix = r"\mbox{}"
        if isinstance(value, float):
            prefix += latex_cmd("FTStrut", _num(value))
        return prefix + self._body(value, node, source)
