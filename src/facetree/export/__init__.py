"""Renderers: annotation forest -> LaTeX markup or HTML AST.

LaTeX output relies on the macros in ``LATEX_PREAMBLE``; HTML output on
``HTML_STYLESHEET`` for the non-ASCII grid wrappers.
"""

from facetree.export.html_ast import (
    Comment,
    Element,
    Text,
    serialize,
    serialize_document,
)
from facetree.export.html_render import HTML_RANKING, HTML_STYLESHEET, HtmlRenderer
from facetree.export.latex import LATEX_RANKING, LatexRenderer, protect_lines
from facetree.export.latex_document import (
    CodeSnippet,
    export_latex_document,
    format_verb_table,
    precompute_verbs,
    scan_latex,
    verb_key,
)
from facetree.export.latex_render import NoEscape, escape_latex, latex_cmd
from facetree.export.preamble import LATEX_PREAMBLE

__all__ = [
    "HTML_RANKING",
    "HTML_STYLESHEET",
    "LATEX_PREAMBLE",
    "LATEX_RANKING",
    "CodeSnippet",
    "Comment",
    "Element",
    "HtmlRenderer",
    "LatexRenderer",
    "NoEscape",
    "Text",
    "escape_latex",
    "export_latex_document",
    "format_verb_table",
    "latex_cmd",
    "precompute_verbs",
    "protect_lines",
    "scan_latex",
    "serialize",
    "serialize_document",
    "verb_key",
]
