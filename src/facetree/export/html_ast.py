"""Minimal HTML AST and serialiser.

The HTML backend produces ``Element`` / ``Text`` / ``Comment`` nodes rather
than strings so callers can splice them into a parsed host document.
``serialize`` turns nodes back into markup.
"""

from __future__ import annotations

import html
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

# Elements whose text content is not escaped.
RAW_TEXT_ELEMENTS = frozenset({"script", "style"})

VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "source",
        "track",
        "wbr",
    }
)


@dataclass(slots=True)
class Text:
    """A text run; escaped on serialisation."""

    content: str


@dataclass(slots=True)
class Comment:
    """A raw comment; its content is emitted as is."""

    content: str


@dataclass(slots=True)
class Element:
    """An element with attributes (in insertion order) and children."""

    tag: str
    attrs: dict[str, str] = field(default_factory=dict)
    children: list[HtmlNode] = field(default_factory=list)


type HtmlNode = Text | Comment | Element


def escape_html(text: str) -> str:
    """Escape the five HTML metacharacters ``& < > " '``."""
    return html.escape(text, quote=True)


def text_content(nodes: Iterable[HtmlNode]) -> str:
    """Concatenated text of *nodes*, ignoring comments."""
    parts: list[str] = []
    for node in nodes:
        if isinstance(node, Text):
            parts.append(node.content)
        elif isinstance(node, Element):
            parts.append(text_content(node.children))
    return "".join(parts)


def _serialize_node(node: HtmlNode, parts: list[str], *, raw: bool) -> None:
    if isinstance(node, Text):
        parts.append(node.content if raw else escape_html(node.content))
        return
    if isinstance(node, Comment):
        parts.append(f"<!--{node.content}-->")
        return

    parts.append(f"<{node.tag}")
    for name, value in node.attrs.items():
        parts.append(f' {name}="{escape_html(value)}"')
    parts.append(">")
    if node.tag in VOID_ELEMENTS:
        return
    child_raw = node.tag in RAW_TEXT_ELEMENTS
    for child in node.children:
        _serialize_node(child, parts, raw=child_raw)
    parts.append(f"</{node.tag}>")


def serialize(nodes: Sequence[HtmlNode]) -> str:
    """Serialise nodes to an HTML string."""
    parts: list[str] = []
    for node in nodes:
        _serialize_node(node, parts, raw=False)
    return "".join(parts)


def serialize_document(nodes: Sequence[HtmlNode], prolog: Sequence[str] = ()) -> str:
    """Reassemble a document from its prolog fragments and body nodes.

    *prolog* holds the pieces a parser sets aside, such as the XML
    declaration and the doctype, in document order.
    """
    head = "".join(f"{fragment}\n" for fragment in prolog)
    return head + serialize(nodes)
