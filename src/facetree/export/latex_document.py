"""Highlight the code snippets embedded in a LaTeX host document.

Three snippet forms are recognised:

- blocks ``\\begin{FTBlock}{mode}`` ... ``\\end{FTBlock}``;
- inline ``\\FTInline{mode}|code|`` where ``|`` is any non-letter delimiter
  (``{`` pairs with ``}``);
- registered inline macros ``\\Name|code|``, with ``Name`` mapped to a mode
  by ``ExportConfig.inline_macros``.

Snippets inside LaTeX comments are left alone.  Precompute-verbs mode renders
each inline snippet once into a ``\\FTDeclareVerb`` table and replaces the
occurrences with ``\\FTVerb{key}``, which keeps fragile contexts (section
titles, captions) free of nested highlighting markup.
"""

from __future__ import annotations

import hashlib
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from facetree.errors import FaceTreeError, MalformedInputError
from facetree.export.latex_render import NoEscape, latex_cmd

if TYPE_CHECKING:
    from facetree.pipeline import ExportConfig

logger = logging.getLogger(__name__)

BLOCK_BEGIN = r"\begin{FTBlock}"
BLOCK_END = r"\end{FTBlock}"
INLINE_MACRO = "FTInline"

_MODE = re.compile(r"\{([^{}\n]*)\}")
_UNESCAPED_PERCENT = re.compile(r"(?<!\\)%")
_HEX_TO_LETTER = str.maketrans("0123456789abcdef", "abcdefghijklmnop")


class SnippetKind(StrEnum):
    BLOCK = "block"
    INLINE = "inline"


@dataclass(frozen=True, slots=True)
class CodeSnippet:
    """A snippet found in a host document.

    ``start``/``end`` delimit the whole invocation in the source (the text
    that export replaces); ``code`` is the snippet body.
    """

    kind: SnippetKind
    mode: str
    code: str
    start: int
    end: int


def _snippet_pattern(inline_macros: Mapping[str, str]) -> re.Pattern[str]:
    names = sorted(inline_macros, key=len, reverse=True)
    alternatives = [re.escape(BLOCK_BEGIN[1:]), INLINE_MACRO, *map(re.escape, names)]
    return re.compile(r"\\(" + "|".join(alternatives) + r")(?![A-Za-z])")


def _in_comment(source: str, pos: int) -> bool:
    line_start = source.rfind("\n", 0, pos) + 1
    return _UNESCAPED_PERCENT.search(source, line_start, pos) is not None


def _read_mode(source: str, pos: int) -> tuple[str, int]:
    match = _MODE.match(source, pos)
    if match is None:
        msg = f"Expected {{mode}} at offset {pos}"
        raise MalformedInputError(msg, pos)
    mode = match.group(1).strip()
    if not mode:
        msg = f"Empty mode name at offset {pos}"
        raise MalformedInputError(msg, pos)
    return mode, match.end()


def _read_delimited(source: str, pos: int) -> tuple[str, int]:
    """Read ``<d>code<d>`` starting at *pos*; return (code, end offset)."""
    if pos >= len(source) or source[pos].isalpha() or source[pos].isspace():
        msg = f"Missing code delimiter at offset {pos}"
        raise MalformedInputError(msg, pos)
    opening = source[pos]
    closing = "}" if opening == "{" else opening
    line_end = source.find("\n", pos + 1)
    if line_end == -1:
        line_end = len(source)
    close = source.find(closing, pos + 1, line_end)
    if close == -1:
        msg = (
            f"Unterminated inline snippet at offset {pos}: "
            f"no closing {closing!r} on the same line"
        )
        raise MalformedInputError(msg, pos)
    return source[pos + 1 : close], close + 1


def _read_block(source: str, start: int, pos: int) -> CodeSnippet:
    mode, body_start = _read_mode(source, pos)
    if source.startswith("\n", body_start):
        body_start += 1
    close = source.find(BLOCK_END, body_start)
    if close == -1:
        msg = f"Unterminated {BLOCK_BEGIN} at offset {start}"
        raise MalformedInputError(msg, start)
    code = source[body_start:close]
    # Indentation in front of \end{FTBlock} is not part of the code.
    last_newline = code.rfind("\n")
    if not code[last_newline + 1 :].strip():
        code = code[: last_newline + 1]
    return CodeSnippet(SnippetKind.BLOCK, mode, code, start, close + len(BLOCK_END))


def scan_latex(
    source: str, inline_macros: Mapping[str, str] | None = None
) -> list[CodeSnippet]:
    """Find every code snippet in *source*, in document order.

    Raises:
        MalformedInputError: For an unterminated block, an inline snippet
            whose closing delimiter is not on the same line, or an empty or
            missing mode name.  ``value`` is the offending offset.
    """
    inline_macros = inline_macros or {}
    pattern = _snippet_pattern(inline_macros)
    snippets: list[CodeSnippet] = []
    pos = 0
    while match := pattern.search(source, pos):
        start = match.start()
        if _in_comment(source, start):
            pos = match.end()
            continue
        name = match.group(1)
        if name == BLOCK_BEGIN[1:]:
            snippet = _read_block(source, start, match.end())
        elif name == INLINE_MACRO:
            mode, code_start = _read_mode(source, match.end())
            code, end = _read_delimited(source, code_start)
            snippet = CodeSnippet(SnippetKind.INLINE, mode, code, start, end)
        else:
            code, end = _read_delimited(source, match.end())
            mode = inline_macros[name]
            snippet = CodeSnippet(SnippetKind.INLINE, mode, code, start, end)
        snippets.append(snippet)
        pos = snippet.end
    return snippets


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def verb_key(mode: str, code: str) -> str:
    """Letters-only key for an inline snippet, usable inside a macro name."""
    payload = f"{mode}\x00{code}".encode()
    digest = hashlib.sha1(payload, usedforsecurity=False).hexdigest()
    return digest.translate(_HEX_TO_LETTER)


def _render(config: ExportConfig, snippet: CodeSnippet) -> str:
    # Lazy import to avoid circular import:
    # pipeline -> export/__init__ -> latex_document -> pipeline (cycle)
    from facetree.pipeline import render_latex  # noqa: PLC0415

    block = snippet.kind is SnippetKind.BLOCK
    try:
        return render_latex(config, snippet.mode, snippet.code, block=block)
    except FaceTreeError:
        logger.debug("Failing snippet starts at offset %d", snippet.start)
        raise


def _render_block(config: ExportConfig, snippet: CodeSnippet) -> str:
    markup = _render(config, snippet)
    if markup and not markup.endswith("\n"):
        markup += "\n"
    return f"\\begin{{FTCode}}\n{markup}\\end{{FTCode}}"


def export_latex_document(
    source: str, config: ExportConfig, *, use_verbs: bool = False
) -> str:
    """Replace every snippet in *source* with highlighted LaTeX.

    Blocks become line-protected ``FTCode`` environments.  Inline snippets
    become ``\\FTInlineCode{...}``, or ``\\FTVerb{key}`` when *use_verbs* is
    set (pair with ``precompute_verbs`` and ``format_verb_table``).
    """
    parts: list[str] = []
    last = 0
    snippets = scan_latex(source, config.inline_macros)
    for snippet in snippets:
        parts.append(source[last : snippet.start])
        if snippet.kind is SnippetKind.BLOCK:
            parts.append(_render_block(config, snippet))
        elif use_verbs:
            parts.append(latex_cmd("FTVerb", verb_key(snippet.mode, snippet.code)))
        else:
            markup = _render(config, snippet)
            parts.append(latex_cmd("FTInlineCode", NoEscape(markup)))
        last = snippet.end
    parts.append(source[last:])
    logger.debug("Exported %d snippets from LaTeX document", len(snippets))
    return "".join(parts)


def precompute_verbs(source: str, config: ExportConfig) -> dict[str, str]:
    """Render every inline snippet of *source* once, keyed by ``verb_key``.

    When two snippets share a key the later one wins.
    """
    verbs: dict[str, str] = {}
    for snippet in scan_latex(source, config.inline_macros):
        if snippet.kind is not SnippetKind.INLINE:
            continue
        key = verb_key(snippet.mode, snippet.code)
        if key in verbs:
            logger.debug(
                "Inline snippet key %s seen again at offset %d", key, snippet.start
            )
        verbs[key] = _render(config, snippet)
    return verbs


def format_verb_table(verbs: Mapping[str, str]) -> str:
    """One ``\\FTDeclareVerb{key}{markup}`` line per entry."""
    return "".join(
        latex_cmd("FTDeclareVerb", key, NoEscape(markup)) + "\n"
        for key, markup in verbs.items()
    )
