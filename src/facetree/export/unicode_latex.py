"""Character-level LaTeX escaping with non-ASCII handling.

Non-ASCII characters are rendered in one of two modes:

- wrapped: ``\\FTSpecialChar{é}``, left to the document's fonts;
- substituted: translated to a LaTeX macro, looked up in the configured
  translations, then pylatexenc's built-in Unicode table, then the
  ``emoji`` package names.  A character with no translation is an error.
"""

from __future__ import annotations

import functools
from collections.abc import Mapping

import emoji as emoji_lib
from pylatexenc.latexencode import get_builtin_uni2latex_dict

from facetree.errors import MissingTranslationError
from facetree.export.latex_render import LATEX_SPECIALS, NoEscape, latex_cmd


@functools.cache
def _builtin_translations() -> dict[int, str]:
    """pylatexenc's default code point -> LaTeX table."""
    return dict(get_builtin_uni2latex_dict())


def _is_latex_safe_char(c: str) -> bool:
    """Check if a character is safe for LaTeX input.

    LaTeX cannot handle:
    - C0 controls (0x00-0x1F) except tab, newline, CR
    - DEL (0x7F) and C1 controls (0x80-0x9F)
    - Surrogates and noncharacters
    - Line/paragraph separators (U+2028, U+2029)
    """
    cp = ord(c)
    if cp < 0x20:
        return c in "\t\n\r"
    is_del = cp == 0x7F
    is_c1 = 0x80 <= cp <= 0x9F
    is_surrogate = 0xD800 <= cp <= 0xDFFF
    is_nonchar = (cp & 0xFFFF) >= 0xFFFE
    is_line_sep = cp in (0x2028, 0x2029)
    return not (is_del or is_c1 or is_surrogate or is_nonchar or is_line_sep)


def _emoji_macro(char: str) -> str | None:
    if not emoji_lib.is_emoji(char):
        return None
    name = emoji_lib.demojize(char, delimiters=("", ""))
    return f"\\emoji{{{name.replace('_', '-').lower()}}}"


def translate_char(char: str, translations: Mapping[str, str] | None = None) -> str:
    """Translate one non-ASCII character to a LaTeX macro.

    Raises:
        MissingTranslationError: No configured, built-in or emoji mapping.
    """
    if translations and char in translations:
        return translations[char]
    builtin = _builtin_translations().get(ord(char))
    if builtin is not None:
        return builtin
    macro = _emoji_macro(char)
    if macro is not None:
        return macro
    raise MissingTranslationError(char)


class LatexEscaper:
    """Escape source text for LaTeX.

    Args:
        substitute_unicode: Translate non-ASCII characters to macros instead
            of wrapping them.
        translations: Extra character -> LaTeX mappings, consulted first.
        special_char_macro: Macro used to wrap non-ASCII characters.
    """

    def __init__(
        self,
        *,
        substitute_unicode: bool = False,
        translations: Mapping[str, str] | None = None,
        special_char_macro: str = "FTSpecialChar",
    ) -> None:
        self.substitute_unicode = substitute_unicode
        self.translations = dict(translations or {})
        self.special_char_macro = special_char_macro

    def escape_char(self, char: str) -> str:
        replacement = LATEX_SPECIALS.get(char)
        if replacement is not None:
            return replacement
        if ord(char) < 0x80:
            return char if _is_latex_safe_char(char) else ""
        if not _is_latex_safe_char(char):
            return ""
        if self.substitute_unicode:
            return translate_char(char, self.translations)
        return latex_cmd(self.special_char_macro, NoEscape(char))

    def escape(self, text: str) -> NoEscape:
        """Escape *text*, dropping characters LaTeX cannot read."""
        return NoEscape("".join(self.escape_char(ch) for ch in text))
