"""LaTeX rendering utilities: NoEscape, escape_latex, latex_cmd.

- ``latex_cmd("textcolor", "FF0000", body, options="HTML")`` builds
  ``\\name[options]{arg1}{arg2}`` commands; arguments are auto-escaped
  unless marked ``NoEscape``.
- ``escape_latex`` escapes the ASCII specials plus characters that form
  ligatures in typewriter fonts (``--``, ``<<``, ``,,``, quotes).

Non-ASCII characters are left alone here; ``unicode_latex`` decides how
they are rendered.
"""

from __future__ import annotations

__all__ = ["LATEX_SPECIALS", "NoEscape", "escape_latex", "latex_cmd"]

# Reserved characters.
_RESERVED: dict[str, str] = {
    "\\": r"\textbackslash{}",
    "#": r"\#",
    "$": r"\$",
    "%": r"\%",
    "&": r"\&",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}

# Characters that TeX fonts combine into ligatures (``--``, ``!```, ``<<``).
_LIGATURES: dict[str, str] = {
    "`": "{`}",
    "'": "{'}",
    "<": "{<}",
    ">": "{>}",
    "-": "{-}",
    ",": "{,}",
}

LATEX_SPECIALS: dict[str, str] = {**_RESERVED, **_LIGATURES}


class NoEscape(str):
    """Mark a string as trusted LaTeX that should not be escaped."""

    __slots__ = ()


def escape_latex(text: str) -> NoEscape:
    """Escape LaTeX special characters in *text*.

    If *text* is already a ``NoEscape`` instance it is returned unchanged.
    Uses character-by-character replacement to avoid double-escaping
    (e.g. ``\\`` -> ``\\textbackslash{}`` must not then escape the ``{}``).
    """
    if isinstance(text, NoEscape):
        return text
    return NoEscape("".join(LATEX_SPECIALS.get(ch, ch) for ch in text))


def latex_cmd(name: str, *args: str, options: str | None = None) -> NoEscape:
    r"""Build a LaTeX command ``\name[options]{arg1}{arg2}...``.

    Each argument is auto-escaped via ``escape_latex`` unless it is
    already a ``NoEscape`` instance.  *options* is inserted verbatim.
    """
    parts: list[str] = [f"\\{name}"]
    if options is not None:
        parts.append(f"[{options}]")
    for arg in args:
        parts.append(f"{{{escape_latex(arg)}}}")
    return NoEscape("".join(parts))
