"""Structured error taxonomy for the annotation compiler and its renderers.

Every error carries a stable ``kind``, a human-readable ``message`` and the
offending ``value`` so the calling layer can serialise it (``to_dict()``)
and relay it across a process boundary without parsing text.
"""

from __future__ import annotations

from typing import Any


class FaceTreeError(Exception):
    """Base class for all errors raised by the core."""

    kind = "error"

    def __init__(self, message: str, value: Any = None) -> None:
        self.message = message
        self.value = value
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Return the error as a plain ``{kind, message, value}`` mapping."""
        return {"kind": self.kind, "message": self.message, "value": self.value}


class UnsupportedAttributeValueError(FaceTreeError):
    """An attribute value has no canonical form or no renderer mapping."""

    kind = "unsupported-attribute-value"

    def __init__(self, attribute: str, value: Any, detail: str = "") -> None:
        self.attribute = attribute
        message = f"Unsupported value for attribute {attribute!r}: {value!r}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message, value)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["attribute"] = self.attribute
        return data


class MissingTranslationError(FaceTreeError):
    """Unicode substitution was requested but a character has no mapping."""

    kind = "missing-translation"

    def __init__(self, char: str) -> None:
        self.char = char
        message = (
            f"No LaTeX translation for {char!r} (U+{ord(char):04X}). "
            "Register one via LATEX__TRANSLATIONS, e.g. "
            f'LATEX__TRANSLATIONS=\'{{"{char}": "\\\\mymacro{{}}"}}\', '
            "or disable LATEX__SUBSTITUTE_UNICODE."
        )
        super().__init__(message, char)


class MalformedInputError(FaceTreeError):
    """Host input is structurally broken (unterminated marker, empty mode)."""

    kind = "malformed-input"


class StructuralInvariantViolation(FaceTreeError):
    """An upstream contract was breached while building the tree.

    Raised only by defensive checks; it indicates a bug in a provider or in
    the pipeline, never a user error.
    """

    kind = "structural-invariant-violation"
