"""Attribute normalisation: raw provider values -> canonical forms.

Canonical forms are renderer-agnostic and idempotent: normalising an
already-normalised value returns it unchanged.  Values equal to the
document's baseline face are dropped (``None``) because rendering them
would only restate the surrounding style.

Canonical forms:

- colours: 6-digit uppercase hex without ``#`` (``"FF0000"``)
- weight: int 100-900, or ``"light"``/``"regular"``/``"bold"`` in coarse mode
- slant: ``"italic"``, ``"oblique"`` or ``"normal"``
- height: float scale relative to the baseline height
- underline: ``Underline(color, style)``
- box: ``Box(line_width, color, style)``
- display: ``Raise(amount)`` or ``DisplayString(text)``
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, NamedTuple

from PIL import ImageColor

from facetree.attributes import Attr
from facetree.errors import UnsupportedAttributeValueError

if TYPE_CHECKING:
    from facetree.attributes import AttributeSet
    from facetree.config import FaceConfig

logger = logging.getLogger(__name__)


class Underline(NamedTuple):
    color: str | None
    style: str


class Box(NamedTuple):
    line_width: int
    color: str | None
    style: str | None


class Raise(NamedTuple):
    amount: float


class DisplayString(NamedTuple):
    text: str


BASELINE_WEIGHT = 500

WEIGHT_KEYWORDS: dict[str, int] = {
    "thin": 100,
    "ultralight": 200,
    "ultra-light": 200,
    "extralight": 200,
    "extra-light": 200,
    "light": 300,
    "semilight": 400,
    "semi-light": 400,
    "demilight": 400,
    "normal": 500,
    "regular": 500,
    "book": 500,
    "medium": 500,
    "semibold": 600,
    "semi-bold": 600,
    "demibold": 600,
    "bold": 700,
    "extrabold": 800,
    "extra-bold": 800,
    "ultrabold": 800,
    "ultra-bold": 800,
    "black": 900,
    "heavy": 900,
    "ultra-heavy": 900,
}

COARSE_WEIGHTS = ("light", "regular", "bold")
SLANTS = frozenset({"italic", "oblique", "normal"})
BOX_STYLES = frozenset({"flat-button", "released-button", "pressed-button"})

_HEX6 = re.compile(r"[0-9a-fA-F]{6}")
_HEX12 = re.compile(r"#([0-9a-fA-F]{12})")
_X11_GRAY = re.compile(r"gr[ae]y(\d{1,3})", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Value-level normalisers
# ---------------------------------------------------------------------------


def normalize_color(value: Any, attribute: str = "color") -> str | None:
    """Resolve a colour name or hex code to ``RRGGBB`` (uppercase, no ``#``)."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise UnsupportedAttributeValueError(
            attribute, value, "expected a colour string"
        )
    if _HEX6.fullmatch(value):
        return value.upper()

    name = value.strip()
    if m := _HEX12.fullmatch(name):
        digits = m.group(1)
        return (digits[0:2] + digits[4:6] + digits[8:10]).upper()
    if m := _X11_GRAY.fullmatch(name):
        level = int(m.group(1))
        if level > 100:
            raise UnsupportedAttributeValueError(
                attribute, value, "gray level above 100"
            )
        channel = round(level * 255 / 100)
        return f"{channel:02X}" * 3

    try:
        rgb = ImageColor.getrgb(name)
    except ValueError as exc:
        raise UnsupportedAttributeValueError(
            attribute, value, "unknown colour"
        ) from exc
    return "".join(f"{channel:02X}" for channel in rgb[:3])


def normalize_weight(
    value: Any, *, coarse: bool = False, baseline: int = BASELINE_WEIGHT
) -> int | str | None:
    """Map a weight keyword or number onto the 100-900 scale.

    A weight equal to *baseline* is dropped.  In coarse mode the result is
    one of three buckets relative to *baseline* and is never dropped, so
    that a regular span nested inside a bold one can reset the weight.
    """
    if value is None:
        return None
    if coarse and value in COARSE_WEIGHTS:
        return value
    if isinstance(value, str):
        numeric = WEIGHT_KEYWORDS.get(value.lower())
        if numeric is None:
            raise UnsupportedAttributeValueError(Attr.WEIGHT, value, "unknown keyword")
    elif isinstance(value, int) and not isinstance(value, bool) and 100 <= value <= 900:
        numeric = value
    else:
        raise UnsupportedAttributeValueError(Attr.WEIGHT, value, "expected 100-900")

    if coarse:
        if numeric < baseline:
            return "light"
        if numeric > baseline:
            return "bold"
        return "regular"
    return None if numeric == baseline else numeric


def normalize_slant(value: Any) -> str | None:
    if value is None:
        return None
    if value not in SLANTS:
        raise UnsupportedAttributeValueError(
            Attr.SLANT, value, f"expected one of {sorted(SLANTS)}"
        )
    return value


def normalize_height(value: Any, baseline_height: int) -> float | None:
    """Integers are absolute (tenths of a point); floats are already relative."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int | float) or value <= 0:
        raise UnsupportedAttributeValueError(
            Attr.HEIGHT, value, "expected a positive number"
        )
    scale = value / baseline_height if isinstance(value, int) else float(value)
    return None if scale == 1.0 else scale


def normalize_underline(value: Any) -> Underline | None:
    if value is None or value is False:
        return None
    if isinstance(value, Underline):
        return value
    if value is True:
        return Underline(None, "line")
    if isinstance(value, str):
        return Underline(normalize_color(value, Attr.UNDERLINE), "line")
    if isinstance(value, Mapping):
        color = value.get("color")
        if color in (None, "foreground-color"):
            color = None
        else:
            color = normalize_color(color, Attr.UNDERLINE)
        return Underline(color, value.get("style") or "line")
    raise UnsupportedAttributeValueError(Attr.UNDERLINE, value)


def normalize_box(value: Any) -> Box | None:
    if value is None or value is False:
        return None
    if isinstance(value, Box):
        return value
    if value is True:
        return Box(1, None, None)
    if isinstance(value, str):
        return Box(1, normalize_color(value, Attr.BOX), None)
    if isinstance(value, Mapping):
        width = value.get("line_width", 1)
        if isinstance(width, tuple | list):
            width = max((abs(w) for w in width), default=1)
        if isinstance(width, bool) or not isinstance(width, int):
            raise UnsupportedAttributeValueError(
                Attr.BOX, value, "line_width must be an int"
            )
        style = value.get("style")
        if style is not None and style not in BOX_STYLES:
            raise UnsupportedAttributeValueError(
                Attr.BOX, value, f"unknown box style {style!r}"
            )
        color = value.get("color")
        return Box(abs(width), normalize_color(color, Attr.BOX), style)
    raise UnsupportedAttributeValueError(Attr.BOX, value)


def normalize_display(value: Any) -> Raise | DisplayString | None:
    """Distinguish a baseline shift from a replacement of the displayed text."""
    if value is None:
        return None
    if isinstance(value, Raise | DisplayString):
        return None if value == Raise(0.0) else value
    if isinstance(value, str):
        return DisplayString(value)
    if (
        isinstance(value, tuple | list)
        and len(value) == 2
        and value[0] == "raise"
        and isinstance(value[1], int | float)
        and not isinstance(value[1], bool)
    ):
        return Raise(float(value[1])) if value[1] else None
    raise UnsupportedAttributeValueError(
        Attr.DISPLAY, value, "expected ('raise', x) or a string"
    )


def normalize_flag(value: Any) -> bool | None:
    return True if value else None


def normalize_line_marker(value: Any) -> bool | float | None:
    if value is None or value is False:
        return None
    if value is True:
        return True
    if isinstance(value, int | float):
        return float(value)
    raise UnsupportedAttributeValueError(
        Attr.LINE_MARKER, value, "expected True or a line height"
    )


# ---------------------------------------------------------------------------
# Normaliser with baseline suppression
# ---------------------------------------------------------------------------


class AttributeNormalizer:
    """Normalise attribute sets against a baseline face.

    Args:
        baseline: The document's default face.
        coarse_weights: Bucket weights into light/regular/bold.
    """

    def __init__(self, baseline: FaceConfig, *, coarse_weights: bool = False) -> None:
        self.baseline = baseline
        self.coarse_weights = coarse_weights
        self._baseline_fg = normalize_color(baseline.foreground, Attr.FOREGROUND)
        self._baseline_bg = normalize_color(baseline.background, Attr.BACKGROUND)
        self._handlers: dict[str, Callable[[Any], Any]] = {
            Attr.FOREGROUND: self._foreground,
            Attr.BACKGROUND: self._background,
            Attr.WEIGHT: self._weight,
            Attr.SLANT: self._slant,
            Attr.UNDERLINE: normalize_underline,
            Attr.BOX: normalize_box,
            Attr.HEIGHT: lambda v: normalize_height(v, self.baseline.height),
            Attr.DISPLAY: normalize_display,
            Attr.INVISIBLE: normalize_flag,
            Attr.BREAK: normalize_flag,
            Attr.LINE_MARKER: normalize_line_marker,
            Attr.NON_ASCII: normalize_flag,
        }
        missing = set(Attr) - set(self._handlers)
        if missing:
            msg = f"No normaliser for attributes: {sorted(missing)}"
            raise RuntimeError(msg)

    def _foreground(self, value: Any) -> str | None:
        color = normalize_color(value, Attr.FOREGROUND)
        return None if color == self._baseline_fg else color

    def _background(self, value: Any) -> str | None:
        color = normalize_color(value, Attr.BACKGROUND)
        return None if color == self._baseline_bg else color

    def _weight(self, value: Any) -> int | str | None:
        return normalize_weight(
            value, coarse=self.coarse_weights, baseline=self.baseline.weight
        )

    def _slant(self, value: Any) -> str | None:
        slant = normalize_slant(value)
        return None if slant == self.baseline.slant else slant

    def normalize(self, attribute: str, value: Any) -> Any:
        """Return the canonical form of one value, or ``None`` to drop it."""
        handler = self._handlers.get(attribute)
        if handler is None:
            raise UnsupportedAttributeValueError(attribute, value, "unknown attribute")
        return handler(value)

    def normalize_set(self, attrs: AttributeSet) -> dict[str, Any]:
        """Normalise every attribute of *attrs*, dropping baseline values."""
        result: dict[str, Any] = {}
        for attribute, value in attrs.items():
            canonical = self.normalize(attribute, value)
            if canonical is not None:
                result[attribute] = canonical
        return result
