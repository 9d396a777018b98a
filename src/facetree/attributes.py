"""Attribute vocabulary and the attribute-provider contract.

A provider answers, for every position of a linear document, which visual
attributes apply there.  ``AnnotatedBuffer`` is the in-memory provider used
by highlighters and tests: a string plus a list of attribute spans, with the
synthetic line and non-ASCII markers a host editor would add.
"""

from __future__ import annotations

import bisect
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol

from facetree.errors import MalformedInputError


class Attr(StrEnum):
    """Attribute names understood by the core."""

    FOREGROUND = "foreground"
    BACKGROUND = "background"
    WEIGHT = "weight"
    SLANT = "slant"
    UNDERLINE = "underline"
    BOX = "box"
    HEIGHT = "height"
    DISPLAY = "display"
    INVISIBLE = "invisible"
    BREAK = "break"
    LINE_MARKER = "line-marker"
    NON_ASCII = "non-ascii"


type AttributeSet = Mapping[str, Any]

EMPTY_ATTRIBUTES: AttributeSet = {}


class AttributeProvider(Protocol):
    """What the core needs from a highlighted buffer."""

    @property
    def length(self) -> int: ...

    def text(self, start: int, end: int) -> str: ...

    def attrs_at(self, pos: int) -> AttributeSet: ...

    def next_change(self, pos: int) -> int:
        """Smallest position > *pos* where attributes may change, or ``length``."""
        ...

    def hard_breaks(self) -> list[int]:
        """Sorted forced region boundaries strictly inside ``(0, length)``."""
        ...


@dataclass(frozen=True, slots=True)
class Span:
    """Attributes applied to the half-open range ``[start, end)``."""

    start: int
    end: int
    attrs: Mapping[str, Any]


@dataclass(slots=True)
class AnnotatedBuffer:
    """An ``AttributeProvider`` over a string and a list of spans.

    Later spans override earlier ones for the same attribute.  A value of
    ``None`` in a span removes the attribute.

    Attributes:
        source: The document text.
        spans: Attribute spans, in increasing priority order.
        break_lines: Place hard breaks around every newline character.
        mark_newlines: Put ``line-marker=True`` on every newline.
        mark_non_ascii: Put ``non-ascii=True`` on every non-ASCII character.
    """

    source: str
    spans: Sequence[Span] = ()
    break_lines: bool = True
    mark_newlines: bool = True
    mark_non_ascii: bool = True
    _starts: list[int] = field(init=False, repr=False)
    _segments: list[dict[str, Any]] = field(init=False, repr=False)
    _breaks: list[int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        n = len(self.source)
        for span in self.spans:
            if not 0 <= span.start <= span.end <= n:
                msg = f"Span [{span.start}, {span.end}) outside document of length {n}"
                raise MalformedInputError(msg, (span.start, span.end))

        synthetic = list(self._synthetic_spans())
        layers = [*synthetic, *self.spans]

        # Event sweep: (position, layer index, is_start); ends sort first so a
        # span ending where another starts leaves no overlap.
        events: list[tuple[int, int, bool]] = []
        for idx, span in enumerate(layers):
            if span.start < span.end:
                events.append((span.start, idx, True))
                events.append((span.end, idx, False))
        events.sort(key=lambda e: (e[0], e[2]))

        self._starts = []
        self._segments = []
        active: set[int] = set()
        i = 0
        pos = 0
        while pos < n:
            while i < len(events) and events[i][0] == pos:
                _, idx, is_start = events[i]
                if is_start:
                    active.add(idx)
                else:
                    active.discard(idx)
                i += 1
            merged: dict[str, Any] = {}
            for idx in sorted(active):
                merged.update(layers[idx].attrs)
            self._starts.append(pos)
            self._segments.append({k: v for k, v in merged.items() if v is not None})
            pos = events[i][0] if i < len(events) else n

        breaks: set[int] = set()
        if self.break_lines:
            for i, ch in enumerate(self.source):
                if ch == "\n":
                    breaks.update((i, i + 1))
        for span in self.spans:
            if span.attrs.get(Attr.BREAK):
                breaks.add(span.start)
        self._breaks = sorted(b for b in breaks if 0 < b < n)

    def _synthetic_spans(self) -> list[Span]:
        spans: list[Span] = []
        for i, ch in enumerate(self.source):
            if ch == "\n" and self.mark_newlines:
                spans.append(Span(i, i + 1, {Attr.LINE_MARKER: True}))
            elif ord(ch) > 127 and self.mark_non_ascii:
                spans.append(Span(i, i + 1, {Attr.NON_ASCII: True}))
        return spans

    @property
    def length(self) -> int:
        return len(self.source)

    def text(self, start: int, end: int) -> str:
        return self.source[start:end]

    def attrs_at(self, pos: int) -> AttributeSet:
        if not 0 <= pos < len(self.source):
            msg = f"Position {pos} outside document of length {len(self.source)}"
            raise IndexError(msg)
        return self._segments[bisect.bisect_right(self._starts, pos) - 1]

    def next_change(self, pos: int) -> int:
        idx = bisect.bisect_right(self._starts, pos)
        if idx < len(self._starts):
            return self._starts[idx]
        return len(self.source)

    def hard_breaks(self) -> list[int]:
        return list(self._breaks)
