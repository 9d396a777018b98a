"""Range extraction: attribute stream -> maximal constant-attribute ranges."""

from __future__ import annotations

from collections.abc import Callable, Collection, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from facetree.attributes import AttributeProvider, AttributeSet

type Normalize = Callable[[AttributeSet], Mapping[str, Any]]


@dataclass(frozen=True, slots=True)
class Range:
    """A half-open span ``[start, end)`` with constant tracked attributes.

    Attributes:
        start: Start position (inclusive).
        end: End position (exclusive).
        attrs: Tracked attributes in effect, with ``None`` values removed.
    """

    start: int
    end: int
    attrs: Mapping[str, Any]


def restrict(attrs: AttributeSet, tracked: Collection[str]) -> dict[str, Any]:
    """Keep only tracked, non-``None`` attributes."""
    return {k: v for k, v in attrs.items() if k in tracked and v is not None}


def extract_ranges(
    provider: AttributeProvider,
    tracked: Collection[str],
    normalize: Normalize | None = None,
) -> list[Range]:
    """Segment a provider into ranges that exactly tile ``[0, length)``.

    Only positions reported by ``provider.next_change`` are queried, so the
    cost is proportional to the number of change points rather than to the
    document length.  Neighbouring segments whose restricted (and, if
    *normalize* is given, normalised) attributes compare equal are merged.
    """
    n = provider.length
    ranges: list[Range] = []
    pos = 0
    while pos < n:
        nxt = min(max(provider.next_change(pos), pos + 1), n)
        attrs = restrict(provider.attrs_at(pos), tracked)
        if normalize is not None:
            attrs = restrict(normalize(attrs), tracked)
        if ranges and ranges[-1].attrs == attrs:
            ranges[-1] = Range(ranges[-1].start, nxt, ranges[-1].attrs)
        else:
            ranges.append(Range(pos, nxt, attrs))
        pos = nxt
    return ranges
