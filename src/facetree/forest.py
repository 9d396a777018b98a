"""Tree flattening: one tree per hard-break region, concatenated in order.

Building each region independently bounds the size of every tree and keeps
unrelated parts of the document (separate lines, typically) from
interacting during conflict resolution.
"""

from __future__ import annotations

import bisect
import logging
from typing import TYPE_CHECKING

from facetree.errors import StructuralInvariantViolation
from facetree.events import build_events, events_to_intervals
from facetree.ranges import extract_ranges
from facetree.tree import build_tree

if TYPE_CHECKING:
    from facetree.attributes import AttributeProvider
    from facetree.events import Interval
    from facetree.ranges import Normalize
    from facetree.tree import Node, PriorityRanking

logger = logging.getLogger(__name__)


def region_bounds(length: int, hard_breaks: list[int]) -> list[tuple[int, int]]:
    """Split ``[0, length)`` at the hard breaks into non-empty regions."""
    points = sorted({0, length, *(b for b in hard_breaks if 0 < b < length)})
    return [(lo, hi) for lo, hi in zip(points, points[1:], strict=False) if lo < hi]


def _group_by_region(
    intervals: dict[str, list[Interval]],
    bounds: list[tuple[int, int]],
) -> list[dict[str, list[Interval]]]:
    starts = [lo for lo, _ in bounds]
    grouped: list[dict[str, list[Interval]]] = [{} for _ in bounds]
    for attribute, batch in intervals.items():
        for interval in batch:
            idx = bisect.bisect_right(starts, interval.start) - 1
            lo, hi = bounds[idx]
            if interval.end > hi:
                msg = (
                    f"Interval {attribute!r} [{interval.start}, {interval.end}) "
                    f"crosses region boundary {hi}"
                )
                raise StructuralInvariantViolation(msg, interval)
            grouped[idx].setdefault(attribute, []).append(interval)
    return grouped


def build_forest(
    provider: AttributeProvider,
    ranking: PriorityRanking,
    *,
    normalize: Normalize | None = None,
    seed: int = 0,
) -> list[Node]:
    """Compile a provider's attributes into one nested forest.

    Args:
        provider: Source of per-position attributes and hard breaks.
        ranking: Attributes to track, most splittable first.
        normalize: Optional attribute-set normaliser applied while
            extracting ranges.
        seed: Seed for each region's tree construction.

    Returns:
        Top-level nodes tiling ``[0, provider.length)``.
    """
    tracked = ranking.attributes
    breaks = provider.hard_breaks()
    ranges = extract_ranges(provider, tracked, normalize)
    events = build_events(ranges, tracked, breaks)
    intervals = events_to_intervals(events)

    bounds = region_bounds(provider.length, breaks)
    grouped = _group_by_region(intervals, bounds)
    logger.debug(
        "Compiled %d ranges, %d events into %d regions",
        len(ranges),
        len(events),
        len(bounds),
    )

    forest: list[Node] = []
    for (lo, hi), region_intervals in zip(bounds, grouped, strict=True):
        forest.extend(build_tree(region_intervals, ranking, lo, hi, seed=seed))
    return forest
