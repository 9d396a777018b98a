"""Interval/tree construction: overlapping attribute spans -> one nested tree.

Attribute spans from an editor generally overlap without nesting (bold on
``[0, 5)``, a box on ``[3, 8)``), while LaTeX and HTML need strictly nested
scopes.  ``build_tree`` resolves this deterministically: attributes are
inserted one at a time in priority order, most splittable first, and when a
new interval partially overlaps nodes that are already in the tree, those
nodes are split at the new interval's boundaries.  Since insertion follows
the ranking, the nodes being split always belong to attributes ranked
lower or equal, so the last-ranked attribute is never fragmented.

Within an attribute, intervals are inserted in a pseudo-random order drawn
from a ``random.Random`` seeded per call (treap-style), which keeps the
expected search cost low without rebalancing and keeps output reproducible.
"""

from __future__ import annotations

import bisect
import logging
import random
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from facetree.attributes import Attr
from facetree.errors import StructuralInvariantViolation

if TYPE_CHECKING:
    from facetree.events import Interval

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Node types
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class TextNode:
    """A run of source text ``[start, end)``."""

    start: int
    end: int


@dataclass(slots=True)
class TagNode:
    """An attribute value applied to its children.

    The children tile ``[start, end)`` exactly, in document order.
    """

    attribute: str
    value: Any
    start: int
    end: int
    children: list[Node] = field(default_factory=list)


type Node = TextNode | TagNode


class PriorityRanking:
    """Total order over attributes, from most splittable to never split."""

    __slots__ = ("_index", "attributes")

    def __init__(self, attributes: Sequence[str]) -> None:
        unknown = [a for a in attributes if a not in set(Attr)]
        if unknown:
            msg = f"Unknown attributes in ranking: {unknown}"
            raise ValueError(msg)
        if len(set(attributes)) != len(attributes):
            msg = f"Duplicate attributes in ranking: {list(attributes)}"
            raise ValueError(msg)
        self.attributes: tuple[str, ...] = tuple(attributes)
        self._index = {a: i for i, a in enumerate(self.attributes)}

    def __iter__(self) -> Iterator[str]:
        return iter(self.attributes)

    def __contains__(self, attribute: object) -> bool:
        return attribute in self._index

    def __len__(self) -> int:
        return len(self.attributes)

    def __repr__(self) -> str:
        return f"PriorityRanking({list(self.attributes)!r})"

    def rank(self, attribute: str) -> int:
        return self._index[attribute]


# ---------------------------------------------------------------------------
# Splitting
# ---------------------------------------------------------------------------


def _child_index(children: list[Node], pos: int) -> int:
    """Index of the child containing *pos* (children tile their parent)."""
    return bisect.bisect_right(children, pos, key=lambda c: c.start) - 1


def _split(
    node: Node, pos: int, ranking: PriorityRanking, limit: int
) -> tuple[Node, Node]:
    """Split *node* at *pos* into two nodes covering the same span.

    *limit* is the rank of the attribute being inserted; splitting a node
    ranked above it would fragment an attribute that must stay whole.
    """
    if isinstance(node, TextNode):
        return TextNode(node.start, pos), TextNode(pos, node.end)

    if ranking.rank(node.attribute) > limit:
        msg = (
            f"Refusing to split {node.attribute!r} [{node.start}, {node.end}) "
            f"at {pos}: it outranks the interval being inserted"
        )
        raise StructuralInvariantViolation(msg, (node.attribute, node.value))

    idx = _child_index(node.children, pos)
    child = node.children[idx]
    if child.start == pos:
        left_children = node.children[:idx]
        right_children = node.children[idx:]
    else:
        left_child, right_child = _split(child, pos, ranking, limit)
        left_children = [*node.children[:idx], left_child]
        right_children = [right_child, *node.children[idx + 1 :]]
    return (
        TagNode(node.attribute, node.value, node.start, pos, left_children),
        TagNode(node.attribute, node.value, pos, node.end, right_children),
    )


def _insert(root: TagNode, interval: Interval, ranking: PriorityRanking) -> None:
    start, end = interval.start, interval.end
    limit = ranking.rank(interval.attribute)

    # Descend to the deepest node strictly containing the interval.
    parent = root
    while True:
        idx = _child_index(parent.children, start)
        child = parent.children[idx]
        if (
            isinstance(child, TagNode)
            and child.start <= start
            and end <= child.end
            and (child.start, child.end) != (start, end)
        ):
            parent = child
            continue
        break

    children = parent.children
    first = _child_index(children, start)
    if children[first].start < start:
        left, right = _split(children[first], start, ranking, limit)
        children[first : first + 1] = [left, right]
        first += 1

    last = _child_index(children, end - 1)
    if children[last].end > end:
        left, right = _split(children[last], end, ranking, limit)
        children[last : last + 1] = [left, right]

    covered = children[first : last + 1]
    children[first : last + 1] = [
        TagNode(interval.attribute, interval.value, start, end, covered)
    ]


def build_tree(
    intervals: Mapping[str, Sequence[Interval]],
    ranking: PriorityRanking,
    low: int,
    high: int,
    *,
    seed: int = 0,
) -> list[Node]:
    """Merge per-attribute interval lists into one properly nested tree.

    Args:
        intervals: Per-attribute intervals; disjoint within an attribute.
        ranking: Insertion order, most splittable attribute first.
        low: Region start.
        high: Region end.
        seed: Seed for the per-call shuffle of each attribute's intervals.

    Returns:
        Top-level nodes tiling ``[low, high)``.

    Raises:
        StructuralInvariantViolation: If an interval lies outside the region,
            belongs to an attribute absent from the ranking, or would require
            splitting a higher-ranked node.
    """
    if low >= high:
        return []

    for attribute in intervals:
        if intervals[attribute] and attribute not in ranking:
            msg = f"Interval for attribute {attribute!r} absent from ranking"
            raise StructuralInvariantViolation(msg, attribute)

    rng = random.Random(seed)
    root = TagNode("", None, low, high, [TextNode(low, high)])
    for attribute in ranking:
        batch = list(intervals.get(attribute, ()))
        rng.shuffle(batch)
        for interval in batch:
            if not low <= interval.start < interval.end <= high:
                msg = (
                    f"Interval [{interval.start}, {interval.end}) "
                    f"outside [{low}, {high})"
                )
                raise StructuralInvariantViolation(msg, interval)
            _insert(root, interval, ranking)
    return root.children


# ---------------------------------------------------------------------------
# Walking and validation
# ---------------------------------------------------------------------------


def iter_tags(nodes: Sequence[Node]) -> Iterator[TagNode]:
    """Yield every tag node, depth-first in document order."""
    for node in nodes:
        if isinstance(node, TagNode):
            yield node
            yield from iter_tags(node.children)


def iter_text(nodes: Sequence[Node]) -> Iterator[TextNode]:
    """Yield every text leaf in document order."""
    for node in nodes:
        if isinstance(node, TextNode):
            yield node
        else:
            yield from iter_text(node.children)


def check_tree(nodes: Sequence[Node], low: int, high: int) -> None:
    """Verify that *nodes* tile ``[low, high)`` and nest properly.

    Raises:
        StructuralInvariantViolation: On a gap, overlap, empty node, or a
            child escaping its parent.
    """
    pos = low
    for node in nodes:
        if node.start != pos or node.end <= node.start:
            msg = f"Node [{node.start}, {node.end}) breaks tiling at {pos}"
            raise StructuralInvariantViolation(msg, node)
        if isinstance(node, TagNode):
            check_tree(node.children, node.start, node.end)
        pos = node.end
    if pos != high:
        msg = f"Nodes end at {pos}, expected {high}"
        raise StructuralInvariantViolation(msg, pos)
