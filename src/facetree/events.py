"""Event building: consecutive ranges -> per-attribute open/close events.

Events are then matched back into intervals, one per open/close pair, which
is the input of the tree constructor.
"""

from __future__ import annotations

import bisect
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from facetree.errors import StructuralInvariantViolation
from facetree.ranges import Range


class EventKind(Enum):
    """Whether an event opens or closes an attribute."""

    OPEN = "open"
    CLOSE = "close"


@dataclass(frozen=True, slots=True)
class Event:
    """One transition of one attribute at one position."""

    kind: EventKind
    position: int
    attribute: str
    value: Any


@dataclass(frozen=True, slots=True)
class Interval:
    """The matched open->close span of one attribute value."""

    start: int
    end: int
    attribute: str
    value: Any


def split_at_breaks(ranges: Sequence[Range], hard_breaks: Iterable[int]) -> list[Range]:
    """Split ranges so that every hard break is a range boundary."""
    breaks = sorted(set(hard_breaks))
    result: list[Range] = []
    for rng in ranges:
        lo = bisect.bisect_right(breaks, rng.start)
        hi = bisect.bisect_left(breaks, rng.end)
        start = rng.start
        for brk in breaks[lo:hi]:
            result.append(Range(start, brk, rng.attrs))
            start = brk
        result.append(Range(start, rng.end, rng.attrs))
    return result


def build_events(
    ranges: Sequence[Range],
    tracked: Sequence[str],
    hard_breaks: Iterable[int] = (),
) -> list[Event]:
    """Diff consecutive ranges into open/close events.

    At every boundary, an attribute whose value changes is closed and
    reopened with the new value.  At a hard break, every open attribute is
    closed and reopened even if its value is unchanged, so no interval ever
    spans a break.  Closes precede opens at the same position; everything
    still open is closed at the end of input.
    """
    breaks = set(hard_breaks)
    events: list[Event] = []
    current: dict[str, Any] = {}

    for rng in split_at_breaks(ranges, breaks):
        forced = rng.start in breaks
        closes: list[Event] = []
        opens: list[Event] = []
        for attr in tracked:
            old = current.get(attr)
            new = rng.attrs.get(attr)
            if old == new and not forced:
                continue
            if old is not None:
                closes.append(Event(EventKind.CLOSE, rng.start, attr, old))
            if new is not None:
                opens.append(Event(EventKind.OPEN, rng.start, attr, new))
        events.extend(closes)
        events.extend(opens)
        current = {a: rng.attrs[a] for a in tracked if rng.attrs.get(a) is not None}

    if ranges:
        end = ranges[-1].end
        events.extend(
            Event(EventKind.CLOSE, end, attr, value) for attr, value in current.items()
        )
    return events


def events_to_intervals(events: Iterable[Event]) -> dict[str, list[Interval]]:
    """Match open/close pairs into per-attribute interval lists.

    Raises:
        StructuralInvariantViolation: On a close without a matching open, a
            close whose value differs from the open one, a reopen of an
            attribute that is still open, or an open that is never closed.
    """
    pending: dict[str, Event] = {}
    intervals: dict[str, list[Interval]] = {}

    for event in events:
        attr = event.attribute
        if event.kind is EventKind.OPEN:
            if attr in pending:
                msg = f"Attribute {attr!r} reopened at {event.position} while open"
                raise StructuralInvariantViolation(msg, event)
            pending[attr] = event
            continue

        opened = pending.pop(attr, None)
        if opened is None:
            msg = f"Close of {attr!r} at {event.position} without matching open"
            raise StructuralInvariantViolation(msg, event)
        if opened.value != event.value or opened.position > event.position:
            msg = f"Close of {attr!r} at {event.position} does not match its open"
            raise StructuralInvariantViolation(msg, (opened, event))
        if opened.position < event.position:
            intervals.setdefault(attr, []).append(
                Interval(opened.position, event.position, attr, opened.value)
            )

    if pending:
        msg = f"Attributes never closed: {sorted(pending)}"
        raise StructuralInvariantViolation(msg, list(pending.values()))
    return intervals
