"""Unit tests for range extraction."""

from __future__ import annotations

from facetree.attributes import AnnotatedBuffer, Attr, Span
from facetree.ranges import Range, extract_ranges, restrict

TRACKED = (Attr.FOREGROUND, Attr.WEIGHT)


class TestRestrict:
    def test_drops_untracked_and_none(self) -> None:
        attrs = {Attr.FOREGROUND: "red", Attr.WEIGHT: None, Attr.BOX: True}
        assert restrict(attrs, TRACKED) == {Attr.FOREGROUND: "red"}


class TestExtractRanges:
    """Ranges tile the document and merge equal neighbours."""

    def test_empty_document_has_no_ranges(self) -> None:
        assert extract_ranges(AnnotatedBuffer(""), TRACKED) == []

    def test_plain_document_is_one_range(self) -> None:
        assert extract_ranges(AnnotatedBuffer("abc"), TRACKED) == [Range(0, 3, {})]

    def test_ranges_tile_document(self) -> None:
        buf = AnnotatedBuffer(
            "abcdefgh",
            [
                Span(1, 3, {Attr.FOREGROUND: "red"}),
                Span(5, 7, {Attr.WEIGHT: "bold"}),
            ],
        )
        ranges = extract_ranges(buf, TRACKED)
        assert ranges[0].start == 0
        assert ranges[-1].end == 8
        for left, right in zip(ranges, ranges[1:], strict=False):
            assert left.end == right.start
        bounds = [(r.start, r.end) for r in ranges]
        assert bounds == [(0, 1), (1, 3), (3, 5), (5, 7), (7, 8)]

    def test_untracked_changes_are_merged_away(self) -> None:
        """A change in an untracked attribute does not split a range."""
        buf = AnnotatedBuffer(
            "abcd",
            [
                Span(0, 4, {Attr.FOREGROUND: "red"}),
                Span(2, 3, {Attr.BOX: True}),
            ],
        )
        assert extract_ranges(buf, TRACKED) == [Range(0, 4, {Attr.FOREGROUND: "red"})]

    def test_normalize_merges_equivalent_values(self) -> None:
        """Values that normalise equal produce a single range."""
        buf = AnnotatedBuffer(
            "abcd",
            [
                Span(0, 2, {Attr.FOREGROUND: "red"}),
                Span(2, 4, {Attr.FOREGROUND: "#ff0000"}),
            ],
        )

        def normalize(attrs: dict) -> dict:
            red = ("red", "#ff0000")
            return {k: "FF0000" if v in red else v for k, v in attrs.items()}

        assert extract_ranges(buf, TRACKED, normalize) == [
            Range(0, 4, {Attr.FOREGROUND: "FF0000"})
        ]

    def test_normalize_may_drop_attributes(self) -> None:
        buf = AnnotatedBuffer("ab", [Span(0, 1, {Attr.WEIGHT: "normal"})])
        ranges = extract_ranges(buf, TRACKED, lambda attrs: {})
        assert ranges == [Range(0, 2, {})]
