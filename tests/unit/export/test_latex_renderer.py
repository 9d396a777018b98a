"""Unit tests for the LaTeX backend."""

from __future__ import annotations

from typing import Any

import pytest

from facetree.attributes import AnnotatedBuffer, Attr, Span
from facetree.config import LatexConfig, Settings
from facetree.errors import MissingTranslationError, UnsupportedAttributeValueError
from facetree.export.latex import LatexRenderer, protect_lines
from facetree.tree import PriorityRanking


@pytest.fixture
def renderer(settings: Settings) -> LatexRenderer:
    return LatexRenderer(settings)


def _whole(source: str, attrs: dict[str, Any]) -> AnnotatedBuffer:
    return AnnotatedBuffer(source, [Span(0, len(source), attrs)])


class TestProtectLines:
    def test_empty(self) -> None:
        assert protect_lines("") == ""

    def test_each_line_wrapped(self) -> None:
        assert protect_lines("a\nb") == "\\FTBol{}a\\FTEol{}\n\\FTBol{}b\\FTEol{}"

    def test_trailing_newline_kept(self) -> None:
        assert protect_lines("a\n") == "\\FTBol{}a\\FTEol{}\n"


class TestRender:
    """Attribute -> macro mapping."""

    def test_single_colour_run(self, renderer: LatexRenderer) -> None:
        buf = AnnotatedBuffer("ab", [Span(0, 1, {Attr.FOREGROUND: "red"})])
        assert renderer.render(buf) == "\\textcolor[HTML]{FF0000}{a}b"

    def test_plain_text_escaped(self, renderer: LatexRenderer) -> None:
        assert renderer.render(AnnotatedBuffer("a_b")) == "a\\_b"

    @pytest.mark.parametrize(
        ("attrs", "expected"),
        [
            ({Attr.WEIGHT: "bold"}, "\\textbf{ab}"),
            ({Attr.WEIGHT: 300}, "\\FTWeightLight{ab}"),
            ({Attr.SLANT: "italic"}, "\\textit{ab}"),
            ({Attr.BACKGROUND: "yellow"}, "\\FTColorBox{FFFF00}{ab}"),
            ({Attr.HEIGHT: 150}, "\\FTHeight{1.5}{ab}"),
            ({Attr.UNDERLINE: True}, "\\FTUnderline{ab}"),
            ({Attr.UNDERLINE: {"style": "wave"}}, "\\FTUnderwave{ab}"),
            (
                {Attr.UNDERLINE: {"style": "wave", "color": "blue"}},
                "\\FTColorUnderwave{0000FF}{ab}",
            ),
            ({Attr.BOX: True}, "\\FTBox{1}{ab}"),
            (
                {
                    Attr.BOX: {
                        "line_width": 2,
                        "color": "red",
                        "style": "pressed-button",
                    }
                },
                "\\FTColoredBox{2}{FF0000}{ab}",
            ),
            ({Attr.DISPLAY: ("raise", -0.25)}, "\\FTRaise{-0.25}{ab}"),
            ({Attr.DISPLAY: "->"}, "{-}{>}"),
            ({Attr.INVISIBLE: True}, ""),
        ],
        ids=[
            "bold",
            "light",
            "italic",
            "background",
            "height",
            "underline",
            "underwave",
            "coloured-underwave",
            "box",
            "coloured-box",
            "raise",
            "display-string",
            "invisible",
        ],
    )
    def test_attribute_macros(
        self, renderer: LatexRenderer, attrs: dict[str, Any], expected: str
    ) -> None:
        assert renderer.render(_whole("ab", attrs)) == expected

    def test_baseline_values_not_rendered(self, renderer: LatexRenderer) -> None:
        buf = _whole("ab", {Attr.FOREGROUND: "black", Attr.SLANT: "normal"})
        assert renderer.render(buf) == "ab"

    def test_less_splittable_attribute_outside(self, renderer: LatexRenderer) -> None:
        buf = _whole("ab", {Attr.FOREGROUND: "red", Attr.WEIGHT: "bold"})
        assert renderer.render(buf) == "\\textbf{\\textcolor[HTML]{FF0000}{ab}}"

    def test_overlap_splits_colour_not_box(self, renderer: LatexRenderer) -> None:
        buf = AnnotatedBuffer(
            "abcdefgh",
            [Span(0, 5, {Attr.FOREGROUND: "red"}), Span(3, 8, {Attr.BOX: True})],
        )
        assert renderer.render(buf) == (
            "\\textcolor[HTML]{FF0000}{abc}\\FTBox{1}{\\textcolor[HTML]{FF0000}{de}fgh}"
        )


class TestLines:
    """Newline handling and line protection."""

    def test_run_across_newline_closed_per_line(self, renderer: LatexRenderer) -> None:
        buf = _whole("a\nb", {Attr.FOREGROUND: "red"})
        assert renderer.render(buf) == (
            "\\textcolor[HTML]{FF0000}{a}\n\\textcolor[HTML]{FF0000}{b}"
        )

    def test_protected_block(self, renderer: LatexRenderer) -> None:
        buf = _whole("a\nb", {Attr.WEIGHT: "bold"})
        assert renderer.render(buf, protect=True) == (
            "\\FTBol{}\\textbf{a}\\FTEol{}\n\\FTBol{}\\textbf{b}\\FTEol{}"
        )

    def test_blank_line_gets_empty_box(self, renderer: LatexRenderer) -> None:
        assert renderer.render(AnnotatedBuffer("a\n\nb")) == "a\n\\mbox{}\nb"

    def test_line_height(self, renderer: LatexRenderer) -> None:
        buf = AnnotatedBuffer("a\nb", [Span(1, 2, {Attr.LINE_MARKER: 1.5})])
        assert renderer.render(buf) == "a\\FTStrut{1.5}\nb"

    def test_no_macro_argument_spans_a_newline(self, renderer: LatexRenderer) -> None:
        buf = _whole("ab\ncd\n", {Attr.BOX: True, Attr.FOREGROUND: "red"})
        for line in renderer.render(buf).split("\n"):
            assert line.count("{") == line.count("}")

    def test_display_string_replaces_newline(self, renderer: LatexRenderer) -> None:
        buf = AnnotatedBuffer("a\nb", [Span(1, 2, {Attr.DISPLAY: "NL"})])
        assert renderer.render(buf) == "aNLb"


class TestNonAscii:
    def test_wrapped(self, renderer: LatexRenderer) -> None:
        assert renderer.render(AnnotatedBuffer("é")) == "\\FTSpecialChar{é}"

    def test_substituted(self) -> None:
        settings = Settings(  # type: ignore[call-arg]
            _env_file=None,
            latex=LatexConfig(
                substitute_unicode=True, translations={"λ": "\\lambda{}"}
            ),
        )
        assert LatexRenderer(settings).render(AnnotatedBuffer("λ")) == "\\lambda{}"

    def test_missing_translation_propagates(self) -> None:
        settings = Settings(  # type: ignore[call-arg]
            _env_file=None, latex=LatexConfig(substitute_unicode=True)
        )
        with pytest.raises(MissingTranslationError):
            LatexRenderer(settings).render(AnnotatedBuffer("\ue000"))


class TestConstruction:
    def test_ranking_without_handler_rejected(self, settings: Settings) -> None:
        with pytest.raises(ValueError, match="No LaTeX handler"):
            LatexRenderer(settings, PriorityRanking((Attr.FOREGROUND, Attr.BREAK)))

    def test_unsupported_value_propagates(self, renderer: LatexRenderer) -> None:
        with pytest.raises(UnsupportedAttributeValueError):
            renderer.render(_whole("ab", {Attr.WEIGHT: "wobbly"}))

    def test_deterministic(self, renderer: LatexRenderer) -> None:
        def make() -> AnnotatedBuffer:
            return AnnotatedBuffer(
                "abcdefghij" * 3,
                [Span(i, i + 4, {Attr.FOREGROUND: "red"}) for i in range(0, 26, 5)]
                + [Span(i, i + 6, {Attr.BOX: True}) for i in range(2, 24, 8)],
            )

        assert renderer.render(make()) == renderer.render(make())
