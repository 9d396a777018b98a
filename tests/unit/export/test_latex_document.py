"""Unit tests for LaTeX host-document scanning and export."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

import pytest

from facetree.errors import MalformedInputError
from facetree.export.latex_document import (
    CodeSnippet,
    SnippetKind,
    export_latex_document,
    format_verb_table,
    precompute_verbs,
    scan_latex,
    verb_key,
)

if TYPE_CHECKING:
    from facetree.pipeline import ExportConfig

KEYWORD_IF = "\\textbf{\\textcolor[HTML]{800080}{if}}"


class TestScanLatex:
    """Finding snippets in a host document."""

    def test_inline_snippet(self) -> None:
        source = "Text \\FTInline{toy}|x + 1| more"
        assert scan_latex(source) == [
            CodeSnippet(SnippetKind.INLINE, "toy", "x + 1", 5, 26),
        ]

    def test_block_snippet(self) -> None:
        source = "\\begin{FTBlock}{toy}\ndef f():\n    return 1\n\\end{FTBlock}\n"
        [snippet] = scan_latex(source)
        assert snippet.kind is SnippetKind.BLOCK
        assert snippet.mode == "toy"
        assert snippet.code == "def f():\n    return 1\n"
        assert source[snippet.end :] == "\n"

    def test_indentation_before_end_not_code(self) -> None:
        source = "\\begin{FTBlock}{toy}\nx\n  \\end{FTBlock}"
        assert scan_latex(source)[0].code == "x\n"

    def test_registered_macro(self) -> None:
        [snippet] = scan_latex("see \\py!a_b!", {"py": "toy"})
        assert (snippet.mode, snippet.code) == ("toy", "a_b")

    def test_registered_macro_needs_full_name(self) -> None:
        assert scan_latex("\\python!x!", {"py": "toy"}) == []

    def test_brace_delimiter(self) -> None:
        assert scan_latex("\\FTInline{toy}{x}")[0].code == "x"

    def test_commented_out_snippet_ignored(self) -> None:
        assert scan_latex("% \\FTInline{toy}|x|\n") == []

    def test_escaped_percent_is_not_a_comment(self) -> None:
        assert len(scan_latex("50\\% \\FTInline{toy}|x|")) == 1

    def test_snippets_in_document_order(self) -> None:
        source = "\\toy|a| \\begin{FTBlock}{toy}\nb\n\\end{FTBlock} \\FTInline{toy}|c|"
        snippets = scan_latex(source, {"toy": "toy"})
        assert [s.code for s in snippets] == ["a", "b\n", "c"]

    @pytest.mark.parametrize(
        ("source", "offset"),
        [
            ("ab \\begin{FTBlock}{toy}\nx\n", 3),
            ("\\FTInline{toy}|x\n|", 14),
            ("\\FTInline{}|x|", 9),
            ("\\FTInline|x|", 9),
            ("\\FTInline{toy}", 14),
        ],
        ids=[
            "unterminated-block",
            "delimiter-on-next-line",
            "empty-mode",
            "missing-mode",
            "eof",
        ],
    )
    def test_malformed(self, source: str, offset: int) -> None:
        with pytest.raises(MalformedInputError) as exc_info:
            scan_latex(source)
        assert exc_info.value.value == offset


class TestVerbKey:
    def test_letters_only(self) -> None:
        assert re.fullmatch(r"[a-p]{40}", verb_key("toy", "x + 1"))

    def test_stable_and_distinct(self) -> None:
        assert verb_key("toy", "x") == verb_key("toy", "x")
        assert verb_key("toy", "x") != verb_key("toy", "y")
        assert verb_key("toy", "x") != verb_key("other", "x")


class TestExportDocument:
    """Replacing snippets with highlighted markup."""

    def test_inline_plain(self, export_config: ExportConfig) -> None:
        result = export_latex_document("See \\FTInline{toy}|x_1|.", export_config)
        assert result == "See \\FTInlineCode{x\\_1}."

    def test_inline_keyword_via_macro(self, export_config: ExportConfig) -> None:
        result = export_latex_document("\\toy|if|", export_config)
        assert result == f"\\FTInlineCode{{{KEYWORD_IF}}}"

    def test_block_is_line_protected(self, export_config: ExportConfig) -> None:
        source = "before\n\\begin{FTBlock}{toy}\nif x\n\\end{FTBlock}\nafter"
        assert export_latex_document(source, export_config) == (
            "before\n\\begin{FTCode}\n"
            f"\\FTBol{{}}{KEYWORD_IF} x\\FTEol{{}}\n"
            "\\end{FTCode}\nafter"
        )

    def test_document_without_snippets_unchanged(
        self, export_config: ExportConfig
    ) -> None:
        source = "\\section{Intro} 100\\% plain"
        assert export_latex_document(source, export_config) == source

    def test_unknown_mode_logged_and_raised(
        self, export_config: ExportConfig, caplog: pytest.LogCaptureFixture
    ) -> None:
        with (
            caplog.at_level(logging.DEBUG),
            pytest.raises(MalformedInputError, match="cobol"),
        ):
            export_latex_document("\\FTInline{cobol}|x|", export_config)
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert [r.name for r in warnings] == ["facetree.pipeline"]
        assert "cobol" in warnings[0].getMessage()
        assert "offset 0" in caplog.text

    def test_use_verbs_references_table(self, export_config: ExportConfig) -> None:
        result = export_latex_document("a \\toy|x| b", export_config, use_verbs=True)
        assert result == f"a \\FTVerb{{{verb_key('toy', 'x')}}} b"


class TestPrecomputeVerbs:
    def test_one_entry_per_distinct_snippet(self, export_config: ExportConfig) -> None:
        source = (
            "\\toy|x| \\FTInline{toy}|x| \\toy|if|\n"
            "\\begin{FTBlock}{toy}\nreturn\n\\end{FTBlock}"
        )
        verbs = precompute_verbs(source, export_config)
        assert verbs == {
            verb_key("toy", "x"): "x",
            verb_key("toy", "if"): KEYWORD_IF,
        }

    def test_format_table(self) -> None:
        table = format_verb_table({"abc": "x", "def": "\\textbf{y}"})
        assert table == "\\FTDeclareVerb{abc}{x}\n\\FTDeclareVerb{def}{\\textbf{y}}\n"

    def test_format_empty_table(self) -> None:
        assert format_verb_table({}) == ""
