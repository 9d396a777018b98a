"""Shared pytest fixtures for facetree tests."""

from __future__ import annotations

import os
import re
from collections.abc import Generator

import pytest

from facetree.attributes import AnnotatedBuffer, Attr, Span
from facetree.config import Settings, get_settings
from facetree.pipeline import ExportConfig

# =============================================================================
# Settings isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Clear facetree env vars and the cached settings around every test."""
    for key in list(os.environ):
        if key.startswith(("FACE__", "TREE__", "LATEX__", "HTML__")):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Default settings, ignoring any .env file."""
    return Settings(_env_file=None)  # type: ignore[call-arg]


# =============================================================================
# Toy highlighter
# =============================================================================

KEYWORDS = frozenset({"def", "return", "if", "else", "for", "in"})
_TOKEN = re.compile(r"#[^\n]*|\"[^\"\n]*\"|\b[A-Za-z_]\w*\b")


def highlight_toy(code: str) -> AnnotatedBuffer:
    """Highlight a tiny Python-like language.

    Keywords are bold purple, strings green, comments italic grey.
    """
    spans: list[Span] = []
    for match in _TOKEN.finditer(code):
        token = match.group()
        if token.startswith("#"):
            attrs = {Attr.FOREGROUND: "gray50", Attr.SLANT: "italic"}
        elif token.startswith('"'):
            attrs = {Attr.FOREGROUND: "green"}
        elif token in KEYWORDS:
            attrs = {Attr.FOREGROUND: "purple", Attr.WEIGHT: "bold"}
        else:
            continue
        spans.append(Span(match.start(), match.end(), attrs))
    return AnnotatedBuffer(code, spans)


@pytest.fixture
def export_config(settings: Settings) -> ExportConfig:
    """ExportConfig with the toy highlighter registered as ``toy``."""
    return ExportConfig(
        modes={"toy": highlight_toy},
        inline_macros={"toy": "toy"},
        settings=settings,
    )

