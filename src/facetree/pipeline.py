"""Pipeline entry points and the explicit export configuration.

``ExportConfig`` replaces process-wide registries: the mode -> highlighter
table and the inline macro table are built once by the caller and passed
into every entry point, together with the validated settings.
"""

from __future__ import annotations

import functools
import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from facetree.config import Settings, get_settings
from facetree.errors import FaceTreeError, MalformedInputError
from facetree.export.html_render import HtmlRenderer
from facetree.export.latex import LatexRenderer

if TYPE_CHECKING:
    from facetree.attributes import AttributeProvider
    from facetree.export.html_ast import Element

logger = logging.getLogger(__name__)

type Highlighter = Callable[[str], AttributeProvider]

_MACRO_NAME = re.compile(r"[A-Za-z]+")


@dataclass(frozen=True)
class ExportConfig:
    """Immutable configuration threaded through the pipeline.

    Attributes:
        modes: Mode name -> highlighter producing an attribute provider.
        inline_macros: LaTeX macro name (without backslash) -> mode name, for
            inline snippets written ``\\Name|code|``.
        settings: Validated settings; defaults to ``get_settings()``.
    """

    modes: Mapping[str, Highlighter] = field(default_factory=dict)
    inline_macros: Mapping[str, str] = field(default_factory=dict)
    settings: Settings = field(default_factory=get_settings)

    def __post_init__(self) -> None:
        for name, mode in self.inline_macros.items():
            if not _MACRO_NAME.fullmatch(name):
                msg = f"Inline macro name must be letters only: {name!r}"
                raise ValueError(msg)
            if not mode:
                msg = f"Inline macro {name!r} maps to an empty mode"
                raise ValueError(msg)
        object.__setattr__(self, "modes", MappingProxyType(dict(self.modes)))
        object.__setattr__(
            self, "inline_macros", MappingProxyType(dict(self.inline_macros))
        )

    @functools.cached_property
    def latex(self) -> LatexRenderer:
        return LatexRenderer(self.settings)

    @functools.cached_property
    def html(self) -> HtmlRenderer:
        return HtmlRenderer(self.settings)

    def highlight(self, mode: str, code: str) -> AttributeProvider:
        """Run the highlighter registered for *mode* over *code*."""
        if not mode:
            msg = "Empty mode name"
            raise MalformedInputError(msg, mode)
        highlighter = self.modes.get(mode)
        if highlighter is None:
            msg = f"No highlighter registered for mode {mode!r}"
            raise MalformedInputError(msg, mode)
        return highlighter(code)


def render_latex(
    config: ExportConfig, mode: str, code: str, *, block: bool = True
) -> str:
    """Highlight *code* and render it to LaTeX.

    Block output is line-protected; inline output is not.
    """
    try:
        provider = config.highlight(mode, code)
        return config.latex.render(provider, protect=block)
    except FaceTreeError as exc:
        logger.warning("LaTeX rendering of %s snippet failed: %s", mode, exc.message)
        raise


def render_html(
    config: ExportConfig, mode: str, code: str, *, block: bool = True
) -> Element:
    """Highlight *code* and render it to an HTML element (``pre`` or ``code``)."""
    try:
        provider = config.highlight(mode, code)
        if block:
            return config.html.render_block(provider)
        return config.html.render_inline(provider)
    except FaceTreeError as exc:
        logger.warning("HTML rendering of %s snippet failed: %s", mode, exc.message)
        raise
