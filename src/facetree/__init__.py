"""facetree - compile highlighted text into well-nested LaTeX and HTML.

Overlapping attribute runs reported by a highlighter are turned into a
properly nested annotation tree, then rendered by a LaTeX or HTML backend.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from facetree.attributes import AnnotatedBuffer, Attr, AttributeProvider, Span
from facetree.errors import (
    FaceTreeError,
    MalformedInputError,
    MissingTranslationError,
    StructuralInvariantViolation,
    UnsupportedAttributeValueError,
)
from facetree.forest import build_forest
from facetree.pipeline import ExportConfig, Highlighter, render_html, render_latex
from facetree.tree import PriorityRanking, TagNode, TextNode, build_tree

__version__ = "0.1.0"

__all__ = [
    "AnnotatedBuffer",
    "Attr",
    "AttributeProvider",
    "ExportConfig",
    "FaceTreeError",
    "Highlighter",
    "MalformedInputError",
    "MissingTranslationError",
    "PriorityRanking",
    "Span",
    "StructuralInvariantViolation",
    "TagNode",
    "TextNode",
    "UnsupportedAttributeValueError",
    "build_forest",
    "build_tree",
    "configure_logging",
    "render_html",
    "render_latex",
]


def configure_logging(level: int = logging.INFO, log_file: Path | None = None) -> None:
    """Configure console logging and, optionally, a rotating log file.

    Library code only logs through module loggers; applications embedding
    facetree call this once at startup.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(min(level, logging.DEBUG) if log_file else level)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root_logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        # 10MB, keep 5 backups
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(file_handler)
        logging.info("Logging configured. Log file: %s", log_file.absolute())
