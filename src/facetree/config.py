"""Centralised configuration using pydantic-settings.

All environment variables are read through the Settings class.
Consumers call ``get_settings()`` to obtain a cached, validated instance.
Tests construct ``Settings(_env_file=None, ...)`` directly for isolation.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# src/facetree/config.py  ->  parent x3  ->  project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


# ---------------------------------------------------------------------------
# Sub-models (one per configuration domain)
# ---------------------------------------------------------------------------
class FaceConfig(BaseModel):
    """Baseline face of the document.

    Attribute values equal to these are dropped during normalisation, since
    rendering them would only restate the surrounding document style.
    """

    foreground: str | None = "black"
    background: str | None = "white"
    weight: int = 500
    slant: str = "normal"
    height: int = 100

    @field_validator("weight")
    @classmethod
    def _weight_in_range(cls, value: int) -> int:
        if not 100 <= value <= 900:
            msg = f"FACE__WEIGHT must be between 100 and 900, got {value}"
            raise ValueError(msg)
        return value

    @field_validator("height")
    @classmethod
    def _positive_height(cls, value: int) -> int:
        if value <= 0:
            msg = f"FACE__HEIGHT must be positive, got {value}"
            raise ValueError(msg)
        return value


class TreeConfig(BaseModel):
    """Tree construction."""

    seed: int = 0


class LatexConfig(BaseModel):
    """LaTeX backend options."""

    substitute_unicode: bool = False
    translations: dict[str, str] = Field(default_factory=dict)
    special_char_macro: str = "FTSpecialChar"

    @field_validator("translations")
    @classmethod
    def _single_characters(cls, value: dict[str, str]) -> dict[str, str]:
        bad = [key for key in value if len(key) != 1]
        if bad:
            msg = f"LATEX__TRANSLATIONS keys must be single characters: {bad!r}"
            raise ValueError(msg)
        return value


class HtmlConfig(BaseModel):
    """HTML backend options."""

    block_class: str = "ft-block"
    inline_class: str = "ft-inline"


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Settings with automatic .env loading and type validation.

    Environment variables use double-underscore delimiter for nesting:
    ``FACE__FOREGROUND``, ``TREE__SEED``, ``LATEX__SUBSTITUTE_UNICODE``, etc.
    """

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    face: FaceConfig = FaceConfig()
    tree: TreeConfig = TreeConfig()
    latex: LatexConfig = LatexConfig()
    html: HtmlConfig = HtmlConfig()


# ---------------------------------------------------------------------------
# Singleton access
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    settings = Settings()

    env_file = settings.model_config.get("env_file")
    if env_file is not None and Path(str(env_file)).is_file():
        logger.info("Settings loaded .env from: %s", env_file)
    else:
        logger.info("Settings: no .env file found, using env vars and defaults")

    return settings
