"""Centralized settings for docshape.

``DocshapeSettings`` holds the decode options that are usually fixed per
deployment: which codec reads the input, which tag namespace drives field
lookup, whether weak typing is on, and the logging setup.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.
    Settings are read once at startup and handed to ``Decoder.from_settings``;
    the decoder never consults the environment during a decode call.

    - **Pydantic validation:** Type-checked at startup, not at decode time
    - **Environment-driven:** Reads ``DOCSHAPE_*`` env vars and ``.env`` files
    - **Sensible defaults:** JSON codec, strict typing, ``type`` discriminator

Examples:
    >>> from docshape.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.codec
    'json'

Tags:
    settings, configuration, pydantic, environment, docshape

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DocshapeSettings(BaseSettings):
    """Decoder configuration.

    All fields can be set via ``DOCSHAPE_*`` environment variables (e.g.
    ``DOCSHAPE_WEAK_TYPING=true``) or through a ``.env`` file.

    Fields
    ──────
    codec         : Codec used to parse raw input (json, yaml, toml, msgpack)
    namespace     : Tag namespace; defaults to the codec's own namespace
    weak_typing   : Coerce textual scalars ("42", "true") into typed fields
    discriminator : Document key holding the type tag of polymorphic values
    log_level     : Structlog log level
    log_format    : json | console
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCSHAPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Decoding ─────────────────────────────────────────────────
    codec: str = Field(default="json", description="Codec used to parse raw input")
    namespace: str | None = Field(default=None, description="Tag namespace for field lookup")
    weak_typing: bool = Field(default=False, description="Enable scalar coercion")
    discriminator: str = Field(default="type", min_length=1, description="Discriminator key")

    # ── Logging ──────────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="console")

    @field_validator("codec", "namespace")
    @classmethod
    def _lowercase(cls, value: str | None) -> str | None:
        return value.lower() if value else value

    @field_validator("log_level", mode="before")
    @classmethod
    def _uppercase_level(cls, value: str) -> str:
        return value.upper() if isinstance(value, str) else value


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, DocshapeSettings] = {}


def get_settings(*, _force_reload: bool = False) -> DocshapeSettings:
    """Load, validate, and cache a :class:`DocshapeSettings` instance.

    Parameters
    ----------
    _force_reload:
        Bypass cache and reload from the environment.
    """
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]

    settings = DocshapeSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Drop cached settings (for testing)."""
    _settings_cache.clear()


__all__ = ["DocshapeSettings", "get_settings", "clear_settings_cache"]
