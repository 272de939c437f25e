"""Codec registry for registering and looking up codecs by name or extension.

Manifesto:
    Callers pick a format by name (``--codec yaml``) or by file extension;
    the registry maps both to one shared, stateless codec instance.

Tags:
    docshape, codecs, registry, lookup

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from docshape.core.logging import get_logger

if TYPE_CHECKING:
    from docshape.codecs.base import Codec

logger = get_logger(__name__)

# Global codec registry
_registry: dict[str, Codec] = {}
_loaded: bool = False


def register_codec(name: str) -> Callable[[type[Codec]], type[Codec]]:
    """Decorator to register a codec class; one instance is shared by all decodes."""

    def decorator(cls: type[Codec]) -> type[Codec]:
        if name in _registry:
            raise ValueError(f"Codec '{name}' is already registered")
        _registry[name] = cls()
        logger.debug(
            "codec_registered",
            name=name,
            cls=cls.__name__,
            extensions=list(cls.extensions),
        )
        return cls

    return decorator


def _ensure_loaded() -> None:
    """Ensure built-in codecs are loaded (lazy initialization)."""
    global _loaded
    if not _loaded:
        _loaded = True
        _load_codecs()


def get_codec(name: str) -> Codec:
    """Get a codec by name."""
    _ensure_loaded()
    key = name.lower()
    if key not in _registry:
        available = ", ".join(sorted(_registry))
        raise KeyError(f"Codec '{name}' not found. Available: {available}")
    return _registry[key]


def list_codecs() -> list[str]:
    """List all registered codec names."""
    _ensure_loaded()
    return sorted(_registry.keys())


def codec_for_path(path: str | Path) -> Codec:
    """Pick the codec whose extensions include the file's suffix."""
    _ensure_loaded()
    suffix = Path(path).suffix.lower()
    for codec in _registry.values():
        if suffix in codec.extensions:
            return codec
    known = ", ".join(sorted(ext for codec in _registry.values() for ext in codec.extensions))
    raise KeyError(f"No codec for extension '{suffix}'. Known: {known}")


def clear_registry() -> None:
    """Clear registry (for testing)."""
    global _loaded
    _registry.clear()
    _loaded = False


def _load_codecs() -> None:
    """
    Import the built-in codec modules to trigger registration.

    Modules already imported register nothing new; a registry cleared by
    :func:`clear_registry` is refilled from the imported classes.
    """
    from docshape.codecs import json_codec, msgpack_codec, toml_codec, yaml_codec

    for cls in (json_codec.JsonCodec, yaml_codec.YamlCodec, toml_codec.TomlCodec, msgpack_codec.MsgpackCodec):
        if cls.name not in _registry:
            _registry[cls.name] = cls()
    logger.debug("codec_registry_loaded", registered=len(_registry))
