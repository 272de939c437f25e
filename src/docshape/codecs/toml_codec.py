"""TOML codec (stdlib ``tomllib``). Offset date-times arrive as ``datetime``."""

from __future__ import annotations

import tomllib
from typing import Any

from docshape.codecs.base import Codec
from docshape.codecs.registry import register_codec


@register_codec("toml")
class TomlCodec(Codec):
    name = "toml"
    namespace = "toml"
    extensions = (".toml",)
    error_types = (tomllib.TOMLDecodeError,)

    def loads(self, data: bytes | str) -> Any:
        return tomllib.loads(self._text(data))


__all__ = ["TomlCodec"]
