"""JSON codec (stdlib ``json``), rejecting duplicate keys."""

from __future__ import annotations

import json
from typing import Any

from docshape.codecs.base import Codec
from docshape.codecs.registry import register_codec


class DuplicateKeyInDocument(ValueError):
    pass


def _unique_object(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in pairs:
        if key in result:
            raise DuplicateKeyInDocument(f"duplicate key {key!r}")
        result[key] = value
    return result


@register_codec("json")
class JsonCodec(Codec):
    name = "json"
    namespace = "json"
    extensions = (".json",)
    error_types = (ValueError,)

    def loads(self, data: bytes | str) -> Any:
        return json.loads(self._text(data), object_pairs_hook=_unique_object)


__all__ = ["JsonCodec"]
