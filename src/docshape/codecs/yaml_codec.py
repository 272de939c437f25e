"""YAML codec (PyYAML safe loader), rejecting duplicate keys.

PyYAML's safe loader silently keeps the last of several equal keys; the
loader below refuses them like the JSON codec does. Keys pulled in by a
``<<`` merge may still be overridden. Timestamps written as
YAML timestamps arrive as ``datetime`` values.
"""

from __future__ import annotations

from typing import Any

import yaml
from yaml.constructor import ConstructorError

from docshape.codecs.base import Codec
from docshape.codecs.registry import register_codec


class _UniqueKeyLoader(yaml.SafeLoader):
    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> dict[Any, Any]:
        seen: set[Any] = set()
        for key_node, _ in node.value:
            if key_node.tag == "tag:yaml.org,2002:merge":
                continue
            key = self.construct_object(key_node, deep=deep)
            try:
                duplicate = key in seen
            except TypeError:
                raise ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    "found unhashable key",
                    key_node.start_mark,
                ) from None
            if duplicate:
                raise ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    f"found duplicate key {key!r}",
                    key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


@register_codec("yaml")
class YamlCodec(Codec):
    name = "yaml"
    namespace = "yaml"
    extensions = (".yaml", ".yml")
    error_types = (yaml.YAMLError,)

    def loads(self, data: bytes | str) -> Any:
        return yaml.load(self._text(data), Loader=_UniqueKeyLoader)


__all__ = ["YamlCodec"]
