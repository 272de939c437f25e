"""MessagePack codec (``msgpack``).

Binary fields arrive as ``bytes``. The msgpack timestamp extension type is
handled by :func:`msgpack_timestamp_hook`, which the codec contributes ahead
of the generic hooks.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

import msgpack

from docshape.codecs.base import Codec
from docshape.codecs.registry import register_codec
from docshape.core.errors import ParseError

if TYPE_CHECKING:
    from docshape.decoding.context import DecodeContext
    from docshape.decoding.hooks import Hook


def msgpack_timestamp_hook(source: type, target: Any, value: Any, ctx: DecodeContext) -> Any:
    """Convert ``msgpack.Timestamp`` extension values for ``datetime`` fields."""
    if target is datetime and isinstance(value, msgpack.Timestamp):
        return value.to_datetime()
    return NotImplemented


@register_codec("msgpack")
class MsgpackCodec(Codec):
    name = "msgpack"
    namespace = "msgpack"
    extensions = (".msgpack", ".mpk")
    binary = True
    error_types = (ValueError, TypeError, msgpack.UnpackException)

    @property
    def hooks(self) -> tuple[Hook, ...]:
        return (msgpack_timestamp_hook,)

    def loads(self, data: bytes | str) -> Any:
        if isinstance(data, str):
            raise ParseError("msgpack input must be bytes, got text").with_context(codec=self.name)
        return msgpack.unpackb(data, raw=False, strict_map_key=True)


__all__ = ["MsgpackCodec", "msgpack_timestamp_hook"]
