"""Codecs - thin adapters from serialization libraries to generic documents."""

from docshape.codecs.base import Codec
from docshape.codecs.registry import (
    codec_for_path,
    get_codec,
    list_codecs,
    register_codec,
)

__all__ = ["Codec", "codec_for_path", "get_codec", "list_codecs", "register_codec"]
