"""Content blocks - a small discriminated union of document blocks.

A ``Post`` carries a list of polymorphic ``Block`` values, each tagged with
its own ``type``::

    {
      "_id": "65a4f1c2e4b0a1b2c3d4e5f6",
      "title": "Hello",
      "author": "ada",
      "published_at": "2024-01-15T10:30:00Z",
      "blocks": [
        {"type": "text", "content": "hello"},
        {"type": "image", "url": "a.png", "alt": "A"},
        {"type": "audio", "url": "a.mp3"}
      ]
    }

With :data:`BLOCK_REGISTRY` the audio block decodes to :class:`UnknownBlock`;
with :data:`STRICT_BLOCK_REGISTRY` it fails with UnknownDiscriminatorError.

Usage::

    decoder = Decoder(registries=[BLOCK_REGISTRY], preprocessors=POST_PREPROCESSORS)
    post = decoder.decode(raw, Post)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from docshape.decoding.normalize import FieldNormalizer
from docshape.decoding.preprocess import object_id
from docshape.decoding.registry import TypeRegistry
from docshape.decoding.shapes import shape, tag


class BlockKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"


class Block:
    """Interface of every content block."""


@shape
@dataclass
class TextBlock(Block):
    content: str = tag("content")
    format: str = tag("format", default="plain")


@shape
@dataclass
class ImageBlock(Block):
    url: str = tag("url")
    alt: str = tag("alt", yaml="caption", default="")
    width: int | None = None
    height: int | None = None


@shape
@dataclass
class UnknownBlock(Block):
    """Fallback: keeps every key of a block nobody registered."""

    raw_data: dict[str, Any] = tag(remain=True)


@shape
@dataclass
class Metadata:
    author: str = tag("author", yaml="by", default="")
    published_at: datetime | None = tag("published_at", default=None)
    tags: list[str] = tag("tags", default_factory=list)


@shape
@dataclass(kw_only=True)
class Post:
    id: str = tag(skip=True, default="")
    title: str = tag("title")
    meta: Metadata = tag(embedded=True, default_factory=Metadata)
    updated_at: datetime | None = tag("updated_at", default=None)
    blocks: list[Block] = tag("blocks", default_factory=list)


def build_block_registry(*, fallback: bool = True, name: str = "blocks") -> TypeRegistry[Block]:
    """Registry of the built-in blocks; keys also accept the BlockKind names."""
    builder = TypeRegistry.builder(Block, normalizer=FieldNormalizer(BlockKind), name=name)
    builder.register(BlockKind.TEXT, TextBlock)
    builder.register(BlockKind.IMAGE, ImageBlock)
    if fallback:
        builder.set_fallback(UnknownBlock)
    return builder.build()


BLOCK_REGISTRY = build_block_registry()
STRICT_BLOCK_REGISTRY = build_block_registry(fallback=False, name="blocks-strict")

POST_PREPROCESSORS = (object_id("_id", "id"),)


__all__ = [
    "BLOCK_REGISTRY",
    "Block",
    "BlockKind",
    "ImageBlock",
    "Metadata",
    "POST_PREPROCESSORS",
    "Post",
    "STRICT_BLOCK_REGISTRY",
    "TextBlock",
    "UnknownBlock",
    "build_block_registry",
]
