"""Generic document - the schema-less intermediate shape produced by codecs.

A generic document is what a format-specific parser hands to the decoder
before anyone knows which concrete shape the record is: a mapping from string
keys to scalars, sequences and nested mappings.

Tags:
    docshape, decoding, generic-document, intermediate-representation

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any, TypeAlias

from docshape.core.errors import TypeMismatchError

if TYPE_CHECKING:
    from docshape.decoding.context import DecodeContext

GenericValue: TypeAlias = (
    None
    | bool
    | int
    | float
    | str
    | bytes
    | datetime
    | list["GenericValue"]
    | dict[str, "GenericValue"]
)
GenericDocument: TypeAlias = Mapping[str, GenericValue]


def is_document(value: Any) -> bool:
    """True for mappings whose keys are all strings."""
    return isinstance(value, Mapping) and all(isinstance(key, str) for key in value)


def ensure_document(value: Any, ctx: DecodeContext | None = None) -> GenericDocument:
    """Return ``value`` if it is a document, else raise TypeMismatchError."""
    if is_document(value):
        return value
    if isinstance(value, Mapping):
        bad = next(key for key in value if not isinstance(key, str))
        error = TypeMismatchError(
            f"expected mapping with string keys, found key {bad!r}",
            expected="mapping",
            actual="mapping",
        )
    else:
        error = TypeMismatchError(
            f"expected mapping, got {kind_of(value)}",
            expected="mapping",
            actual=kind_of(value),
        )
    if ctx is not None:
        ctx.annotate(error)
    raise error


def kind_of(value: Any) -> str:
    """Stable, format-neutral name of a generic value's type, for diagnostics."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (bytes, bytearray)):
        return "bytes"
    if isinstance(value, datetime):
        return "timestamp"
    if isinstance(value, Mapping):
        return "mapping"
    if isinstance(value, (list, tuple)):
        return "sequence"
    return type(value).__name__


__all__ = ["GenericValue", "GenericDocument", "is_document", "ensure_document", "kind_of"]
