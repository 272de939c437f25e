"""Structural mapper - populate a shape instance from a generic document.

For every declared field the mapper looks up the document entry under the
field's tag in the active namespace, offers the value to the hook chain, and
otherwise converts it structurally against the field's annotation. Embedded
fields are populated from the *same* document; the remain field collects
whatever no other field consumed.

Conversion rules:

- ``Any`` / ``object``: the generic value as is
- ``X | None``: ``None`` stays ``None``; anything else converts as ``X``
- other unions: the first member that converts wins
- ``Literal[...]``: the value must be one of the literals
- shapes: nested mapping, populated recursively
- ``list`` / ``tuple`` / ``set`` / ``Sequence`` / ``dict`` / ``Mapping``: per element
- ``int`` / ``float`` / ``str`` / ``bool`` / ``bytes``: exact, plus
  int -> float and integral float -> int; with weak typing also numeric text
  -> numbers, ``"true"``/``"false"`` -> bool and numbers -> text
- ``Enum``: by member value, then by member name
- any other class: ``isinstance`` check (polymorphic interfaces are claimed
  by their hook before this point)

The first failing field aborts the record. Writes made before the failure are
not rolled back; callers discard the instance.

Tags:
    docshape, decoding, structural-mapping, weak-typing, embedding

Doc-Types:
    api-reference
"""

from __future__ import annotations

import collections.abc
import re
from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Literal, get_args, get_origin

from docshape.core.errors import (
    DocshapeError,
    MappingError,
    MissingFieldError,
    TypeMismatchError,
)
from docshape.decoding.document import GenericDocument, ensure_document, kind_of
from docshape.decoding.shapes import (
    FieldSpec,
    ShapeDescriptor,
    describe,
    is_shape,
    is_union,
    unwrap_optional,
)

if TYPE_CHECKING:
    from docshape.decoding.context import DecodeContext
    from docshape.decoding.hooks import HookChain

_INTEGER = re.compile(r"[+-]?\d+")
_DECIMAL = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

_SEQUENCES = (list, collections.abc.Sequence, collections.abc.MutableSequence)
_SETS = (set, frozenset, collections.abc.Set, collections.abc.MutableSet)
_MAPPINGS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)

_SCALAR_NAMES = {str: "string", int: "integer", float: "float", bool: "bool", bytes: "bytes"}

_ABSENT = object()

# Path segments below the record root; deeper values are rejected before the
# interpreter stack runs out.
MAX_DEPTH = 100


def type_name(tp: Any) -> str:
    """Readable name of an annotation for diagnostics."""
    if tp in _SCALAR_NAMES:
        return _SCALAR_NAMES[tp]
    if isinstance(tp, type):
        return tp.__qualname__
    return repr(tp).replace("typing.", "")


class StructuralMapper:
    """Field-by-field population of shapes, driven by their descriptors."""

    __slots__ = ("hooks",)

    def __init__(self, hooks: HookChain):
        self.hooks = hooks

    def map(self, document: Any, cls: type, ctx: DecodeContext) -> Any:
        """Build a zero-valued ``cls`` instance and populate it from ``document``."""
        descriptor = describe(cls)
        return self.populate(document, descriptor.zero(), descriptor, ctx)

    def populate(
        self,
        document: Any,
        instance: Any,
        descriptor: ShapeDescriptor,
        ctx: DecodeContext,
    ) -> Any:
        """Fill an existing instance, e.g. one a preprocessor already touched."""
        ctx = ctx.within(descriptor.name)
        doc = ensure_document(document, ctx)

        for spec in descriptor.fields:
            try:
                self._populate_field(doc, instance, spec, ctx)
            except DocshapeError as exc:
                exc.with_context(field=spec.attr)
                ctx.annotate(exc)
                raise

        remain = descriptor.remain_field
        if remain is not None:
            consumed = descriptor.consumed_keys(ctx.namespace)
            leftover = {key: value for key, value in doc.items() if key not in consumed}
            object.__setattr__(instance, remain.attr, leftover)
        return instance

    def _populate_field(
        self, doc: GenericDocument, instance: Any, spec: FieldSpec, ctx: DecodeContext
    ) -> None:
        if spec.embedded is not None:
            # same document, same path
            sub = getattr(instance, spec.attr, None)
            if sub is None:
                sub = spec.embedded.zero()
            self.populate(doc, sub, spec.embedded, ctx)
            object.__setattr__(instance, spec.attr, sub)
            return

        key = spec.tag_for(ctx.namespace)
        if key is None:
            return

        field_ctx = ctx.child(key)
        value = doc.get(key, _ABSENT)
        if value is None and (spec.annotation is Any or unwrap_optional(spec.annotation)[1]):
            object.__setattr__(instance, spec.attr, None)
            return
        if value is _ABSENT or value is None:
            if spec.required:
                raise field_ctx.annotate(MissingFieldError(key))
            return

        object.__setattr__(instance, spec.attr, self.convert(value, spec.annotation, field_ctx))

    # =========================================================================
    # Conversion
    # =========================================================================

    def convert(self, value: Any, annotation: Any, ctx: DecodeContext) -> Any:
        """Convert one generic value to ``annotation``, hooks first."""
        if len(ctx.path) > MAX_DEPTH:
            error = TypeMismatchError(
                f"document nests deeper than {MAX_DEPTH} levels",
                expected=f"depth <= {MAX_DEPTH}",
                actual=f"depth {len(ctx.path)}",
            )
            raise ctx.annotate(error)

        if annotation is Any or annotation is object:
            claimed = self.hooks.apply(value, annotation, ctx)
            return value if claimed is NotImplemented else claimed

        target, optional = unwrap_optional(annotation)
        if value is None:
            if optional:
                return None
            raise self._mismatch(value, target, ctx)

        claimed = self.hooks.apply(value, target, ctx)
        if claimed is not NotImplemented:
            return claimed
        return self._convert_structural(value, target, ctx)

    def _convert_structural(self, value: Any, target: Any, ctx: DecodeContext) -> Any:
        if target is Any or target is object:
            return value
        if is_union(target):
            return self._convert_union(value, target, ctx)

        origin = get_origin(target)
        args = get_args(target)

        if origin is Literal:
            for literal in args:
                if value == literal and type(value) is type(literal):
                    return literal
            raise self._mismatch(value, target, ctx)

        if is_shape(target):
            return self.map(value, target, ctx)

        container = origin or target
        if container is tuple:
            return self._convert_tuple(value, args, ctx)
        if container in _SEQUENCES:
            item_type = args[0] if args else Any
            return [self.convert(item, item_type, ctx.child(i)) for i, item in enumerate(self._items(value, target, ctx))]
        if container in _SETS:
            item_type = args[0] if args else Any
            items = {self.convert(item, item_type, ctx.child(i)) for i, item in enumerate(self._items(value, target, ctx))}
            return frozenset(items) if container is frozenset else items
        if container in _MAPPINGS:
            return self._convert_mapping(value, target, args, ctx)

        if target in _SCALAR_NAMES:
            return self._convert_scalar(value, target, ctx)
        if isinstance(target, type) and issubclass(target, Enum):
            return self._convert_enum(value, target, ctx)
        if target is datetime:
            if isinstance(value, datetime):
                return value
            raise self._mismatch(value, target, ctx)
        if isinstance(target, type):
            if isinstance(value, target):
                return value
            if isinstance(value, Mapping):
                error = TypeMismatchError(
                    f"no hook resolves a mapping into {target.__qualname__}",
                    expected=target.__qualname__,
                    actual="mapping",
                )
                raise ctx.annotate(error)
            raise self._mismatch(value, target, ctx)
        return value

    def _convert_union(self, value: Any, target: Any, ctx: DecodeContext) -> Any:
        members = get_args(target)
        for member in members:
            if member in _SCALAR_NAMES and type(value) is member:
                return value
        here = ctx.path_str
        cause: MappingError | None = None
        for member in members:
            try:
                return self.convert(value, member, ctx)
            except MappingError as exc:
                # prefer the first member that failed below this value
                if cause is None or (cause.context.path == here and exc.context.path != here):
                    cause = exc
        raise self._mismatch(value, target, ctx, cause=cause)

    def _convert_tuple(self, value: Any, args: tuple[Any, ...], ctx: DecodeContext) -> tuple:
        items = self._items(value, tuple, ctx)
        if not args or (len(args) == 2 and args[1] is Ellipsis):
            item_type = args[0] if args else Any
            return tuple(self.convert(item, item_type, ctx.child(i)) for i, item in enumerate(items))
        if len(items) != len(args):
            error = TypeMismatchError(
                f"expected {len(args)} items, got {len(items)}",
                expected=f"sequence[{len(args)}]",
                actual=f"sequence[{len(items)}]",
            )
            raise ctx.annotate(error)
        return tuple(self.convert(item, tp, ctx.child(i)) for i, (item, tp) in enumerate(zip(items, args)))

    def _convert_mapping(self, value: Any, target: Any, args: tuple[Any, ...], ctx: DecodeContext) -> dict:
        if not isinstance(value, Mapping):
            raise self._mismatch(value, target, ctx)
        key_type, value_type = args if len(args) == 2 else (Any, Any)
        result = {}
        for key, item in value.items():
            item_ctx = ctx.child(str(key))
            result[self.convert(key, key_type, item_ctx)] = self.convert(item, value_type, item_ctx)
        return result

    def _convert_scalar(self, value: Any, target: type, ctx: DecodeContext) -> Any:
        weak = ctx.weak_typing

        if target is bool:
            if isinstance(value, bool):
                return value
            if weak and isinstance(value, str):
                lowered = value.strip().lower()
                if lowered in ("true", "false"):
                    return lowered == "true"
            raise self._mismatch(value, target, ctx)

        if isinstance(value, bool):
            raise self._mismatch(value, target, ctx)

        if target is int:
            if isinstance(value, int):
                return value
            if isinstance(value, float) and value.is_integer():
                return int(value)
            if weak and isinstance(value, str):
                text = value.strip()
                if _INTEGER.fullmatch(text):
                    return int(text)
                if _DECIMAL.fullmatch(text) and float(text).is_integer():
                    return int(float(text))
            raise self._mismatch(value, target, ctx)

        if target is float:
            if isinstance(value, (int, float)):
                return float(value)
            if weak and isinstance(value, str) and _DECIMAL.fullmatch(value.strip()):
                return float(value.strip())
            raise self._mismatch(value, target, ctx)

        if target is str:
            if isinstance(value, str):
                return value
            if weak and isinstance(value, int):
                return str(value)
            if weak and isinstance(value, float):
                return str(int(value)) if value.is_integer() else repr(value)
            raise self._mismatch(value, target, ctx)

        # bytes
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
        if weak and isinstance(value, str):
            return value.encode("utf-8")
        raise self._mismatch(value, target, ctx)

    def _convert_enum(self, value: Any, target: type[Enum], ctx: DecodeContext) -> Enum:
        if isinstance(value, target):
            return value
        if not isinstance(value, bool):
            try:
                return target(value)
            except ValueError:
                pass
            if isinstance(value, str) and value in target.__members__:
                return target[value]
            if isinstance(value, float) and value.is_integer():
                try:
                    return target(int(value))
                except ValueError:
                    pass
        error = TypeMismatchError(
            f"{value!r} is not a member of {target.__qualname__}",
            expected=target.__qualname__,
            actual=kind_of(value),
        )
        raise ctx.annotate(error)

    def _items(self, value: Any, target: Any, ctx: DecodeContext) -> list | tuple:
        if isinstance(value, (list, tuple)):
            return value
        raise self._mismatch(value, target, ctx)

    @staticmethod
    def _mismatch(
        value: Any, target: Any, ctx: DecodeContext, cause: Exception | None = None
    ) -> DocshapeError:
        expected = type_name(target)
        error = TypeMismatchError(
            f"expected {expected}, got {kind_of(value)}",
            expected=expected,
            actual=kind_of(value),
            cause=cause,
        )
        return ctx.annotate(error)


__all__ = ["MAX_DEPTH", "StructuralMapper", "type_name"]
