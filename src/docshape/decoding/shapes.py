"""Shape descriptors - field metadata that drives structural mapping.

A shape is a plain ``@dataclass``. Per-field mapping options (tag names per
serialization format, embedding, catch-all fields, preprocessor-only fields)
are attached with :func:`tag`, and :func:`describe` turns the class into an
immutable :class:`ShapeDescriptor` once, ahead of any decode call.

Usage::

    @shape
    @dataclass
    class Metadata:
        author: str = tag("author", yaml="by")
        published: datetime | None = None

    @shape
    @dataclass
    class Post:
        id: str = tag(skip=True)              # filled by a preprocessor
        title: str = tag("title")
        meta: Metadata = tag(embedded=True)   # author/published live on Post's level
        extra: dict[str, Any] = tag(remain=True)

Manifesto:
    Embedding is a declared composition relationship resolved when the shape
    is described, not something discovered by walking fields at decode time.
    Descriptors are frozen and shared by every concurrent decode.

Tags:
    docshape, decoding, shapes, dataclasses, field-tags, embedding

Doc-Types:
    api-reference
"""

from __future__ import annotations

import collections.abc
import dataclasses
import types
import typing
from collections.abc import Callable, Iterator, Mapping
from dataclasses import MISSING, dataclass, field
from typing import Any, TypeVar, Union, get_args, get_origin, get_type_hints

from docshape.core.errors import InvalidShapeError
from docshape.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

METADATA_KEY = "docshape"
SKIP_TAG = "-"

_SEQUENCE_ORIGINS = (list, collections.abc.Sequence, collections.abc.MutableSequence)
_MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


@dataclass(frozen=True)
class FieldOptions:
    """Mapping options attached to a dataclass field via :func:`tag`."""

    name: str | None = None
    namespaces: Mapping[str, str] = field(default_factory=dict)
    embedded: bool = False
    remain: bool = False
    skip: bool = False
    required: bool | None = None


def tag(
    name: str | None = None,
    /,
    *,
    embedded: bool = False,
    remain: bool = False,
    skip: bool = False,
    required: bool | None = None,
    default: Any = MISSING,
    default_factory: Callable[[], Any] | Any = MISSING,
    **namespaces: str,
) -> Any:
    """
    Declare how a dataclass field is looked up in a generic document.

    Args:
        name: Tag used in every namespace; defaults to the attribute name.
            ``"-"`` opts the field out of tag-driven mapping entirely.
        embedded: Flatten the field's shape into the parent's namespace.
        remain: Collect all keys no other field consumed into this mapping.
        skip: Never populate from the document (preprocessor-owned field).
        required: Override the required flag inferred from the default.
        default / default_factory: As for ``dataclasses.field``.
        **namespaces: Per-format tag overrides, e.g. ``yaml="by"``.
    """
    if remain and default is MISSING and default_factory is MISSING:
        default_factory = dict
    options = FieldOptions(
        name=name,
        namespaces=types.MappingProxyType(dict(namespaces)),
        embedded=embedded,
        remain=remain,
        skip=skip,
        required=required,
    )
    return field(default=default, default_factory=default_factory, metadata={METADATA_KEY: options})


@dataclass(frozen=True, eq=False)
class FieldSpec:
    """One declared field of a shape, with its tags resolved."""

    attr: str
    annotation: Any
    tags: Mapping[str, str]
    default_tag: str
    required: bool
    skip: bool = False
    remain: bool = False
    embedded: ShapeDescriptor | None = None
    # a bare MISSING default reads as "no default" to dataclasses
    default: Any = field(default_factory=lambda: MISSING)
    default_factory: Any = field(default_factory=lambda: MISSING)

    def tag_for(self, namespace: str) -> str | None:
        """Document key for ``namespace``; None when the field is not tag-mapped there."""
        if self.skip or self.remain or self.embedded is not None:
            return None
        key = self.tags.get(namespace, self.default_tag)
        return None if key == SKIP_TAG else key

    def zero(self) -> Any:
        if self.default is not MISSING:
            return self.default
        if self.default_factory is not MISSING:
            return self.default_factory()
        if self.embedded is not None:
            return self.embedded.zero()
        return zero_value(self.annotation)


@dataclass(frozen=True, eq=False)
class ShapeDescriptor:
    """Immutable metadata for one concrete target type."""

    cls: type
    fields: tuple[FieldSpec, ...]

    @property
    def name(self) -> str:
        return self.cls.__qualname__

    @property
    def remain_field(self) -> FieldSpec | None:
        return next((spec for spec in self.fields if spec.remain), None)

    def field(self, attr: str) -> FieldSpec:
        for spec in self.fields:
            if spec.attr == attr:
                return spec
        raise KeyError(f"{self.name} has no field {attr!r}")

    def mapped_fields(self, namespace: str) -> Iterator[tuple[FieldSpec, str]]:
        """Fields looked up by tag in ``namespace``, with their document key."""
        for spec in self.fields:
            key = spec.tag_for(namespace)
            if key is not None:
                yield spec, key

    def consumed_keys(self, namespace: str) -> set[str]:
        """Document keys claimed by this shape's own and embedded fields."""
        keys = {key for _, key in self.mapped_fields(namespace)}
        for spec in self.fields:
            if spec.embedded is not None:
                keys |= spec.embedded.consumed_keys(namespace)
        return keys

    def zero(self) -> Any:
        """
        A zero-valued instance: defaults, default factories, or type zeros.

        ``__init__`` and ``__post_init__`` are bypassed so that required fields
        can stay empty until mapping fills them.
        """
        instance = object.__new__(self.cls)
        for spec in self.fields:
            object.__setattr__(instance, spec.attr, spec.zero())
        return instance

    def __repr__(self) -> str:
        return f"ShapeDescriptor({self.name}, fields={[spec.attr for spec in self.fields]})"


# =============================================================================
# Type helpers
# =============================================================================


def is_shape(tp: Any) -> bool:
    """True for dataclass types (not instances)."""
    return isinstance(tp, type) and dataclasses.is_dataclass(tp)


def is_union(tp: Any) -> bool:
    return get_origin(tp) in (Union, types.UnionType)


def unwrap_optional(tp: Any) -> tuple[Any, bool]:
    """Split ``X | None`` into ``(X, True)``; other types give ``(tp, False)``."""
    if not is_union(tp):
        return tp, tp is type(None)
    args = get_args(tp)
    rest = tuple(arg for arg in args if arg is not type(None))
    if len(rest) == len(args):
        return tp, False
    if len(rest) == 1:
        return rest[0], True
    return Union[rest], True


def zero_value(tp: Any) -> Any:
    """Zero value of a type annotation: "", 0, 0.0, False, empty containers, else None."""
    for scalar, zero in ((bool, False), (str, ""), (int, 0), (float, 0.0), (bytes, b"")):
        if tp is scalar:
            return zero
    origin = get_origin(tp) or tp
    if origin in _SEQUENCE_ORIGINS:
        return []
    if origin in _MAPPING_ORIGINS:
        return {}
    if origin in (set, collections.abc.Set, collections.abc.MutableSet):
        return set()
    if origin is frozenset:
        return frozenset()
    if origin is tuple:
        return ()
    return None


# =============================================================================
# Description
# =============================================================================


def describe(cls: type, _stack: tuple[type, ...] = ()) -> ShapeDescriptor:
    """
    Build the descriptor of a dataclass shape.

    The descriptor is stored on the class as ``__docshape__``; later calls
    return it. Embedded shapes are described recursively here, so a
    descriptor is complete before any decode runs.

    Raises:
        InvalidShapeError: not a dataclass, unresolvable annotations, bad
            embedded or remain fields, or an embedding cycle.
    """
    if not is_shape(cls):
        raise InvalidShapeError(cls, "shapes must be dataclass types")

    existing = cls.__dict__.get("__docshape__")
    if isinstance(existing, ShapeDescriptor):
        return existing

    if cls in _stack:
        raise InvalidShapeError(cls, "embedding cycle: " + " -> ".join(c.__qualname__ for c in (*_stack, cls)))

    try:
        hints = get_type_hints(cls)
    except (NameError, TypeError) as exc:
        raise InvalidShapeError(cls, f"cannot resolve annotations: {exc}", cause=exc) from exc

    specs = []
    for f in dataclasses.fields(cls):
        specs.append(_describe_field(cls, f, hints.get(f.name, Any), _stack))

    if sum(1 for spec in specs if spec.remain) > 1:
        raise InvalidShapeError(cls, "at most one remain field is allowed")

    descriptor = ShapeDescriptor(cls=cls, fields=tuple(specs))
    type.__setattr__(cls, "__docshape__", descriptor)
    logger.debug("shape_described", shape=descriptor.name, fields=len(specs))
    return descriptor


def _describe_field(
    cls: type, f: dataclasses.Field, annotation: Any, stack: tuple[type, ...]
) -> FieldSpec:
    options = f.metadata.get(METADATA_KEY) or FieldOptions()
    default_tag = options.name or f.name

    embedded = None
    if options.embedded:
        inner, _ = unwrap_optional(annotation)
        if not is_shape(inner):
            raise InvalidShapeError(cls, f"embedded field {f.name!r} must be a dataclass shape")
        embedded = describe(inner, (*stack, cls))

    if options.remain:
        inner, _ = unwrap_optional(annotation)
        if (get_origin(inner) or inner) not in _MAPPING_ORIGINS and inner is not Any:
            raise InvalidShapeError(cls, f"remain field {f.name!r} must be a mapping")

    skip = options.skip or default_tag == SKIP_TAG
    if options.required is not None:
        required = options.required
    else:
        required = f.default is MISSING and f.default_factory is MISSING
    if skip or options.remain or embedded is not None:
        required = False

    return FieldSpec(
        attr=f.name,
        annotation=annotation,
        tags=options.namespaces,
        default_tag=default_tag,
        required=required,
        skip=skip,
        remain=options.remain,
        embedded=embedded,
        default=f.default,
        default_factory=f.default_factory,
    )


@typing.overload
def shape(cls: type[T], /) -> type[T]: ...


@typing.overload
def shape(cls: None = None, /) -> Callable[[type[T]], type[T]]: ...


def shape(cls: type[T] | None = None, /) -> Any:
    """Class decorator: describe a dataclass at definition time.

    Apply it above ``@dataclass``. Shape errors surface at import instead of
    at the first decode.
    """

    def wrap(target: type[T]) -> type[T]:
        describe(target)
        return target

    if cls is None:
        return wrap
    return wrap(cls)


__all__ = [
    "FieldOptions",
    "FieldSpec",
    "ShapeDescriptor",
    "tag",
    "shape",
    "describe",
    "is_shape",
    "is_union",
    "unwrap_optional",
    "zero_value",
]
