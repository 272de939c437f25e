"""Type registry - discriminator to shape mapping for one polymorphic interface.

Registration and lookup are separate objects. A :class:`TypeRegistryBuilder`
accepts variants and a fallback at startup; :meth:`~TypeRegistryBuilder.build`
returns a sealed, read-only :class:`TypeRegistry` that any number of concurrent
decode calls can query without locking. Registering after ``build()`` fails
fast instead of racing with readers.

Usage::

    builder = TypeRegistry.builder(Block)
    builder.register("text", TextBlock)
    builder.register("image", ImageBlock)
    builder.set_fallback(UnknownBlock)
    registry = builder.build()

    registry.resolve("text")        # ShapeDescriptor(TextBlock, ...)
    registry.resolve("audio")       # ShapeDescriptor(UnknownBlock, ...)
    registry.resolve_missing()      # ShapeDescriptor(UnknownBlock, ...)

Manifesto:
    The registry is always configured explicitly; nothing is inferred from
    class names or module scans. Keys are compared after normalization, so
    registering ``1`` and ``Kind.TEXT`` (== 1) under different shapes is a
    DuplicateKeyError rather than silent shadowing.

Tags:
    docshape, decoding, registry, discriminator, builder-pattern

Doc-Types:
    api-reference
"""

from __future__ import annotations

import types
from collections.abc import Callable, Iterator, Mapping
from typing import Any, Generic, TypeVar

from docshape.core.errors import (
    DuplicateKeyError,
    FallbackAlreadySetError,
    InvalidShapeError,
    MissingDiscriminatorError,
    RegistrySealedError,
    UnknownDiscriminatorError,
)
from docshape.core.logging import get_logger
from docshape.decoding.normalize import (
    DiscriminatorKey,
    FieldNormalizer,
    is_normalizable,
    normalize,
)
from docshape.decoding.shapes import ShapeDescriptor, describe

logger = get_logger(__name__)

IfaceT = TypeVar("IfaceT")
S = TypeVar("S", bound=type)


class TypeRegistry(Generic[IfaceT]):
    """Sealed, read-only discriminator -> ShapeDescriptor mapping."""

    __slots__ = ("_interface", "_entries", "_fallback", "_normalizer", "_name")

    def __init__(
        self,
        interface: type[IfaceT],
        entries: Mapping[DiscriminatorKey, ShapeDescriptor],
        fallback: ShapeDescriptor | None,
        normalizer: FieldNormalizer,
        name: str,
    ):
        self._interface = interface
        self._entries = types.MappingProxyType(dict(entries))
        self._fallback = fallback
        self._normalizer = normalizer
        self._name = name

    @staticmethod
    def builder(
        interface: type[IfaceT],
        *,
        normalizer: FieldNormalizer | None = None,
        name: str | None = None,
    ) -> TypeRegistryBuilder[IfaceT]:
        return TypeRegistryBuilder(interface, normalizer=normalizer, name=name)

    @property
    def interface(self) -> type[IfaceT]:
        return self._interface

    @property
    def fallback(self) -> ShapeDescriptor | None:
        return self._fallback

    @property
    def normalizer(self) -> FieldNormalizer:
        return self._normalizer

    @property
    def name(self) -> str:
        return self._name

    def resolve(self, raw: Any) -> ShapeDescriptor:
        """
        Normalize ``raw`` and look it up.

        Falls back to the fallback shape on a miss.

        Raises:
            UnknownDiscriminatorError: no match and no fallback configured.
        """
        key = self._normalizer(raw)
        if is_normalizable(key):
            descriptor = self._entries.get(key)
            if descriptor is not None:
                return descriptor
        if self._fallback is not None:
            return self._fallback
        raise UnknownDiscriminatorError(
            raw,
            key if is_normalizable(key) else None,
            self._interface.__qualname__,
        )

    def resolve_missing(self) -> ShapeDescriptor:
        """
        Shape for a document without a discriminator field.

        Raises:
            MissingDiscriminatorError: no fallback configured.
        """
        if self._fallback is not None:
            return self._fallback
        raise MissingDiscriminatorError(self._interface.__qualname__)

    def keys(self) -> list[DiscriminatorKey]:
        return sorted(self._entries)

    def items(self) -> Iterator[tuple[DiscriminatorKey, ShapeDescriptor]]:
        return iter(sorted(self._entries.items()))

    def __contains__(self, raw: object) -> bool:
        key = self._normalizer(raw)
        return is_normalizable(key) and key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        fallback = self._fallback.name if self._fallback else None
        return f"TypeRegistry({self._name!r}, keys={self.keys()}, fallback={fallback})"


class TypeRegistryBuilder(Generic[IfaceT]):
    """Construction-only side of a TypeRegistry."""

    def __init__(
        self,
        interface: type[IfaceT],
        *,
        normalizer: FieldNormalizer | None = None,
        name: str | None = None,
    ):
        if not isinstance(interface, type):
            raise InvalidShapeError(interface, "registry interface must be a class")
        self.interface = interface
        self.normalizer = normalizer or normalize
        self.name = name or interface.__qualname__
        self._entries: dict[DiscriminatorKey, ShapeDescriptor] = {}
        self._fallback: ShapeDescriptor | None = None
        self._sealed = False

    def register(self, key: Any, shape: type | ShapeDescriptor) -> ShapeDescriptor:
        """
        Register the shape for a discriminator value.

        Raises:
            DuplicateKeyError: the normalized key is already registered.
            InvalidShapeError: the key cannot be normalized or the shape is
                not a dataclass implementing the interface.
            RegistrySealedError: ``build()`` was already called.
        """
        self._check_open()
        normalized = self.normalizer(key)
        if not is_normalizable(normalized):
            raise InvalidShapeError(shape, f"discriminator {key!r} cannot be normalized")

        descriptor = self._describe(shape)
        existing = self._entries.get(normalized)
        if existing is not None:
            raise DuplicateKeyError(key, normalized, existing.name, registry=self.name)

        self._entries[normalized] = descriptor
        logger.debug(
            "variant_registered",
            registry=self.name,
            key=normalized,
            shape=descriptor.name,
        )
        return descriptor

    def variant(self, *keys: Any) -> Callable[[S], S]:
        """Decorator form of :meth:`register`; a class may claim several keys."""

        def decorator(cls: S) -> S:
            for key in keys:
                self.register(key, cls)
            return cls

        return decorator

    def set_fallback(self, shape: type | ShapeDescriptor) -> ShapeDescriptor:
        """
        Set the shape used for unknown or missing discriminators.

        Raises:
            FallbackAlreadySetError: a fallback was already set.
        """
        self._check_open()
        if self._fallback is not None:
            raise FallbackAlreadySetError(self._fallback.name, registry=self.name)
        descriptor = self._describe(shape)
        self._fallback = descriptor
        logger.debug("fallback_registered", registry=self.name, shape=descriptor.name)
        return descriptor

    def build(self) -> TypeRegistry[IfaceT]:
        """Seal the builder and return the read-only registry."""
        self._check_open()
        self._sealed = True
        registry = TypeRegistry(
            self.interface,
            self._entries,
            self._fallback,
            self.normalizer,
            self.name,
        )
        logger.debug(
            "registry_sealed",
            registry=self.name,
            variants=len(self._entries),
            fallback=self._fallback.name if self._fallback else None,
        )
        return registry

    @property
    def sealed(self) -> bool:
        return self._sealed

    def _check_open(self) -> None:
        if self._sealed:
            raise RegistrySealedError(self.name)

    def _describe(self, shape: type | ShapeDescriptor) -> ShapeDescriptor:
        descriptor = shape if isinstance(shape, ShapeDescriptor) else describe(shape)
        if not issubclass(descriptor.cls, self.interface):
            raise InvalidShapeError(
                descriptor.cls,
                f"does not implement {self.interface.__qualname__}",
            )
        return descriptor


__all__ = ["TypeRegistry", "TypeRegistryBuilder"]
