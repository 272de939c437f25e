"""Decoder - orchestrates parse -> preprocess -> resolve-and-map.

A :class:`Decoder` bundles one immutable configuration (codec, tag namespace,
weak typing, preprocessor chain, hook chain, polymorphic registries) and can
be shared by any number of threads. Every call builds its own
:class:`~docshape.decoding.context.DecodeContext`; nothing about a call is
stored on the decoder.

Manifesto:
    A record either decodes into a fully populated value or fails with
    exactly one typed DecodeError. There is no retry and no partial result;
    batch helpers report one Result per record so a bad record never hides
    or corrupts its neighbours.

Architecture:
    ::

        raw bytes ──► Codec.parse ──► GenericDocument
                                            │
                       target is a shape?  ─┼─ yes ─► zero instance
                                            │           │
                                            │         PreprocessorChain.run
                                            │           │
                                            │         StructuralMapper.populate
                                            │           │ (every value)
                                            │         HookChain.apply ──► PolymorphicHook
                                            │                               │
                                            │                       registry.resolve
                                            │                               │
                                            │                     decode_into (re-entry)
                                            │
                                            └─ no ──► StructuralMapper.convert
                                                      (interfaces, list[Interface], ...)

Examples:
    >>> decoder = Decoder(codec="yaml", registries=[BLOCK_REGISTRY])
    >>> post = decoder.decode(raw, Post)
    >>> results = decoder.decode_many(records, Block)
    >>> ok, failed = partition_results(results)

Tags:
    docshape, decoding, pipeline, orchestration, polymorphism

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, TypeVar

from docshape.codecs.base import Codec
from docshape.codecs.registry import get_codec
from docshape.core.errors import DecodeError
from docshape.core.logging import get_logger
from docshape.core.result import Err, Ok, Result
from docshape.decoding.context import DecodeContext
from docshape.decoding.document import GenericDocument, ensure_document
from docshape.decoding.hooks import STANDARD_HOOKS, Hook, HookChain, PolymorphicHook
from docshape.decoding.mapper import StructuralMapper
from docshape.decoding.preprocess import Preprocessor, PreprocessorChain
from docshape.decoding.registry import TypeRegistry
from docshape.decoding.shapes import ShapeDescriptor, describe, is_shape

if TYPE_CHECKING:
    from docshape.core.settings import DocshapeSettings

logger = get_logger(__name__)

T = TypeVar("T")


class Decoder:
    """Immutable decode pipeline configuration."""

    def __init__(
        self,
        *,
        codec: str | Codec = "json",
        namespace: str | None = None,
        weak_typing: bool = False,
        preprocessors: Iterable[Preprocessor] | PreprocessorChain = (),
        hooks: Iterable[Hook] = STANDARD_HOOKS,
        registries: Iterable[TypeRegistry] = (),
        discriminator: str = "type",
    ):
        self._codec = codec if isinstance(codec, Codec) else get_codec(codec)
        self._namespace = (namespace or self._codec.namespace).lower()
        self._weak_typing = weak_typing
        self._discriminator = discriminator
        self._registries = tuple(registries)
        self._interfaces = frozenset(registry.interface for registry in self._registries)
        self._preprocessors = (
            preprocessors
            if isinstance(preprocessors, PreprocessorChain)
            else PreprocessorChain(preprocessors)
        )
        # format-specific first, polymorphic resolution last
        self._hooks = HookChain(
            [
                *self._codec.hooks,
                *hooks,
                *(PolymorphicHook(registry, discriminator) for registry in self._registries),
            ]
        )
        self._mapper = StructuralMapper(self._hooks)

    @classmethod
    def from_settings(cls, settings: DocshapeSettings | None = None, **overrides: Any) -> Decoder:
        """Build a decoder from :class:`DocshapeSettings`; keyword overrides win."""
        if settings is None:
            from docshape.core.settings import get_settings

            settings = get_settings()
        options: dict[str, Any] = {
            "codec": settings.codec,
            "namespace": settings.namespace,
            "weak_typing": settings.weak_typing,
            "discriminator": settings.discriminator,
        }
        options.update(overrides)
        return cls(**options)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def codec(self) -> Codec:
        return self._codec

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def weak_typing(self) -> bool:
        return self._weak_typing

    @property
    def discriminator(self) -> str:
        return self._discriminator

    @property
    def registries(self) -> tuple[TypeRegistry, ...]:
        return self._registries

    @property
    def hooks(self) -> HookChain:
        return self._hooks

    @property
    def preprocessors(self) -> PreprocessorChain:
        return self._preprocessors

    # =========================================================================
    # Pipeline
    # =========================================================================

    def context(self, *, namespace: str | None = None, weak_typing: bool | None = None) -> DecodeContext:
        """Fresh root context for one decode call."""
        return DecodeContext(
            decoder=self,
            namespace=namespace.lower() if namespace else self._namespace,
            weak_typing=self._weak_typing if weak_typing is None else weak_typing,
        )

    def parse(self, raw: bytes | str) -> GenericDocument:
        """Parse stage only; raises ParseError."""
        return self._codec.parse(raw)

    def decode(
        self,
        raw: bytes | str,
        target: type[T] | Any,
        *,
        namespace: str | None = None,
        weak_typing: bool | None = None,
    ) -> T:
        """
        Decode one raw record into ``target``.

        Raises:
            DecodeError: the subclass naming the failure (parse, preprocess,
                resolution or mapping).
        """
        document = self.parse(raw)
        return self.decode_document(document, target, namespace=namespace, weak_typing=weak_typing)

    def decode_document(
        self,
        document: GenericDocument,
        target: type[T] | Any,
        *,
        namespace: str | None = None,
        weak_typing: bool | None = None,
    ) -> T:
        """Decode an already-parsed generic document into ``target``."""
        ctx = self.context(namespace=namespace, weak_typing=weak_typing)
        if is_shape(target) and target not in self._interfaces:
            descriptor = describe(target)
            return self.decode_into(document, descriptor.zero(), ctx, descriptor)
        return self._mapper.convert(document, target, ctx)

    def decode_into(
        self,
        document: Any,
        instance: T,
        ctx: DecodeContext,
        descriptor: ShapeDescriptor | None = None,
    ) -> T:
        """
        Preprocess and map ``document`` into ``instance``.

        This is the re-entry point used for every polymorphic value, so the
        preprocessor chain sees each resolved sub-document too.
        """
        descriptor = descriptor or describe(type(instance))
        shape_ctx = ctx.within(descriptor.name)
        doc = ensure_document(document, shape_ctx)
        if self._preprocessors:
            self._preprocessors.run(doc, instance, shape_ctx)
        return self._mapper.populate(doc, instance, descriptor, ctx)

    # =========================================================================
    # Result-returning helpers
    # =========================================================================

    def try_decode(
        self,
        raw: bytes | str | GenericDocument,
        target: type[T] | Any,
        *,
        namespace: str | None = None,
        weak_typing: bool | None = None,
    ) -> Result[T]:
        """
        Decode one record and wrap the outcome instead of raising.

        Accepts raw input or an already-parsed document. Only DecodeErrors
        become ``Err``; configuration errors still raise.
        """
        try:
            if isinstance(raw, Mapping):
                value = self.decode_document(raw, target, namespace=namespace, weak_typing=weak_typing)
            else:
                value = self.decode(raw, target, namespace=namespace, weak_typing=weak_typing)
        except DecodeError as exc:
            logger.debug("decode_failed", target=getattr(target, "__qualname__", repr(target)), error=exc)
            return Err(exc)
        return Ok(value)

    def decode_many(
        self,
        records: Iterable[bytes | str | GenericDocument],
        target: type[T] | Any,
        *,
        namespace: str | None = None,
        weak_typing: bool | None = None,
    ) -> list[Result[T]]:
        """One Result per record, in input order; failures stay isolated."""
        return [
            self.try_decode(record, target, namespace=namespace, weak_typing=weak_typing)
            for record in records
        ]

    def __repr__(self) -> str:
        return (
            f"Decoder(codec={self._codec.name!r}, namespace={self._namespace!r}, "
            f"weak_typing={self._weak_typing}, registries={[r.name for r in self._registries]})"
        )


def decode(
    raw: bytes | str,
    target: type[T] | Any,
    namespace: str | None = None,
    registry: TypeRegistry | Iterable[TypeRegistry] | None = None,
    preprocessors: Iterable[Preprocessor] = (),
    hooks: Iterable[Hook] = STANDARD_HOOKS,
    *,
    codec: str | Codec = "json",
    weak_typing: bool = False,
    discriminator: str = "type",
) -> T:
    """
    One-shot decode.

    Builds a throwaway :class:`Decoder`; hold on to a Decoder instead when
    decoding many records with the same configuration.
    """
    if registry is None:
        registries: tuple[TypeRegistry, ...] = ()
    elif isinstance(registry, TypeRegistry):
        registries = (registry,)
    else:
        registries = tuple(registry)
    decoder = Decoder(
        codec=codec,
        namespace=namespace,
        weak_typing=weak_typing,
        preprocessors=preprocessors,
        hooks=hooks,
        registries=registries,
        discriminator=discriminator,
    )
    return decoder.decode(raw, target)


__all__ = ["Decoder", "decode"]
