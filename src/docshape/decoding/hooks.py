"""Conversion hooks and polymorphic type resolution.

A hook is offered every value the structural mapper is about to store,
together with the value's source type and the destination annotation. It
either claims the conversion by returning the converted value, or returns
``NotImplemented`` to pass. Hooks are tried in order and the first claim wins,
so format-specific hooks placed early take precedence over generic ones.

:class:`PolymorphicHook` is how polymorphic slots get decoded. When the
destination is a registry's interface, it reads the discriminator from the
sub-document, resolves the concrete shape, and re-enters the decoder pipeline
(preprocess + map) for that sub-document. Resolution therefore happens once
per polymorphic value, at the point where it is encountered.

Usage::

    @conversion_hook(str, Decimal)
    def parse_decimal(value: str) -> Decimal:
        return Decimal(value)

    hooks = HookChain([parse_decimal, timestamp_hook, PolymorphicHook(registry)])

Tags:
    docshape, decoding, hooks, polymorphism, discriminated-union, timestamps

Doc-Types:
    api-reference
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Iterable, Iterator, Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol
from uuid import UUID

from docshape.core.errors import (
    DocshapeError,
    HookError,
    ResolutionError,
    TypeMismatchError,
    UnsupportedTimeFormatError,
)
from docshape.core.logging import get_logger
from docshape.core.timestamps import (
    TIME_FORMATS,
    ensure_utc,
    from_epoch_millis,
    from_epoch_seconds,
    parse_rfc3339,
)
from docshape.decoding.document import kind_of

if TYPE_CHECKING:
    from docshape.decoding.context import DecodeContext
    from docshape.decoding.registry import TypeRegistry

logger = get_logger(__name__)


class Hook(Protocol):
    def __call__(self, source: type, target: Any, value: Any, ctx: DecodeContext) -> Any: ...


def hook_name(hook: Any) -> str:
    return getattr(hook, "__name__", None) or type(hook).__name__


class HookChain:
    """Ordered, immutable sequence of hooks; the first claim wins."""

    __slots__ = ("_hooks",)

    def __init__(self, hooks: Iterable[Hook] = ()):
        self._hooks: tuple[Hook, ...] = tuple(hooks)

    def apply(self, value: Any, target: Any, ctx: DecodeContext) -> Any:
        """
        Offer ``value`` to each hook in turn.

        Returns the first claimed result, or ``NotImplemented`` if no hook
        claimed it. Decode errors propagate unchanged; anything else a hook
        raises is wrapped in HookError.
        """
        source = type(value)
        for hook in self._hooks:
            try:
                result = hook(source, target, value, ctx)
            except DocshapeError as exc:
                ctx.annotate(exc)
                raise
            except Exception as exc:
                name = hook_name(hook)
                error = HookError(f"hook {name} failed: {exc}", hook=name, cause=exc)
                raise ctx.annotate(error) from exc
            if result is not NotImplemented:
                return result
        return NotImplemented

    def __iter__(self) -> Iterator[Hook]:
        return iter(self._hooks)

    def __len__(self) -> int:
        return len(self._hooks)

    def __repr__(self) -> str:
        return f"HookChain([{', '.join(hook_name(hook) for hook in self._hooks)}])"


def conversion_hook(
    source: type | tuple[type, ...], target: Any
) -> Callable[[Callable[[Any], Any]], Hook]:
    """Turn ``f(value) -> converted`` into a hook for one (source, target) pair."""

    def decorator(func: Callable[[Any], Any]) -> Hook:
        @functools.wraps(func)
        def hook(src: type, dest: Any, value: Any, ctx: DecodeContext) -> Any:
            if dest is not target or not isinstance(value, source):
                return NotImplemented
            return func(value)

        return hook

    return decorator


# =============================================================================
# Built-in hooks
# =============================================================================


def timestamp_hook(source: type, target: Any, value: Any, ctx: DecodeContext) -> Any:
    """
    Decode timestamps for ``datetime`` fields.

    - text: RFC 3339, first without then with fractional seconds
    - ``datetime``: kept (naive values are taken to be UTC)
    - ``int``: whole seconds since the Unix epoch
    - ``float``: fractional milliseconds since the Unix epoch

    Other value types pass through to structural mapping.

    Raises:
        UnsupportedTimeFormatError: text matching neither RFC 3339 profile.
        TypeMismatchError: an epoch offset outside the datetime range.
    """
    if target is not datetime:
        return NotImplemented
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, bool):
        return NotImplemented
    if isinstance(value, (int, float)):
        try:
            if isinstance(value, int):
                return from_epoch_seconds(value)
            return from_epoch_millis(value)
        except (OverflowError, OSError, ValueError) as exc:
            raise TypeMismatchError(
                f"epoch value {value!r} is out of range for a timestamp",
                expected="timestamp",
                actual=kind_of(value),
                cause=exc,
            ) from exc
    if isinstance(value, str):
        parsed = parse_rfc3339(value)
        if parsed is None:
            raise UnsupportedTimeFormatError(value, TIME_FORMATS)
        return parsed
    return NotImplemented


def identifier_hook(source: type, target: Any, value: Any, ctx: DecodeContext) -> Any:
    """Render binary identifiers and UUIDs into their canonical string form."""
    if target is not str:
        return NotImplemented
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    if isinstance(value, UUID):
        return str(value)
    return NotImplemented


STANDARD_HOOKS: tuple[Hook, ...] = (timestamp_hook, identifier_hook)


class PolymorphicHook:
    """
    Resolve values destined for a registry's interface into concrete shapes.

    Steps for every offered value:

    1. pass unless the destination is the registry's interface
    2. pass unless the value is a mapping (structural mapping reports it)
    3. read the discriminator; if absent, use ``registry.resolve_missing()``
    4. otherwise ``registry.resolve(value)``
    5. build a zero-valued instance of the resolved shape
    6. run the decoder's preprocess + map stages on the sub-document
    7. return the populated instance
    """

    __slots__ = ("registry", "discriminator")

    def __init__(self, registry: TypeRegistry, discriminator: str = "type"):
        self.registry = registry
        self.discriminator = discriminator

    @property
    def __name__(self) -> str:
        return f"polymorphic[{self.registry.name}]"

    def __call__(self, source: type, target: Any, value: Any, ctx: DecodeContext) -> Any:
        if target is not self.registry.interface:
            return NotImplemented
        if not isinstance(value, Mapping):
            return NotImplemented

        try:
            if self.discriminator in value:
                descriptor = self.registry.resolve(value[self.discriminator])
            else:
                descriptor = self.registry.resolve_missing()
        except ResolutionError as exc:
            exc.with_context(discriminator_field=self.discriminator, registry=self.registry.name)
            ctx.annotate(exc)
            raise

        logger.debug(
            "polymorphic_resolved",
            interface=self.registry.interface.__qualname__,
            shape=descriptor.name,
            path=ctx.path_str,
        )
        instance = descriptor.zero()
        return ctx.decoder.decode_into(value, instance, ctx, descriptor)

    def __repr__(self) -> str:
        return f"PolymorphicHook({self.registry.name!r}, discriminator={self.discriminator!r})"


__all__ = [
    "Hook",
    "HookChain",
    "PolymorphicHook",
    "STANDARD_HOOKS",
    "conversion_hook",
    "hook_name",
    "identifier_hook",
    "timestamp_hook",
]
