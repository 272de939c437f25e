"""Preprocessor chain - raw-document fix-ups that run before field mapping.

Some fields cannot be expressed as a plain tag lookup: a binary object id
that must be rendered to hex, a value derived from several raw keys. A
preprocessor receives the raw document and the zero-valued target instance,
writes what it needs into the target, and raises to signal failure.

Usage::

    chain = PreprocessorChain([object_id("_id", "id"), copy_field("rev", "revision", int)])
    chain.run(document, instance, ctx)

Tags:
    docshape, decoding, preprocessors, chain-of-responsibility

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from typing import TYPE_CHECKING, Any, Protocol

from docshape.core.errors import DecodeError, PreprocessorFailure
from docshape.decoding.document import GenericDocument, kind_of

if TYPE_CHECKING:
    from docshape.decoding.context import DecodeContext


class Preprocessor(Protocol):
    def __call__(self, document: GenericDocument, target: Any) -> None: ...


def preprocessor_name(preprocessor: Any) -> str:
    return getattr(preprocessor, "__name__", None) or type(preprocessor).__name__


class PreprocessorChain:
    """Ordered, immutable list of preprocessors run left to right."""

    __slots__ = ("_preprocessors",)

    def __init__(self, preprocessors: Iterable[Preprocessor] = ()):
        self._preprocessors: tuple[Preprocessor, ...] = tuple(preprocessors)

    def run(self, document: GenericDocument, target: Any, ctx: DecodeContext) -> None:
        """
        Run every preprocessor against ``target``.

        The first failure aborts the chain; later preprocessors do not run.

        Raises:
            PreprocessorFailure: wrapping whatever the failing preprocessor raised.
        """
        for preprocessor in self._preprocessors:
            try:
                preprocessor(document, target)
            except PreprocessorFailure as exc:
                raise ctx.annotate(exc)
            except DecodeError as exc:
                name = preprocessor_name(preprocessor)
                error = PreprocessorFailure(exc.message, preprocessor=name, cause=exc)
                raise ctx.annotate(error) from exc
            except Exception as exc:
                name = preprocessor_name(preprocessor)
                error = PreprocessorFailure(
                    f"preprocessor {name} failed: {exc}", preprocessor=name, cause=exc
                )
                raise ctx.annotate(error) from exc

    def __iter__(self) -> Iterator[Preprocessor]:
        return iter(self._preprocessors)

    def __len__(self) -> int:
        return len(self._preprocessors)

    def __bool__(self) -> bool:
        return bool(self._preprocessors)

    def __repr__(self) -> str:
        names = ", ".join(preprocessor_name(p) for p in self._preprocessors)
        return f"PreprocessorChain([{names}])"


# =============================================================================
# Built-in preprocessors
# =============================================================================


def render_object_id(value: Any, length: int = 12) -> str:
    """
    Canonical lowercase hex form of a binary identifier.

    Accepts the raw bytes or an already-rendered hex string of the same length.

    Raises:
        ValueError: wrong length or not an identifier at all.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != length:
            raise ValueError(f"expected {length}-byte identifier, got {len(value)} bytes")
        return bytes(value).hex()
    if isinstance(value, str):
        try:
            raw = bytes.fromhex(value)
        except ValueError:
            raise ValueError(f"identifier {value!r} is not hexadecimal") from None
        if len(raw) != length:
            raise ValueError(f"expected {length * 2} hex digits, got {len(value)}")
        return raw.hex()
    raise ValueError(f"expected binary identifier, got {kind_of(value)}")


def object_id(
    source_key: str = "_id",
    attr: str = "id",
    *,
    length: int = 12,
    required: bool = False,
) -> Preprocessor:
    """
    Render the binary identifier at ``source_key`` to hex and store it on ``attr``.

    Targets without ``attr`` are left untouched, as are documents without
    ``source_key`` unless ``required`` is set.
    """

    def preprocess(document: GenericDocument, target: Any) -> None:
        if not hasattr(target, attr):
            return
        if source_key not in document or document[source_key] is None:
            if required:
                raise ValueError(f"document has no {source_key!r} identifier")
            return
        object.__setattr__(target, attr, render_object_id(document[source_key], length))

    preprocess.__name__ = f"object_id[{source_key}->{attr}]"
    return preprocess


def copy_field(
    source_key: str,
    attr: str,
    convert: Callable[[Any], Any] | None = None,
) -> Preprocessor:
    """Copy a raw document value onto ``attr``, optionally through ``convert``."""

    def preprocess(document: GenericDocument, target: Any) -> None:
        if source_key not in document or not hasattr(target, attr):
            return
        value = document[source_key]
        object.__setattr__(target, attr, convert(value) if convert else value)

    preprocess.__name__ = f"copy_field[{source_key}->{attr}]"
    return preprocess


__all__ = [
    "Preprocessor",
    "PreprocessorChain",
    "copy_field",
    "object_id",
    "preprocessor_name",
    "render_object_id",
]
