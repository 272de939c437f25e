"""Per-call decode context.

Everything that varies between decode calls travels in a frozen
:class:`DecodeContext` that is passed down explicitly through every recursive
step: the tag namespace, the weak-typing switch, and the path of the value
being decoded. Nothing is stored in module or decoder state, so concurrent
decodes stay independent.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from docshape.core.errors import DocshapeError

if TYPE_CHECKING:
    from docshape.decoding.decoder import Decoder

PathSegment = str | int


@dataclass(frozen=True, slots=True)
class DecodeContext:
    """Immutable view of one decode call at one position in the document."""

    decoder: Decoder
    namespace: str
    weak_typing: bool = False
    path: tuple[PathSegment, ...] = ()
    shape: str | None = None

    def child(self, segment: PathSegment) -> DecodeContext:
        """Context for a mapping key or sequence index below this one."""
        return replace(self, path=(*self.path, segment))

    def within(self, shape: str) -> DecodeContext:
        """Context for populating a shape at the current path."""
        return replace(self, shape=shape)

    @property
    def path_str(self) -> str | None:
        """Dotted path such as ``blocks[2].content``; None at the record root."""
        if not self.path:
            return None
        parts: list[str] = []
        for segment in self.path:
            if isinstance(segment, int):
                parts.append(f"[{segment}]")
            elif parts:
                parts.append(f".{segment}")
            else:
                parts.append(segment)
        return "".join(parts)

    def annotate(self, error: DocshapeError) -> DocshapeError:
        """Attach this position to ``error``; context set closer to the failure wins."""
        return error.with_context(
            path=self.path_str,
            shape=self.shape,
            namespace=self.namespace,
        )


__all__ = ["DecodeContext", "PathSegment"]
