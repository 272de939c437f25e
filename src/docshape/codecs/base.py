"""Codec base class - adapters from raw bytes to generic documents.

The byte-level parser is always an external library. A codec only wraps it:
it turns bytes (or text) into a :data:`GenericDocument`, re-raises the
library's errors as :class:`ParseError` with the codec name attached, and
names the tag namespace and format-specific hooks that go with the format.

Tags:
    docshape, codecs, parsing, adapters

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, ClassVar

from docshape.core.errors import DocshapeError, ParseError

if TYPE_CHECKING:
    from docshape.decoding.document import GenericDocument
    from docshape.decoding.hooks import Hook


class Codec(ABC):
    """
    One serialization format.

    Subclasses set the class attributes and implement :meth:`loads`.
    ``error_types`` lists the library exceptions that mean "malformed input";
    anything else escaping ``loads`` is a bug and propagates unchanged.
    """

    name: ClassVar[str]
    namespace: ClassVar[str]
    extensions: ClassVar[tuple[str, ...]] = ()
    binary: ClassVar[bool] = False
    error_types: ClassVar[tuple[type[Exception], ...]] = (ValueError,)

    @property
    def hooks(self) -> tuple[Hook, ...]:
        """Format-specific hooks, tried before user hooks."""
        return ()

    @abstractmethod
    def loads(self, data: bytes | str) -> Any:
        """Parse raw input with the underlying library."""

    def parse(self, data: bytes | str | bytearray | memoryview) -> GenericDocument:
        """
        Parse ``data`` into a generic document.

        Raises:
            ParseError: malformed input, or a top level that is not a mapping.
        """
        if isinstance(data, (bytearray, memoryview)):
            data = bytes(data)
        try:
            document = self.loads(data)
        except DocshapeError:
            raise
        except RecursionError as exc:
            raise ParseError(
                f"{self.name} document nests too deeply to parse",
                cause=exc,
            ).with_context(codec=self.name) from exc
        except self.error_types as exc:
            raise ParseError(
                f"invalid {self.name} document: {exc}",
                cause=exc,
            ).with_context(codec=self.name) from exc

        if not isinstance(document, Mapping):
            raise ParseError(
                f"{self.name} document must be a mapping at the top level, "
                f"got {type(document).__name__}"
            ).with_context(codec=self.name)
        return document

    def _text(self, data: bytes | str) -> str:
        if isinstance(data, bytes):
            try:
                return data.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise ParseError(
                    f"{self.name} input is not valid UTF-8: {exc}", cause=exc
                ).with_context(codec=self.name) from exc
        return data

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, namespace={self.namespace!r})"


__all__ = ["Codec"]
