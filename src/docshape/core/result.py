"""
Per-record outcomes for batch decoding.

``Decoder.try_decode`` returns a :data:`Result` instead of raising, and
``Decoder.decode_many`` returns one per input record, in input order. The
helpers below split a batch into decoded values and failures, and condense
the failures into something a log line or a CLI summary can carry.

Manifesto:
    A failed record is a value, not a hidden raise. It either decoded into a
    fully populated value (``Ok``) or failed with exactly one DecodeError
    (``Err``); there is no partial success. One bad record never aborts or
    alters its neighbours.

Examples:
    >>> outcomes = decoder.decode_many(records, Block)
    >>> blocks, errors = partition_results(outcomes)
    >>> for index, error in failures(outcomes):
    ...     logger.warning("record_skipped", index=index, **error.to_dict())
    >>> summarize(outcomes)
    {'total': 3, 'ok': 2, 'failed': 1, 'errors': {'UnknownDiscriminatorError': 1}}

Tags:
    result-pattern, error-handling, batch-processing, docshape

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from docshape.core.errors import DocshapeError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """A record that decoded into ``value``."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> Result[U]:
        return Ok(f(self.value))

    def to_dict(self) -> dict[str, Any]:
        return {"ok": True, "value": self.value}


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """A record that failed; ``error`` is the single error that stopped it."""

    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Re-raise the stored error."""
        raise self.error

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, f: Callable[[T], U]) -> Result[U]:
        return Err(self.error)

    def to_dict(self) -> dict[str, Any]:
        if isinstance(self.error, DocshapeError):
            error = self.error.to_dict()
        else:
            error = {"error_type": type(self.error).__name__, "message": str(self.error)}
        return {"ok": False, "error": error}


Result = Ok[T] | Err[T]


def partition_results(results: Iterable[Result[T]]) -> tuple[list[T], list[Exception]]:
    """Split into decoded values and errors, each in input order."""
    values: list[T] = []
    errors: list[Exception] = []
    for result in results:
        if isinstance(result, Ok):
            values.append(result.value)
        else:
            errors.append(result.error)
    return values, errors


def collect_results(results: Iterable[Result[T]]) -> Result[list[T]]:
    """All values, or the first error (all-or-nothing batches)."""
    values: list[T] = []
    for result in results:
        if isinstance(result, Err):
            return Err(result.error)
        values.append(result.value)
    return Ok(values)


def failures(results: Iterable[Result[T]]) -> list[tuple[int, Exception]]:
    """``(record index, error)`` for every failed record."""
    return [(index, result.error) for index, result in enumerate(results) if isinstance(result, Err)]


def summarize(results: Iterable[Result[T]]) -> dict[str, Any]:
    """Counts of a batch: total, ok, failed, and failures per error type."""
    total = 0
    errors: Counter[str] = Counter()
    for result in results:
        total += 1
        if isinstance(result, Err):
            errors[type(result.error).__name__] += 1
    failed = sum(errors.values())
    return {"total": total, "ok": total - failed, "failed": failed, "errors": dict(errors)}


__all__ = [
    "Ok",
    "Err",
    "Result",
    "partition_results",
    "collect_results",
    "failures",
    "summarize",
]
