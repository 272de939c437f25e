"""
Structured error types for docshape.

Provides a typed hierarchy of errors with rich metadata so that a failed
decode can be traced back to the record, the pipeline stage and the field
that caused it.

Every decode failure surfaces as exactly one DocshapeError subclass. Instead
of generic exceptions that lose context, errors carry:
- **Category:** Which part of the pipeline failed (parse, resolution, mapping...)
- **Context:** Stage, shape, field path, namespace, codec, discriminator
- **Cause:** Chained underlying exception for root cause analysis

Manifesto:
    - **Typed Error Hierarchy:** One error kind per failure condition
    - **Registration vs decode:** Misconfiguration is detected at build time
      (ConfigError), bad records at decode time (DecodeError)
    - **Rich Context:** Errors carry the field path and shape name
    - **Error Chaining:** Codec and hook exceptions are kept as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       DocshapeError                              │
        │  (category, context, cause)                                      │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ConfigError                    DecodeError                      │
        │  (CONFIG)                       (stage-tagged)                   │
        │       │                              │                           │
        │  RegistryError                  ParseError          (PARSE)      │
        │    DuplicateKeyError            PreprocessorFailure (PREPROCESS) │
        │    FallbackAlreadySetError      ResolutionError     (RESOLUTION) │
        │    RegistrySealedError            MissingDiscriminatorError      │
        │  InvalidShapeError                UnknownDiscriminatorError      │
        │                                 MappingError        (MAPPING)    │
        │                                   TypeMismatchError              │
        │                                   MissingFieldError              │
        │                                   UnsupportedTimeFormatError     │
        │                                   HookError                      │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    Adding context to an error:

    >>> error = TypeMismatchError("expected integer, got string")
    >>> error.with_context(shape="TextBlock", field="size", path="blocks[0].size")
    TypeMismatchError('expected integer, got string', category=MAPPING)
    >>> error.context.path
    'blocks[0].size'

    Chaining codec errors:

    >>> try:
    ...     json.loads("{")
    ... except json.JSONDecodeError as e:
    ...     raise ParseError("invalid JSON document", cause=e)
    Traceback (most recent call last):
    ...
    ParseError: invalid JSON document

Guardrails:
    ❌ DON'T: Raise ValueError/KeyError out of the decode pipeline
    ✅ DO: Raise the DecodeError subclass naming the failure condition

    ❌ DON'T: Swallow the original exception
    ✅ DO: Pass it as cause= for error chaining

Tags:
    error-handling, exception-hierarchy, error-context, docshape, decoding

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    PARSE = "PARSE"                # Codec could not parse the raw bytes
    PREPROCESS = "PREPROCESS"      # A preprocessor rejected the document
    RESOLUTION = "RESOLUTION"      # Discriminator missing or unknown
    MAPPING = "MAPPING"            # Field population failed
    CONFIG = "CONFIG"              # Registry or shape misconfiguration
    INTERNAL = "INTERNAL"          # Bugs, unexpected state


class DecodeStage(str, Enum):
    """Pipeline stage in which a decode error was raised."""

    PARSE = "parse"
    PREPROCESS = "preprocess"
    RESOLVE = "resolve"
    MAP = "map"


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Only fields that are set show up in ``to_dict()``. Anything that has no
    dedicated attribute goes to ``metadata``.

    Attributes:
        stage: Pipeline stage (parse, preprocess, resolve, map)
        shape: Name of the shape being populated
        field: Attribute name of the failing field
        path: Dotted path from the record root, e.g. ``blocks[2].content``
        namespace: Active tag namespace
        codec: Codec name, for parse errors
        discriminator: Raw discriminator value, for resolution errors
        metadata: Additional key-value pairs
    """

    stage: str | None = None
    shape: str | None = None
    field: str | None = None
    path: str | None = None
    namespace: str | None = None
    codec: str | None = None
    discriminator: Any = None

    metadata: dict[str, Any] = dataclasses.field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["stage", "shape", "field", "path", "namespace", "codec", "discriminator"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class DocshapeError(Exception):
    """
    Base exception for all docshape errors.

    Subclasses set ``default_category`` (and, for decode errors,
    ``default_stage``) so callers can route on the error kind without
    inspecting messages.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> DocshapeError:
        """
        Add context to this error (fluent API).

        Existing values are kept; context recorded closest to the failure wins.

        Usage:
            raise MissingFieldError("missing required field").with_context(
                shape="TextBlock", field="content"
            )
        """
        for key, value in kwargs.items():
            if value is None:
                continue
            if key != "metadata" and hasattr(self.context, key):
                if getattr(self.context, key) is None:
                    setattr(self.context, key, value)
            else:
                self.context.metadata.setdefault(key, value)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }

        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict

        if self.cause is not None:
            result["cause"] = str(self.cause)

        return result

    def __str__(self) -> str:
        path = self.context.path
        if path:
            return f"{self.message} (at {path})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS (raised while building registries and shapes)
# =============================================================================


class ConfigError(DocshapeError):
    """
    Configuration error.

    Raised at registration time, never during decoding.
    """

    default_category = ErrorCategory.CONFIG


class InvalidShapeError(ConfigError):
    """A class cannot be described as a shape."""

    def __init__(self, shape: Any, message: str, **kwargs: Any):
        self.shape = shape
        name = getattr(shape, "__qualname__", repr(shape))
        super().__init__(f"Invalid shape {name}: {message}", **kwargs)
        self.context.shape = name


class RegistryError(ConfigError):
    """Type registry misconfiguration."""

    pass


class DuplicateKeyError(RegistryError):
    """A discriminator key was registered twice (after normalization)."""

    def __init__(self, key: Any, normalized: str, existing: str, registry: str | None = None):
        self.key = key
        self.normalized = normalized
        self.existing = existing
        super().__init__(
            f"Discriminator {key!r} (normalized {normalized!r}) is already registered to {existing}"
        )
        self.context.discriminator = key
        if registry:
            self.context.metadata["registry"] = registry


class FallbackAlreadySetError(RegistryError):
    """A registry may carry at most one fallback shape."""

    def __init__(self, existing: str, registry: str | None = None):
        self.existing = existing
        super().__init__(f"Fallback shape is already set to {existing}")
        if registry:
            self.context.metadata["registry"] = registry


class RegistrySealedError(RegistryError):
    """The registry was built; no further registration is accepted."""

    def __init__(self, registry: str | None = None):
        label = f"Registry {registry!r}" if registry else "Registry"
        super().__init__(f"{label} is sealed; register shapes before build()")
        if registry:
            self.context.metadata["registry"] = registry


# =============================================================================
# DECODE ERRORS (raised per record)
# =============================================================================


class DecodeError(DocshapeError):
    """
    A single record failed to decode.

    Decoding either yields a fully populated value or raises exactly one
    DecodeError; partial results are never returned.
    """

    default_category = ErrorCategory.MAPPING
    default_stage: DecodeStage = DecodeStage.MAP

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, **kwargs)
        if self.context.stage is None:
            self.context.stage = self.default_stage.value

    @property
    def stage(self) -> str:
        return self.context.stage or self.default_stage.value

    @property
    def path(self) -> str | None:
        return self.context.path


class ParseError(DecodeError):
    """The external codec could not parse the raw bytes."""

    default_category = ErrorCategory.PARSE
    default_stage = DecodeStage.PARSE


class PreprocessorFailure(DecodeError):
    """A preprocessor rejected the document; the rest of the chain was skipped."""

    default_category = ErrorCategory.PREPROCESS
    default_stage = DecodeStage.PREPROCESS

    def __init__(self, message: str, *, preprocessor: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.preprocessor = preprocessor
        if preprocessor:
            self.context.metadata["preprocessor"] = preprocessor


class ResolutionError(DecodeError):
    """The concrete shape of a polymorphic value could not be determined."""

    default_category = ErrorCategory.RESOLUTION
    default_stage = DecodeStage.RESOLVE


class MissingDiscriminatorError(ResolutionError):
    """The discriminator field is absent and no fallback shape is configured."""

    def __init__(self, interface: str, discriminator_field: str | None = None, **kwargs: Any):
        self.interface = interface
        self.discriminator_field = discriminator_field
        where = f" field {discriminator_field!r}" if discriminator_field else ""
        super().__init__(f"Missing discriminator{where} for {interface}", **kwargs)


class UnknownDiscriminatorError(ResolutionError):
    """The discriminator value is not registered and no fallback shape is configured."""

    def __init__(self, value: Any, normalized: str | None, interface: str, **kwargs: Any):
        self.value = value
        self.normalized = normalized
        self.interface = interface
        super().__init__(f"Unknown discriminator {value!r} for {interface}", **kwargs)
        self.context.discriminator = value


class MappingError(DecodeError):
    """Structural mapping of a field failed."""

    pass


class TypeMismatchError(MappingError):
    """A populated field could not be converted to its declared type."""

    def __init__(self, message: str, *, expected: str | None = None, actual: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.expected = expected
        self.actual = actual


class MissingFieldError(MappingError):
    """A required field is absent from the document."""

    def __init__(self, tag: str, **kwargs: Any):
        self.tag = tag
        super().__init__(f"Missing required field {tag!r}", **kwargs)


class UnsupportedTimeFormatError(MappingError):
    """A textual timestamp matches none of the accepted formats."""

    def __init__(self, value: str, formats: tuple[str, ...] = (), **kwargs: Any):
        self.value = value
        self.formats = formats
        super().__init__(f"Unsupported time format: {value!r}", **kwargs)


class HookError(MappingError):
    """A conversion hook raised an unexpected exception."""

    def __init__(self, message: str, *, hook: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.hook = hook
        if hook:
            self.context.metadata["hook"] = hook


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_decode_error(error: BaseException) -> bool:
    """Check if an error is a per-record decode failure."""
    return isinstance(error, DecodeError)


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, DocshapeError):
        return error.category
    return ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "DecodeStage",
    "ErrorContext",
    "DocshapeError",
    "ConfigError",
    "InvalidShapeError",
    "RegistryError",
    "DuplicateKeyError",
    "FallbackAlreadySetError",
    "RegistrySealedError",
    "DecodeError",
    "ParseError",
    "PreprocessorFailure",
    "ResolutionError",
    "MissingDiscriminatorError",
    "UnknownDiscriminatorError",
    "MappingError",
    "TypeMismatchError",
    "MissingFieldError",
    "UnsupportedTimeFormatError",
    "HookError",
    "is_decode_error",
    "categorize_error",
]
