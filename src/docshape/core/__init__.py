"""
Docshape core - errors, results, logging, settings and timestamp helpers.

Everything here is independent of the decode pipeline and safe to import
from any layer.
"""

from docshape.core.errors import (
    ConfigError,
    DecodeError,
    DecodeStage,
    DocshapeError,
    DuplicateKeyError,
    ErrorCategory,
    ErrorContext,
    FallbackAlreadySetError,
    HookError,
    InvalidShapeError,
    MappingError,
    MissingDiscriminatorError,
    MissingFieldError,
    ParseError,
    PreprocessorFailure,
    RegistryError,
    RegistrySealedError,
    ResolutionError,
    TypeMismatchError,
    UnknownDiscriminatorError,
    UnsupportedTimeFormatError,
)
from docshape.core.result import Err, Ok, Result, failures, partition_results, summarize

__all__ = [
    "ConfigError",
    "DecodeError",
    "DecodeStage",
    "DocshapeError",
    "DuplicateKeyError",
    "ErrorCategory",
    "ErrorContext",
    "FallbackAlreadySetError",
    "HookError",
    "InvalidShapeError",
    "MappingError",
    "MissingDiscriminatorError",
    "MissingFieldError",
    "ParseError",
    "PreprocessorFailure",
    "RegistryError",
    "RegistrySealedError",
    "ResolutionError",
    "TypeMismatchError",
    "UnknownDiscriminatorError",
    "UnsupportedTimeFormatError",
    "Ok",
    "Err",
    "Result",
    "partition_results",
    "failures",
    "summarize",
]
