"""
Docshape - decode discriminated-union records out of generic documents.

Records arrive as JSON, YAML, TOML or msgpack documents whose concrete type is
named by a discriminator field. Docshape parses them into a generic document,
runs preprocessors, resolves each polymorphic value through an explicit type
registry and maps fields onto plain dataclasses.
"""

__version__ = "0.1.0"

from docshape.core.errors import (  # noqa: E402
    DecodeError,
    DocshapeError,
    DuplicateKeyError,
    FallbackAlreadySetError,
    MissingDiscriminatorError,
    MissingFieldError,
    ParseError,
    PreprocessorFailure,
    TypeMismatchError,
    UnknownDiscriminatorError,
    UnsupportedTimeFormatError,
)
from docshape.core.result import Err, Ok, Result, partition_results  # noqa: E402
from docshape.decoding import (  # noqa: E402
    STANDARD_HOOKS,
    Decoder,
    FieldNormalizer,
    HookChain,
    PolymorphicHook,
    PreprocessorChain,
    ShapeDescriptor,
    TypeRegistry,
    conversion_hook,
    decode,
    describe,
    shape,
    tag,
)

__all__ = [
    "__version__",
    "DecodeError",
    "DocshapeError",
    "DuplicateKeyError",
    "FallbackAlreadySetError",
    "MissingDiscriminatorError",
    "MissingFieldError",
    "ParseError",
    "PreprocessorFailure",
    "TypeMismatchError",
    "UnknownDiscriminatorError",
    "UnsupportedTimeFormatError",
    "Err",
    "Ok",
    "Result",
    "partition_results",
    "STANDARD_HOOKS",
    "Decoder",
    "FieldNormalizer",
    "HookChain",
    "PolymorphicHook",
    "PreprocessorChain",
    "ShapeDescriptor",
    "TypeRegistry",
    "conversion_hook",
    "decode",
    "describe",
    "shape",
    "tag",
]
