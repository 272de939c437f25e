"""
Docshape decoding - discriminated-union decoding of generic documents.

Public surface of the pipeline: shapes and tags, the discriminator
normalizer, type registries, preprocessor and hook chains, the structural
mapper and the Decoder that runs them.
"""

from docshape.decoding.context import DecodeContext
from docshape.decoding.decoder import Decoder, decode
from docshape.decoding.document import GenericDocument, GenericValue, ensure_document, is_document, kind_of
from docshape.decoding.hooks import (
    STANDARD_HOOKS,
    Hook,
    HookChain,
    PolymorphicHook,
    conversion_hook,
    identifier_hook,
    timestamp_hook,
)
from docshape.decoding.mapper import StructuralMapper
from docshape.decoding.normalize import UNNORMALIZABLE, DiscriminatorKey, FieldNormalizer, normalize
from docshape.decoding.preprocess import (
    Preprocessor,
    PreprocessorChain,
    copy_field,
    object_id,
    render_object_id,
)
from docshape.decoding.registry import TypeRegistry, TypeRegistryBuilder
from docshape.decoding.shapes import FieldSpec, ShapeDescriptor, describe, is_shape, shape, tag

__all__ = [
    "DecodeContext",
    "Decoder",
    "decode",
    "GenericDocument",
    "GenericValue",
    "ensure_document",
    "is_document",
    "kind_of",
    "STANDARD_HOOKS",
    "Hook",
    "HookChain",
    "PolymorphicHook",
    "conversion_hook",
    "identifier_hook",
    "timestamp_hook",
    "StructuralMapper",
    "UNNORMALIZABLE",
    "DiscriminatorKey",
    "FieldNormalizer",
    "normalize",
    "Preprocessor",
    "PreprocessorChain",
    "copy_field",
    "object_id",
    "render_object_id",
    "TypeRegistry",
    "TypeRegistryBuilder",
    "FieldSpec",
    "ShapeDescriptor",
    "describe",
    "is_shape",
    "shape",
    "tag",
]
