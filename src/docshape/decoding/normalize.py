"""Discriminator normalization.

Different encoders write the same type tag differently: YAML may give the
integer ``1``, msgpack the float ``1.0``, a hand-written config the symbol
``"TEXT"``. The normalizer collapses all of these into one canonical
``DiscriminatorKey`` so the registry compares like with like.

Tags:
    docshape, decoding, discriminator, normalization

Doc-Types:
    api-reference
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, NewType

DiscriminatorKey = NewType("DiscriminatorKey", str)


class _Unnormalizable(str):
    """Sentinel key; never equal to a key produced from a real value."""

    def __eq__(self, other: object) -> bool:
        return other is self

    def __ne__(self, other: object) -> bool:
        return other is not self

    __hash__ = str.__hash__

    def __repr__(self) -> str:
        return "UNNORMALIZABLE"


UNNORMALIZABLE = DiscriminatorKey(_Unnormalizable("<unnormalizable>"))


class FieldNormalizer:
    """
    Pure, total mapping from a raw discriminator value to a DiscriminatorKey.

    - strings map to themselves, unless ``symbols`` is given and the string
      names one of its members, in which case the member's value is used
    - enum members map through their ``value``
    - integers map to their decimal form, and so do integral floats
      (``1``, ``1.0`` and ``Kind.TEXT == 1`` all become ``"1"``)
    - everything else maps to UNNORMALIZABLE
    """

    def __init__(self, symbols: type[Enum] | None = None):
        self.symbols = symbols

    def __call__(self, value: Any) -> DiscriminatorKey:
        if isinstance(value, Enum):
            return self(value.value)
        if isinstance(value, bool):
            return UNNORMALIZABLE
        if isinstance(value, str):
            if self.symbols is not None and value in self.symbols.__members__:
                return self(self.symbols[value])
            return DiscriminatorKey(value)
        if isinstance(value, int):
            return DiscriminatorKey(str(value))
        if isinstance(value, float):
            if not math.isfinite(value):
                return UNNORMALIZABLE
            if value.is_integer():
                return DiscriminatorKey(str(int(value)))
            return DiscriminatorKey(repr(value))
        return UNNORMALIZABLE

    def __repr__(self) -> str:
        symbols = self.symbols.__name__ if self.symbols else None
        return f"FieldNormalizer(symbols={symbols})"


def is_normalizable(key: DiscriminatorKey) -> bool:
    return key is not UNNORMALIZABLE


normalize = FieldNormalizer()


__all__ = ["DiscriminatorKey", "UNNORMALIZABLE", "FieldNormalizer", "is_normalizable", "normalize"]
