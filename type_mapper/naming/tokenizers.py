"""Name tokenizers.

A tokenizer splits a property name into the tokens used for matching:

    camel_case("shippingAddress")  -> ["shipping", "Address"]
    camel_case("shipping_address") -> ["shipping", "address"]
    underscore("shipping_address") -> ["shipping", "address"]
"""

from __future__ import annotations

import re

from type_mapper.core.enums import PropertyKind

_CAMEL_TOKEN = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z]+|\d+")


def camel_case(name: str, kind: PropertyKind | None = None) -> list[str]:
    """Split on case changes, digits and separators."""
    return _CAMEL_TOKEN.findall(name)


def underscore(name: str, kind: PropertyKind | None = None) -> list[str]:
    """Split on underscores only."""
    return [token for token in name.split("_") if token]


DEFAULT_TOKENIZER = camel_case
