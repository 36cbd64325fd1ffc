"""Mapping layer - plans, declarations, matching and conversion."""

from __future__ import annotations

from type_mapper.mapping.builder import (
    MappingBuilder,
    MappingExpression,
    PropertyMap,
    as_property_map,
)
from type_mapper.mapping.converters import default_converters
from type_mapper.mapping.matcher import ImplicitMatcher
from type_mapper.mapping.model import (
    ConstantMapping,
    Mapping,
    PropertyMapping,
    PropertyPath,
    SourceMapping,
    TypePair,
)
from type_mapper.mapping.plan import TypeMap
from type_mapper.mapping.protocol import ConditionalConverter

__all__ = [
    "TypeMap",
    "TypePair",
    "PropertyPath",
    "Mapping",
    "PropertyMapping",
    "ConstantMapping",
    "SourceMapping",
    "PropertyMap",
    "MappingExpression",
    "MappingBuilder",
    "as_property_map",
    "ImplicitMatcher",
    "ConditionalConverter",
    "default_converters",
]
