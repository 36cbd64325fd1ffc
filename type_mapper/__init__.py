"""type_mapper - convention-based object-graph mapping."""

from __future__ import annotations

import logging

from type_mapper.accessors.introspection import IntrospectingAccessor
from type_mapper.accessors.protocol import PropertyAccessor, PropertyInfo
from type_mapper.core.engine import MappingContext, MappingEngine
from type_mapper.core.enums import (
    AccessLevel,
    ErrorKind,
    MatchingStrategyType,
    PropertyKind,
    Side,
)
from type_mapper.core.exceptions import (
    AccessorError,
    ConfigurationError,
    ConversionError,
    ErrorMessage,
    MappingError,
    ReportedError,
    TypeMapperError,
)
from type_mapper.core.mapper import TypeMapper
from type_mapper.core.policy import MappingPolicy
from type_mapper.core.registry import PlanStore
from type_mapper.mapping.builder import MappingExpression, PropertyMap
from type_mapper.mapping.model import TypePair
from type_mapper.mapping.plan import TypeMap

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Mapper
    "TypeMapper",
    # Policy
    "MappingPolicy",
    # Plans
    "TypeMap",
    "TypePair",
    "PlanStore",
    # Declarations
    "PropertyMap",
    "MappingExpression",
    # Engine
    "MappingEngine",
    "MappingContext",
    # Accessors
    "PropertyAccessor",
    "PropertyInfo",
    "IntrospectingAccessor",
    # Enums
    "AccessLevel",
    "ErrorKind",
    "MatchingStrategyType",
    "PropertyKind",
    "Side",
    # Exceptions
    "TypeMapperError",
    "ReportedError",
    "ConfigurationError",
    "MappingError",
    "AccessorError",
    "ConversionError",
    "ErrorMessage",
]
