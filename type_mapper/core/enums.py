"""Enumerations shared across the mapping engine."""

from __future__ import annotations

from enum import Enum


class AccessLevel(Enum):
    """The level at and below which members can be accessed.

    Python has no enforced visibility, so levels follow naming convention:
    ``_name`` is protected, ``__name`` is private.
    """

    PUBLIC = "public"
    PROTECTED = "protected"
    PRIVATE = "private"

    def allows(self, name: str) -> bool:
        """Whether a member called ``name`` is visible at this level."""
        if name.startswith("__") and name.endswith("__"):
            return False
        if name.startswith("__"):
            return self is AccessLevel.PRIVATE
        if name.startswith("_"):
            return self is not AccessLevel.PUBLIC
        return True


class PropertyKind(Enum):
    """How a property is exposed on its owning type."""

    FIELD = "field"
    PROPERTY = "property"
    METHOD = "method"


class Side(Enum):
    """Which side of a type pair a property belongs to."""

    SOURCE = "source"
    DESTINATION = "destination"


class MatchingStrategyType(Enum):
    """Supported implicit matching strategies."""

    STANDARD = "standard"
    LOOSE = "loose"
    STRICT = "strict"


class ErrorKind(Enum):
    """Categories of configuration and mapping errors."""

    USAGE = "usage"
    MISSING_DESTINATION = "missing_destination"
    INVALID_PATH = "invalid_path"
    AMBIGUOUS_MATCH = "ambiguous_match"
    DUPLICATE_MAPPING = "duplicate_mapping"
    UNMAPPED_DESTINATION = "unmapped_destination"
    ACCESSOR = "accessor"
    UNINSTANTIABLE = "uninstantiable"
    DECLARATION = "declaration"
    CONVERSION = "conversion"
