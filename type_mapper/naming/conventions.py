"""Naming conventions and name transformers.

A naming convention decides whether a member is eligible as a property.
A name transformer turns an eligible member name into the property name
used for matching, e.g. ``get_first_name`` -> ``first_name``.

Fields and ``property`` descriptors are always eligible; conventions only
gate plain getter/setter methods.
"""

from __future__ import annotations

import re

from type_mapper.core.enums import PropertyKind

_ACCESSOR = re.compile(r"^(?:get|is)(?:_(?P<snake>\w+)|(?P<camel>[A-Z]\w*))$")
_MUTATOR = re.compile(r"^set(?:_(?P<snake>\w+)|(?P<camel>[A-Z]\w*))$")


def _strip(pattern: re.Pattern[str], name: str) -> str | None:
    match = pattern.match(name)
    if match is None:
        return None
    if match.group("snake"):
        return match.group("snake")
    camel = match.group("camel")
    return camel[0].lower() + camel[1:]


# --- Conventions ---


def attributes_only(name: str, kind: PropertyKind) -> bool:
    """Only fields and properties, never methods."""
    return kind is not PropertyKind.METHOD


def javabeans_accessor(name: str, kind: PropertyKind) -> bool:
    """Fields, properties and ``get_x``/``is_x``/``getX``/``isX`` methods."""
    return kind is not PropertyKind.METHOD or _ACCESSOR.match(name) is not None


def javabeans_mutator(name: str, kind: PropertyKind) -> bool:
    """Fields, properties and ``set_x``/``setX`` methods."""
    return kind is not PropertyKind.METHOD or _MUTATOR.match(name) is not None


def any_member(name: str, kind: PropertyKind) -> bool:
    """Every member with a suitable signature."""
    return True


# --- Transformers ---


def identity(name: str, kind: PropertyKind) -> str:
    return name


def javabeans_accessor_name(name: str, kind: PropertyKind) -> str:
    """``get_first_name`` -> ``first_name``, ``isActive`` -> ``active``."""
    if kind is not PropertyKind.METHOD:
        return name
    return _strip(_ACCESSOR, name) or name


def javabeans_mutator_name(name: str, kind: PropertyKind) -> str:
    """``set_first_name`` -> ``first_name``, ``setActive`` -> ``active``."""
    if kind is not PropertyKind.METHOD:
        return name
    return _strip(_MUTATOR, name) or name
