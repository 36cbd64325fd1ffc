"""Helpers for interpreting type annotations."""

from __future__ import annotations

import dataclasses
import datetime
import enum
import fractions
import pathlib
import types
import uuid
from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Annotated, Any, ClassVar, Union, get_args, get_origin

from pydantic import BaseModel

_SCALARS: tuple[type, ...] = (
    str,
    bytes,
    bytearray,
    bool,
    int,
    float,
    complex,
    Decimal,
    fractions.Fraction,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    uuid.UUID,
    pathlib.PurePath,
    enum.Enum,
)


def unwrap_optional(annotation: Any) -> Any:
    """Strip ``Annotated`` and a single ``None`` branch of a union."""
    origin = get_origin(annotation)
    if origin is Annotated:
        return unwrap_optional(get_args(annotation)[0])
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return unwrap_optional(args[0])
    return annotation


def resolve_class(annotation: Any) -> type | None:
    """The runtime class behind an annotation, or None when unknown."""
    annotation = unwrap_optional(annotation)
    if annotation is None or annotation is Any:
        return None
    origin = get_origin(annotation)
    if origin is not None:
        return origin if isinstance(origin, type) else None
    if isinstance(annotation, type):
        return annotation
    return None


def type_arguments(annotation: Any) -> tuple[Any, ...]:
    return get_args(unwrap_optional(annotation))


def is_class_var(annotation: Any) -> bool:
    return annotation is ClassVar or get_origin(annotation) is ClassVar


def is_pydantic_model(cls: Any) -> bool:
    return isinstance(cls, type) and issubclass(cls, BaseModel)


def is_frozen(cls: type) -> bool:
    """Whether instances of ``cls`` reject ordinary attribute assignment."""
    if is_pydantic_model(cls):
        return bool(cls.model_config.get("frozen"))
    if dataclasses.is_dataclass(cls):
        params = getattr(cls, "__dataclass_params__", None)
        return bool(params and params.frozen)
    return False


def is_terminal(annotation: Any) -> bool:
    """Whether values of this type are copied as a whole, not property by property.

    Unknown types, scalars, enums and collections are terminal.
    """
    cls = resolve_class(annotation)
    if cls is None or cls is object:
        return True
    if issubclass(cls, _SCALARS):
        return True
    if issubclass(cls, (Mapping, Iterable)) and not is_pydantic_model(cls):
        return True
    if cls.__module__ in ("builtins", "typing", "collections.abc"):
        return True
    return False


def describe(annotation: Any) -> str:
    if isinstance(annotation, type):
        return annotation.__qualname__
    return repr(annotation)
