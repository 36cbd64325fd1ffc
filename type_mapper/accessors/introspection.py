"""Introspection-based property accessor.

Supports dataclasses, Pydantic models and plain classes. Properties are
discovered from:

1. Fields: Pydantic ``model_fields``, dataclass fields, class annotations
   and, for plain classes, ``__init__`` parameters.
2. ``property`` descriptors (readable via getter, writable via setter).
3. Getter/setter methods accepted by the side's naming convention.

Fields are only discovered when field matching is enabled.
"""

from __future__ import annotations

import dataclasses
import inspect
import logging
from typing import Any, get_type_hints

from type_mapper.accessors.annotations import (
    describe,
    is_class_var,
    is_frozen,
    is_pydantic_model,
    is_terminal,
    resolve_class,
)
from type_mapper.accessors.protocol import PropertyInfo
from type_mapper.core.enums import AccessLevel, ErrorKind, PropertyKind, Side
from type_mapper.core.exceptions import AccessorError
from type_mapper.core.policy import MappingPolicy

logger = logging.getLogger(__name__)


def _type_hints(obj: Any, owner: type) -> dict[str, Any]:
    """Resolved annotations of ``obj``, falling back to the raw ones."""
    try:
        return get_type_hints(obj, localns={owner.__name__: owner})
    except Exception:  # unresolvable forward references
        return dict(getattr(obj, "__annotations__", {}))


def _field_names(cls: type) -> list[str]:
    """Field names of a class (Pydantic, dataclass, annotated or plain)."""
    # Pydantic model
    if is_pydantic_model(cls):
        return list(cls.model_fields.keys())

    # Dataclass
    if dataclasses.is_dataclass(cls):
        return [f.name for f in dataclasses.fields(cls)]

    names: list[str] = []
    for klass in reversed(cls.__mro__[:-1]):
        for name, annotation in _type_hints(klass, cls).items():
            if name not in names and not is_class_var(annotation):
                names.append(name)

    # Plain class - use __init__ parameters
    if cls.__init__ is not object.__init__:
        try:
            sig = inspect.signature(cls.__init__)
        except (ValueError, TypeError):
            return names
        for name, param in sig.parameters.items():
            if name == "self" or param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            if name not in names:
                names.append(name)
    return names


def _field_types(cls: type) -> dict[str, Any]:
    # Pydantic has already resolved its field annotations
    if is_pydantic_model(cls):
        return {name: field.annotation for name, field in cls.model_fields.items()}

    hints: dict[str, Any] = {}
    if cls.__init__ is not object.__init__:
        hints.update(_type_hints(cls.__init__, cls))
    hints.update(_type_hints(cls, cls))
    return hints


def _required_parameters(func: Any) -> int:
    """Number of required positional parameters of a method, ``self`` excluded."""
    try:
        sig = inspect.signature(func)
    except (ValueError, TypeError):
        return -1
    params = list(sig.parameters.values())[1:]
    return sum(
        1
        for p in params
        if p.default is inspect.Parameter.empty
        and p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    )


class IntrospectingAccessor:
    """Default PropertyAccessor built on dataclass, Pydantic and inspect metadata."""

    def __init__(self) -> None:
        self._cache: dict[tuple[type, Side, MappingPolicy], list[PropertyInfo]] = {}

    # --- Enumeration ---

    def properties(self, owner: Any, policy: MappingPolicy, side: Side) -> list[PropertyInfo]:
        cls = resolve_class(owner)
        if cls is None or is_terminal(cls):
            return []
        key = (cls, side, policy)
        cached = self._cache.get(key)
        if cached is None:
            cached = self._discover(cls, policy, side)
            self._cache[key] = cached
        return list(cached)

    def find_property(
        self, owner: Any, name: str, policy: MappingPolicy, side: Side
    ) -> PropertyInfo | None:
        for prop in self.properties(owner, policy, side):
            if prop.name == name:
                return prop
        # Explicit mappings may name members implicit matching would not consider
        permissive = policy.with_options(
            field_matching_enabled=True,
            field_access_level=AccessLevel.PRIVATE,
            method_access_level=AccessLevel.PRIVATE,
        )
        for prop in self.properties(owner, permissive, side):
            if prop.name == name or prop.member == name:
                return prop
        return None

    def _discover(self, cls: type, policy: MappingPolicy, side: Side) -> list[PropertyInfo]:
        convention = policy.naming_convention(side)
        transform = policy.transformer(side)
        found: dict[str, PropertyInfo] = {}

        def add(member: str, kind: PropertyKind, value_type: Any, readable: bool, writable: bool) -> None:
            if not policy.access_level(kind).allows(member):
                return
            if not convention(member, kind):
                return
            if side is Side.SOURCE and not readable:
                return
            if side is Side.DESTINATION and not writable:
                return
            name = transform(member, kind)
            if name not in found:
                found[name] = PropertyInfo(name, member, kind, cls, value_type, readable, writable)

        descriptors: dict[str, Any] = {}
        for klass in reversed(cls.__mro__[:-1]):
            if klass.__module__.startswith("pydantic"):
                continue
            descriptors.update(vars(klass))

        if policy.field_matching_enabled:
            field_types = _field_types(cls)
            for name in _field_names(cls):
                if isinstance(descriptors.get(name), property):
                    continue
                add(name, PropertyKind.FIELD, field_types.get(name), True, True)

        for member, attr in descriptors.items():
            if isinstance(attr, property):
                value_type = None
                if attr.fget is not None:
                    value_type = _type_hints(attr.fget, cls).get("return")
                add(member, PropertyKind.PROPERTY, value_type, attr.fget is not None, attr.fset is not None)
            elif inspect.isfunction(attr) and not member.startswith("__"):
                required = _required_parameters(attr)
                hints = _type_hints(attr, cls)
                if side is Side.SOURCE and required == 0:
                    add(member, PropertyKind.METHOD, hints.get("return"), True, False)
                elif side is Side.DESTINATION and required == 1:
                    params = [p for p in inspect.signature(attr).parameters if p != "self"]
                    add(member, PropertyKind.METHOD, hints.get(params[0]), False, True)

        logger.debug(
            "Discovered %d %s properties on %s", len(found), side.value, cls.__qualname__
        )
        return list(found.values())

    def is_terminal(self, target: Any) -> bool:
        return is_terminal(target)

    # --- Instance access ---

    def read(self, instance: Any, prop: PropertyInfo) -> Any:
        try:
            value = getattr(instance, prop.member)
            if prop.kind is PropertyKind.METHOD:
                value = value()
        except AttributeError as e:
            raise AccessorError(
                f"Cannot read '{prop.member}' from {type(instance).__qualname__}: {e}",
                path=prop.name,
            ) from e
        except Exception as e:
            raise AccessorError(
                f"Reading '{prop.member}' on {type(instance).__qualname__} failed: {e!r}",
                path=prop.name,
            ) from e
        return value

    def write(self, instance: Any, prop: PropertyInfo, value: Any) -> None:
        try:
            if prop.kind is PropertyKind.METHOD:
                getattr(instance, prop.member)(value)
            elif prop.kind is PropertyKind.FIELD and is_frozen(type(instance)):
                object.__setattr__(instance, prop.member, value)
            else:
                setattr(instance, prop.member, value)
        except Exception as e:
            raise AccessorError(
                f"Writing '{prop.member}' on {type(instance).__qualname__} failed: {e!r}",
                path=prop.name,
            ) from e

    # --- Instantiation ---

    def instantiate(self, target: Any) -> Any:
        cls = resolve_class(target)
        if cls is None:
            raise AccessorError(
                f"Cannot instantiate unresolved type {describe(target)}",
                kind=ErrorKind.UNINSTANTIABLE,
            )
        if inspect.isabstract(cls) or getattr(cls, "_is_protocol", False):
            raise AccessorError(
                f"{cls.__qualname__} is abstract and cannot be instantiated; "
                "register a provider or converter for it",
                kind=ErrorKind.UNINSTANTIABLE,
            )
        try:
            if is_pydantic_model(cls):
                return cls.model_construct()
            if dataclasses.is_dataclass(cls):
                return self._new_dataclass(cls)
            if _required_parameters(cls.__init__) <= 0:
                return cls()
            return cls.__new__(cls)
        except Exception as e:
            raise AccessorError(
                f"Failed to instantiate {cls.__qualname__}: {e!r}",
                kind=ErrorKind.UNINSTANTIABLE,
            ) from e

    @staticmethod
    def _new_dataclass(cls: type) -> Any:
        fields = dataclasses.fields(cls)
        if all(
            f.default is not dataclasses.MISSING or f.default_factory is not dataclasses.MISSING
            for f in fields
            if f.init
        ):
            return cls()
        # Bypass __init__ so required fields can be populated afterwards
        instance = cls.__new__(cls)
        for f in fields:
            if f.default is not dataclasses.MISSING:
                object.__setattr__(instance, f.name, f.default)
            elif f.default_factory is not dataclasses.MISSING:
                object.__setattr__(instance, f.name, f.default_factory())
        return instance
