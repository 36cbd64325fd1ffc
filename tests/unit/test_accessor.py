"""Unit tests for IntrospectingAccessor."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field

import pytest
from pydantic import BaseModel

from type_mapper.accessors.annotations import is_terminal, resolve_class, unwrap_optional
from type_mapper.accessors.introspection import IntrospectingAccessor
from type_mapper.accessors.protocol import PropertyAccessor
from type_mapper.core.enums import AccessLevel, ErrorKind, PropertyKind, Side
from type_mapper.core.exceptions import AccessorError
from type_mapper.core.policy import MappingPolicy
from type_mapper.naming import conventions


@dataclass
class Address:
    street: str
    city: str


@dataclass
class Customer:
    name: str
    address: Address | None = None
    _secret: str = "hidden"

    @property
    def display_name(self) -> str:
        return self.name.upper()

    def get_age(self) -> int:
        return 42

    def set_age(self, age: int) -> None:
        self.age = age


@dataclass(frozen=True)
class FrozenPoint:
    x: int = 0
    y: int = 0


class CustomerModel(BaseModel):
    name: str
    tags: list[str] = []


class Plain:
    def __init__(self, title: str = "", count: int = 0) -> None:
        self.title = title
        self.count = count


class Temperature:
    def __init__(self) -> None:
        self._celsius = 0.0

    @property
    def celsius(self) -> float:
        return self._celsius

    @celsius.setter
    def celsius(self, value: float) -> None:
        self._celsius = value


class Shape(abc.ABC):
    @abc.abstractmethod
    def area(self) -> float: ...


@dataclass
class Inventory:
    items: list[str] = field(default_factory=list)
    owner: str = "nobody"
    sku: str = field(default="x")
    count: int = 0


@dataclass
class Required:
    name: str
    count: int = 3


def _names(props) -> list[str]:
    return [p.name for p in props]


class TestAnnotations:
    def test_unwrap_optional(self) -> None:
        assert unwrap_optional(Address | None) is Address

    def test_resolve_class(self) -> None:
        assert resolve_class(list[int]) is list
        assert resolve_class(Address | None) is Address
        assert resolve_class(None) is None

    def test_terminal_types(self) -> None:
        assert is_terminal(str) is True
        assert is_terminal(list[Address]) is True
        assert is_terminal(dict[str, int]) is True
        assert is_terminal(None) is True

    def test_object_types_are_not_terminal(self) -> None:
        assert is_terminal(Address) is False
        assert is_terminal(CustomerModel) is False
        assert is_terminal(Address | None) is False


class TestProperties:
    def test_satisfies_protocol(self, accessor: IntrospectingAccessor) -> None:
        assert isinstance(accessor, PropertyAccessor)

    def test_dataclass_source(self, accessor: IntrospectingAccessor, policy: MappingPolicy) -> None:
        props = accessor.properties(Customer, policy, Side.SOURCE)
        assert _names(props) == ["name", "address", "display_name"]

    def test_dataclass_destination_excludes_read_only(
        self, accessor: IntrospectingAccessor, policy: MappingPolicy
    ) -> None:
        props = accessor.properties(Customer, policy, Side.DESTINATION)
        assert _names(props) == ["name", "address"]

    def test_value_types(self, accessor: IntrospectingAccessor, policy: MappingPolicy) -> None:
        props = {p.name: p for p in accessor.properties(Customer, policy, Side.SOURCE)}
        assert props["name"].value_type is str
        assert resolve_class(props["address"].value_type) is Address
        assert props["display_name"].value_type is str
        assert props["display_name"].kind is PropertyKind.PROPERTY

    def test_protected_fields(self, accessor: IntrospectingAccessor, policy: MappingPolicy) -> None:
        protected = policy.with_options(field_access_level=AccessLevel.PROTECTED)
        assert "_secret" in _names(accessor.properties(Customer, protected, Side.SOURCE))

    def test_field_matching_disabled(self, accessor: IntrospectingAccessor, policy: MappingPolicy) -> None:
        no_fields = policy.with_options(field_matching_enabled=False)
        assert _names(accessor.properties(Customer, no_fields, Side.SOURCE)) == ["display_name"]

    def test_getter_methods(self, accessor: IntrospectingAccessor, policy: MappingPolicy) -> None:
        beans = policy.with_options(
            source_naming_convention=conventions.javabeans_accessor,
            source_name_transformer=conventions.javabeans_accessor_name,
        )
        props = {p.name: p for p in accessor.properties(Customer, beans, Side.SOURCE)}
        assert props["age"].member == "get_age"
        assert props["age"].kind is PropertyKind.METHOD
        assert props["age"].value_type is int

    def test_setter_methods(self, accessor: IntrospectingAccessor, policy: MappingPolicy) -> None:
        beans = policy.with_options(
            destination_naming_convention=conventions.javabeans_mutator,
            destination_name_transformer=conventions.javabeans_mutator_name,
        )
        props = {p.name: p for p in accessor.properties(Customer, beans, Side.DESTINATION)}
        assert props["age"].member == "set_age"
        assert props["age"].value_type is int

    def test_pydantic_model(self, accessor: IntrospectingAccessor, policy: MappingPolicy) -> None:
        props = accessor.properties(CustomerModel, policy, Side.DESTINATION)
        assert _names(props) == ["name", "tags"]
        assert props[1].value_type == list[str]

    def test_plain_class_init_parameters(
        self, accessor: IntrospectingAccessor, policy: MappingPolicy
    ) -> None:
        props = accessor.properties(Plain, policy, Side.SOURCE)
        assert _names(props) == ["title", "count"]
        assert props[1].value_type is int

    def test_property_with_setter(self, accessor: IntrospectingAccessor, policy: MappingPolicy) -> None:
        assert _names(accessor.properties(Temperature, policy, Side.DESTINATION)) == ["celsius"]

    def test_terminal_types_have_no_properties(
        self, accessor: IntrospectingAccessor, policy: MappingPolicy
    ) -> None:
        assert accessor.properties(str, policy, Side.SOURCE) == []
        assert accessor.properties(list[Address], policy, Side.SOURCE) == []

    def test_find_property(self, accessor: IntrospectingAccessor, policy: MappingPolicy) -> None:
        prop = accessor.find_property(Customer, "address", policy, Side.SOURCE)
        assert prop is not None
        assert prop.owner is Customer

    def test_find_property_beyond_access_level(
        self, accessor: IntrospectingAccessor, policy: MappingPolicy
    ) -> None:
        prop = accessor.find_property(Customer, "_secret", policy, Side.SOURCE)
        assert prop is not None
        assert prop.kind is PropertyKind.FIELD

    def test_find_property_missing(self, accessor: IntrospectingAccessor, policy: MappingPolicy) -> None:
        assert accessor.find_property(Customer, "nope", policy, Side.SOURCE) is None


class TestReadWrite:
    def test_read_field(self, accessor: IntrospectingAccessor, policy: MappingPolicy) -> None:
        prop = accessor.find_property(Customer, "name", policy, Side.SOURCE)
        assert accessor.read(Customer(name="Ann"), prop) == "Ann"

    def test_read_property(self, accessor: IntrospectingAccessor, policy: MappingPolicy) -> None:
        prop = accessor.find_property(Customer, "display_name", policy, Side.SOURCE)
        assert accessor.read(Customer(name="Ann"), prop) == "ANN"

    def test_read_method(self, accessor: IntrospectingAccessor, policy: MappingPolicy) -> None:
        beans = policy.with_options(
            source_naming_convention=conventions.javabeans_accessor,
            source_name_transformer=conventions.javabeans_accessor_name,
        )
        prop = accessor.find_property(Customer, "age", beans, Side.SOURCE)
        assert accessor.read(Customer(name="Ann"), prop) == 42

    def test_read_missing_attribute(self, accessor: IntrospectingAccessor, policy: MappingPolicy) -> None:
        prop = accessor.find_property(Plain, "title", policy, Side.SOURCE)
        with pytest.raises(AccessorError) as exc_info:
            accessor.read(object(), prop)
        assert exc_info.value.kind is ErrorKind.ACCESSOR

    def test_write_frozen_dataclass(self, accessor: IntrospectingAccessor, policy: MappingPolicy) -> None:
        point = FrozenPoint()
        prop = accessor.find_property(FrozenPoint, "x", policy, Side.DESTINATION)
        accessor.write(point, prop, 5)
        assert point.x == 5

    def test_write_setter_method(self, accessor: IntrospectingAccessor, policy: MappingPolicy) -> None:
        beans = policy.with_options(
            destination_naming_convention=conventions.javabeans_mutator,
            destination_name_transformer=conventions.javabeans_mutator_name,
        )
        customer = Customer(name="Ann")
        prop = accessor.find_property(Customer, "age", beans, Side.DESTINATION)
        accessor.write(customer, prop, 30)
        assert customer.age == 30

    def test_write_failure_wrapped(self, accessor: IntrospectingAccessor, policy: MappingPolicy) -> None:
        prop = accessor.find_property(Plain, "title", policy, Side.DESTINATION)
        with pytest.raises(AccessorError):
            accessor.write(1, prop, "x")


class TestInstantiate:
    def test_dataclass_with_defaults(self, accessor: IntrospectingAccessor) -> None:
        inventory = accessor.instantiate(Inventory)
        assert inventory == Inventory()

    def test_dataclass_with_required_fields(self, accessor: IntrospectingAccessor) -> None:
        instance = accessor.instantiate(Required)
        assert isinstance(instance, Required)
        assert instance.count == 3
        assert not hasattr(instance, "name")

    def test_pydantic_model(self, accessor: IntrospectingAccessor) -> None:
        instance = accessor.instantiate(CustomerModel)
        assert isinstance(instance, CustomerModel)
        assert instance.tags == []

    def test_plain_class(self, accessor: IntrospectingAccessor) -> None:
        plain = accessor.instantiate(Plain)
        assert plain.title == ""

    def test_optional_annotation(self, accessor: IntrospectingAccessor) -> None:
        assert isinstance(accessor.instantiate(Address | None), Address)

    def test_abstract_class(self, accessor: IntrospectingAccessor) -> None:
        with pytest.raises(AccessorError) as exc_info:
            accessor.instantiate(Shape)
        assert exc_info.value.kind is ErrorKind.UNINSTANTIABLE

    def test_unknown_type(self, accessor: IntrospectingAccessor) -> None:
        with pytest.raises(AccessorError) as exc_info:
            accessor.instantiate(None)
        assert exc_info.value.kind is ErrorKind.UNINSTANTIABLE
