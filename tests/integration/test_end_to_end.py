"""End-to-end mapping of a small order domain.

Exercises dataclass entities, pydantic DTOs, explicit declarations,
collections, cycles and validation through one TypeMapper.
"""

from __future__ import annotations

import datetime
import enum
from dataclasses import dataclass, field
from decimal import Decimal

import pytest
from pydantic import BaseModel

from type_mapper import (
    ConfigurationError,
    ErrorKind,
    MappingError,
    PropertyMap,
    TypeMapper,
)


class OrderStatus(enum.Enum):
    PENDING = "pending"
    SHIPPED = "shipped"


# --- Domain ---


@dataclass
class Address:
    street: str
    city: str
    postcode: str


@dataclass
class Customer:
    id: int
    first_name: str
    last_name: str
    address: Address
    orders: list[Order] = field(default_factory=list)


@dataclass
class OrderLine:
    sku: str
    quantity: int
    unit_price: Decimal


@dataclass
class Order:
    id: int
    customer: Customer
    lines: list[OrderLine]
    status: OrderStatus
    placed_on: datetime.date
    internal_notes: str = ""


# --- DTOs ---


class AddressDto(BaseModel):
    street: str = ""
    city: str = ""
    postcode: str = ""


class OrderLineDto(BaseModel):
    sku: str = ""
    quantity: int = 0
    unit_price: float = 0.0


class OrderDto(BaseModel):
    id: int = 0
    customer_first_name: str = ""
    customer_last_name: str = ""
    shipping_address: AddressDto | None = None
    lines: list[OrderLineDto] = []
    status: str = ""
    placed_on: str = ""
    internal_notes: str = ""
    source_system: str = ""


@dataclass
class CustomerDto:
    id: int = 0
    first_name: str = ""
    last_name: str = ""
    address: AddressDto | None = None
    orders: list[CustomerOrderDto] = field(default_factory=list)


@dataclass
class CustomerName:
    name: str = ""


@dataclass
class CustomerOrderDto:
    id: int = 0
    customer: CustomerDto | None = None
    status: OrderStatus = OrderStatus.PENDING


class OrderMap(PropertyMap[Order, OrderDto]):
    def configure(self, m) -> None:
        m.map(m.source.customer.address).to(m.destination.shipping_address)
        m.map().to("source_system", "shop")
        m.skip("internal_notes")


@pytest.fixture
def customer() -> Customer:
    return Customer(
        id=1,
        first_name="Ada",
        last_name="Lovelace",
        address=Address(street="1 Main St", city="London", postcode="N1"),
    )


@pytest.fixture
def order(customer: Customer) -> Order:
    placed = Order(
        id=100,
        customer=customer,
        lines=[
            OrderLine(sku="A-1", quantity=2, unit_price=Decimal("9.99")),
            OrderLine(sku="B-2", quantity=1, unit_price=Decimal("0.50")),
        ],
        status=OrderStatus.SHIPPED,
        placed_on=datetime.date(2024, 3, 1),
        internal_notes="fragile",
    )
    customer.orders.append(placed)
    return placed


@pytest.fixture
def order_mapper() -> TypeMapper:
    mapper = TypeMapper()
    mapper.add_mappings(OrderMap())
    return mapper


class TestOrderToDto:
    def test_flattened_customer(self, order_mapper: TypeMapper, order: Order) -> None:
        dto = order_mapper.map(order, OrderDto)
        assert dto.id == 100
        assert dto.customer_first_name == "Ada"
        assert dto.customer_last_name == "Lovelace"

    def test_explicit_nested_object(self, order_mapper: TypeMapper, order: Order) -> None:
        dto = order_mapper.map(order, OrderDto)
        assert dto.shipping_address == AddressDto(street="1 Main St", city="London", postcode="N1")

    def test_lines_mapped_element_wise(self, order_mapper: TypeMapper, order: Order) -> None:
        dto = order_mapper.map(order, OrderDto)
        assert [line.sku for line in dto.lines] == ["A-1", "B-2"]
        assert dto.lines[0].unit_price == pytest.approx(9.99)
        assert all(isinstance(line, OrderLineDto) for line in dto.lines)

    def test_scalars_converted(self, order_mapper: TypeMapper, order: Order) -> None:
        dto = order_mapper.map(order, OrderDto)
        assert dto.status == "SHIPPED"
        assert dto.placed_on == "2024-03-01"

    def test_constant_and_skip(self, order_mapper: TypeMapper, order: Order) -> None:
        dto = order_mapper.map(order, OrderDto)
        assert dto.source_system == "shop"
        assert dto.internal_notes == ""

    def test_plan_validates(self, order_mapper: TypeMapper, order: Order) -> None:
        order_mapper.map(order, OrderDto)
        order_mapper.validate()

    def test_map_many(self, order_mapper: TypeMapper, order: Order) -> None:
        dtos = order_mapper.map_many([order, order], OrderDto)
        assert dtos[0] is dtos[1]


class TestCustomerGraph:
    def test_bidirectional_references(self, customer: Customer, order: Order) -> None:
        mapper = TypeMapper()
        dto = mapper.map(customer, CustomerDto)
        assert dto.address.city == "London"
        assert len(dto.orders) == 1
        assert dto.orders[0].id == 100
        assert dto.orders[0].customer is dto
        assert dto.orders[0].status is OrderStatus.SHIPPED


class TestFailures:
    def test_ambiguous_configuration(self) -> None:
        mapper = TypeMapper()
        with pytest.raises(ConfigurationError) as exc_info:
            mapper.create_type_map(Customer, CustomerName)
        assert ErrorKind.AMBIGUOUS_MATCH in exc_info.value.kinds

    def test_mapping_errors_collected(self, order: Order) -> None:
        mapper = TypeMapper()

        def fail(value, destination_type):
            raise ValueError(value)

        mapper.add_mappings(
            lambda m: (
                m.using(fail).map("id").to("id"),
                m.using(fail).map("status").to("status"),
            ),
            Order,
            OrderDto,
        )
        with pytest.raises(MappingError) as exc_info:
            mapper.map(order, OrderDto)
        assert [m.path for m in exc_info.value.messages] == ["id", "status"]
