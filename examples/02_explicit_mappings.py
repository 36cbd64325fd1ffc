"""
Example 02: Explicit Mappings

This example demonstrates PropertyMap declarations: custom source paths, converters,
conditions, constants, skipped properties and validation.
"""

from dataclasses import dataclass

from type_mapper import ConfigurationError, PropertyMap, TypeMapper


@dataclass
class Customer:
    first_name: str
    last_name: str


@dataclass
class Order:
    id: int
    customer: Customer
    total: float
    notes: str = ""


@dataclass
class OrderDto:
    id: int = 0
    buyer: str = ""
    amount: float = 0.0
    channel: str = ""
    notes: str = ""
    discount: float = 0.0


class OrderMap(PropertyMap[Order, OrderDto]):
    def configure(self, m):
        m.using(lambda c, _: f"{c.first_name} {c.last_name}").map(m.source.customer).to(m.destination.buyer)
        m.when(lambda total: total > 0).map("total").to("amount")
        m.map().to("channel", "web")
        m.skip("notes")


def main():
    mapper = TypeMapper()
    mapper.add_mappings(OrderMap())

    print("=== Explicit Mappings ===\n")

    order = Order(id=7, customer=Customer("Ada", "Lovelace"), total=99.5, notes="internal")
    print("1. Mapped Order:")
    print(f"   {mapper.map(order, OrderDto)}\n")

    refund = Order(id=8, customer=Customer("Alan", "Turing"), total=-10.0)
    print("2. Condition (negative total is not copied):")
    print(f"   {mapper.map(refund, OrderDto)}\n")

    # 'discount' has no source; validate() reports it
    print("3. Validation:")
    try:
        mapper.validate()
    except ConfigurationError as e:
        print("   " + str(e).replace("\n", "\n   "))
    print()

    # Every problem of a declaration block is reported at once
    print("4. Declaration Errors:")
    try:
        mapper.add_mappings(
            lambda m: (m.map("customer.phone").to("buyer"), m.map("total")),
            Order,
            OrderDto,
        )
    except ConfigurationError as e:
        print("   " + str(e).replace("\n", "\n   "))


if __name__ == "__main__":
    main()
