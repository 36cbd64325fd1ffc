"""
Example 01: Basic Mapping

This example demonstrates implicit mapping between dataclasses and Pydantic models,
including flattening, nested objects and collections.
"""

from dataclasses import dataclass, field

from pydantic import BaseModel

from type_mapper import TypeMapper


@dataclass
class Address:
    street: str
    city: str


@dataclass
class User:
    id: int
    name: str
    address: Address
    tags: list[str] = field(default_factory=list)


class AddressDto(BaseModel):
    street: str = ""
    city: str = ""


class UserDto(BaseModel):
    id: int = 0
    name: str = ""
    address: AddressDto | None = None
    tags: set[str] = set()


class UserRow(BaseModel):
    id: str = ""
    name: str = ""
    address_city: str = ""


def main():
    mapper = TypeMapper()
    alice = User(id=1, name="Alice", address=Address("1 Main St", "Springfield"), tags=["admin", "ops"])

    print("=== Basic Mapping ===\n")

    # Nested objects and collections
    print("1. Nested Mapping:")
    dto = mapper.map(alice, UserDto)
    print(f"   {dto!r}\n")

    # address.city -> address_city, int -> str
    print("2. Flattening:")
    row = mapper.map(alice, UserRow)
    print(f"   {row!r}\n")

    # Several sources at once
    print("3. map_many:")
    bob = User(id=2, name="Bob", address=Address("2 Side St", "Shelbyville"))
    for item in mapper.map_many([alice, bob], UserRow):
        print(f"   - {item.name} lives in {item.address_city}")
    print()

    # Compiled plans are cached and can be inspected
    print("4. Compiled Plans:")
    for plan in mapper.get_type_maps():
        print("   " + plan.describe().replace("\n", "\n   "))


if __name__ == "__main__":
    main()
