"""
Example 03: Circular References and Converters

This example demonstrates how cyclic object graphs are mapped onto the same
destination instances, and how a whole-plan converter replaces property mapping.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from type_mapper import TypeMapper


@dataclass
class Employee:
    name: str
    manager: Employee | None = None
    reports: list[Employee] = field(default_factory=list)


@dataclass
class EmployeeDto:
    name: str = ""
    manager: EmployeeDto | None = None
    reports: list[EmployeeDto] = field(default_factory=list)


@dataclass
class Money:
    cents: int


@dataclass
class Price:
    display: str = ""


def main():
    mapper = TypeMapper()

    print("=== Circular References ===\n")

    boss = Employee("Grace")
    dev = Employee("Linus", manager=boss)
    boss.reports.append(dev)

    dto = mapper.map(boss, EmployeeDto)
    print(f"1. {dto.name} manages {[r.name for r in dto.reports]}")
    print(f"   Report's manager is the same instance: {dto.reports[0].manager is dto}\n")

    print("2. Whole-plan Converter:")
    mapper.add_converter(lambda money, t: t(display=f"${money.cents / 100:.2f}"), Money, Price)
    print(f"   {mapper.map(Money(1999), Price)}")


if __name__ == "__main__":
    main()
