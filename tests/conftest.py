"""Shared test fixtures."""

from __future__ import annotations

import pytest

from type_mapper.accessors.introspection import IntrospectingAccessor
from type_mapper.core.mapper import TypeMapper
from type_mapper.core.policy import MappingPolicy
from type_mapper.core.registry import PlanStore


@pytest.fixture
def policy() -> MappingPolicy:
    """Default mapping policy."""
    return MappingPolicy()


@pytest.fixture
def accessor() -> IntrospectingAccessor:
    return IntrospectingAccessor()


@pytest.fixture
def store(accessor: IntrospectingAccessor, policy: MappingPolicy) -> PlanStore:
    """Empty plan store using the default policy."""
    return PlanStore(accessor, policy)


@pytest.fixture
def mapper() -> TypeMapper:
    """TypeMapper with the default policy."""
    return TypeMapper()


@pytest.fixture
def make_mapper():
    """Helper to build a TypeMapper from policy settings.

    Usage:
        mapper = make_mapper(skip_null=True, matching_strategy="strict")
    """

    def _make(**settings) -> TypeMapper:
        return TypeMapper.from_config(settings)

    return _make
