"""TypeMapper - the public entry point.

A TypeMapper owns one policy, one property accessor, one plan store and
one execution engine. Plans are compiled on first use and cached for the
mapper's lifetime; instances are safe to share between threads.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from type_mapper.accessors.annotations import describe
from type_mapper.accessors.introspection import IntrospectingAccessor
from type_mapper.accessors.protocol import PropertyAccessor
from type_mapper.core.engine import MappingEngine
from type_mapper.core.enums import ErrorKind
from type_mapper.core.exceptions import ConfigurationError, ErrorCollector, ErrorMessage
from type_mapper.core.policy import MappingPolicy
from type_mapper.core.registry import PlanStore
from type_mapper.mapping.builder import MappingExpression, PropertyMap, as_property_map
from type_mapper.mapping.plan import TypeMap
from type_mapper.mapping.protocol import Converter

logger = logging.getLogger(__name__)

S = TypeVar("S")
D = TypeVar("D")

Declaration = PropertyMap[Any, Any] | Callable[[MappingExpression[Any, Any]], None]


class TypeMapper:
    """Maps objects between two type graphs.

    Usage:
        mapper = TypeMapper()
        dto = mapper.map(order, OrderDto)

        mapper.add_mappings(OrderMap())
        mapper.validate()
    """

    def __init__(
        self,
        policy: MappingPolicy | None = None,
        accessor: PropertyAccessor | None = None,
    ) -> None:
        self._policy = policy or MappingPolicy()
        self._accessor = accessor or IntrospectingAccessor()
        self._store = PlanStore(self._accessor, self._policy)
        self._engine = MappingEngine(self._store, self._accessor, self._policy)

    @classmethod
    def from_config(
        cls,
        config: MappingPolicy | dict[str, Any],
        accessor: PropertyAccessor | None = None,
    ) -> TypeMapper:
        """Create a mapper from a policy or a plain dict of policy settings.

        Args:
            config: A MappingPolicy, or a dict validated into one
                (e.g. ``{"matching_strategy": "strict", "skip_null": True}``).
            accessor: Optional property accessor replacing the default.
        """
        if not isinstance(config, MappingPolicy):
            config = MappingPolicy.model_validate(config)
        return cls(config, accessor)

    @property
    def policy(self) -> MappingPolicy:
        return self._policy

    @property
    def accessor(self) -> PropertyAccessor:
        return self._accessor

    @property
    def store(self) -> PlanStore:
        return self._store

    # --- Mapping ---

    def map(self, source: Any, destination_type: type[D]) -> D:
        """Map ``source`` into a new ``destination_type`` instance."""
        return self._engine.map(source, destination_type)

    def map_into(self, source: Any, destination: D) -> D:
        """Map ``source`` onto ``destination`` and return it."""
        return self._engine.map_into(source, destination)

    def map_many(self, sources: Iterable[Any], destination_type: type[D]) -> list[D]:
        return self._engine.map_many(sources, destination_type)

    # --- Plans ---

    def type_map(self, source_type: type[S], destination_type: type[D]) -> TypeMap[S, D] | None:
        """The plan used for the pair, exact or assignable, if one is stored."""
        return self._store.get(source_type, destination_type)

    def create_type_map(
        self,
        source_type: type[S],
        destination_type: type[D],
        declaration: Declaration | None = None,
        policy: MappingPolicy | None = None,
    ) -> TypeMap[S, D]:
        """Compile a plan for the pair.

        Without a declaration, an implicit-only plan replaces any plan stored
        for the exact pair. With one, its explicit mappings are applied
        before implicit matching, or merged into the existing plan.

        Raises:
            ConfigurationError: If the declaration is invalid, or if ``policy``
                is given together with a declaration for a pair that already
                has a plan; an existing plan keeps the policy it was compiled with.
        """
        if declaration is None:
            return self._store.create(source_type, destination_type, policy)
        if policy is not None and self._store.get(source_type, destination_type) is not None:
            raise ConfigurationError(
                [
                    ErrorMessage(
                        ErrorKind.USAGE,
                        f"A plan for {describe(source_type)} -> {describe(destination_type)} "
                        "already exists; its policy cannot be changed by merging a declaration",
                    )
                ]
            )
        property_map = as_property_map(declaration, source_type, destination_type)
        return self._store.get_or_create(
            source_type, destination_type, property_map=property_map, policy=policy
        )

    def add_mappings(
        self,
        declaration: Declaration,
        source_type: type | None = None,
        destination_type: type | None = None,
    ) -> TypeMap[Any, Any]:
        """Register explicit mappings from a PropertyMap or a declaration callable.

        A PropertyMap carries its own types; a callable needs both types.

        Raises:
            ConfigurationError: If the declaration is invalid.
        """
        if isinstance(declaration, PropertyMap):
            source_type = source_type or declaration.source_type
            destination_type = destination_type or declaration.destination_type
        if source_type is None or destination_type is None:
            raise ConfigurationError(
                [
                    ErrorMessage(
                        ErrorKind.USAGE,
                        "add_mappings() needs source and destination types for a declaration callable",
                    )
                ]
            )
        property_map = as_property_map(declaration, source_type, destination_type)
        return self._store.get_or_create(source_type, destination_type, property_map=property_map)

    def add_converter(
        self,
        converter: Converter,
        source_type: type[S],
        destination_type: type[D],
    ) -> TypeMap[S, D]:
        """Map the pair with ``converter(source, destination_type)`` instead of property mappings."""
        return self._store.get_or_create(source_type, destination_type, converter=converter)

    def get_type_maps(self) -> list[TypeMap[Any, Any]]:
        return self._store.type_maps()

    def validate(self) -> None:
        """Check that every stored plan maps all of its destination properties.

        Plans handled by a whole-plan converter are not checked.

        Raises:
            ConfigurationError: Listing every unmapped destination property.
        """
        errors = ErrorCollector()
        for plan in self._store.type_maps():
            if plan.converter is not None:
                continue
            for name in plan.unmapped_destination_paths(self._accessor):
                errors.add(
                    ErrorKind.UNMAPPED_DESTINATION,
                    f"Unmapped destination property in {plan.type_pair}",
                    name,
                )
        logger.debug("Validated %d plans, %d problems", len(self._store), len(errors))
        errors.raise_configuration_error()
