"""Plan store - compiles and caches TypeMaps keyed by type pair.

Lookup convention:
    get(Dog, AnimalDto) -> exact (Dog, AnimalDto) plan if stored, else the
    first plan, in registration order, whose source type is a superclass
    of Dog and whose destination type is a superclass of AnimalDto.

The first assignable plan wins even when a more specific one exists
later in registration order.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from type_mapper.accessors.protocol import PropertyAccessor
from type_mapper.core.exceptions import ErrorCollector
from type_mapper.core.policy import MappingPolicy
from type_mapper.mapping.builder import MappingBuilder, PropertyMap, merge_explicit
from type_mapper.mapping.matcher import ImplicitMatcher
from type_mapper.mapping.model import Mapping, TypePair
from type_mapper.mapping.plan import TypeMap
from type_mapper.mapping.protocol import Converter

logger = logging.getLogger(__name__)


def _is_subclass(cls: type, parent: type) -> bool:
    try:
        return issubclass(cls, parent)
    except TypeError:
        return False


class PlanStore:
    """Thread-safe cache of compiled TypeMaps.

    Readers never block: the plan dictionary is replaced, not mutated, and
    a plan is only published once fully compiled. Compilation and
    augmentation are serialized by a single store-wide lock.

    Args:
        accessor: Property accessor used to compile plans.
        policy: Policy used when a call does not supply its own.
    """

    def __init__(self, accessor: PropertyAccessor, policy: MappingPolicy) -> None:
        self._accessor = accessor
        self._policy = policy
        self._plans: dict[TypePair, TypeMap[Any, Any]] = {}
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def create(
        self,
        source_type: type,
        destination_type: type,
        policy: MappingPolicy | None = None,
    ) -> TypeMap[Any, Any]:
        """Compile an implicit-only plan and store it, replacing any exact match.

        Raises:
            ConfigurationError: If implicit matching fails; nothing is stored.
        """
        with self._lock:
            plan = self._compile(source_type, destination_type, None, None, policy)
            self._publish(plan)
        return plan

    def get(self, source_type: type, destination_type: type) -> TypeMap[Any, Any] | None:
        """Exact plan for the pair, else the first assignable one, else None."""
        plans = self._plans
        exact = plans.get(TypePair(source_type, destination_type))
        if exact is not None:
            return exact
        for pair, plan in plans.items():
            if _is_subclass(source_type, pair.source_type) and _is_subclass(
                destination_type, pair.destination_type
            ):
                return plan
        return None

    def get_or_create(
        self,
        source_type: type,
        destination_type: type,
        property_map: PropertyMap[Any, Any] | None = None,
        converter: Converter | None = None,
        policy: MappingPolicy | None = None,
    ) -> TypeMap[Any, Any]:
        """Return the plan for the pair, compiling and storing one if needed.

        Explicit mappings from ``property_map`` are merged into an existing
        plan in place. A ``converter`` replaces the plan's whole-plan
        converter; a plan created together with a converter has no
        implicit mappings.

        Raises:
            ConfigurationError: If building or matching fails; the store
                and any existing plan are left unchanged.
        """
        if property_map is None and converter is None:
            plan = self.get(source_type, destination_type)
            if plan is not None:
                return plan

        with self._lock:
            plan = self.get(source_type, destination_type)
            if plan is None:
                plan = self._compile(source_type, destination_type, property_map, converter, policy)
                if converter is not None:
                    plan.set_converter(converter)
                self._publish(plan)
                return plan

            if property_map is not None:
                self._augment(plan, property_map)
            if converter is not None:
                plan.set_converter(converter)
        return plan

    def type_maps(self) -> list[TypeMap[Any, Any]]:
        """Every stored plan, in registration order."""
        return list(self._plans.values())

    def __len__(self) -> int:
        return len(self._plans)

    def __contains__(self, pair: object) -> bool:
        return pair in self._plans

    # --- Internals (callers hold the lock) ---

    def _compile(
        self,
        source_type: type,
        destination_type: type,
        property_map: PropertyMap[Any, Any] | None,
        converter: Converter | None,
        policy: MappingPolicy | None,
    ) -> TypeMap[Any, Any]:
        policy = policy or self._policy
        plan: TypeMap[Any, Any] = TypeMap(source_type, destination_type, policy)
        errors = ErrorCollector()

        explicit: list[Mapping] = []
        if property_map is not None:
            explicit = MappingBuilder(self._accessor, policy).build(
                property_map, source_type, destination_type
            )
        mappings = merge_explicit((), explicit, errors)

        if converter is None:
            implicit = ImplicitMatcher(self._accessor, policy).match(
                source_type, destination_type, explicit, errors
            )
            mappings = (*mappings, *implicit)

        errors.raise_configuration_error()
        plan._publish(mappings)
        logger.debug(
            "Compiled plan %s with %d mappings (%d explicit)",
            plan.type_pair,
            len(mappings),
            len(explicit),
        )
        return plan

    def _augment(self, plan: TypeMap[Any, Any], property_map: PropertyMap[Any, Any]) -> None:
        errors = ErrorCollector()
        explicit = MappingBuilder(self._accessor, plan.policy).build(
            property_map, plan.source_type, plan.destination_type
        )
        merged = merge_explicit(plan.mappings, explicit, errors)
        if plan.converter is None:
            # Re-match so paths left uncovered by the new explicit mappings stay mapped
            merged_explicit = [m for m in merged if m.explicit]
            implicit = ImplicitMatcher(self._accessor, plan.policy).match(
                plan.source_type, plan.destination_type, merged_explicit, errors
            )
            merged = (*merged_explicit, *implicit)
        errors.raise_configuration_error()
        plan._publish(merged)
        logger.debug("Augmented plan %s with %r", plan.type_pair, property_map)

    def _publish(self, plan: TypeMap[Any, Any]) -> None:
        plans = dict(self._plans)
        plans[plan.type_pair] = plan
        self._plans = plans
