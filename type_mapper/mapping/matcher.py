"""Implicit property matching.

Walks the destination property graph and, for every destination path,
scores all source paths with the policy's matching strategy. A unique
best-scoring source path becomes an implicit PropertyMapping.

Nested object types are followed on both sides, but a type is never
revisited within one path and paths never exceed ``policy.max_depth``.
Non-terminal destination properties are matched as a whole first; when
nothing matches, their children are matched instead.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from type_mapper.accessors.annotations import resolve_class
from type_mapper.accessors.protocol import PropertyAccessor, PropertyInfo
from type_mapper.core.enums import Side
from type_mapper.core.exceptions import ErrorCollector
from type_mapper.core.policy import MappingPolicy
from type_mapper.mapping.model import Mapping, PropertyMapping, PropertyPath
from type_mapper.naming.strategies import strategy_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Candidate:
    path: PropertyPath
    tokens: tuple[tuple[str, ...], ...]
    terminal: bool


class ImplicitMatcher:
    """Produces implicit mappings for one (source type, destination type) pair."""

    def __init__(self, accessor: PropertyAccessor, policy: MappingPolicy) -> None:
        self._accessor = accessor
        self._policy = policy
        self._strategy = strategy_for(policy.matching_strategy)

    def match(
        self,
        source_type: type,
        destination_type: type,
        explicit: Sequence[Mapping] = (),
        errors: ErrorCollector | None = None,
    ) -> list[PropertyMapping]:
        """Return implicit mappings for every unambiguous destination path.

        Destination paths covered by ``explicit`` (exactly or through an
        ancestor) are left alone. Ambiguities are reported to ``errors``
        unless the policy ignores them.
        """
        errors = errors if errors is not None else ErrorCollector()
        sources = list(self._source_candidates(source_type, None, (), {source_type}))
        mappings: list[PropertyMapping] = []
        self._match_destinations(
            destination_type, None, (), {destination_type}, sources, explicit, mappings, errors
        )
        return mappings

    # --- Source side ---

    def _source_candidates(
        self,
        owner: type,
        prefix: PropertyPath | None,
        prefix_tokens: tuple[tuple[str, ...], ...],
        stack: set[type],
    ) -> Iterator[_Candidate]:
        tokenizer = self._policy.source_name_tokenizer
        for prop in self._accessor.properties(owner, self._policy, Side.SOURCE):
            path = prefix.child(prop) if prefix is not None else PropertyPath((prop,))
            tokens = (*prefix_tokens, tuple(tokenizer(prop.name, prop.kind)))
            nested = self._nested_type(prop)
            yield _Candidate(path, tokens, nested is None)

            if nested is not None and nested not in stack and len(path) < self._policy.max_depth:
                yield from self._source_candidates(nested, path, tokens, stack | {nested})

    # --- Destination side ---

    def _match_destinations(
        self,
        owner: type,
        prefix: PropertyPath | None,
        prefix_tokens: tuple[tuple[str, ...], ...],
        stack: set[type],
        sources: list[_Candidate],
        explicit: Sequence[Mapping],
        mappings: list[PropertyMapping],
        errors: ErrorCollector,
    ) -> None:
        tokenizer = self._policy.destination_name_tokenizer
        for prop in self._accessor.properties(owner, self._policy, Side.DESTINATION):
            path = prefix.child(prop) if prefix is not None else PropertyPath((prop,))
            tokens = (*prefix_tokens, tuple(tokenizer(prop.name, prop.kind)))

            if any(m.destination.is_prefix_of(path) for m in explicit):
                continue

            nested = self._nested_type(prop)
            explicit_below = any(path.is_prefix_of(m.destination) for m in explicit)

            if not explicit_below:
                # Whole objects only match whole objects
                eligible = [c for c in sources if nested is None or not c.terminal]
                best = self._best_matches(eligible, tokens)
                if len(best) == 1:
                    mappings.append(PropertyMapping(source=best[0].path, destination=path))
                    continue
                if len(best) > 1:
                    candidates = [str(c.path) for c in best]
                    if self._policy.ambiguity_ignored:
                        logger.debug(
                            "Ignoring ambiguous destination %s (candidates: %s)",
                            path,
                            ", ".join(candidates),
                        )
                    else:
                        errors.ambiguous_destination(str(path), candidates)
                    continue

            if (
                nested is not None
                and prop.readable
                and nested not in stack
                and len(path) < self._policy.max_depth
            ):
                self._match_destinations(
                    nested, path, tokens, stack | {nested}, sources, explicit, mappings, errors
                )

    def _best_matches(
        self,
        sources: list[_Candidate],
        destination_tokens: tuple[tuple[str, ...], ...],
    ) -> list[_Candidate]:
        best_score = 0.0
        best: list[_Candidate] = []
        for candidate in sources:
            score = self._strategy.matches(candidate.tokens, destination_tokens)
            if score is None:
                continue
            if score > best_score:
                best_score = score
                best = [candidate]
            elif score == best_score:
                best.append(candidate)
        return best

    def _nested_type(self, prop: PropertyInfo) -> type | None:
        """The property's class when it should be walked into, else None."""
        cls = resolve_class(prop.value_type)
        if cls is None or self._accessor.is_terminal(cls):
            return None
        return cls
