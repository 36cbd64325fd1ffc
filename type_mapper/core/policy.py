"""Mapping policy.

MappingPolicy is a frozen Pydantic model holding every setting the
matcher, builder and engine read. It is an immutable snapshot: derive a
changed copy with ``with_options`` instead of mutating it.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from type_mapper.core.enums import AccessLevel, MatchingStrategyType, PropertyKind, Side
from type_mapper.naming import conventions, tokenizers

NameTokenizer = Callable[[str, PropertyKind], list[str]]
NameTransformer = Callable[[str, PropertyKind], str]
NamingConvention = Callable[[str, PropertyKind], bool]


class MappingPolicy(BaseModel):
    """Configuration for matching, building and executing mappings."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    matching_strategy: MatchingStrategyType = MatchingStrategyType.STANDARD
    field_matching_enabled: bool = True
    field_access_level: AccessLevel = AccessLevel.PUBLIC
    method_access_level: AccessLevel = AccessLevel.PUBLIC
    ambiguity_ignored: bool = False
    resolve_circular: bool = True
    skip_null: bool = False
    max_depth: int = Field(default=5, ge=1)

    source_name_tokenizer: NameTokenizer = tokenizers.DEFAULT_TOKENIZER
    destination_name_tokenizer: NameTokenizer = tokenizers.DEFAULT_TOKENIZER
    source_name_transformer: NameTransformer = conventions.identity
    destination_name_transformer: NameTransformer = conventions.identity
    source_naming_convention: NamingConvention = conventions.attributes_only
    destination_naming_convention: NamingConvention = conventions.attributes_only

    inhibited_types: frozenset[type] = frozenset()
    provider: Callable[[type], Any] | None = None
    # None selects the engine's default converter chain
    converters: tuple[Any, ...] | None = None

    def with_options(self, **changes: Any) -> MappingPolicy:
        """Return a validated copy with ``changes`` applied."""
        data = dict(self)
        data.update(changes)
        return MappingPolicy.model_validate(data)

    def access_level(self, kind: PropertyKind) -> AccessLevel:
        if kind is PropertyKind.FIELD:
            return self.field_access_level
        return self.method_access_level

    def tokenizer(self, side: Side) -> NameTokenizer:
        if side is Side.SOURCE:
            return self.source_name_tokenizer
        return self.destination_name_tokenizer

    def transformer(self, side: Side) -> NameTransformer:
        if side is Side.SOURCE:
            return self.source_name_transformer
        return self.destination_name_transformer

    def naming_convention(self, side: Side) -> NamingConvention:
        if side is Side.SOURCE:
            return self.source_naming_convention
        return self.destination_naming_convention

    def is_instantiation_inhibited(self, destination_type: Any) -> bool:
        return destination_type in self.inhibited_types
