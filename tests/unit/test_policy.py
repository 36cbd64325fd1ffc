"""Unit tests for MappingPolicy."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from type_mapper.core.enums import AccessLevel, MatchingStrategyType, PropertyKind, Side
from type_mapper.core.policy import MappingPolicy
from type_mapper.naming import conventions
from type_mapper.naming.tokenizers import camel_case, underscore


class TestMappingPolicy:
    def test_defaults(self) -> None:
        policy = MappingPolicy()
        assert policy.matching_strategy is MatchingStrategyType.STANDARD
        assert policy.field_matching_enabled is True
        assert policy.ambiguity_ignored is False
        assert policy.resolve_circular is True
        assert policy.skip_null is False
        assert policy.max_depth == 5
        assert policy.field_access_level is AccessLevel.PUBLIC
        assert policy.converters is None

    def test_from_dict_with_strings(self) -> None:
        policy = MappingPolicy.model_validate(
            {"matching_strategy": "strict", "field_access_level": "private", "skip_null": True}
        )
        assert policy.matching_strategy is MatchingStrategyType.STRICT
        assert policy.field_access_level is AccessLevel.PRIVATE
        assert policy.skip_null is True

    def test_frozen(self) -> None:
        policy = MappingPolicy()
        with pytest.raises(ValidationError):
            policy.skip_null = True  # type: ignore[misc]

    def test_with_options_returns_copy(self) -> None:
        policy = MappingPolicy()
        loose = policy.with_options(matching_strategy=MatchingStrategyType.LOOSE)
        assert loose.matching_strategy is MatchingStrategyType.LOOSE
        assert policy.matching_strategy is MatchingStrategyType.STANDARD

    def test_with_options_validates(self) -> None:
        with pytest.raises(ValidationError):
            MappingPolicy().with_options(max_depth=0)

    def test_invalid_strategy(self) -> None:
        with pytest.raises(ValidationError):
            MappingPolicy.model_validate({"matching_strategy": "fuzzy"})

    def test_equal_policies_hash_equal(self) -> None:
        assert hash(MappingPolicy()) == hash(MappingPolicy())
        assert MappingPolicy() == MappingPolicy()

    def test_access_level_per_kind(self) -> None:
        policy = MappingPolicy(
            field_access_level=AccessLevel.PRIVATE,
            method_access_level=AccessLevel.PROTECTED,
        )
        assert policy.access_level(PropertyKind.FIELD) is AccessLevel.PRIVATE
        assert policy.access_level(PropertyKind.PROPERTY) is AccessLevel.PROTECTED
        assert policy.access_level(PropertyKind.METHOD) is AccessLevel.PROTECTED

    def test_side_specific_settings(self) -> None:
        policy = MappingPolicy(
            source_name_tokenizer=underscore,
            source_naming_convention=conventions.javabeans_accessor,
        )
        assert policy.tokenizer(Side.SOURCE) is underscore
        assert policy.tokenizer(Side.DESTINATION) is camel_case
        assert policy.naming_convention(Side.SOURCE) is conventions.javabeans_accessor
        assert policy.naming_convention(Side.DESTINATION) is conventions.attributes_only
        assert policy.transformer(Side.SOURCE) is conventions.identity

    def test_inhibited_types(self) -> None:
        policy = MappingPolicy(inhibited_types=frozenset({dict}))
        assert policy.is_instantiation_inhibited(dict) is True
        assert policy.is_instantiation_inhibited(list) is False


class TestAccessLevel:
    def test_public(self) -> None:
        assert AccessLevel.PUBLIC.allows("name") is True
        assert AccessLevel.PUBLIC.allows("_name") is False

    def test_protected(self) -> None:
        assert AccessLevel.PROTECTED.allows("_name") is True
        assert AccessLevel.PROTECTED.allows("__name") is False

    def test_private(self) -> None:
        assert AccessLevel.PRIVATE.allows("__name") is True

    def test_dunder_never_allowed(self) -> None:
        assert AccessLevel.PRIVATE.allows("__init__") is False
