"""Matching strategies.

A strategy compares the tokens of a source path against the tokens of a
destination path. Both are given as one token list per path segment, e.g.
``customer.first_name`` -> ``[["customer"], ["first", "name"]]``.

``matches`` returns ``None`` when the paths do not match, else a score in
``(0, 1]``: the fraction of destination tokens found on the source side.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from type_mapper.core.enums import MatchingStrategyType

Tokens = Sequence[Sequence[str]]


def _normalize(tokens: Tokens) -> list[list[str]]:
    return [[token.casefold() for token in segment] for segment in tokens]


def _coverage(destination: list[list[str]], source_tokens: set[str]) -> float:
    flat = [token for segment in destination for token in segment]
    if not flat:
        return 0.0
    return sum(1 for token in flat if token in source_tokens) / len(flat)


class MatchingStrategy(Protocol):
    """Decides whether a source path matches a destination path."""

    def matches(self, source: Tokens, destination: Tokens) -> float | None: ...


class StandardMatchingStrategy:
    """All destination tokens matched, every source segment contributes.

    The last destination segment is fully matched as a consequence.
    """

    def matches(self, source: Tokens, destination: Tokens) -> float | None:
        src = _normalize(source)
        dst = _normalize(destination)
        source_tokens = {token for segment in src for token in segment}
        destination_tokens = {token for segment in dst for token in segment}

        if _coverage(dst, source_tokens) < 1.0:
            return None
        for segment in src:
            if not any(token in destination_tokens for token in segment):
                return None
        return 1.0


class LooseMatchingStrategy:
    """Last destination segment fully matched, last source segment touched."""

    def matches(self, source: Tokens, destination: Tokens) -> float | None:
        src = _normalize(source)
        dst = _normalize(destination)
        if not src or not dst:
            return None
        source_tokens = {token for segment in src for token in segment}
        destination_tokens = {token for segment in dst for token in segment}

        if not all(token in source_tokens for token in dst[-1]):
            return None
        if not any(token in destination_tokens for token in src[-1]):
            return None
        return _coverage(dst, source_tokens)


class StrictMatchingStrategy:
    """Source and destination tokens are identical and in the same order."""

    def matches(self, source: Tokens, destination: Tokens) -> float | None:
        src = [token for segment in _normalize(source) for token in segment]
        dst = [token for segment in _normalize(destination) for token in segment]
        if src and src == dst:
            return 1.0
        return None


_STRATEGIES: dict[MatchingStrategyType, MatchingStrategy] = {
    MatchingStrategyType.STANDARD: StandardMatchingStrategy(),
    MatchingStrategyType.LOOSE: LooseMatchingStrategy(),
    MatchingStrategyType.STRICT: StrictMatchingStrategy(),
}


def strategy_for(strategy_type: MatchingStrategyType) -> MatchingStrategy:
    """Look up the strategy implementation for a strategy type."""
    return _STRATEGIES[strategy_type]
