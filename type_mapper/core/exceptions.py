"""type_mapper exception hierarchy.

All exceptions are type_mapper-specific. Failures raised by user code or
introspection are wrapped, never exposed raw to callers.

Compile-time and execution-time problems are accumulated into a single
report so a caller sees every problem of one attempt at once.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from type_mapper.core.enums import ErrorKind


@dataclass(frozen=True)
class ErrorMessage:
    """One problem found while building or executing a mapping."""

    kind: ErrorKind
    message: str
    path: str | None = None
    cause: BaseException | None = None

    def __str__(self) -> str:
        if self.path:
            return f"[{self.kind.value}] {self.path}: {self.message}"
        return f"[{self.kind.value}] {self.message}"


def _format_report(heading: str, messages: list[ErrorMessage]) -> str:
    lines = [f"{heading}:", ""]
    for index, message in enumerate(messages, start=1):
        lines.append(f"{index}) {message}")
    lines.append("")
    lines.append(f"{len(messages)} error{'s' if len(messages) != 1 else ''}")
    return "\n".join(lines)


class TypeMapperError(Exception):
    """Base exception for all type_mapper errors."""


class ReportedError(TypeMapperError):
    """Base for errors that carry an accumulated report."""

    heading = "Errors"

    def __init__(self, messages: Iterable[ErrorMessage]) -> None:
        self.messages: list[ErrorMessage] = list(messages)
        super().__init__(_format_report(self.heading, self.messages))

    @property
    def kinds(self) -> set[ErrorKind]:
        """Distinct error kinds present in the report."""
        return {message.kind for message in self.messages}

    def of_kind(self, kind: ErrorKind) -> list[ErrorMessage]:
        """Messages of a single kind, in report order."""
        return [message for message in self.messages if message.kind is kind]


# --- Configuration ---


class ConfigurationError(ReportedError):
    """Raised when a mapping plan cannot be compiled or built."""

    heading = "Mapping configuration errors"


# --- Execution ---


class MappingError(ReportedError):
    """Raised when mapping a source instance fails."""

    heading = "Mapping errors"


class ConversionError(TypeMapperError):
    """Raised when no converter or plan can produce a destination value."""

    def __init__(self, detail: str, *, path: str | None = None) -> None:
        self.detail = detail
        self.path = path
        super().__init__(detail)

    def to_message(self, path: str | None = None) -> ErrorMessage:
        return ErrorMessage(ErrorKind.CONVERSION, self.detail, path or self.path, self)


# --- Accessor ---


class AccessorError(TypeMapperError):
    """Raised when a property cannot be enumerated, read, written or created."""

    def __init__(
        self,
        detail: str,
        *,
        kind: ErrorKind = ErrorKind.ACCESSOR,
        path: str | None = None,
    ) -> None:
        self.detail = detail
        self.kind = kind
        self.path = path
        super().__init__(detail)

    def to_message(self, path: str | None = None) -> ErrorMessage:
        return ErrorMessage(self.kind, self.detail, path or self.path, self)


class ErrorCollector:
    """Accumulates error messages for one build or mapping attempt."""

    def __init__(self) -> None:
        self._messages: list[ErrorMessage] = []

    def __bool__(self) -> bool:
        return bool(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def messages(self) -> list[ErrorMessage]:
        return list(self._messages)

    def add(
        self,
        kind: ErrorKind,
        message: str,
        path: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self._messages.append(ErrorMessage(kind, message, path, cause))

    def merge(self, messages: Iterable[ErrorMessage]) -> None:
        self._messages.extend(messages)

    def usage(self, message: str, path: str | None = None) -> None:
        self.add(ErrorKind.USAGE, message, path)

    def missing_destination(self) -> None:
        self.add(
            ErrorKind.MISSING_DESTINATION,
            "A mapping was started but no destination was selected. "
            "Finish each map()/skip() statement with .to(...)",
        )

    def duplicate_mapping(self, path: str) -> None:
        self.add(
            ErrorKind.DUPLICATE_MAPPING,
            "A mapping already exists for this destination",
            path,
        )

    def ambiguous_destination(self, path: str, candidates: Iterable[str]) -> None:
        self.add(
            ErrorKind.AMBIGUOUS_MATCH,
            "Matches multiple source paths equally well: " + ", ".join(candidates),
            path,
        )

    def raise_configuration_error(self) -> None:
        """Raise a ConfigurationError if any messages were collected."""
        if self._messages:
            raise ConfigurationError(self._messages)

    def raise_mapping_error(self) -> None:
        """Raise a MappingError if any messages were collected."""
        if self._messages:
            raise MappingError(self._messages)
