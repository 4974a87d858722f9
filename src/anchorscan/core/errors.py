"""anchorscan error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Index (entity store, documents, entrypoints)
- 9xxx: Internal

Recoverable scan conditions (unclosed constructs, missing attribute blocks,
ambiguous call targets) are not errors and never surface here.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2004

    # Index (3xxx)
    ENTITY_NOT_FOUND = 3001
    DOCUMENT_FORMAT_ERROR = 3002
    ENTRYPOINT_NOT_FOUND = 3003
    SOURCE_UNREADABLE = 3004

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class AnchorScanError(Exception):
    """Base error with structured context for CLI and JSON output."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'ENTITY_NOT_FOUND')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(AnchorScanError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Configured file not found: {path}",
            details={"path": path},
        )


class EntityLookupError(AnchorScanError):
    """An entity id has no record. Signals an inconsistent metadata graph."""

    @classmethod
    def missing_id(cls, entity_id: str, where: str = "any kind") -> "EntityLookupError":
        return cls(
            code=ErrorCode.ENTITY_NOT_FOUND,
            message=f"No entity with id '{entity_id}' in {where}",
            details={"id": entity_id, "where": where},
        )


class DocumentFormatError(AnchorScanError):
    """A section document could not be decoded.

    ``details["section"]`` always carries the offending section text.
    """

    @classmethod
    def malformed_line(cls, document: str, section: str, line: str) -> "DocumentFormatError":
        return cls(
            code=ErrorCode.DOCUMENT_FORMAT_ERROR,
            message=f"Malformed line in {document}: {line.strip()!r}",
            details={"document": document, "line": line, "section": section},
        )

    @classmethod
    def missing_field(cls, document: str, section: str, key: str) -> "DocumentFormatError":
        return cls(
            code=ErrorCode.DOCUMENT_FORMAT_ERROR,
            message=f"Section in {document} is missing '{key}'",
            details={"document": document, "key": key, "section": section},
        )

    @classmethod
    def invalid_value(
        cls, document: str, section: str, key: str, value: str, reason: str
    ) -> "DocumentFormatError":
        return cls(
            code=ErrorCode.DOCUMENT_FORMAT_ERROR,
            message=f"Invalid value for '{key}' in {document}: {reason}",
            details={
                "document": document,
                "key": key,
                "value": value,
                "reason": reason,
                "section": section,
            },
        )


class EntrypointNotFoundError(AnchorScanError):
    """An entrypoint or the accounts struct it names could not be found."""

    @classmethod
    def entrypoint(cls, name: str, matches: int = 0) -> "EntrypointNotFoundError":
        return cls(
            code=ErrorCode.ENTRYPOINT_NOT_FOUND,
            message=f"Expected one entrypoint named '{name}', found {matches}",
            details={"name": name, "matches": matches},
        )

    @classmethod
    def context_accounts(cls, name: str, context_name: str) -> "EntrypointNotFoundError":
        return cls(
            code=ErrorCode.ENTRYPOINT_NOT_FOUND,
            message=f"No context accounts struct '{context_name}' for entrypoint '{name}'",
            details={"name": name, "context_name": context_name},
        )


class SourceReadError(AnchorScanError):
    """Source text for an entity could not be read back from disk."""

    @classmethod
    def unreadable(cls, path: str, reason: str) -> "SourceReadError":
        return cls(
            code=ErrorCode.SOURCE_UNREADABLE,
            message=f"Cannot read source file {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class InternalError(AnchorScanError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
