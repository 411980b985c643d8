"""Custom exceptions for pgstate.

All exceptions provide:
- Clear error messages
- Optional hints for resolution
- Optional details for debugging
- An ErrorKind tag for programmatic dispatch
- Exit codes for proper shell integration
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Category of a pgstate failure."""
    GENERIC = "generic"
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    UNSUPPORTED_FEATURE = "unsupported_feature"
    EXECUTION = "execution"
    NOT_FOUND = "not_found"


class PGStateError(Exception):
    """Base exception for all pgstate errors.

    Attributes:
        message: Human-readable error description
        hint: Suggested action to resolve the error
        details: Additional context for debugging
        cause: Underlying exception (driver error, etc.), if any
        exit_code: Shell exit code (1-127)
        kind: Error category
    """

    exit_code: int = 1
    kind: ErrorKind = ErrorKind.GENERIC

    def __init__(
        self,
        message: str,
        *,
        hint: Optional[str] = None,
        details: Optional[list[str]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or []
        self.cause = cause

    def __str__(self) -> str:
        return self.message


class ConfigurationError(PGStateError):
    """Configuration file or settings errors.

    Raised when:
    - Config file not found or unreadable
    - Invalid YAML syntax
    - Invalid configuration values
    """
    exit_code = 2
    kind = ErrorKind.CONFIGURATION


class ValidationError(PGStateError):
    """Input validation errors.

    Raised before any statement reaches the server, when:
    - An object name is empty, too long or contains a NUL byte
    - An update would move an extension to an empty schema
    - An update tries to rename an extension
    """
    exit_code = 3
    kind = ErrorKind.VALIDATION


class UnsupportedFeatureError(PGStateError):
    """The target server lacks a capability.

    Raised when the detected (or configured) PostgreSQL version is older
    than the first release supporting the requested feature. Not retryable.
    """
    exit_code = 4
    kind = ErrorKind.UNSUPPORTED_FEATURE

    def __init__(
        self,
        message: str,
        *,
        feature: Optional[str] = None,
        server_version: Optional[str] = None,
        hint: Optional[str] = None,
        details: Optional[list[str]] = None,
    ) -> None:
        super().__init__(message, hint=hint, details=details)
        self.feature = feature
        self.server_version = server_version


class ExecutionError(PGStateError):
    """SQL execution failures.

    Raised when:
    - The connection cannot be opened
    - A statement or query fails on the server

    The original driver exception is kept in ``cause``.
    """
    exit_code = 5
    kind = ErrorKind.EXECUTION

    def __init__(
        self,
        message: str,
        *,
        statement: Optional[str] = None,
        sqlstate: Optional[str] = None,
        cause: Optional[BaseException] = None,
        hint: Optional[str] = None,
        details: Optional[list[str]] = None,
    ) -> None:
        details = list(details or [])
        if sqlstate:
            details.append(f"SQLSTATE: {sqlstate}")
        if statement:
            details.append(f"Statement: {statement}")
        super().__init__(message, hint=hint, details=details, cause=cause)
        self.statement = statement
        self.sqlstate = sqlstate


class NotFoundError(PGStateError):
    """A catalog object that was asked for explicitly does not exist.

    The reconciler reports absence by returning None; this is only raised
    where absence is a failure for the caller (import, CLI lookups).
    """
    exit_code = 6
    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        message: str,
        *,
        object_type: Optional[str] = None,
        object_name: Optional[str] = None,
        hint: Optional[str] = None,
        details: Optional[list[str]] = None,
    ) -> None:
        super().__init__(message, hint=hint, details=details)
        self.object_type = object_type
        self.object_name = object_name
