"""Core framework components for pgstate."""

from pgstate.core.exceptions import (
    ErrorKind,
    PGStateError,
    ConfigurationError,
    ValidationError,
    UnsupportedFeatureError,
    ExecutionError,
    NotFoundError,
)

from pgstate.core.context import ExecutionContext, create_context
from pgstate.core.output import console, Console, Verbosity
from pgstate.core.config import AppConfig, StateConfig
from pgstate.core.audit import AuditLogger, AuditEvent, AuditEventType, AuditResult, get_audit_logger
from pgstate.core.features import Feature
from pgstate.core.locking import CatalogLock, CatalogLockRegistry, get_catalog_lock
from pgstate.core.executor import SQLExecutor

__all__ = [
    # Exceptions
    "ErrorKind",
    "PGStateError",
    "ConfigurationError",
    "ValidationError",
    "UnsupportedFeatureError",
    "ExecutionError",
    "NotFoundError",
    # Context
    "ExecutionContext",
    "create_context",
    # Output
    "console",
    "Console",
    "Verbosity",
    # Config
    "AppConfig",
    "StateConfig",
    # Audit
    "AuditLogger",
    "AuditEvent",
    "AuditEventType",
    "AuditResult",
    "get_audit_logger",
    # Capabilities
    "Feature",
    # Locking
    "CatalogLock",
    "CatalogLockRegistry",
    "get_catalog_lock",
    # Executor
    "SQLExecutor",
]
