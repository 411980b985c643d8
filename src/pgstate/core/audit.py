"""Audit trail of catalog changes.

Each create/update/delete/import of a catalog object appends one JSON
line to the audit log: who ran it, against which database, with which
parameters, and whether it worked. Related records (the steps of one
update) share a correlation id.

Writing the trail never fails the catalog operation; if the log cannot
be written the problem is reported at debug verbosity.
"""

import fcntl
import json
import os
import pwd
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Generator, Optional

from pgstate.core.config import AuditConfig, DEFAULT_AUDIT_LOG_PATH
from pgstate.core.output import console


DEFAULT_MAX_SIZE_MB = 100
DEFAULT_BACKUP_COUNT = 10

REDACTED = "***REDACTED***"

# Substrings marking a parameter as secret
SENSITIVE_KEYS = frozenset({"password", "passwd", "secret", "token", "credential"})


class AuditEventType(Enum):
    """Auditable catalog operations."""
    EXTENSION_CREATE = "extension.create"
    EXTENSION_UPDATE = "extension.update"
    EXTENSION_DELETE = "extension.delete"
    EXTENSION_IMPORT = "extension.import"


class AuditResult(Enum):
    SUCCESS = "success"
    FAILURE = "failure"


def _redact(key: str, value: Any) -> Any:
    if any(marker in key.lower() for marker in SENSITIVE_KEYS):
        return REDACTED
    if isinstance(value, dict):
        return {k: _redact(k, v) for k, v in value.items()}
    if isinstance(value, list):
        return [_redact(key, v) for v in value]
    return value


def _current_user() -> tuple[int, str]:
    uid = os.getuid()
    try:
        return uid, pwd.getpwuid(uid).pw_name
    except KeyError:
        return uid, str(uid)


@dataclass
class AuditEvent:
    """One audit record."""
    event_type: AuditEventType
    result: AuditResult
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    target_database: Optional[str] = None
    target_type: Optional[str] = None
    target_name: Optional[str] = None

    parameters: dict[str, Any] = field(default_factory=dict)
    message: Optional[str] = None
    error: Optional[str] = None

    session_id: Optional[str] = None
    correlation_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Serializable form, with secret parameters redacted."""
        uid, username = _current_user()
        return {
            "event_type": self.event_type.value,
            "result": self.result.value,
            "timestamp": self.timestamp.isoformat(),
            "actor": {"uid": uid, "username": username},
            "target": {
                "database": self.target_database,
                "type": self.target_type,
                "name": self.target_name,
            },
            "parameters": _redact("parameters", self.parameters),
            "message": self.message,
            "error": self.error,
            "session_id": self.session_id,
            "correlation_id": self.correlation_id,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class AuditLogger:
    """Appends audit records to a size-rotated JSON lines file.

    Appends take an exclusive flock so concurrent pgstate processes do
    not interleave records. Correlation ids are tracked per thread.
    """

    def __init__(
        self,
        log_path: Optional[Path] = None,
        max_size_mb: int = DEFAULT_MAX_SIZE_MB,
        backup_count: int = DEFAULT_BACKUP_COUNT,
        enabled: bool = True,
    ) -> None:
        self.log_path = log_path or DEFAULT_AUDIT_LOG_PATH
        self.max_size_bytes = max_size_mb * 1024 * 1024
        self.backup_count = backup_count
        self.enabled = enabled

        self.session_id = str(uuid.uuid4())
        self._local = threading.local()

    @property
    def _correlation_ids(self) -> list[str]:
        ids = getattr(self._local, "correlation_ids", None)
        if ids is None:
            ids = self._local.correlation_ids = []
        return ids

    @contextmanager
    def correlation(self, operation: str) -> Generator[str, None, None]:
        """Tag every record logged inside the block with one correlation id.

        Usage:
            with audit.correlation("extension_update") as corr_id:
                audit.log_success(...)
        """
        correlation_id = f"{operation}_{uuid.uuid4().hex[:8]}"
        self._correlation_ids.append(correlation_id)
        try:
            yield correlation_id
        finally:
            self._correlation_ids.pop()

    def log(self, event: AuditEvent) -> None:
        """Append one event to the trail."""
        if not self.enabled:
            return

        event.session_id = self.session_id
        if self._correlation_ids:
            event.correlation_id = self._correlation_ids[-1]

        try:
            self._append(event.to_json() + "\n")
        except OSError as e:
            console.debug(f"Cannot write audit log {self.log_path}: {e}")
            return

        try:
            if self.log_path.stat().st_size > self.max_size_bytes:
                self._rotate()
        except OSError as e:
            console.debug(f"Audit log rotation failed: {e}")

    def _append(self, line: str) -> None:
        self.log_path.parent.mkdir(mode=0o750, parents=True, exist_ok=True)
        fd = os.open(self.log_path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o640)
        with os.fdopen(fd, "a") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            f.write(line)
            f.flush()
            os.fsync(f.fileno())

    def _rotate(self) -> None:
        # audit.log -> audit.1 -> audit.2 ... -> audit.<backup_count> (dropped)
        backups = [self.log_path.with_suffix(f".{i}") for i in range(1, self.backup_count + 1)]
        backups[-1].unlink(missing_ok=True)
        for older, newer in zip(reversed(backups[1:]), reversed(backups[:-1])):
            if newer.exists():
                newer.rename(older)
        self.log_path.rename(backups[0])
        self.log_path.touch(mode=0o640)

    def _record(
        self,
        event_type: AuditEventType,
        result: AuditResult,
        target_type: str,
        target_name: str,
        **fields: Any,
    ) -> None:
        parameters = fields.pop("parameters", None) or {}
        self.log(AuditEvent(
            event_type=event_type,
            result=result,
            target_type=target_type,
            target_name=target_name,
            parameters=parameters,
            **fields,
        ))

    def log_success(
        self,
        event_type: AuditEventType,
        target_type: str,
        target_name: str,
        *,
        target_database: Optional[str] = None,
        parameters: Optional[dict[str, Any]] = None,
        message: Optional[str] = None,
    ) -> None:
        self._record(
            event_type, AuditResult.SUCCESS, target_type, target_name,
            target_database=target_database, parameters=parameters, message=message,
        )

    def log_failure(
        self,
        event_type: AuditEventType,
        target_type: str,
        target_name: str,
        error: str,
        *,
        target_database: Optional[str] = None,
        parameters: Optional[dict[str, Any]] = None,
    ) -> None:
        self._record(
            event_type, AuditResult.FAILURE, target_type, target_name,
            target_database=target_database, parameters=parameters, error=error,
        )


_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Get the process-wide audit logger, creating a default one if needed."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger


def configure_audit_logger(config: AuditConfig) -> AuditLogger:
    """Replace the process-wide audit logger with one built from config."""
    global _audit_logger
    _audit_logger = AuditLogger(
        log_path=config.log_path,
        max_size_mb=config.max_size_mb,
        backup_count=config.backup_count,
        enabled=config.enabled,
    )
    return _audit_logger
