"""Unit tests for the audit logger."""

import json

from pgstate.core.audit import (
    AuditEvent,
    AuditEventType,
    AuditLogger,
    AuditResult,
    configure_audit_logger,
    get_audit_logger,
)
from pgstate.core.config import AuditConfig


def _lines(path):
    return [json.loads(line) for line in path.read_text().splitlines()]


class TestAuditLogger:
    """Tests for JSON audit records."""

    def test_log_success(self, tmp_path):
        path = tmp_path / "audit.log"
        audit = AuditLogger(log_path=path)
        audit.log_success(
            AuditEventType.EXTENSION_CREATE, "extension", "hstore",
            target_database="db:5432/app",
            parameters={"name": "hstore", "schema": None, "version": None},
        )

        [record] = _lines(path)
        assert record["event_type"] == "extension.create"
        assert record["result"] == "success"
        assert record["target"] == {"database": "db:5432/app", "type": "extension", "name": "hstore"}
        assert record["parameters"]["name"] == "hstore"
        assert record["session_id"] == audit.session_id

    def test_log_failure(self, tmp_path):
        path = tmp_path / "audit.log"
        audit = AuditLogger(log_path=path)
        audit.log_failure(AuditEventType.EXTENSION_DELETE, "extension", "hstore", "boom")

        [record] = _lines(path)
        assert record["result"] == "failure"
        assert record["error"] == "boom"

    def test_sensitive_parameters_redacted(self):
        event = AuditEvent(
            event_type=AuditEventType.EXTENSION_IMPORT,
            result=AuditResult.SUCCESS,
            parameters={"password": "x", "nested": {"api_token": "y", "schema": "app"}},
        )
        data = event.to_dict()
        assert data["parameters"]["password"] == "***REDACTED***"
        assert data["parameters"]["nested"]["api_token"] == "***REDACTED***"
        assert data["parameters"]["nested"]["schema"] == "app"

    def test_correlation(self, tmp_path):
        path = tmp_path / "audit.log"
        audit = AuditLogger(log_path=path)
        with audit.correlation("extension_update") as corr_id:
            audit.log_success(AuditEventType.EXTENSION_UPDATE, "extension", "a")
            audit.log_success(AuditEventType.EXTENSION_UPDATE, "extension", "b")
        audit.log_success(AuditEventType.EXTENSION_UPDATE, "extension", "c")

        records = _lines(path)
        assert corr_id.startswith("extension_update_")
        assert [r["correlation_id"] for r in records] == [corr_id, corr_id, None]

    def test_disabled(self, tmp_path):
        path = tmp_path / "audit.log"
        AuditLogger(log_path=path, enabled=False).log_success(
            AuditEventType.EXTENSION_CREATE, "extension", "hstore",
        )
        assert not path.exists()

    def test_unwritable_location_does_not_raise(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("")
        audit = AuditLogger(log_path=blocker / "sub" / "audit.log")
        audit.log_success(AuditEventType.EXTENSION_CREATE, "extension", "hstore")

    def test_rotation(self, tmp_path):
        path = tmp_path / "audit.log"
        audit = AuditLogger(log_path=path, max_size_mb=1, backup_count=2)
        audit.max_size_bytes = 10
        audit.log_success(AuditEventType.EXTENSION_CREATE, "extension", "a")
        audit.log_success(AuditEventType.EXTENSION_CREATE, "extension", "b")

        assert path.with_suffix(".1").exists()
        assert path.with_suffix(".2").exists()
        assert path.read_text() == ""


class TestGlobalLogger:
    """Tests for the process-wide logger."""

    def test_configure(self, tmp_path):
        config = AuditConfig(log_path=tmp_path / "a.log", enabled=False, backup_count=3)
        audit = configure_audit_logger(config)
        assert get_audit_logger() is audit
        assert audit.enabled is False
        assert audit.backup_count == 3
