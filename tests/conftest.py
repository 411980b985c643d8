"""Shared fixtures."""

from pathlib import Path

import pytest

from pgstate.core.config import AppConfig, AuditConfig, StateConfig
from pgstate.core.context import ExecutionContext
from pgstate.core.locking import CatalogLock
from pgstate.core.output import Verbosity

from tests.fakes import FakeCatalog, FakeCatalogExecutor


@pytest.fixture
def ctx(tmp_path: Path) -> ExecutionContext:
    """Quiet execution context with default config and a temp audit log."""
    config = StateConfig(audit=AuditConfig(log_path=tmp_path / "audit.log"))
    app_config = AppConfig(config_path=tmp_path / "config.yaml", config=config)
    return ExecutionContext(verbosity=Verbosity.QUIET, _config=app_config)


@pytest.fixture
def fake_catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def executor(ctx: ExecutionContext, fake_catalog: FakeCatalog) -> FakeCatalogExecutor:
    return FakeCatalogExecutor(ctx, fake_catalog)


@pytest.fixture
def lock() -> CatalogLock:
    return CatalogLock(name="127.0.0.1:5432/postgres")
