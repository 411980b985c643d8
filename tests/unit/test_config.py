"""Unit tests for configuration loading."""

import os
from pathlib import Path

import pytest

from pgstate.core.config import (
    AppConfig,
    PostgresConfig,
    StateConfig,
    get_example_config,
    init_config,
)
from pgstate.core.exceptions import ConfigurationError, ValidationError


def _write(path: Path, content: str) -> Path:
    path.write_text(content)
    return path


class TestStateConfig:
    """Tests for YAML loading."""

    def test_defaults(self):
        config = StateConfig()
        assert config.postgres.port == 5432
        assert config.postgres.expected_version is None
        assert config.audit.enabled is True

    def test_load(self, tmp_path):
        path = _write(tmp_path / "config.yaml", """
postgres:
  host: db.internal
  port: 6543
  database: app
  user: deployer
  expected_version: "15.4"
audit:
  enabled: false
""")
        config = StateConfig.load(path)
        assert config.postgres.host == "db.internal"
        assert config.postgres.port == 6543
        assert config.postgres.expected_version == "15.4"
        assert config.audit.enabled is False

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc:
            StateConfig.load(tmp_path / "nope.yaml")
        assert "pgstate config init" in exc.value.hint

    def test_invalid_yaml(self, tmp_path):
        path = _write(tmp_path / "config.yaml", "postgres: [unclosed")
        with pytest.raises(ConfigurationError) as exc:
            StateConfig.load(path)
        assert "Invalid YAML" in str(exc.value)

    def test_not_a_mapping(self, tmp_path):
        path = _write(tmp_path / "config.yaml", "- a\n- b\n")
        with pytest.raises(ConfigurationError):
            StateConfig.load(path)

    def test_invalid_values(self, tmp_path):
        """Validation failures surface as ConfigurationError."""
        for body in [
            "postgres:\n  port: 70000\n",
            "postgres:\n  sslmode: sometimes\n",
            "postgres:\n  expected_version: newest\n",
            "postgres:\n  connect_timeout: -1\n",
        ]:
            path = _write(tmp_path / "config.yaml", body)
            with pytest.raises(ConfigurationError):
                StateConfig.load(path)

    def test_load_or_default(self, tmp_path):
        config = StateConfig.load_or_default(tmp_path / "absent.yaml")
        assert config.postgres.host == "127.0.0.1"

    def test_example_config_is_loadable(self, tmp_path):
        path = _write(tmp_path / "config.yaml", get_example_config())
        config = StateConfig.load(path)
        assert config.postgres.application_name == "pgstate"

    def test_to_yaml_round_trip(self, tmp_path):
        config = StateConfig(postgres=PostgresConfig(database="app"))
        path = _write(tmp_path / "config.yaml", config.to_yaml())
        assert StateConfig.load(path).postgres.database == "app"


class TestPostgresConfig:
    """Tests for connection settings."""

    def test_target_key(self):
        pg = PostgresConfig(host="db", port=5433, database="app")
        assert pg.target_key == "db:5433/app"

    def test_direct_validation_error(self):
        with pytest.raises(ValidationError):
            PostgresConfig(port=0)


class TestAppConfig:
    """Tests for combined config and secrets."""

    def test_conninfo_without_password(self, monkeypatch, tmp_path):
        monkeypatch.delenv("PGSTATE_PASSWORD", raising=False)
        monkeypatch.chdir(tmp_path)
        app_config = AppConfig(config=StateConfig())
        kwargs = app_config.conninfo_kwargs()
        assert kwargs["dbname"] == "postgres"
        assert kwargs["application_name"] == "pgstate"
        assert "password" not in kwargs

    def test_conninfo_with_password(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PGSTATE_PASSWORD", "s3cret")
        monkeypatch.chdir(tmp_path)
        app_config = AppConfig(config=StateConfig())
        assert app_config.conninfo_kwargs()["password"] == "s3cret"

    def test_loads_from_path(self, tmp_path):
        path = _write(tmp_path / "config.yaml", "postgres:\n  database: inventory\n")
        app_config = AppConfig(config_path=path)
        assert app_config.postgres.database == "inventory"


class TestInitConfig:
    """Tests for config file creation."""

    def test_creates_file(self, tmp_path):
        path = tmp_path / "etc" / "config.yaml"
        init_config(path)
        assert path.exists()
        assert oct(os.stat(path).st_mode & 0o777) == "0o600"

    def test_refuses_overwrite(self, tmp_path):
        path = _write(tmp_path / "config.yaml", "{}")
        with pytest.raises(ConfigurationError) as exc:
            init_config(path)
        assert "--force" in exc.value.hint

    def test_force_overwrite(self, tmp_path):
        path = _write(tmp_path / "config.yaml", "{}")
        init_config(path, force=True)
        assert "postgres:" in path.read_text()
