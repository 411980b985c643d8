"""pgstate configuration.

Connection and audit settings live in a YAML file (default
/etc/pgstate/config.yaml) and are validated with pydantic. The database
password is never read from that file: it comes from PGSTATE_PASSWORD
(environment or .env), or libpq falls back to ~/.pgpass.
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from pgstate.core.exceptions import ConfigurationError, PGStateError
from pgstate.core.validation import (
    validate_object_name,
    validate_port,
    validate_sslmode,
    validate_version_string,
)


# Default configuration paths
DEFAULT_CONFIG_PATH = Path("/etc/pgstate/config.yaml")
DEFAULT_AUDIT_LOG_PATH = Path("/var/log/pgstate/audit.log")


class PostgresConfig(BaseModel):
    """Connection settings for the target PostgreSQL database."""

    host: str = "127.0.0.1"
    port: int = 5432
    database: str = "postgres"
    user: str = "postgres"
    sslmode: str = "prefer"
    connect_timeout: int = 10
    application_name: str = "pgstate"

    # Skip server version detection and assume this version instead
    expected_version: Optional[str] = None

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        return validate_port(v)

    @field_validator("database", "user")
    @classmethod
    def validate_names(cls, v: str) -> str:
        return validate_object_name(v, "database object")

    @field_validator("sslmode")
    @classmethod
    def validate_sslmode(cls, v: str) -> str:
        return validate_sslmode(v)

    @field_validator("connect_timeout")
    @classmethod
    def validate_connect_timeout(cls, v: int) -> int:
        if v < 0:
            raise ValueError("connect_timeout must be 0 (wait forever) or positive")
        return v

    @field_validator("expected_version")
    @classmethod
    def validate_expected_version(cls, v: Optional[str]) -> Optional[str]:
        return validate_version_string(v)

    @property
    def target_key(self) -> str:
        """Key identifying the logical target database (used for catalog locks)."""
        return f"{self.host}:{self.port}/{self.database}"


class AuditConfig(BaseModel):
    """Audit trail configuration."""

    enabled: bool = True
    log_path: Path = DEFAULT_AUDIT_LOG_PATH
    max_size_mb: int = 100
    backup_count: int = 10

    @field_validator("max_size_mb", "backup_count")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v


class StateConfig(BaseModel):
    """Contents of the configuration file."""

    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)

    @classmethod
    def load(cls, path: Path) -> "StateConfig":
        """Read and validate a YAML configuration file.

        Raises:
            ConfigurationError: If the file is missing, unreadable, not a
                YAML mapping, or holds invalid values
        """
        try:
            text = path.read_text()
        except FileNotFoundError:
            raise ConfigurationError(
                f"Configuration file not found: {path}",
                hint="Create it with: pgstate config init",
            ) from None
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read configuration file: {path}",
                hint="Check file permissions",
                details=[str(e)],
            ) from e

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file: {path}",
                details=[str(e)],
            ) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration file must contain a mapping, got {type(data).__name__}: {path}",
            )

        try:
            return cls.model_validate(data)
        except (PydanticValidationError, PGStateError) as e:
            raise ConfigurationError(
                f"Invalid configuration in {path}",
                details=str(e).splitlines(),
            ) from e

    @classmethod
    def load_or_default(cls, path: Optional[Path] = None) -> "StateConfig":
        """Load the file if it exists, otherwise use built-in defaults."""
        path = path or DEFAULT_CONFIG_PATH
        return cls.load(path) if path.exists() else cls()

    def to_yaml(self) -> str:
        """Render as YAML; unset optional values are left out."""
        return yaml.safe_dump(
            self.model_dump(mode="json", exclude_none=True),
            default_flow_style=False,
            sort_keys=False,
        )


class SecretsConfig(BaseSettings):
    """Secrets read from the environment or a local .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    pgstate_password: Optional[str] = Field(None, alias="PGSTATE_PASSWORD")


class AppConfig:
    """File settings plus secrets, as used by commands and the executor."""

    def __init__(
        self,
        config_path: Optional[Path] = None,
        config: Optional[StateConfig] = None,
    ) -> None:
        """Load settings and secrets.

        Args:
            config_path: YAML file to load (default location if None)
            config: Already loaded settings; config_path is then not read
        """
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self._config = config if config is not None else StateConfig.load_or_default(self.config_path)
        self._secrets = SecretsConfig()

    @property
    def config(self) -> StateConfig:
        return self._config

    @property
    def secrets(self) -> SecretsConfig:
        return self._secrets

    @property
    def postgres(self) -> PostgresConfig:
        return self._config.postgres

    @property
    def audit(self) -> AuditConfig:
        return self._config.audit

    def conninfo_kwargs(self) -> dict[str, object]:
        """Keyword arguments for psycopg.connect().

        The password is only included when PGSTATE_PASSWORD is set.
        """
        pg = self.postgres
        kwargs: dict[str, object] = {
            "host": pg.host,
            "port": pg.port,
            "dbname": pg.database,
            "user": pg.user,
            "sslmode": pg.sslmode,
            "connect_timeout": pg.connect_timeout,
            "application_name": pg.application_name,
        }
        if self._secrets.pgstate_password:
            kwargs["password"] = self._secrets.pgstate_password
        return kwargs


EXAMPLE_CONFIG = """\
# pgstate configuration
# The password is read from PGSTATE_PASSWORD (or ~/.pgpass), never from here

# Database whose catalog is managed
postgres:
  host: 127.0.0.1
  port: 5432
  database: postgres
  user: postgres
  sslmode: prefer          # disable, allow, prefer, require, verify-ca, verify-full
  connect_timeout: 10      # seconds; 0 waits forever
  application_name: pgstate
  # Assume this server version instead of asking the server
  # expected_version: "16.2"

# JSON lines record of every catalog change
audit:
  enabled: true
  log_path: /var/log/pgstate/audit.log
  max_size_mb: 100
  backup_count: 10
"""


def get_example_config() -> str:
    """Commented example configuration file."""
    return EXAMPLE_CONFIG


def init_config(path: Path, force: bool = False) -> None:
    """Write the example configuration to path, readable by the owner only.

    Raises:
        ConfigurationError: If path exists and force is False
    """
    if path.exists() and not force:
        raise ConfigurationError(
            f"Configuration file already exists: {path}",
            hint="Use --force to overwrite",
        )

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(EXAMPLE_CONFIG)
    os.chmod(path, 0o600)
