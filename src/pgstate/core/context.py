"""Per-invocation state shared by commands, executors and resources."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from pgstate.core.config import AppConfig, DEFAULT_CONFIG_PATH
from pgstate.core.locking import CatalogLock, get_catalog_lock
from pgstate.core.output import Console, Verbosity, console


@dataclass
class ExecutionContext:
    """What one pgstate invocation runs against and how it reports.

    Attributes:
        yes: Answer yes to confirmation prompts
        verbosity: Output level, see Verbosity
        no_color: Plain output without ANSI colors
        config_path: YAML file the configuration is read from
    """

    yes: bool = False
    verbosity: int = Verbosity.NORMAL
    no_color: bool = False
    config_path: Path = field(default_factory=lambda: DEFAULT_CONFIG_PATH)

    _config: Optional[AppConfig] = field(default=None, repr=False)
    _console: Console = field(default_factory=lambda: console, repr=False)

    def __post_init__(self) -> None:
        self._console.configure(verbosity=self.verbosity, no_color=self.no_color)

    @property
    def config(self) -> AppConfig:
        """Configuration, loaded from config_path on first use."""
        if self._config is None:
            self._config = AppConfig(config_path=self.config_path)
        return self._config

    @property
    def console(self) -> Console:
        return self._console

    @property
    def target(self) -> str:
        """Key of the configured database, e.g. "127.0.0.1:5432/postgres"."""
        return self.config.postgres.target_key

    @property
    def catalog_lock(self) -> CatalogLock:
        """Process-wide catalog lock of the configured database."""
        return get_catalog_lock(self.target)

    @property
    def is_verbose(self) -> bool:
        return self.verbosity >= Verbosity.VERBOSE

    @property
    def should_confirm(self) -> bool:
        return not self.yes


def create_context(
    yes: bool = False,
    verbose: int = 0,
    quiet: bool = False,
    no_color: bool = False,
    config: Optional[Path] = None,
) -> ExecutionContext:
    """Build a context from the common CLI options.

    ``quiet`` wins over any number of ``-v`` flags.
    """
    verbosity = Verbosity.QUIET if quiet else min(Verbosity.NORMAL + verbose, Verbosity.DEBUG)
    return ExecutionContext(
        yes=yes,
        verbosity=verbosity,
        no_color=no_color,
        config_path=config or DEFAULT_CONFIG_PATH,
    )
