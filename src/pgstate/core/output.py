"""Console output for pgstate commands.

Status lines go to stdout, except warnings and errors which go to stderr
so that machine-readable output (``extension import``, ``extension
exists``) stays clean. Every line is tagged with its level.
"""

from enum import IntEnum
from typing import Any, Iterable, Optional

from rich import box
from rich.console import Console as RichConsole
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table


class Verbosity(IntEnum):
    """Output verbosity levels."""
    QUIET = 0    # Errors and warnings only
    NORMAL = 1
    VERBOSE = 2
    DEBUG = 3    # Every SQL statement sent


# level -> (tag markup, minimum verbosity, to stderr)
_LEVELS: dict[str, tuple[str, Verbosity, bool]] = {
    "error": ("[red][ERROR][/red]", Verbosity.QUIET, True),
    "warn": ("[yellow][WARN][/yellow]", Verbosity.QUIET, True),
    "info": ("[green][INFO][/green]", Verbosity.NORMAL, False),
    "success": ("[green][OK][/green]", Verbosity.NORMAL, False),
    "step": ("[blue]->[/blue]", Verbosity.NORMAL, False),
    "hint": ("[cyan]Hint:[/cyan]", Verbosity.QUIET, False),
    "verbose": ("[dim][VERBOSE][/dim]", Verbosity.VERBOSE, False),
    "debug": ("[cyan][DEBUG][/cyan]", Verbosity.DEBUG, False),
}


class Console:
    """Level-aware wrapper around a pair of rich consoles."""

    def __init__(self) -> None:
        self.verbosity = Verbosity.NORMAL
        self.no_color = False
        self._out, self._err = self._make_consoles(no_color=False)

    @staticmethod
    def _make_consoles(no_color: bool) -> tuple[RichConsole, RichConsole]:
        return (
            RichConsole(highlight=False, no_color=no_color),
            RichConsole(stderr=True, highlight=False, no_color=no_color),
        )

    def configure(self, verbosity: int = Verbosity.NORMAL, no_color: bool = False) -> None:
        """Set verbosity (clamped to the known levels) and color mode."""
        self.verbosity = Verbosity(max(Verbosity.QUIET, min(verbosity, Verbosity.DEBUG)))
        if no_color != self.no_color:
            self._out, self._err = self._make_consoles(no_color)
            self.no_color = no_color

    def _emit(self, level: str, message: str) -> None:
        tag, minimum, to_stderr = _LEVELS[level]
        if self.verbosity < minimum:
            return
        target = self._err if to_stderr else self._out
        target.print(f"{tag} {message}")

    def error(self, message: str) -> None:
        self._emit("error", message)

    def warn(self, message: str) -> None:
        self._emit("warn", message)

    def info(self, message: str) -> None:
        self._emit("info", message)

    def success(self, message: str) -> None:
        self._emit("success", message)

    def step(self, message: str) -> None:
        """Announce a catalog change about to be made."""
        self._emit("step", message)

    def hint(self, message: str) -> None:
        self._emit("hint", message)

    def verbose(self, message: str) -> None:
        self._emit("verbose", message)

    def debug(self, message: str) -> None:
        self._emit("debug", message)

    def print(self, message: Any = "", **kwargs: Any) -> None:
        """Print to stdout regardless of verbosity."""
        self._out.print(message, **kwargs)

    def table(
        self,
        title: str,
        columns: list[str],
        rows: Iterable[list[str]],
    ) -> None:
        """Print rows as a table, one column per header."""
        table = Table(title=title, box=box.SIMPLE_HEAVY)
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*row)
        self._out.print(table)

    def yaml(self, yaml_text: str, title: str = "Configuration") -> None:
        """Print YAML in a titled panel."""
        syntax = Syntax(yaml_text, "yaml", theme="ansi_dark", line_numbers=False)
        self._out.print(Panel(syntax, title=title, border_style="cyan"))

    def summary(self, title: str, items: dict[str, Optional[Any]]) -> None:
        """Print key/value pairs in a panel; None is shown as a dash."""
        lines = [
            f"[bold]{key}:[/bold] {'[dim]-[/dim]' if value is None else value}"
            for key, value in items.items()
        ]
        self._out.print(Panel("\n".join(lines), title=title, border_style="blue"))

    def confirm(self, message: str, default: bool = False) -> bool:
        """Ask a yes/no question on the terminal.

        End of input counts as "no".
        """
        suffix = escape("[Y/n]" if default else "[y/N]")
        try:
            answer = self._out.input(f"{message} {suffix}: ")
        except (EOFError, KeyboardInterrupt):
            return False

        answer = answer.strip().lower()
        if not answer:
            return default
        return answer in ("y", "yes")


# Global console instance
console = Console()
