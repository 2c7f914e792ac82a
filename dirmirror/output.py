"""Console output formatting for dirmirror."""

import json
import sys
from typing import Any, Optional

from rich.console import Console
from rich.table import Table

from .utils import format_size


class OutputFormatter:
    """Formats messages for the terminal.

    Human-readable messages go through rich; when ``json_output`` is set the
    chatty messages are suppressed and only ``output_json`` writes to stdout.
    Errors and warnings always go to stderr.
    """

    json_output: bool = False
    quiet: bool = False

    def __init__(
        self,
        json_output: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
    ):
        self.json_output = json_output
        self.quiet = quiet
        self.console = console or Console(highlight=False, soft_wrap=True)
        self.err_console = err_console or Console(
            stderr=True, highlight=False, soft_wrap=True
        )

    @property
    def _silent(self) -> bool:
        return self.quiet or self.json_output

    def print(self, message: str = "") -> None:
        """Print a plain line."""
        if not self._silent:
            self.console.print(message, markup=False)

    def info(self, message: str) -> None:
        """Print an informational message."""
        if not self._silent:
            self.console.print(message, markup=False)

    def success(self, message: str) -> None:
        """Print a success message in green."""
        if not self._silent:
            self.console.print(message, style="green", markup=False)

    def warning(self, message: str) -> None:
        """Print a warning to stderr."""
        if not self.quiet:
            self.err_console.print(message, style="yellow", markup=False)

    def error(self, message: str) -> None:
        """Print an error to stderr, even in quiet mode."""
        self.err_console.print(message, style="bold red", markup=False)

    def format_size(self, size_bytes: int) -> str:
        return format_size(size_bytes)

    def print_summary(self, title: str, items: list[tuple[str, str]]) -> None:
        """Print a two-column summary table.

        Args:
            title: Table title
            items: (label, value) rows
        """
        if self._silent:
            return
        table = Table(title=title, show_header=False, title_justify="left")
        table.add_column("Item", style="cyan")
        table.add_column("Value")
        for label, value in items:
            table.add_row(label, value)
        self.console.print(table)

    def output_json(self, data: Any) -> None:
        """Write ``data`` as a JSON document to stdout."""
        sys.stdout.write(json.dumps(data, indent=2, default=str))
        sys.stdout.write("\n")
        sys.stdout.flush()
