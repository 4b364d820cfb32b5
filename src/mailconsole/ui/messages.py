"""Simple status messages (no panels)."""

from typing import Optional

from rich.console import Console
from rich.markup import escape

from mailconsole.utils.console import get_console


class StatusMessage:
    """Simple one-line status messages.

    Used by: the controller to report outcomes and failures.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or get_console()

    def success(self, message: str) -> None:
        """Print success message."""
        self.console.print(f"[green]{escape(message)}[/green]")

    def error(self, message: str) -> None:
        """Print error message."""
        self.console.print(f"[red]Error: {escape(message)}[/red]")

    def warning(self, message: str) -> None:
        """Print warning message."""
        self.console.print(f"[yellow]Warning: {escape(message)}[/yellow]")

    def info(self, message: str) -> None:
        """Print info message."""
        self.console.print(escape(message))
