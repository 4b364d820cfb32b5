"""User prompt components."""

from typing import Optional

from rich.console import Console
from rich.prompt import Prompt

from mailconsole.utils.console import get_console
from mailconsole.utils.errors import InputError


class InputPrompt:
    """Single-line text input prompt.

    Used by: the menu choice and every step of the send flow.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or get_console()

    def ask(self, message: str) -> Optional[str]:
        """Read one line of input.

        Args:
            message: Prompt message

        Returns:
            The line with surrounding whitespace removed, or None if input
            was closed (EOF) or interrupted

        Raises:
            InputError: If reading from the terminal fails
        """
        try:
            value = Prompt.ask(
                message, console=self.console, default="", show_default=False
            )
        except (KeyboardInterrupt, EOFError):
            return None
        except OSError as e:
            raise InputError(f"Failed to read input: {e}") from e

        return (value or "").strip()
