"""Menu, sent-mail and inbox rendering."""

from typing import Iterable, Optional

from rich.console import Console
from rich.markup import escape

from mailconsole.core.models import SentMessage
from mailconsole.utils.console import get_console

MENU_OPTIONS = (
    ("1", "Send an email"),
    ("2", "Display sent emails"),
    ("3", "Display inbox emails"),
    ("4", "Quit"),
)

SEPARATOR = "----------------------------"


class MenuDisplay:
    """Main menu component."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or get_console()

    def welcome(self) -> None:
        self.console.print("[bold]Welcome to the Email Application![/bold]")

    def show(self) -> None:
        self.console.print("Choose an option:")
        for key, label in MENU_OPTIONS:
            self.console.print(f"[cyan]{key}.[/cyan] {label}")


class SentEmailsDisplay:
    """Lists the sent-mail ledger, oldest first."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or get_console()

    def display(self, messages: Iterable[SentMessage]) -> None:
        shown = 0
        for index, message in enumerate(messages, start=1):
            self.console.print(f"[bold]Email #{index}[/bold]")
            self.console.print(f"Recipient: {escape(message.recipient)}")
            self.console.print(f"Subject: {escape(message.subject)}")
            self.console.print(f"Body: {escape(message.body)}")
            self.console.print(SEPARATOR)
            shown += 1

        if shown == 0:
            self.console.print("[yellow]No sent emails yet.[/yellow]")


class InboxDisplay:
    """Prints formatted inbox summaries."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or get_console()

    def display(self, blocks: Iterable[str], mailbox: str = "INBOX") -> None:
        """Print each pre-formatted summary block.

        Args:
            blocks: Formatted summaries
            mailbox: Mailbox name used in the empty message
        """
        blocks = list(blocks)
        if not blocks:
            self.console.print(f"[yellow]No emails found in the {escape(mailbox)}.[/yellow]")
            return

        self.console.print("List of emails:")
        for block in blocks:
            self.console.print()
            self.console.print(escape(block))
