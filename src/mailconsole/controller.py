"""Interactive menu loop tying the adapters and the ledger together."""

from enum import Enum
from typing import Callable, Optional

from rich.console import Console

from mailconsole.core.imap_client import DEFAULT_MAILBOX, DEFAULT_RANGE, IMAPReader, format_summaries
from mailconsole.core.ledger import SentMailLedger
from mailconsole.core.models import SentMessage
from mailconsole.core.smtp_client import SMTPClient
from mailconsole.ui import InboxDisplay, InputPrompt, MenuDisplay, SentEmailsDisplay, StatusMessage
from mailconsole.utils.console import get_console
from mailconsole.utils.errors import ErrorHandler, InputError, MailConsoleError, PersistError, format_error_message
from mailconsole.utils.logging import get_logger

logger = get_logger(__name__)

INVALID_OPTION = "Invalid option. Please select 1, 2, 3, or 4."


class State(Enum):
    """Controller states while the menu loop is running."""

    MENU = "menu"
    AWAIT_RECIPIENT = "await_recipient"
    AWAIT_SUBJECT = "await_subject"
    AWAIT_BODY = "await_body"


class MailConsole:
    """Console controller for the send / list sent / list inbox menu.

    Adapters are built per call through the factories so a missing secret or
    host only fails the action that needs it.
    """

    def __init__(
        self,
        ledger: SentMailLedger,
        smtp_factory: Callable[[], SMTPClient],
        imap_factory: Callable[[], IMAPReader],
        sender: Optional[str] = None,
        mailbox: str = DEFAULT_MAILBOX,
        message_range: str = DEFAULT_RANGE,
        console: Optional[Console] = None,
        prompt: Optional[InputPrompt] = None,
    ):
        self.ledger = ledger
        self.smtp_factory = smtp_factory
        self.imap_factory = imap_factory
        self.sender = sender
        self.mailbox = mailbox
        self.message_range = message_range
        self.console = console or get_console()
        self.prompt = prompt or InputPrompt(self.console)
        self.status = StatusMessage(self.console)
        self.menu = MenuDisplay(self.console)
        self.state = State.MENU
        self._actions = {
            "1": self.send_email,
            "2": self.display_sent_emails,
            "3": self.display_inbox_emails,
        }

    def run(self) -> None:
        """Load the ledger, then serve menu choices until quit or end of input."""
        self.ledger.load()
        if self.ledger.load_error is not None:
            self.status.warning(
                f"{self.ledger.load_error.message}; starting with an empty list"
            )

        self.menu.welcome()

        while True:
            self.state = State.MENU
            self.menu.show()

            choice = self._read(State.MENU, "Option")
            if choice is None or choice == "4":
                logger.info("Quit requested")
                break

            action = self._actions.get(choice)
            if action is None:
                self.status.info(INVALID_OPTION)
                continue

            action()

    def _read(self, state: State, message: str) -> Optional[str]:
        self.state = state
        try:
            return self.prompt.ask(message)
        except InputError as e:
            ErrorHandler.handle(e, "Read input")
            self.status.error(format_error_message(e))
            return None

    def send_email(self) -> bool:
        """Prompt for recipient, subject and body, send, then record the message.

        Returns:
            True if the message was sent and recorded
        """
        recipient = self._read(State.AWAIT_RECIPIENT, "Enter recipient email")
        if recipient is None:
            self.status.warning("Send cancelled")
            return False

        subject = self._read(State.AWAIT_SUBJECT, "Enter subject")
        if subject is None:
            self.status.warning("Send cancelled")
            return False

        body = self._read(State.AWAIT_BODY, "Enter body")
        if body is None:
            self.status.warning("Send cancelled")
            return False

        self.state = State.MENU

        try:
            client = self.smtp_factory()
            client.send_email(recipient, subject, body, from_email=self.sender)
        except MailConsoleError as e:
            ErrorHandler.handle(e, "Send email")
            self.status.error(format_error_message(e))
            return False

        try:
            self.ledger.append(
                SentMessage(recipient=recipient, subject=subject, body=body)
            )
        except PersistError as e:
            ErrorHandler.handle(e, "Record sent email")
            self.status.error(f"Email sent but not recorded: {format_error_message(e)}")
            return False

        self.status.success("Email sent successfully!")
        return True

    def display_sent_emails(self) -> None:
        SentEmailsDisplay(self.console).display(self.ledger)

    def display_inbox_emails(self) -> bool:
        """Fetch and print the most recent inbox envelopes.

        Returns:
            True if the fetch succeeded (including an empty mailbox)
        """
        try:
            reader = self.imap_factory()
            summaries = reader.fetch_recent(self.mailbox, self.message_range)
        except MailConsoleError as e:
            ErrorHandler.handle(e, "Fetch inbox")
            self.status.error(format_error_message(e))
            return False

        InboxDisplay(self.console).display(format_summaries(summaries), self.mailbox)
        return True
