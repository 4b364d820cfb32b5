"""Email domain models"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Credentials:
    """Account address and secret (password or API key)."""

    address: str
    secret: str

    def __repr__(self) -> str:
        return f"Credentials(address={self.address!r}, secret='[REDACTED]')"


@dataclass(frozen=True)
class SentMessage:
    """One outbound mail record, kept in the sent-mail ledger."""

    recipient: str
    subject: str
    body: str


@dataclass(frozen=True)
class EnvelopeSummary:
    """Envelope metadata of one inbox message.

    ``sequence`` is the mailbox-local sequence number at fetch time, not a
    stable identifier. Missing header fields are empty strings.
    """

    sequence: int
    sender: str = ""
    subject: str = ""
    date: str = ""

    def format(self) -> str:
        """Render as the three-line block shown in the inbox listing."""
        return f"From: {self.sender}\nSubject: {self.subject}\nDate: {self.date}"
