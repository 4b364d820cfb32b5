"""
Test helper classes for reducing duplicate code across test modules
"""
from datetime import datetime, timezone

from imapclient.response_types import Address, Envelope

from mailconsole.core.models import SentMessage


class ScriptedPrompt:
    """Prompt that replays a fixed list of answers, then behaves like EOF"""

    def __init__(self, answers):
        self.answers = list(answers)
        self.asked = []

    def ask(self, message):
        self.asked.append(message)
        if not self.answers:
            return None
        return self.answers.pop(0)


class StubTransport:
    """SMTP client stand-in that records sends"""

    def __init__(self, error=None):
        self.error = error
        self.sent = []

    def send_email(self, to_email, subject, body, from_email=None):
        if self.error is not None:
            raise self.error
        self.sent.append((to_email, subject, body, from_email))


class StubReader:
    """IMAP reader stand-in returning canned summaries"""

    def __init__(self, summaries=None, error=None):
        self.summaries = summaries or []
        self.error = error
        self.calls = []

    def fetch_recent(self, mailbox="INBOX", message_range="5:1"):
        self.calls.append((mailbox, message_range))
        if self.error is not None:
            raise self.error
        return list(self.summaries)


class EnvelopeTestHelper:
    """Helper methods for building imapclient envelopes"""

    @staticmethod
    def create_envelope(
        mailbox=b"alice",
        host=b"example.com",
        subject=b"Hello",
        date=datetime(2025, 10, 2, 10, 30, tzinfo=timezone.utc),
    ):
        from_ = None
        if mailbox is not None:
            from_ = (Address(name=b"Alice", route=None, mailbox=mailbox, host=host),)
        return Envelope(
            date=date,
            subject=subject,
            from_=from_,
            sender=from_,
            reply_to=from_,
            to=None,
            cc=None,
            bcc=None,
            in_reply_to=None,
            message_id=b"<1@example.com>",
        )

    @staticmethod
    def fetch_response(envelopes):
        """Build a FETCH response dict keyed by sequence number"""
        return {
            seq: {b"SEQ": seq, b"ENVELOPE": envelope}
            for seq, envelope in envelopes.items()
        }


def make_messages(count=2):
    """Create sent messages with distinct fields"""
    return [
        SentMessage(
            recipient=f"user{i}@example.com",
            subject=f"Subject {i}",
            body=f"Body {i}",
        )
        for i in range(count)
    ]
