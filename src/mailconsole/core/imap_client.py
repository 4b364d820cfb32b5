"""Read-only IMAP client listing the envelopes of recent inbox messages."""

import email
import re
import ssl
import time
from contextlib import contextmanager
from email.errors import HeaderParseError
from email.header import decode_header, make_header
from email.utils import format_datetime
from typing import Iterable, Iterator, List, Optional

from imapclient import IMAPClient
from imapclient.exceptions import IMAPClientAbortError, IMAPClientError, LoginError

from mailconsole.core.models import Credentials, EnvelopeSummary
from mailconsole.utils.errors import (
    AuthenticationError,
    FetchError,
    IMAPProtocolError,
    MailboxSelectError,
    MailConnectionError,
    MissingConfigError,
    MissingCredentialsError,
)
from mailconsole.utils.logging import get_logger, log_event

logger = get_logger(__name__)

IMAP_SSL_PORT = 993
DEFAULT_MAILBOX = "INBOX"
# Five most recent messages by current sequence number, highest first
DEFAULT_RANGE = "5:1"
# The Date header is fetched verbatim; the envelope date is only a fallback
FETCH_ITEMS = ["ENVELOPE", "BODY.PEEK[HEADER.FIELDS (DATE)]"]
DATE_HEADER_PREFIX = b"BODY[HEADER.FIELDS"


## Envelope Field Extraction


def _to_text(value) -> str:
    """Convert a raw header value to text, decoding RFC 2047 encoded words."""
    if value is None:
        return ""

    if isinstance(value, bytes):
        raw = value.decode("utf-8", errors="replace")
    else:
        raw = str(value)

    try:
        return str(make_header(decode_header(raw)))
    except (HeaderParseError, LookupError, UnicodeDecodeError, ValueError):
        return raw


def _first_sender(addresses) -> str:
    """Return the mailbox-name of the first From address."""
    if not addresses:
        return ""
    return _to_text(addresses[0].mailbox)


def _format_date(value) -> str:
    if value is None:
        return ""
    if hasattr(value, "tzinfo"):
        return format_datetime(value)
    return _to_text(value)


def _raw_date(message_data) -> Optional[str]:
    """Return the Date header text exactly as sent, or None if it was not fetched.

    Folded lines are joined. A fetched header section without a Date line
    yields an empty string.
    """
    for key, value in message_data.items():
        if isinstance(key, bytes) and key.upper().startswith(DATE_HEADER_PREFIX):
            if not value:
                return ""
            text = value.decode("utf-8", errors="replace") if isinstance(value, bytes) else str(value)
            header = email.message_from_string(text).get("Date")
            if header is None:
                return ""
            return _to_text(re.sub(r"\r?\n(?=[ \t])", "", str(header))).strip()
    return None


def parse_envelope(sequence: int, envelope, raw_date: Optional[str] = None) -> EnvelopeSummary:
    """Extract sender, subject and date from an imapclient Envelope.

    ``raw_date`` is the Date header as sent and takes precedence over the
    envelope date, which imapclient has already parsed into a datetime.
    """
    return EnvelopeSummary(
        sequence=sequence,
        sender=_first_sender(envelope.from_),
        subject=_to_text(envelope.subject),
        date=raw_date if raw_date is not None else _format_date(envelope.date),
    )


def format_summaries(summaries: Iterable[EnvelopeSummary]) -> Iterator[str]:
    """Lazily render each summary as its display block."""
    for summary in summaries:
        yield summary.format()


## Session Management


@contextmanager
def imap_session(
    host: str,
    port: int,
    credentials: Credentials,
    timeout: float = 30.0,
) -> Iterator[IMAPClient]:
    """Authenticated IMAP-over-TLS session that always logs out.

    A logout failure is raised as IMAPProtocolError only when the body of the
    ``with`` block succeeded; otherwise it is logged and the original error
    propagates.

    Raises:
        MailConnectionError: If the TLS connection cannot be established
        AuthenticationError: If the server rejects the credentials
    """
    details = {"host": host, "port": port}

    try:
        client = IMAPClient(
            host,
            port=port,
            use_uid=False,
            ssl=True,
            ssl_context=ssl.create_default_context(),
            timeout=timeout,
        )
    except (IMAPClientError, OSError) as e:
        raise MailConnectionError(
            f"Failed to connect to IMAP server {host}:{port}: {e}", details=details
        ) from e

    try:
        client.login(credentials.address, credentials.secret)
    except LoginError as e:
        _shutdown_quietly(client)
        raise AuthenticationError(f"IMAP authentication failed: {e}", details=details) from e
    except (IMAPClientAbortError, OSError) as e:
        _shutdown_quietly(client)
        raise MailConnectionError(f"Connection lost during IMAP login: {e}", details=details) from e
    except IMAPClientError as e:
        _shutdown_quietly(client)
        raise AuthenticationError(f"IMAP authentication failed: {e}", details=details) from e

    # Keep server timezone offsets on parsed dates
    client.normalise_times = False
    logger.debug(f"Logged in to IMAP server {host}:{port}")

    body_failed = False
    try:
        yield client
    except BaseException:
        body_failed = True
        raise
    finally:
        try:
            client.logout()
        except (IMAPClientError, OSError) as e:
            if body_failed:
                logger.warning(f"IMAP logout failed after an earlier error: {e}")
                _shutdown_quietly(client)
            else:
                raise IMAPProtocolError(f"IMAP logout failed: {e}", details=details) from e


def _shutdown_quietly(client: IMAPClient) -> None:
    try:
        client.shutdown()
    except (IMAPClientError, OSError):
        pass


## Mailbox Reader


class IMAPReader:
    """Fetches envelope metadata for a sequence range of a mailbox."""

    def __init__(
        self,
        host: str,
        credentials: Credentials,
        port: int = IMAP_SSL_PORT,
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.credentials = credentials
        self.timeout = timeout

    def fetch_recent(
        self, mailbox: str = DEFAULT_MAILBOX, message_range: str = DEFAULT_RANGE
    ) -> List[EnvelopeSummary]:
        """Fetch envelopes for ``message_range`` of ``mailbox``.

        The range is passed to the server as written. Sequence numbers are
        only meaningful for the current session.

        Args:
            mailbox: Mailbox name to select (read-only)
            message_range: IMAP sequence set, e.g. "5:1"

        Returns:
            Summaries ordered from highest to lowest sequence number; an
            empty list when the mailbox holds no messages

        Raises:
            MailConnectionError: TLS/TCP failure or connection drop
            AuthenticationError: Login rejected
            MailboxSelectError: Mailbox could not be selected
            FetchError: FETCH command failed
            IMAPProtocolError: Logout failed after a successful fetch
        """
        fetch_start = time.time()
        details = {"host": self.host, "mailbox": mailbox, "range": message_range}

        with imap_session(self.host, self.port, self.credentials, self.timeout) as client:
            try:
                select_info = client.select_folder(mailbox, readonly=True)
            except IMAPClientAbortError as e:
                raise MailConnectionError(f"Connection lost selecting mailbox: {e}", details=details) from e
            except IMAPClientError as e:
                raise MailboxSelectError(
                    f"Failed to select mailbox '{mailbox}': {e}", details=details
                ) from e
            except OSError as e:
                raise MailConnectionError(f"Network error selecting mailbox: {e}", details=details) from e

            if select_info.get(b"EXISTS", None) == 0:
                logger.info(f"Mailbox '{mailbox}' is empty")
                return []

            try:
                response = client.fetch(message_range, FETCH_ITEMS)
            except IMAPClientAbortError as e:
                raise MailConnectionError(f"Connection lost during fetch: {e}", details=details) from e
            except IMAPClientError as e:
                raise FetchError(f"Failed to fetch '{message_range}': {e}", details=details) from e
            except OSError as e:
                raise MailConnectionError(f"Network error during fetch: {e}", details=details) from e

        summaries = []
        for sequence in sorted(response, reverse=True):
            message_data = response[sequence]
            envelope = message_data.get(b"ENVELOPE")
            if envelope is None:
                logger.debug(f"Message {sequence} returned no envelope, skipping")
                continue
            summaries.append(parse_envelope(sequence, envelope, _raw_date(message_data)))

        log_event(
            "inbox_fetched",
            "Inbox envelopes fetched",
            mailbox=mailbox,
            count=len(summaries),
            duration_seconds=round(time.time() - fetch_start, 2),
        )
        return summaries


## IMAP Reader Factory


def get_imap_reader(config, secret: str) -> IMAPReader:
    """Build an IMAPReader from the account section of the app configuration.

    Raises:
        MissingConfigError: If the IMAP host or account address is not set
        MissingCredentialsError: If the secret is empty
    """
    account = config.account
    if not account.imap_server:
        raise MissingConfigError("IMAP server is not configured (account.imap_server)")
    if not account.email:
        raise MissingConfigError("Account email is not configured (account.email)")
    if not secret:
        raise MissingCredentialsError("IMAP secret is empty")

    return IMAPReader(
        host=account.imap_server,
        credentials=Credentials(address=account.email, secret=secret),
        port=account.imap_port,
        timeout=account.network_timeout,
    )
