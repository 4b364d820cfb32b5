"""SMTP client for sending plain-text emails through an authenticated relay"""

import smtplib
import ssl
import time
from contextlib import contextmanager
from email.mime.text import MIMEText
from typing import Iterator, Optional

from email_validator import EmailNotValidError, validate_email

from mailconsole.core.models import Credentials
from mailconsole.utils.errors import (
    AddressParseError,
    AuthenticationError,
    DeliveryError,
    MailConnectionError,
    MissingConfigError,
    MissingCredentialsError,
    SMTPError,
)
from mailconsole.utils.logging import get_logger, log_event

logger = get_logger(__name__)


def parse_address(address: str, role: str = "recipient") -> str:
    """Validate an email address without any DNS lookup.

    Args:
        address: Address as typed by the user or configured
        role: Which header the address is for, used in the error message

    Returns:
        The normalized address

    Raises:
        AddressParseError: If the address cannot be parsed
    """
    if not address or not address.strip():
        raise AddressParseError(
            f"Invalid {role} email address: address is empty",
            details={"role": role},
        )

    try:
        return validate_email(address.strip(), check_deliverability=False).normalized
    except EmailNotValidError as e:
        raise AddressParseError(
            f"Invalid {role} email address '{address}': {e}",
            details={"role": role, "address": address},
        ) from e


def build_message(from_email: str, to_email: str, subject: str, body: str) -> MIMEText:
    """Build a single-part text/plain message."""
    msg = MIMEText(body, "plain", "utf-8")
    msg["From"] = from_email
    msg["To"] = to_email
    msg["Subject"] = subject
    return msg


@contextmanager
def smtp_connection(
    host: str,
    port: int,
    credentials: Credentials,
    use_ssl: bool = True,
    timeout: float = 30.0,
) -> Iterator[smtplib.SMTP]:
    """Context manager for an authenticated SMTP session with automatic cleanup.

    Raises:
        AuthenticationError: If the relay rejects the credentials
        MailConnectionError: If the relay cannot be reached or TLS fails
        SMTPError: For any other SMTP failure while opening the session
    """
    server = None
    details = {"host": host, "port": port}

    try:
        context = ssl.create_default_context()
        if use_ssl:
            server = smtplib.SMTP_SSL(host, port, timeout=timeout, context=context)
        else:
            server = smtplib.SMTP(host, port, timeout=timeout)
            server.starttls(context=context)

        server.login(credentials.address, credentials.secret)
        logger.debug(f"Connected to SMTP server {host}:{port}")

    except smtplib.SMTPAuthenticationError as e:
        _close_quietly(server)
        raise AuthenticationError(
            f"SMTP authentication failed: {e.smtp_code} {_decode(e.smtp_error)}",
            details=details,
        ) from e
    except (smtplib.SMTPConnectError, smtplib.SMTPServerDisconnected) as e:
        _close_quietly(server)
        raise MailConnectionError(
            f"Failed to connect to SMTP server {host}:{port}: {e}", details=details
        ) from e
    except smtplib.SMTPException as e:
        _close_quietly(server)
        raise SMTPError(f"SMTP session setup failed: {e}", details=details) from e
    except OSError as e:
        _close_quietly(server)
        raise MailConnectionError(
            f"Failed to connect to SMTP server {host}:{port}: {e}", details=details
        ) from e

    try:
        yield server
    finally:
        try:
            server.quit()
        except (smtplib.SMTPException, OSError) as e:
            logger.debug(f"Ignoring error while closing SMTP session: {e}")
            server.close()


def _close_quietly(server: Optional[smtplib.SMTP]) -> None:
    if server is None:
        return
    try:
        server.close()
    except OSError:
        pass


def _decode(value) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


class SMTPClient:
    """SMTP client that delivers one message per call, without retries."""

    def __init__(
        self,
        host: str,
        port: int,
        credentials: Credentials,
        use_ssl: bool = True,
        timeout: float = 30.0,
    ):
        """Initialize SMTP client.

        Args:
            host: Relay host name
            port: Relay port (465 for implicit TLS, 587 for STARTTLS)
            credentials: Login address and secret
            use_ssl: Use implicit TLS instead of STARTTLS
            timeout: Socket timeout in seconds
        """
        self.host = host
        self.port = port
        self.credentials = credentials
        self.use_ssl = use_ssl
        self.timeout = timeout

    def send_email(
        self,
        to_email: str,
        subject: str,
        body: str,
        from_email: Optional[str] = None,
    ) -> None:
        """Send a plain-text email via the relay.

        Args:
            to_email: Recipient email address
            subject: Email subject line
            body: Email body content
            from_email: Sender address, defaults to the login address

        Raises:
            AddressParseError: If either address is malformed (no network call is made)
            AuthenticationError: If the relay rejects the credentials
            MailConnectionError: If the relay cannot be reached
            DeliveryError: If the relay rejects the sender, recipient or data
            SMTPError: For other SMTP protocol failures
        """
        sender = parse_address(from_email or self.credentials.address, role="sender")
        recipient = parse_address(to_email, role="recipient")
        msg = build_message(sender, recipient, subject, body)

        send_start = time.time()
        details = {"host": self.host, "recipient": recipient}

        logger.info("Sending email", extra={"context": {"recipient": recipient}})

        with smtp_connection(
            self.host, self.port, self.credentials, self.use_ssl, self.timeout
        ) as server:
            try:
                server.send_message(msg, from_addr=sender, to_addrs=[recipient])

            except (
                smtplib.SMTPRecipientsRefused,
                smtplib.SMTPSenderRefused,
                smtplib.SMTPDataError,
            ) as e:
                raise DeliveryError(f"Relay rejected the message: {e}", details=details) from e
            except smtplib.SMTPServerDisconnected as e:
                raise MailConnectionError(
                    f"SMTP server disconnected during send: {e}", details=details
                ) from e
            except smtplib.SMTPException as e:
                raise SMTPError(f"Failed to send email: {e}", details=details) from e
            except OSError as e:
                raise MailConnectionError(f"Network error during send: {e}", details=details) from e

        log_event(
            "email_sent",
            "Email sent successfully",
            recipient=recipient,
            duration_seconds=round(time.time() - send_start, 2),
        )


## SMTP Client Factory


def get_smtp_client(config, secret: str) -> SMTPClient:
    """Build an SMTPClient from the account section of the app configuration.

    Raises:
        MissingConfigError: If the relay host or account address is not set
        MissingCredentialsError: If the secret is empty
    """
    account = config.account
    if not account.smtp_server:
        raise MissingConfigError("SMTP server is not configured (account.smtp_server)")
    if not account.email:
        raise MissingConfigError("Account email is not configured (account.email)")
    if not secret:
        raise MissingCredentialsError("SMTP secret is empty")

    return SMTPClient(
        host=account.smtp_server,
        port=account.smtp_port,
        credentials=Credentials(address=account.email, secret=secret),
        use_ssl=account.smtp_use_ssl,
        timeout=account.network_timeout,
    )
