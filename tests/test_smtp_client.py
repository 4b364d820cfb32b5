"""
Tests for the SMTP transport

Tests cover:
- Message construction and delivery
- Address validation before any network call
- Error mapping for auth, connection and relay rejections
"""
import smtplib
from unittest.mock import patch

import pytest

from mailconsole.core.smtp_client import SMTPClient, build_message, get_smtp_client, parse_address
from mailconsole.utils.errors import (
    AddressParseError,
    AuthenticationError,
    DeliveryError,
    MailConnectionError,
    MissingConfigError,
    MissingCredentialsError,
    SMTPError,
)


@pytest.fixture
def client(credentials):
    return SMTPClient("smtp.example.com", 465, credentials, use_ssl=True, timeout=5)


class TestSendEmail:
    """Test SMTPClient.send_email"""

    def test_send_email_success(self, client, mock_smtp_connection):
        """Test a message is built, authenticated and delivered once"""
        client.send_email("recipient@example.com", "Test Subject", "Test Body")

        mock_smtp_connection.assert_called_once()
        args, kwargs = mock_smtp_connection.call_args
        assert args == ("smtp.example.com", 465)
        assert kwargs["timeout"] == 5

        server = mock_smtp_connection.return_value
        server.login.assert_called_once_with("sender@example.com", "testpass")
        server.send_message.assert_called_once()
        server.quit.assert_called_once()

        msg = server.send_message.call_args[0][0]
        assert msg["From"] == "sender@example.com"
        assert msg["To"] == "recipient@example.com"
        assert msg["Subject"] == "Test Subject"
        assert msg.get_content_type() == "text/plain"
        assert msg.get_payload(decode=True).decode("utf-8") == "Test Body"

        kwargs = server.send_message.call_args[1]
        assert kwargs["from_addr"] == "sender@example.com"
        assert kwargs["to_addrs"] == ["recipient@example.com"]

    def test_send_email_explicit_sender(self, client, mock_smtp_connection):
        """Test the From header can differ from the login address"""
        client.send_email("a@x.com", "Hi", "Test", from_email="alias@example.com")

        msg = mock_smtp_connection.return_value.send_message.call_args[0][0]
        assert msg["From"] == "alias@example.com"

    def test_malformed_recipient_fails_before_network(self, client, mock_smtp_connection):
        """Test a bad recipient raises AddressParseError without connecting"""
        with pytest.raises(AddressParseError):
            client.send_email("not-an-email", "Hi", "Test")

        mock_smtp_connection.assert_not_called()

    def test_empty_recipient(self, client, mock_smtp_connection):
        with pytest.raises(AddressParseError):
            client.send_email("   ", "Hi", "Test")

        mock_smtp_connection.assert_not_called()

    def test_authentication_failure(self, client, mock_smtp_connection):
        """Test rejected credentials map to AuthenticationError"""
        server = mock_smtp_connection.return_value
        server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"Bad credentials")

        with pytest.raises(AuthenticationError) as exc_info:
            client.send_email("recipient@example.com", "Hi", "Test")

        assert "535" in exc_info.value.message
        server.send_message.assert_not_called()
        server.close.assert_called()

    def test_connection_refused(self, client, mock_smtp_connection):
        """Test an unreachable relay maps to MailConnectionError"""
        mock_smtp_connection.side_effect = ConnectionRefusedError("refused")

        with pytest.raises(MailConnectionError):
            client.send_email("recipient@example.com", "Hi", "Test")

    def test_connect_error(self, client, mock_smtp_connection):
        mock_smtp_connection.side_effect = smtplib.SMTPConnectError(421, b"Too busy")

        with pytest.raises(MailConnectionError):
            client.send_email("recipient@example.com", "Hi", "Test")

    def test_recipient_refused(self, client, mock_smtp_connection):
        """Test a relay rejection maps to DeliveryError and still quits"""
        server = mock_smtp_connection.return_value
        server.send_message.side_effect = smtplib.SMTPRecipientsRefused(
            {"recipient@example.com": (550, b"No such user")}
        )

        with pytest.raises(DeliveryError):
            client.send_email("recipient@example.com", "Hi", "Test")

        server.quit.assert_called_once()

    def test_data_error(self, client, mock_smtp_connection):
        server = mock_smtp_connection.return_value
        server.send_message.side_effect = smtplib.SMTPDataError(554, b"Rejected")

        with pytest.raises(DeliveryError):
            client.send_email("recipient@example.com", "Hi", "Test")

    def test_disconnect_during_send(self, client, mock_smtp_connection):
        server = mock_smtp_connection.return_value
        server.send_message.side_effect = smtplib.SMTPServerDisconnected("gone")

        with pytest.raises(MailConnectionError):
            client.send_email("recipient@example.com", "Hi", "Test")

    def test_other_smtp_error(self, client, mock_smtp_connection):
        server = mock_smtp_connection.return_value
        server.send_message.side_effect = smtplib.SMTPException("Server error")

        with pytest.raises(SMTPError):
            client.send_email("recipient@example.com", "Hi", "Test")

    def test_quit_failure_is_ignored(self, client, mock_smtp_connection):
        """Test a failing QUIT after delivery does not fail the send"""
        server = mock_smtp_connection.return_value
        server.quit.side_effect = smtplib.SMTPServerDisconnected("already closed")

        client.send_email("recipient@example.com", "Hi", "Test")

        server.send_message.assert_called_once()
        server.close.assert_called_once()

    def test_starttls_when_ssl_disabled(self, credentials):
        """Test plain SMTP upgraded with STARTTLS when implicit TLS is off"""
        client = SMTPClient("smtp.example.com", 587, credentials, use_ssl=False)

        with patch("mailconsole.core.smtp_client.smtplib.SMTP") as mock_smtp:
            client.send_email("recipient@example.com", "Hi", "Test")

        server = mock_smtp.return_value
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("sender@example.com", "testpass")
        server.send_message.assert_called_once()


class TestHelpers:
    """Test address parsing and message building"""

    def test_parse_address_valid(self):
        assert parse_address(" a@x.com ") == "a@x.com"

    def test_parse_address_invalid(self):
        with pytest.raises(AddressParseError) as exc_info:
            parse_address("not-an-email", role="sender")

        assert exc_info.value.details["role"] == "sender"

    def test_build_message_plain_text(self):
        msg = build_message("a@x.com", "b@x.com", "Grüße", "Hallo")

        assert msg.get_content_type() == "text/plain"
        assert msg.get_content_charset() == "utf-8"
        assert msg.get_payload(decode=True).decode("utf-8") == "Hallo"
        assert not msg.is_multipart()


class TestGetSMTPClient:
    """Test the client factory"""

    def test_builds_client_from_config(self, test_config):
        client = get_smtp_client(test_config, "secret")

        assert client.host == "smtp.example.com"
        assert client.port == 465
        assert client.use_ssl is True
        assert client.credentials.address == "sender@example.com"
        assert client.credentials.secret == "secret"
        assert client.timeout == 30

    def test_missing_server(self, test_config):
        test_config.account.smtp_server = ""

        with pytest.raises(MissingConfigError):
            get_smtp_client(test_config, "secret")

    def test_missing_secret(self, test_config):
        with pytest.raises(MissingCredentialsError):
            get_smtp_client(test_config, "")
