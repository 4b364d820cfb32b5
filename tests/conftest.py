"""
Shared test fixtures and configuration for pytest
"""
import os
import tempfile

# Keep config and log files out of the real home directory. Must run before
# mailconsole is imported, since paths are resolved at import time.
os.environ["MAILCONSOLE_HOME"] = tempfile.mkdtemp(prefix="mailconsole-test-")

from io import StringIO
from unittest.mock import patch

import pytest
from rich.console import Console

from mailconsole.core.models import Credentials
from mailconsole.utils.config import AccountConfig, AppConfig


@pytest.fixture
def ledger_path(tmp_path):
    """Path to a not-yet-existing ledger file"""
    return tmp_path / "emails.json"


@pytest.fixture
def credentials():
    """Test account credentials"""
    return Credentials(address="sender@example.com", secret="testpass")


@pytest.fixture
def test_config(ledger_path):
    """Application config pointing at test servers"""
    return AppConfig(
        account=AccountConfig(
            email="sender@example.com",
            smtp_server="smtp.example.com",
            smtp_port=465,
            imap_server="imap.example.com",
            imap_port=993,
        ),
        ledger={"path": str(ledger_path)},
    )


@pytest.fixture
def console():
    """Console writing to an in-memory buffer; read with console.file.getvalue()"""
    return Console(file=StringIO(), width=200, color_system=None, highlight=False)


@pytest.fixture
def mock_smtp_connection():
    """Patched smtplib.SMTP_SSL returning a mock server"""
    with patch("mailconsole.core.smtp_client.smtplib.SMTP_SSL") as mock_ssl:
        server = mock_ssl.return_value
        server.login.return_value = (235, b"Authentication successful")
        server.send_message.return_value = {}
        server.quit.return_value = (221, b"Bye")
        yield mock_ssl


@pytest.fixture
def mock_imap_connection():
    """Patched IMAPClient returning a mock session"""
    with patch("mailconsole.core.imap_client.IMAPClient") as mock_imap:
        client = mock_imap.return_value
        client.login.return_value = b"Logged in"
        client.select_folder.return_value = {b"EXISTS": 10, b"UIDVALIDITY": 12345}
        client.fetch.return_value = {}
        client.logout.return_value = b"Logging out"
        yield mock_imap


@pytest.fixture(autouse=True)
def clear_env_vars():
    """Clear secret environment variables before each test"""
    env_vars = ["MAILCONSOLE_SMTP_SECRET", "MAILCONSOLE_IMAP_SECRET"]
    original = {}
    for var in env_vars:
        original[var] = os.environ.get(var)
        if var in os.environ:
            del os.environ[var]

    yield

    for var, value in original.items():
        if value is not None:
            os.environ[var] = value
        elif var in os.environ:
            del os.environ[var]
