"""
Tests for CLI argument handling and startup

Tests cover:
- Argument parsing
- Startup failure exit codes
- Application wiring from configuration
"""
import json
from pathlib import Path
from unittest.mock import patch

import pytest

from mailconsole.cli import build_app, main, setup_argument_parser
from mailconsole.core.imap_client import IMAPReader
from mailconsole.core.smtp_client import SMTPClient
from mailconsole.utils.errors import MissingConfigError, MissingCredentialsError


class TestArgumentParsing:
    """Tests for the argument parser"""

    def test_defaults(self):
        args = setup_argument_parser().parse_args([])

        assert args.config is None
        assert args.ledger is None
        assert args.log_level is None

    def test_paths_and_log_level(self):
        args = setup_argument_parser().parse_args(
            ["--config", "cfg.json", "--ledger", "sent.json", "--log-level", "DEBUG"]
        )

        assert args.config == Path("cfg.json")
        assert args.ledger == Path("sent.json")
        assert args.log_level == "DEBUG"

    def test_rejects_unknown_log_level(self):
        with pytest.raises(SystemExit):
            setup_argument_parser().parse_args(["--log-level", "LOUD"])


class TestMain:
    """Tests for the main entry point"""

    def test_invalid_config_exits_with_one(self, tmp_path, console):
        config_path = tmp_path / "config.json"
        config_path.write_text("{broken", encoding="utf-8")

        with patch("mailconsole.cli.get_console", return_value=console):
            code = main(["--config", str(config_path)])

        assert code == 1
        assert "Error: Configuration file is not valid JSON" in console.file.getvalue()

    @patch("mailconsole.cli.init_logging")
    @patch("mailconsole.cli.build_app")
    def test_runs_app_and_exits_with_zero(self, mock_build, mock_logging, tmp_path):
        config_path = tmp_path / "config.json"
        ledger_path = tmp_path / "sent.json"

        code = main(["--config", str(config_path), "--ledger", str(ledger_path)])

        assert code == 0
        mock_build.assert_called_once()
        assert mock_build.call_args.args[1] == ledger_path
        mock_build.return_value.run.assert_called_once()

    @patch("mailconsole.cli.init_logging")
    @patch("mailconsole.cli.build_app")
    def test_log_level_flag_overrides_config(self, mock_build, mock_logging, tmp_path):
        config_path = tmp_path / "config.json"

        main(["--config", str(config_path), "--log-level", "DEBUG"])

        assert mock_logging.call_args.args[0] == "DEBUG"
        assert mock_logging.call_args.kwargs["console_level"] == "ERROR"


class TestBuildApp:
    """Tests for wiring the controller from configuration"""

    def test_uses_configured_ledger_path(self, test_config, ledger_path):
        app = build_app(test_config)

        assert app.ledger.path == ledger_path
        assert app.sender == "sender@example.com"
        assert app.mailbox == "INBOX"
        assert app.message_range == "5:1"

    def test_ledger_override(self, test_config, tmp_path):
        app = build_app(test_config, tmp_path / "other.json")

        assert app.ledger.path == tmp_path / "other.json"

    def test_factories_build_adapters(self, test_config, monkeypatch):
        monkeypatch.setenv("MAILCONSOLE_SMTP_SECRET", "app-password")

        with patch("mailconsole.utils.config.load_dotenv"):
            smtp = build_app(test_config).smtp_factory()
            imap = build_app(test_config).imap_factory()

        assert isinstance(smtp, SMTPClient)
        assert smtp.host == "smtp.example.com"
        assert smtp.port == 465
        assert isinstance(imap, IMAPReader)
        assert imap.host == "imap.example.com"
        assert imap.credentials.secret == "app-password"

    def test_missing_secret_fails_only_when_used(self, test_config):
        with patch("mailconsole.utils.config.load_dotenv"):
            app = build_app(test_config)

            with pytest.raises(MissingCredentialsError):
                app.smtp_factory()

    def test_missing_host_fails_only_when_used(self, test_config, monkeypatch):
        monkeypatch.setenv("MAILCONSOLE_SMTP_SECRET", "app-password")
        test_config.account.imap_server = ""
        app = build_app(test_config)

        with patch("mailconsole.utils.config.load_dotenv"):
            assert isinstance(app.smtp_factory(), SMTPClient)
            with pytest.raises(MissingConfigError):
                app.imap_factory()
