"""Command-line entry point."""

import argparse
from pathlib import Path
from typing import List, Optional

from rich.markup import escape

from mailconsole import __version__
from mailconsole.controller import MailConsole
from mailconsole.core.imap_client import get_imap_reader
from mailconsole.core.ledger import SentMailLedger
from mailconsole.core.smtp_client import get_smtp_client
from mailconsole.utils.config import AppConfig, ConfigManager, get_secret
from mailconsole.utils.console import get_console
from mailconsole.utils.errors import MailConsoleError, format_error_message
from mailconsole.utils.logging import get_logger, init_logging

logger = get_logger(__name__)


def setup_argument_parser() -> argparse.ArgumentParser:
    """Configure and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="mailconsole",
        description="Send email over SMTP, list sent email, and list recent inbox email.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config.json (default: ~/.mailconsole/config.json)",
    )
    parser.add_argument(
        "--ledger",
        type=Path,
        default=None,
        help="Path to the sent email log (default: emails.json)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="File log level (overrides config)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def build_app(config: AppConfig, ledger_path: Optional[Path] = None) -> MailConsole:
    """Wire the ledger and adapter factories from the configuration."""
    account = config.account
    ledger = SentMailLedger(ledger_path or Path(config.ledger.path))

    return MailConsole(
        ledger=ledger,
        smtp_factory=lambda: get_smtp_client(config, get_secret("smtp")),
        imap_factory=lambda: get_imap_reader(config, get_secret("imap")),
        sender=account.email or None,
        mailbox=account.mailbox,
        message_range=account.inbox_range,
        console=get_console(),
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 = success, 1 = configuration could not be loaded)
    """
    args = setup_argument_parser().parse_args(argv)
    console = get_console()

    try:
        config = ConfigManager(args.config).config
        init_logging(
            args.log_level or config.logging.log_level,
            console_level=config.logging.console_level,
            max_file_size=config.logging.max_file_size,
            backup_count=config.logging.backup_count,
        )
    except MailConsoleError as e:
        logger.error(f"Startup failed: {e.message}")
        console.print(f"[red]Error: {escape(format_error_message(e))}[/red]")
        return 1
    except ValueError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    app = build_app(config, args.ledger)
    app.run()
    return 0
