"""Centralized path definitions for mailconsole.

All application paths live under a single base directory, ``~/.mailconsole``
by default. Set ``MAILCONSOLE_HOME`` to relocate it.
"""

import os
from pathlib import Path

# Base application directory
APP_DIR = Path(os.getenv("MAILCONSOLE_HOME", str(Path.home() / ".mailconsole"))).expanduser()

# Subdirectories
LOGS_DIR = APP_DIR / "logs"

# Specific files
CONFIG_PATH = APP_DIR / "config.json"
DEFAULT_LEDGER_PATH = Path("emails.json")
