"""Configuration manager for persistent settings stored as JSON.

Account secrets are never written to the config file. They are read from
the environment (optionally populated from a ``.env`` file) via
:func:`get_secret`.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .errors import (
    ConfigurationError,
    FileSystemError,
    InvalidConfigError,
    MailConsoleError,
    MissingConfigError,
    MissingCredentialsError,
)
from .logging import get_logger, log_call
from .paths import CONFIG_PATH, DEFAULT_LEDGER_PATH

logger = get_logger(__name__)

SECRET_ENV_VARS = {
    "smtp": "MAILCONSOLE_SMTP_SECRET",
    "imap": "MAILCONSOLE_IMAP_SECRET",
}


class AccountConfig(BaseModel):
    """Pydantic model for account configuration."""

    email: str = ""
    smtp_server: str = ""
    smtp_port: int = 465
    smtp_use_ssl: bool = True
    imap_server: str = ""
    imap_port: int = 993
    mailbox: str = "INBOX"
    inbox_range: str = "5:1"
    network_timeout: int = 30  # in seconds


class LedgerConfig(BaseModel):
    """Pydantic model for the sent-mail ledger."""

    path: str = str(DEFAULT_LEDGER_PATH)


class LoggingConfig(BaseModel):
    """Pydantic model for logging settings."""

    log_level: str = "INFO"
    console_level: str = "ERROR"
    max_file_size: int = 5_242_880  # 5 MB
    backup_count: int = 5


class AppConfig(BaseModel):
    """Pydantic model for overall application configuration."""

    version: str = "0.1.0"
    account: AccountConfig = Field(default_factory=AccountConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class ConfigManager:
    """Manages persistent application configuration."""

    def __init__(self, config_path: Optional[Path] = None):
        self.path = Path(config_path) if config_path else CONFIG_PATH
        self.config = self._load_or_create_config()
        logger.info(f"Configuration loaded from {self.path}")

    def _load_or_create_config(self) -> AppConfig:
        """Load configuration from file or create default if not present."""

        from pydantic import ValidationError

        if not self.path.exists():
            logger.info("No config file found, creating default configuration.")
            config = AppConfig()
            self._save_config(config)
            return config

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            config = AppConfig(**data)
            logger.debug("Configuration successfully loaded and validated.")
            return config

        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse config file: {e}")
            raise InvalidConfigError(
                f"Configuration file is not valid JSON: {str(e)}",
                details={"path": str(self.path)},
            ) from e
        except (ValidationError, TypeError) as e:
            logger.error(f"Failed to validate config file: {e}")
            raise InvalidConfigError(
                f"Configuration data does not match expected schema: {str(e)}",
                details={"path": str(self.path)},
            ) from e
        except OSError as e:
            raise FileSystemError(f"Failed to read configuration file: {str(e)}") from e

    def _save_config(self, config: Optional[AppConfig] = None):
        """Save the current configuration to file."""

        config = config or self.config

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(config.model_dump(), f, indent=2, ensure_ascii=False)
            logger.debug("Configuration successfully saved.")
        except OSError as e:
            raise FileSystemError(f"Failed to write configuration file: {str(e)}") from e

    @log_call
    def get_config(self, key_path: str, default: Any = None) -> Any:
        """Get a configuration value using dot-separated key path."""

        obj: Any = self.config
        for key in key_path.split("."):
            if not hasattr(obj, key):
                return default
            obj = getattr(obj, key)
        return obj

    @log_call
    def set_config(self, key_path: str, value: Any, persist: bool = True):
        """Set a configuration value using dot-separated key path."""

        try:
            keys = key_path.split(".")
            obj = self.config

            for key in keys[:-1]:
                if not hasattr(obj, key):
                    raise MissingConfigError(
                        f"Configuration path '{key_path}' is invalid: '{key}' not found"
                    )
                obj = getattr(obj, key)

            if not hasattr(obj, keys[-1]):
                raise MissingConfigError(
                    f"Configuration key '{keys[-1]}' does not exist in path '{key_path}'"
                )

            setattr(obj, keys[-1], value)

            if persist:
                self._save_config()

            logger.info(f"Config key '{key_path}' updated and saved.")

        except MailConsoleError:
            raise
        except Exception as e:
            raise ConfigurationError(
                f"Failed to set configuration key '{key_path}': {str(e)}"
            ) from e


def get_secret(service: str) -> str:
    """Return the account secret for ``service`` ("smtp" or "imap").

    The IMAP secret falls back to the SMTP secret when it is not set, so a
    single app password can serve both.

    Raises:
        MissingCredentialsError: If no secret is configured
    """
    if service not in SECRET_ENV_VARS:
        raise ValueError(f"Unknown service: {service}")

    load_dotenv()

    secret = os.getenv(SECRET_ENV_VARS[service], "")
    if not secret and service == "imap":
        secret = os.getenv(SECRET_ENV_VARS["smtp"], "")

    if not secret:
        raise MissingCredentialsError(
            f"No {service.upper()} secret configured; set {SECRET_ENV_VARS[service]}",
            details={"service": service},
        )

    return secret
