"""Centralized error handling module."""

from enum import Enum
from typing import Any, Dict

from mailconsole.utils.logging import get_logger

_logger = None


def _get_logger():
    """Get logger with lazy initialisation."""
    global _logger
    if _logger is None:
        _logger = get_logger(__name__)
    return _logger


## Error Categories


class ErrorCategory(Enum):
    """Categories of errors for better handling."""

    NETWORK = "network"
    AUTHENTICATION = "authentication"
    VALIDATION = "validation"
    FILE_SYSTEM = "file_system"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


## Custom Exceptions


class MailConsoleError(Exception):
    """Base exception for all mailconsole errors."""

    category = ErrorCategory.UNKNOWN
    user_message = "An error occurred"

    def __init__(
        self, message: str | None = None, details: Dict[str, Any] | None = None
    ):
        """Initialise MailConsoleError with optional message and details."""
        self.message = message or self.user_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error details to a dictionary."""
        return {
            "error_type": self.__class__.__name__,
            "category": self.category.value,
            "message": self.message,
            "details": self.details,
        }


## Network Errors


class NetworkError(MailConsoleError):
    """Base exception for network-related errors."""

    category = ErrorCategory.NETWORK
    user_message = "A network error occurred"


class MailConnectionError(NetworkError):
    """Exception for TCP, DNS, TLS handshake and timeout failures."""

    user_message = "Failed to connect to the mail server"


class SMTPError(NetworkError):
    """Exception for SMTP protocol errors."""

    user_message = "Failed to send email"


class DeliveryError(SMTPError):
    """Exception when the relay rejects the sender, recipient or message."""

    user_message = "The mail relay rejected the message"


class IMAPProtocolError(NetworkError):
    """Exception for IMAP protocol errors."""

    user_message = "The mail server returned an IMAP error"


class MailboxSelectError(IMAPProtocolError):
    """Exception when a mailbox cannot be selected."""

    user_message = "Failed to select mailbox"


class FetchError(IMAPProtocolError):
    """Exception when fetching message envelopes fails."""

    user_message = "Failed to fetch messages"


## Authentication Errors


class AuthenticationError(MailConsoleError):
    """Base exception for authentication-related errors."""

    category = ErrorCategory.AUTHENTICATION
    user_message = "Authentication with the mail server failed"


class MissingCredentialsError(AuthenticationError):
    """Exception for missing login credentials."""

    user_message = "Email credentials not configured"


## Validation Errors


class ValidationError(MailConsoleError):
    """Base exception for validation-related errors."""

    category = ErrorCategory.VALIDATION
    user_message = "Invalid input"


class AddressParseError(ValidationError):
    """Exception for email addresses that cannot be parsed."""

    user_message = "Invalid email address"


class InputError(ValidationError):
    """Exception when console input cannot be read."""

    user_message = "Failed to read input"


## File System Errors


class FileSystemError(MailConsoleError):
    """Base exception for file system-related errors."""

    category = ErrorCategory.FILE_SYSTEM
    user_message = "A file system error occurred"


class PersistError(FileSystemError):
    """Exception when the sent-mail ledger cannot be written."""

    user_message = "Failed to save sent email log"


class DeserializeError(FileSystemError):
    """Exception when the sent-mail ledger file is corrupt."""

    user_message = "Sent email log is corrupted"


## Configuration Errors


class ConfigurationError(MailConsoleError):
    """Base exception for configuration-related errors."""

    category = ErrorCategory.CONFIGURATION
    user_message = "A configuration error occurred"


class MissingConfigError(ConfigurationError):
    """Exception for missing configuration settings."""

    user_message = "Missing configuration settings"


class InvalidConfigError(ConfigurationError):
    """Exception for invalid configuration settings."""

    user_message = "Invalid configuration settings"


## Error Handler


class ErrorHandler:
    """Centralized error handling and logging."""

    @staticmethod
    def handle(error: Exception, context: str = "") -> Dict[str, Any]:
        """Handle errors with logging and user-friendly message."""
        if isinstance(error, MailConsoleError):
            _get_logger().warning(f"{context}: {error.message}", extra={"context": error.details})
            return error.to_dict()
        else:
            _get_logger().error(f"{context}: {str(error)}")
            return {
                "error_type": "UnknownError",
                "category": ErrorCategory.UNKNOWN.value,
                "message": str(error),
                "details": {"context": context},
            }


## Utility Functions


def format_error_message(error: Exception) -> str:
    """Format an error message for display."""
    if isinstance(error, MailConsoleError):
        return error.message
    else:
        return "An unexpected error occurred - check logs for details."
