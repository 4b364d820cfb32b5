"""Console components for prompting and displaying mail."""

from .display import InboxDisplay, MenuDisplay, SentEmailsDisplay
from .messages import StatusMessage
from .prompts import InputPrompt

__all__ = [
    "InboxDisplay",
    "MenuDisplay",
    "SentEmailsDisplay",
    "StatusMessage",
    "InputPrompt",
]
