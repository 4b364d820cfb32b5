"""Sent-mail ledger: an ordered record of sent messages persisted as JSON.

The whole file is rewritten on every append, so the file on disk always
holds exactly the in-memory sequence as of the last successful append.
"""

import os
import tempfile
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from mailconsole.core.models import SentMessage
from mailconsole.utils.errors import DeserializeError, PersistError
from mailconsole.utils.logging import get_logger, log_event

logger = get_logger(__name__)

_LEDGER_ADAPTER = TypeAdapter(List[SentMessage])


def serialize(messages) -> bytes:
    """Serialize messages to a compact JSON array."""
    return _LEDGER_ADAPTER.dump_json(list(messages))


def deserialize(content: bytes | str) -> List[SentMessage]:
    """Parse a JSON array of sent messages.

    Raises:
        DeserializeError: If the content is not valid JSON or has the wrong shape
    """
    try:
        return _LEDGER_ADAPTER.validate_json(content)
    except ValidationError as e:
        raise DeserializeError(
            f"Sent email log is corrupted: {e.error_count()} validation error(s)",
            details={"errors": e.errors(include_url=False)[:3]},
        ) from e


class SentMailLedger:
    """In-memory list of sent messages backed by a JSON file."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._messages: List[SentMessage] = []
        self.load_error: Optional[DeserializeError] = None

    @property
    def messages(self) -> Tuple[SentMessage, ...]:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[SentMessage]:
        return iter(tuple(self._messages))

    def load(self) -> List[SentMessage]:
        """Load the ledger from disk, replacing the in-memory sequence.

        A missing file is a normal first run and yields an empty ledger. A
        corrupt or unreadable file also yields an empty ledger; the problem
        is logged and kept in ``load_error``.

        Returns:
            A copy of the loaded messages
        """
        self.load_error = None

        if not self.path.exists():
            logger.debug(f"No sent email log at {self.path}, starting empty")
            self._messages = []
            return []

        try:
            content = self.path.read_bytes()
            self._messages = deserialize(content)
        except DeserializeError as e:
            logger.warning(f"Ignoring corrupted sent email log {self.path}: {e.message}")
            self.load_error = e
            self._messages = []
        except OSError as e:
            logger.warning(f"Could not read sent email log {self.path}: {e}")
            self.load_error = DeserializeError(
                f"Could not read sent email log: {e}", details={"path": str(self.path)}
            )
            self._messages = []

        log_event("ledger_loaded", "Sent email log loaded", count=len(self._messages))
        return list(self._messages)

    def append(self, message: SentMessage) -> None:
        """Append a message and rewrite the whole file atomically.

        Raises:
            PersistError: If the file cannot be written; the in-memory
                ledger is left unchanged
        """
        self._messages.append(message)
        try:
            self._write()
        except PersistError:
            self._messages.pop()
            raise

    def _write(self) -> None:
        """Write the full ledger to a temp file and move it into place."""
        directory = self.path.parent
        tmp_path = None

        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=directory
            )
            with os.fdopen(fd, "wb") as f:
                f.write(serialize(self._messages))
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
            tmp_path = None
            logger.debug(f"Sent email log written ({len(self._messages)} entries)")

        except OSError as e:
            raise PersistError(
                f"Failed to save sent email log to {self.path}: {e}",
                details={"path": str(self.path)},
            ) from e

        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
