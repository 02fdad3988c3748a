"""Single-draft persistence in the user's SpeakEasy data directory."""
from __future__ import annotations

import os
import tempfile
import threading
from pathlib import Path
from typing import Optional

from .errors import PersistenceFailure
from .logger import get_logger

logger = get_logger(__name__)

DRAFT_FILE_NAME = "draft.txt"


def default_data_dir() -> Path:
    return Path.home() / ".speakeasy"


class DraftStore:
    """
    Loads, saves and clears the one draft the editor keeps between sessions.

    ``load`` never fails the caller; ``save`` and ``clear`` raise
    :class:`PersistenceFailure` and leave it to the autosave layer to log.
    """

    def __init__(self, data_dir: Optional[Path] = None, file_name: str = DRAFT_FILE_NAME):
        self.data_dir = Path(data_dir) if data_dir is not None else default_data_dir()
        self.draft_file = self.data_dir / file_name
        self._lock = threading.Lock()

    def load(self) -> str:
        """Return the saved draft, or "" when it is missing or unreadable."""
        with self._lock:
            if not self.draft_file.exists():
                return ""
            try:
                return self.draft_file.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Failed to load draft from %s: %s", self.draft_file, e)
                return ""

    def save(self, text: str) -> None:
        """Atomically replace the stored draft with ``text``."""
        with self._lock:
            try:
                self.data_dir.mkdir(parents=True, exist_ok=True)
                fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=".draft-", suffix=".tmp")
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as f:
                        f.write(text)
                    os.replace(tmp_path, self.draft_file)
                except BaseException:
                    Path(tmp_path).unlink(missing_ok=True)
                    raise
            except OSError as e:
                raise PersistenceFailure(f"Failed to save draft: {e}") from e
        logger.debug("Draft saved (%d chars)", len(text))

    def clear(self) -> None:
        """Remove the stored draft if there is one."""
        with self._lock:
            try:
                self.draft_file.unlink(missing_ok=True)
            except OSError as e:
                raise PersistenceFailure(f"Failed to clear draft: {e}") from e
        logger.debug("Draft cleared")
