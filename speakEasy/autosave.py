"""Debounced draft autosave that never races a clear."""
from __future__ import annotations

import threading
from typing import Optional, Protocol

from .errors import PersistenceFailure
from .logger import get_logger

logger = get_logger(__name__)

AUTOSAVE_DELAY = 10.0


class DraftGateway(Protocol):
    def load(self) -> str:
        ...

    def save(self, text: str) -> None:
        ...

    def clear(self) -> None:
        ...


class DebouncedDraftSaver:
    """
    Writes the draft once the user has stopped typing for ``delay`` seconds.

    Every :meth:`schedule` cancels the previously armed timer. A timer only
    writes if its generation is still current when it fires, and the check and
    the acquisition of the I/O lock happen under the state lock, so a cancelled
    timer performs no I/O while a write already in progress runs to completion.
    """

    def __init__(self, store: DraftGateway, delay: float = AUTOSAVE_DELAY):
        self._store = store
        self._delay = delay
        self._lock = threading.Lock()
        self._io_lock = threading.Lock()
        self._generation = 0
        self._timer: Optional[threading.Timer] = None
        self._pending_text: Optional[str] = None
        # Generation of the most recent save that reached the store.
        self._written_generation = 0

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return self._pending_text is not None

    def schedule(self, text: str) -> None:
        """Arm a save of ``text``, superseding any save not yet started."""
        with self._lock:
            self._cancel_locked()
            self._generation += 1
            self._pending_text = text
            timer = threading.Timer(self._delay, self._fire, args=(self._generation, text))
            timer.daemon = True
            timer.name = f"Autosave-{self._generation}"
            self._timer = timer
            timer.start()

    def cancel(self) -> None:
        """Drop the armed save, if any. A write already running is not interrupted."""
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        self._generation += 1
        self._pending_text = None
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self, generation: int, text: str) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._timer = None
            self._pending_text = None
            self._written_generation = generation
            self._io_lock.acquire()
        try:
            self._write(text)
        finally:
            self._io_lock.release()

    def flush(self) -> bool:
        """Write a pending save immediately. Returns True if one was written."""
        with self._lock:
            text = self._pending_text
            if text is None:
                return False
            self._cancel_locked()
            self._written_generation = self._generation
            self._io_lock.acquire()
        try:
            return self._write(text)
        finally:
            self._io_lock.release()

    def begin_clear(self) -> int:
        """Drop the pending save and return the marker to pass to :meth:`clear_stored`."""
        with self._lock:
            self._cancel_locked()
            return self._generation

    def clear_stored(self, marker: int) -> bool:
        """
        Remove the stored draft once any write in progress has finished.

        Saves scheduled after :meth:`begin_clear` are left armed. If one of them
        has already been written, the store holds newer text and is kept.
        """
        with self._lock:
            superseded = self._written_generation > marker
            self._io_lock.acquire()
        try:
            if superseded:
                logger.debug("Skipping draft clear; a newer save was already written")
                return True
            self._store.clear()
        except PersistenceFailure as e:
            logger.error("Draft clear failed: %s", e)
            return False
        finally:
            self._io_lock.release()
        logger.info("Stored draft cleared")
        return True

    def clear(self) -> bool:
        """Cancel the pending save, wait out any write in progress, then clear."""
        return self.clear_stored(self.begin_clear())

    def _write(self, text: str) -> bool:
        try:
            self._store.save(text)
        except PersistenceFailure as e:
            logger.error("Autosave failed: %s", e)
            return False
        logger.info("Draft autosaved (%d chars)", len(text))
        return True
