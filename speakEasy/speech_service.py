"""Text-to-speech playback on a dedicated pyttsx3 worker thread."""
from __future__ import annotations

import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

import pyttsx3

from .logger import get_logger

logger = get_logger(__name__)

VOICE_PREVIEW_TEXT = "Hello, this is how I will sound."
MIN_SPEECH_RATE = 0.5
MAX_SPEECH_RATE = 2.0


@dataclass(frozen=True)
class _Utterance:
    utterance_id: int
    text: str
    voice_id: Optional[str]
    rate: float


class SpeechService:
    """
    Speaks one utterance at a time.

    pyttsx3 engines are not safe to drive from several threads, so a single
    worker owns the engine and consumes utterances from a queue. :meth:`stop`
    returns immediately; the worker interrupts playback at the next word
    boundary.
    """

    BASE_WORDS_PER_MINUTE = 200

    def __init__(self, engine_factory: Optional[Callable[[], Any]] = None):
        self._engine_factory = engine_factory or pyttsx3.init
        self._queue: "queue.Queue[Optional[_Utterance]]" = queue.Queue()
        self._lock = threading.Lock()
        self._speaking = threading.Event()
        self._engine: Any = None
        self._thread: Optional[threading.Thread] = None
        self._last_id = 0
        self._cancelled_through = 0
        self._current_id = 0
        self._completion_listeners: List[Callable[[], None]] = []

    @property
    def is_speaking(self) -> bool:
        return self._speaking.is_set()

    def add_completion_listener(self, listener: Callable[[], None]) -> None:
        """Register a callback invoked whenever playback ends or is stopped."""
        if listener not in self._completion_listeners:
            self._completion_listeners.append(listener)

    @classmethod
    def words_per_minute(cls, rate: float) -> int:
        clamped = max(MIN_SPEECH_RATE, min(MAX_SPEECH_RATE, float(rate)))
        return int(round(cls.BASE_WORDS_PER_MINUTE * clamped))

    def speak(self, text: str, voice_id: Optional[str] = None, rate: float = 1.0) -> None:
        """Speak ``text``, first stopping whatever is currently playing."""
        if self.is_speaking:
            self.stop()

        if not text:
            return

        with self._lock:
            self._last_id += 1
            utterance = _Utterance(self._last_id, text, voice_id, rate)
            self._speaking.set()
        self._queue.put(utterance)
        self._ensure_worker()
        logger.debug("Queued utterance %d (%d chars)", utterance.utterance_id, len(text))

    def preview_voice(self, voice_id: Optional[str] = None, rate: float = 1.0) -> None:
        self.speak(VOICE_PREVIEW_TEXT, voice_id, rate)

    def stop(self) -> None:
        """Stop playback and drop queued utterances."""
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                break
            if item is None:
                # Keep the shutdown sentinel.
                self._queue.put(None)
                break

        with self._lock:
            self._cancelled_through = self._last_id
            was_speaking = self._speaking.is_set()
            self._speaking.clear()

        if was_speaking:
            logger.debug("Speech stopped")
            self._notify_completion()

    def shutdown(self, timeout: float = 2.0) -> None:
        self.stop()
        thread = self._thread
        if thread is not None and thread.is_alive():
            self._queue.put(None)
            thread.join(timeout=timeout)
        self._thread = None

    def _ensure_worker(self) -> None:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._thread = threading.Thread(target=self._run, daemon=True, name="SpeechWorker")
            self._thread.start()

    def _is_cancelled(self, utterance_id: int) -> bool:
        with self._lock:
            return utterance_id <= self._cancelled_through

    def _on_word(self, name: Any = None, location: Any = None, length: Any = None) -> None:
        if self._engine is not None and self._is_cancelled(self._current_id):
            self._engine.stop()

    def _run(self) -> None:
        try:
            self._engine = self._engine_factory()
            self._engine.connect("started-word", self._on_word)
        except Exception as e:
            logger.error("Failed to initialize speech engine: %s", e)
            self._engine = None
            with self._lock:
                self._cancelled_through = self._last_id
                self._speaking.clear()
            self._notify_completion()
            return

        while True:
            utterance = self._queue.get()
            if utterance is None:
                break
            if self._is_cancelled(utterance.utterance_id):
                continue

            self._current_id = utterance.utterance_id
            try:
                self._engine.setProperty("rate", self.words_per_minute(utterance.rate))
                if utterance.voice_id:
                    self._engine.setProperty("voice", utterance.voice_id)
                self._engine.say(utterance.text)
                self._engine.runAndWait()
            except Exception as e:
                logger.error("Speech playback failed: %s", e)

            self._finish(utterance.utterance_id)

    def _finish(self, utterance_id: int) -> None:
        with self._lock:
            # A newer utterance keeps the speaking flag; a stopped one already cleared it.
            if utterance_id != self._last_id or not self._speaking.is_set():
                return
            self._speaking.clear()
        self._notify_completion()

    def _notify_completion(self) -> None:
        for listener in list(self._completion_listeners):
            try:
                listener()
            except Exception as listener_error:
                logger.warning("Speech completion listener error: %s", listener_error)
