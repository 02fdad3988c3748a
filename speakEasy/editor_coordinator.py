"""Editor state machine coordinating corrections, autosave and speech."""
from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from typing import Callable, List, Optional, Protocol, Tuple

from .autosave import AUTOSAVE_DELAY, DebouncedDraftSaver, DraftGateway
from .config_manager import Settings
from .errors import ProcessingFailed, SpeakEasyError, StaleResult
from .logger import get_logger
from .models import CorrectionCandidate, CorrectionState, EditorState

logger = get_logger(__name__)

StateListener = Callable[[EditorState], None]


class CandidateSource(Protocol):
    def generate_candidates(self, text: str) -> List[CorrectionCandidate]:
        ...


class SpeechGateway(Protocol):
    @property
    def is_speaking(self) -> bool:
        ...

    def speak(self, text: str, voice_id: Optional[str] = None, rate: float = 1.0) -> None:
        ...

    def stop(self) -> None:
        ...


class EditorCoordinator:
    """
    Owns the draft text and everything that happens to it.

    Correction requests run on a background executor and are tagged with a
    generation number; only the newest generation may touch state. Text edits
    re-arm a debounced autosave. Speech toggles independently of corrections.
    Observers receive an immutable :class:`EditorState` after each change.
    """

    def __init__(
        self,
        engine: CandidateSource,
        draft_store: DraftGateway,
        speech: SpeechGateway,
        settings: Optional[Settings] = None,
        *,
        autosave_delay: float = AUTOSAVE_DELAY,
    ) -> None:
        self._engine = engine
        self._draft_store = draft_store
        self._speech = speech
        self._settings = settings or Settings()
        self._autosaver = DebouncedDraftSaver(draft_store, delay=autosave_delay)

        self._lock = threading.RLock()
        self._listeners: List[StateListener] = []
        self._executor: Optional[ThreadPoolExecutor] = None
        # Draft clears get their own worker so they never queue behind corrections.
        self._clear_executor: Optional[ThreadPoolExecutor] = None

        self._generation = 0
        self._pending_text: Optional[str] = None
        self._state = EditorState(text=self._load_draft())

        add_listener = getattr(speech, "add_completion_listener", None)
        if callable(add_listener):
            add_listener(self._on_speech_finished)

    def _load_draft(self) -> str:
        text = self._draft_store.load()
        if text:
            logger.info("Restored draft (%d chars)", len(text))
        return text

    # ==================== STATE & OBSERVERS ====================

    @property
    def state(self) -> EditorState:
        with self._lock:
            return self._state

    @property
    def text(self) -> str:
        return self.state.text

    @property
    def settings(self) -> Settings:
        with self._lock:
            return self._settings

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a callback invoked with every new state. Returns an unsubscribe function."""
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _update(self, **changes) -> EditorState:
        with self._lock:
            self._state = replace(self._state, **changes)
            return self._state

    def _publish(self, state: EditorState) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(state)
            except Exception as listener_error:
                logger.warning("State listener error: %s", listener_error)

    def update_settings(self, settings: Settings) -> None:
        with self._lock:
            self._settings = settings
        logger.debug("Settings updated (voice=%s, rate=%.1f)", settings.selected_voice_id, settings.speech_rate)

    # ==================== TEXT ====================

    def set_text(self, new_text: str) -> None:
        """Replace the draft and re-arm the autosave."""
        with self._lock:
            state = self._update(text=new_text)
            self._autosaver.schedule(new_text)
        self._publish(state)

    # ==================== CORRECTION ====================

    def _ensure_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="correction")
        return self._executor

    def request_correction(self) -> Optional[Future]:
        """
        Start checking the current text.

        Returns the background task's future, or None when nothing was started
        (blank text, or the same text is already being checked).
        """
        with self._lock:
            text = self._state.text
            if self._state.is_text_empty:
                logger.debug("Correction skipped: text is empty")
                return None
            if self._state.is_checking and self._pending_text == text:
                logger.debug("Correction already in progress, ignoring request")
                return None

            if self._state.is_checking:
                logger.info("Superseding in-flight correction (generation %d)", self._generation)

            self._generation += 1
            generation = self._generation
            self._pending_text = text
            state = self._update(
                correction_state=CorrectionState.PENDING,
                last_error=None,
            )

        preview = text[:80] + ("..." if len(text) > 80 else "")
        logger.info("Checking text (generation %d): '%s'", generation, preview)
        # Observers see PENDING before any result can be published.
        self._publish(state)
        with self._lock:
            return self._ensure_executor().submit(self._run_correction, generation, text)

    def retry(self) -> Optional[Future]:
        return self.request_correction()

    def _run_correction(self, generation: int, text: str) -> None:
        try:
            candidates = self._engine.generate_candidates(text)
        except SpeakEasyError as e:
            logger.error("Correction failed: %s", e)
            self._apply_failure(generation, e.user_message)
            return
        except Exception as e:
            logger.error("Unexpected correction error: %s", e, exc_info=True)
            self._apply_failure(generation, ProcessingFailed.user_message)
            return

        try:
            self._apply_candidates(generation, tuple(candidates))
        except StaleResult as stale:
            logger.debug("%s", stale)

    def _check_current(self, generation: int) -> None:
        if generation != self._generation:
            raise StaleResult(f"Discarding result of generation {generation}; current is {self._generation}")

    def _apply_candidates(self, generation: int, candidates: Tuple[CorrectionCandidate, ...]) -> None:
        with self._lock:
            self._check_current(generation)
            self._pending_text = None
            state = self._update(
                correction_state=CorrectionState.RESOLVED,
                candidates=candidates,
                modal_visible=True,
            )
        logger.info("Received %d candidates", len(candidates))
        self._publish(state)

    def _apply_failure(self, generation: int, message: str) -> None:
        with self._lock:
            if generation != self._generation:
                logger.debug("Discarding failure of superseded generation %d", generation)
                return
            self._pending_text = None
            state = self._update(
                correction_state=CorrectionState.FAILED,
                last_error=message,
                candidates=(),
                modal_visible=False,
            )
        self._publish(state)

    def select_candidate(self, candidate: CorrectionCandidate) -> bool:
        """Adopt ``candidate`` as the draft. Ignored unless it is from the latest result."""
        with self._lock:
            current = self._state
            if current.correction_state is not CorrectionState.RESOLVED or not any(
                c.id == candidate.id for c in current.candidates
            ):
                logger.warning("Ignoring selection of a candidate from a superseded result")
                return False

            state = self._update(
                text=candidate.text,
                correction_state=CorrectionState.IDLE,
                candidates=(),
                modal_visible=False,
            )
            self._autosaver.schedule(candidate.text)
        logger.info("Accepted candidate: '%s'", candidate.text[:80])
        self._publish(state)
        return True

    def dismiss_candidates(self) -> None:
        """Close the candidate list without changing the text."""
        with self._lock:
            if not self._state.modal_visible and not self._state.candidates:
                return
            next_state = (
                CorrectionState.IDLE
                if self._state.correction_state is CorrectionState.RESOLVED
                else self._state.correction_state
            )
            state = self._update(modal_visible=False, candidates=(), correction_state=next_state)
        self._publish(state)

    # ==================== CLEAR ====================

    def request_clear(self) -> None:
        state = self._update(confirming_clear=True)
        self._publish(state)

    def cancel_clear(self) -> None:
        state = self._update(confirming_clear=False)
        self._publish(state)

    def confirm_clear(self) -> Future:
        """Empty the draft and remove the stored copy. Returns the clear task's future."""
        with self._lock:
            # Any in-flight correction belongs to text that no longer exists.
            self._generation += 1
            self._pending_text = None
            marker = self._autosaver.begin_clear()
            state = self._update(
                text="",
                confirming_clear=False,
                correction_state=CorrectionState.IDLE,
                candidates=(),
                modal_visible=False,
                last_error=None,
            )
            if self._clear_executor is None:
                self._clear_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="draft-clear")
            future = self._clear_executor.submit(self._autosaver.clear_stored, marker)
        logger.info("Draft cleared by user")
        self._publish(state)
        return future

    # ==================== SPEECH ====================

    def toggle_speech(self) -> None:
        """Stop speaking if the gateway is speaking, otherwise read the draft aloud."""
        with self._lock:
            current = self._state
            settings = self._settings
        if current.is_text_empty:
            return
        text = current.text

        if self._speech.is_speaking:
            self._speech.stop()
            speaking = False
        else:
            self._speech.speak(text, settings.selected_voice_id, settings.speech_rate)
            speaking = True

        state = self._update(is_speaking=speaking)
        self._publish(state)

    def _on_speech_finished(self) -> None:
        with self._lock:
            if not self._state.is_speaking:
                return
            state = self._update(is_speaking=False)
        self._publish(state)

    # ==================== LIFECYCLE ====================

    def flush(self) -> bool:
        """Write any pending autosave right away."""
        return self._autosaver.flush()

    def shutdown(self) -> None:
        self.flush()
        with self._lock:
            executors = [e for e in (self._executor, self._clear_executor) if e is not None]
            self._executor = None
            self._clear_executor = None

        # Shutdown executors outside the lock; workers take it to apply results.
        for executor in executors:
            executor.shutdown(wait=True, cancel_futures=False)
        logger.info("Editor coordinator stopped")
