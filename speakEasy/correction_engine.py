"""Three-candidate correction with transparent fallback to rule-based output."""
from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import List, Optional, Protocol

from .errors import EngineUnavailable, ProcessingFailed
from .fallback_corrector import generate_fallback_variations
from .logger import get_logger
from .models import CANDIDATE_COUNT, CorrectionCandidate

logger = get_logger(__name__)

DEFAULT_PRIMARY_TIMEOUT = 20.0
DEFAULT_FALLBACK_DELAY = 1.5


class VariationBackend(Protocol):
    is_configured: bool

    def generate_variations(self, text: str) -> List[str]:
        ...


class CorrectionEngine:
    """
    Produces exactly three ranked candidates for a piece of text.

    The generative backend is tried first under a bounded timeout. Any error,
    timeout or malformed answer from it is logged and absorbed, and the
    rule-based generator answers instead after a short simulated delay so the
    UI feels the same either way.
    """

    def __init__(
        self,
        primary: Optional[VariationBackend] = None,
        *,
        primary_timeout: float = DEFAULT_PRIMARY_TIMEOUT,
        fallback_delay: float = DEFAULT_FALLBACK_DELAY,
        enable_fallback: bool = True,
    ) -> None:
        self._primary = primary
        self._primary_timeout = primary_timeout
        self._fallback_delay = max(0.0, fallback_delay)
        self._enable_fallback = enable_fallback
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="primary-correction")
        # Wakes a simulated fallback delay early on shutdown.
        self._closed = threading.Event()

    @property
    def has_primary(self) -> bool:
        return self._primary is not None and bool(getattr(self._primary, "is_configured", False))

    def generate_candidates(self, text: str) -> List[CorrectionCandidate]:
        """
        Return exactly three candidates for ``text``.

        Raises:
            ProcessingFailed: blank input, or the fallback produced nothing usable
            EngineUnavailable: the primary failed and no fallback is available
        """
        if not text or not text.strip():
            raise ProcessingFailed("Cannot correct blank text")

        variations = self._try_primary(text)
        if variations is not None:
            return [CorrectionCandidate(text=v) for v in variations]

        if not self._enable_fallback:
            raise EngineUnavailable("Primary correction failed and fallback is disabled")

        return self._run_fallback(text)

    def _try_primary(self, text: str) -> Optional[List[str]]:
        if not self.has_primary:
            logger.debug("No generative backend configured; using rule-based corrections")
            return None

        future = self._executor.submit(self._primary.generate_variations, text)
        try:
            variations = future.result(timeout=self._primary_timeout)
        except FutureTimeoutError:
            future.cancel()
            logger.warning("Primary correction timed out after %.1fs; using fallback", self._primary_timeout)
            return None
        except Exception as e:
            logger.warning("Primary correction failed (%s: %s); using fallback", type(e).__name__, e)
            return None

        if not isinstance(variations, list) or len(variations) != CANDIDATE_COUNT:
            logger.warning("Primary correction returned %r; using fallback", variations)
            return None
        if not all(isinstance(v, str) and v.strip() for v in variations):
            logger.warning("Primary correction returned empty variations; using fallback")
            return None

        logger.info("Received %d candidates from generative backend", len(variations))
        return [v.strip() for v in variations]

    def _run_fallback(self, text: str) -> List[CorrectionCandidate]:
        if self._fallback_delay:
            self._closed.wait(self._fallback_delay)

        variations = generate_fallback_variations(text)
        if not variations:
            raise EngineUnavailable("Rule-based fallback produced no candidates")
        if any(not v for v in variations):
            raise ProcessingFailed("Rule-based fallback produced an empty candidate")

        logger.info("Generated %d rule-based candidates", len(variations))
        return [CorrectionCandidate(text=v) for v in variations]

    def close(self) -> None:
        self._closed.set()
        self._executor.shutdown(wait=False, cancel_futures=True)
