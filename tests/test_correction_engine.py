"""Unit tests for correction_engine.py module."""
from __future__ import annotations

import threading
import time
import unittest

from speakEasy.correction_engine import CorrectionEngine
from speakEasy.errors import EngineUnavailable, MalformedResponse, ProcessingFailed
from speakEasy.models import CorrectionCandidate


class FakeBackend:
    """Stand-in for GeminiCorrector with scripted behaviour."""

    def __init__(self, result=None, error=None, delay=0.0, is_configured=True):
        self.result = result
        self.error = error
        self.delay = delay
        self.is_configured = is_configured
        self.calls = []
        self.release = threading.Event()

    def generate_variations(self, text):
        self.calls.append(text)
        if self.delay:
            self.release.wait(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


class TestCorrectionEngine(unittest.TestCase):
    """Test cases for CorrectionEngine class."""

    def setUp(self):
        self.engines = []

    def tearDown(self):
        for engine in self.engines:
            engine.close()

    def make_engine(self, primary=None, **kwargs):
        kwargs.setdefault("fallback_delay", 0)
        engine = CorrectionEngine(primary, **kwargs)
        self.engines.append(engine)
        return engine

    def texts(self, candidates):
        return [c.text for c in candidates]

    def test_primary_result_used_when_valid(self):
        """Test successful primary output becomes the candidates in order."""
        backend = FakeBackend(result=["One.", "Two.", "Three"])
        engine = self.make_engine(backend)

        candidates = engine.generate_candidates("raw text")

        self.assertEqual(self.texts(candidates), ["One.", "Two.", "Three"])
        self.assertEqual(backend.calls, ["raw text"])
        self.assertTrue(all(isinstance(c, CorrectionCandidate) for c in candidates))

    def test_candidate_ids_are_unique(self):
        """Test each candidate carries its own id."""
        engine = self.make_engine()
        candidates = engine.generate_candidates("hello")
        self.assertEqual(len({c.id for c in candidates}), 3)

    def test_primary_error_falls_back(self):
        """Test any primary exception is absorbed by the fallback."""
        for error in (RuntimeError("boom"), MalformedResponse("bad json"), EngineUnavailable("no key")):
            with self.subTest(error=type(error).__name__):
                engine = self.make_engine(FakeBackend(error=error))
                candidates = engine.generate_candidates("I woudl like some wster")
                self.assertEqual(self.texts(candidates)[0], "I would like some water.")

    def test_malformed_primary_output_falls_back(self):
        """Test wrong-sized or empty primary output triggers the fallback."""
        for result in (["only one"], ["a", "b", ""], None, "not a list"):
            with self.subTest(result=result):
                engine = self.make_engine(FakeBackend(result=result))
                candidates = engine.generate_candidates("teh end")
                self.assertEqual(self.texts(candidates)[0], "The end.")

    def test_primary_timeout_falls_back(self):
        """Test a stalled primary is abandoned after the timeout."""
        backend = FakeBackend(result=["late", "late", "late"], delay=5.0)
        engine = self.make_engine(backend, primary_timeout=0.05)
        try:
            started = time.monotonic()
            candidates = engine.generate_candidates("hello")
            elapsed = time.monotonic() - started
        finally:
            backend.release.set()

        self.assertEqual(self.texts(candidates), ["Hello.", "Hello.", "Hello"])
        self.assertLess(elapsed, 2.0)

    def test_unconfigured_primary_not_called(self):
        """Test an unconfigured backend is skipped entirely."""
        backend = FakeBackend(result=["a", "b", "c"], is_configured=False)
        engine = self.make_engine(backend)

        engine.generate_candidates("hello")

        self.assertEqual(backend.calls, [])

    def test_fallback_disabled_raises_engine_unavailable(self):
        """Test primary failure surfaces when no fallback is allowed."""
        engine = self.make_engine(FakeBackend(error=RuntimeError("down")), enable_fallback=False)
        with self.assertRaises(EngineUnavailable):
            engine.generate_candidates("hello")

    def test_blank_text_fails_without_calling_primary(self):
        """Test blank input is rejected up front."""
        backend = FakeBackend(result=["a", "b", "c"])
        engine = self.make_engine(backend)
        with self.assertRaises(ProcessingFailed):
            engine.generate_candidates("   ")
        self.assertEqual(backend.calls, [])

    def test_fallback_delay_applied(self):
        """Test the fallback waits its simulated processing time."""
        engine = self.make_engine(fallback_delay=0.1)
        started = time.monotonic()
        engine.generate_candidates("hello")
        self.assertGreaterEqual(time.monotonic() - started, 0.09)

    def test_always_three_candidates(self):
        """Test every non-empty input yields exactly three candidates."""
        engine = self.make_engine()
        for text in ("a", "hello world", "woudl yuo", "  spaced  ", "?!"):
            with self.subTest(text=text):
                candidates = engine.generate_candidates(text)
                self.assertEqual(len(candidates), 3)
                self.assertTrue(candidates[0].text.endswith((".", "!", "?")))
                self.assertTrue(candidates[1].text.endswith((".", "!", "?")))


if __name__ == "__main__":
    unittest.main()
