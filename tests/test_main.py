"""Unit tests for the terminal front end in main.py."""
from __future__ import annotations

import io
import unittest

from speakEasy.correction_engine import CorrectionEngine
from speakEasy.editor_coordinator import EditorCoordinator
from speakEasy.main import TerminalEditor, parse_args
from speakEasy.speech_service import VOICE_PREVIEW_TEXT


class MemoryStore:
    def __init__(self, text=""):
        self.text = text

    def load(self):
        return self.text

    def save(self, text):
        self.text = text

    def clear(self):
        self.text = ""


class FakeSpeech:
    def __init__(self):
        self.is_speaking = False
        self.calls = []

    def speak(self, text, voice_id=None, rate=1.0):
        self.calls.append(("speak", text))
        self.is_speaking = True

    def preview_voice(self, voice_id=None, rate=1.0):
        self.speak(VOICE_PREVIEW_TEXT, voice_id, rate)

    def stop(self):
        self.calls.append(("stop",))
        self.is_speaking = False


class TestParseArgs(unittest.TestCase):
    """Test cases for command line parsing."""

    def test_defaults(self):
        """Test no flags gives fallback on and no overrides."""
        args = parse_args([])
        self.assertIsNone(args.api_key)
        self.assertIsNone(args.model)
        self.assertFalse(args.no_fallback)

    def test_flags(self):
        """Test every flag is parsed."""
        args = parse_args(["--api-key", "k", "--model", "m", "--no-fallback", "-v", "--log-file", "x.log"])
        self.assertEqual(args.api_key, "k")
        self.assertEqual(args.model, "m")
        self.assertTrue(args.no_fallback)
        self.assertTrue(args.verbose)
        self.assertEqual(args.log_file, "x.log")


class TestTerminalEditor(unittest.TestCase):
    """Test cases for TerminalEditor class."""

    def setUp(self):
        self.engine = CorrectionEngine(None, fallback_delay=0)
        self.store = MemoryStore()
        self.speech = FakeSpeech()
        self.coordinator = EditorCoordinator(self.engine, self.store, self.speech, autosave_delay=10)
        self.out = io.StringIO()
        self.editor = TerminalEditor(self.coordinator, self.speech, self.out)

    def tearDown(self):
        self.coordinator.shutdown()
        self.engine.close()

    def test_plain_lines_append_to_draft(self):
        """Test typed lines are joined with a space."""
        self.editor.handle_line("I woudl like\n")
        self.editor.handle_line("some wster\n")
        self.assertEqual(self.coordinator.text, "I woudl like some wster")
        self.assertEqual(self.out.getvalue(), "")

    def test_check_and_pick(self):
        """Test checking then picking a suggestion replaces the draft."""
        self.editor.handle_line("I woudl like some wster")
        future = self.coordinator.request_correction()
        future.result(timeout=2)
        self.assertIn("Checking your text...", self.out.getvalue())
        self.assertIn("1. I would like some water.", self.out.getvalue())

        self.editor.handle_line(":pick 3")

        self.assertEqual(self.coordinator.text, "I want some water")
        self.assertFalse(self.coordinator.state.modal_visible)

    def test_pick_rejects_bad_numbers(self):
        """Test out-of-range or non-numeric picks leave the draft alone."""
        self.editor.handle_line("hello")
        self.editor.handle_line(":pick 1")
        self.editor.handle_line(":pick two")
        self.assertEqual(self.coordinator.text, "hello")
        self.assertIn("No suggestion with that number.", self.out.getvalue())
        self.assertIn("Usage: :pick N", self.out.getvalue())

    def test_clear_needs_yes(self):
        """Test :clear asks first and :yes clears."""
        self.editor.handle_line("hello")
        self.editor.handle_line(":clear")
        self.assertIn("Clear your message?", self.out.getvalue())
        self.assertEqual(self.coordinator.text, "hello")

        self.editor.handle_line(":yes")

        self.assertEqual(self.coordinator.text, "")

    def test_no_keeps_text(self):
        """Test :no cancels the clear."""
        self.editor.handle_line("hello")
        self.editor.handle_line(":clear")
        self.editor.handle_line(":no")
        self.assertEqual(self.coordinator.text, "hello")
        self.assertFalse(self.coordinator.state.confirming_clear)

    def test_yes_without_clear_is_ignored(self):
        """Test :yes does nothing unless a clear was requested."""
        self.editor.handle_line("hello")
        self.editor.handle_line(":yes")
        self.assertEqual(self.coordinator.text, "hello")

    def test_speak_and_voice(self):
        """Test :speak toggles reading and :voice plays the sample."""
        self.editor.handle_line("read me")
        self.editor.handle_line(":speak")
        self.editor.handle_line(":speak")
        self.editor.handle_line(":voice")
        self.assertEqual(self.speech.calls, [
            ("speak", "read me"),
            ("stop",),
            ("speak", VOICE_PREVIEW_TEXT),
        ])

    def test_unknown_command_and_quit(self):
        """Test unknown commands are reported and :quit ends the loop."""
        self.assertTrue(self.editor.handle_line(":bogus"))
        self.assertIn("Unknown command :bogus", self.out.getvalue())
        self.assertFalse(self.editor.handle_line(":quit"))

    def test_run_restores_draft(self):
        """Test run announces a restored draft and stops at :quit."""
        self.store.text = "from last time"
        coordinator = EditorCoordinator(self.engine, self.store, self.speech, autosave_delay=10)
        out = io.StringIO()
        editor = TerminalEditor(coordinator, self.speech, out)
        try:
            editor.run(io.StringIO(":quit\nignored\n"))
        finally:
            coordinator.shutdown()
        self.assertIn("Restored draft: from last time", out.getvalue())
        self.assertEqual(coordinator.text, "from last time")


if __name__ == "__main__":
    unittest.main()
