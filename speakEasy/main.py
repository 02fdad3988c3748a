"""Application entry point wiring the editor core to a simple terminal front end."""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Callable, Dict, Optional, TextIO

from .config_manager import ConfigManager
from .correction_engine import CorrectionEngine
from .draft_store import DraftStore
from .editor_coordinator import EditorCoordinator
from .gemini_corrector import GeminiCorrector
from .logger import SpeakEasyLogger, get_logger
from .models import CorrectionState, EditorState
from .speech_service import SpeechService

logger = get_logger(__name__)

HELP_TEXT = """\
Type text to add it to your draft. Commands:
  :check        suggest corrections      :pick N   use suggestion N
  :close        dismiss suggestions      :retry    check again
  :speak        read aloud / stop        :voice    test the voice
  :clear        clear the draft (then :yes or :no)
  :show         print the draft          :quit     save and exit"""


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="SpeakEasy - tremor-friendly text editor")
    parser.add_argument("--api-key", type=str, default=None, help="Gemini API key (or set GEMINI_API_KEY env var)")
    parser.add_argument("--model", type=str, default=None, help="Gemini model to use")
    parser.add_argument("--no-fallback", action="store_true", help="Disable rule-based corrections when Gemini fails")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose debug output")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress all console output except errors")
    parser.add_argument("--log-file", type=str, default=None, help="Write logs to specified file")
    return parser.parse_args(argv)


def render_state(state: EditorState, out: TextIO) -> None:
    """Print the parts of ``state`` a terminal user needs to see."""
    if state.is_checking:
        out.write("Checking your text...\n")
    elif state.correction_state is CorrectionState.FAILED and state.last_error:
        out.write(f"{state.last_error} (type :retry)\n")
    elif state.modal_visible:
        out.write("Suggestions:\n")
        for idx, candidate in enumerate(state.candidates, 1):
            out.write(f"  {idx}. {candidate.text}\n")
    if state.confirming_clear:
        out.write("Clear your message? (:yes to clear, :no to keep writing)\n")
    out.flush()


class TerminalEditor:
    """Line-oriented driver for :class:`EditorCoordinator`."""

    def __init__(self, coordinator: EditorCoordinator, speech: SpeechService, out: TextIO = sys.stdout):
        self.coordinator = coordinator
        self.speech = speech
        self.out = out
        self._last_rendered: Optional[EditorState] = None
        self._commands: Dict[str, Callable[[str], None]] = {
            ":check": lambda _: self.coordinator.request_correction(),
            ":retry": lambda _: self.coordinator.retry(),
            ":pick": self._pick,
            ":close": lambda _: self.coordinator.dismiss_candidates(),
            ":speak": lambda _: self.coordinator.toggle_speech(),
            ":voice": self._preview_voice,
            ":clear": lambda _: self.coordinator.request_clear(),
            ":yes": self._confirm_clear,
            ":no": lambda _: self.coordinator.cancel_clear(),
            ":show": lambda _: self.out.write(f"{self.coordinator.text}\n"),
            ":help": lambda _: self.out.write(HELP_TEXT + "\n"),
        }
        coordinator.subscribe(self._on_state)

    def _on_state(self, state: EditorState) -> None:
        previous = self._last_rendered
        self._last_rendered = state
        # Plain typing only changes text; stay quiet for it.
        if previous is not None and replace(previous, text=state.text) == state:
            return
        render_state(state, self.out)

    def _pick(self, argument: str) -> None:
        candidates = self.coordinator.state.candidates
        try:
            index = int(argument) - 1
        except ValueError:
            self.out.write("Usage: :pick N\n")
            return
        if not 0 <= index < len(candidates):
            self.out.write("No suggestion with that number.\n")
            return
        self.coordinator.select_candidate(candidates[index])
        self.out.write(f"{self.coordinator.text}\n")

    def _preview_voice(self, _: str) -> None:
        settings = self.coordinator.settings
        if self.speech.is_speaking:
            self.speech.stop()
        else:
            self.speech.preview_voice(settings.selected_voice_id, settings.speech_rate)

    def _confirm_clear(self, _: str) -> None:
        if self.coordinator.state.confirming_clear:
            self.coordinator.confirm_clear()

    def handle_line(self, line: str) -> bool:
        """Process one input line. Returns False when the user asked to quit."""
        stripped = line.strip()
        if stripped in (":quit", ":q"):
            return False

        if stripped.startswith(":"):
            command, _, argument = stripped.partition(" ")
            handler = self._commands.get(command)
            if handler is None:
                self.out.write(f"Unknown command {command}. Type :help for commands.\n")
            else:
                handler(argument.strip())
            return True

        current = self.coordinator.text
        separator = " " if current and not current.endswith((" ", "\n")) else ""
        addition = line.rstrip("\n")
        self.coordinator.set_text(f"{current}{separator}{addition}")
        return True

    def run(self, stream: TextIO = sys.stdin) -> None:
        self.out.write(HELP_TEXT + "\n")
        if self.coordinator.text:
            self.out.write(f"Restored draft: {self.coordinator.text}\n")
        self.out.flush()
        for line in stream:
            if not self.handle_line(line):
                break


def build_coordinator(args: argparse.Namespace, config: ConfigManager) -> tuple:
    settings = config.get_settings()
    api_key = args.api_key or config.get_api_key()
    model_name = args.model or config.get_model_name()

    corrector = GeminiCorrector(
        api_key=api_key,
        model_name=model_name,
        request_timeout=settings.correction_timeout,
    )
    if not corrector.is_configured:
        logger.info("No Gemini API key found - suggestions come from built-in rules")
        logger.info("Get your key: https://aistudio.google.com/app/apikey")

    engine = CorrectionEngine(
        corrector,
        primary_timeout=settings.correction_timeout,
        enable_fallback=not args.no_fallback,
    )
    speech = SpeechService()
    coordinator = EditorCoordinator(engine, DraftStore(), speech, settings)
    return coordinator, engine, speech


def main(argv: Optional[list] = None) -> int:
    """Main application entry point."""
    args = parse_args(argv)

    log_level = logging.ERROR if args.quiet else (logging.DEBUG if args.verbose else logging.WARNING)
    log_file = Path(args.log_file) if args.log_file else None
    SpeakEasyLogger.setup(level=log_level, log_file=log_file, console=not args.quiet)

    config = ConfigManager()
    logger.info("Configuration loaded from: %s", config.config_file)

    coordinator, engine, speech = build_coordinator(args, config)
    editor = TerminalEditor(coordinator, speech)
    try:
        editor.run()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        speech.shutdown()
        coordinator.shutdown()
        engine.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
