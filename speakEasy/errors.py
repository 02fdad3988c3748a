"""Error taxonomy for text checking, persistence and request supersession."""
from __future__ import annotations


class SpeakEasyError(Exception):
    """Base class for SpeakEasy errors.

    ``user_message`` is the text a front end may show; it always describes a
    retryable situation.
    """

    user_message = "Something went wrong. Please try again."

    def __init__(self, detail: str = "", user_message: str | None = None) -> None:
        super().__init__(detail or self.user_message)
        self.detail = detail
        if user_message is not None:
            self.user_message = user_message


class EngineUnavailable(SpeakEasyError):
    """No correction capability at all, the fallback included."""

    user_message = "Text checking is not available right now. Please try again in a moment."


class ProcessingFailed(SpeakEasyError):
    """Degenerate input, or the rule-based generator produced nothing usable."""

    user_message = "Couldn't check your text. Please try again."


class PersistenceFailure(SpeakEasyError):
    """Reading or writing the draft/settings failed. Logged, never shown."""

    user_message = "Your draft could not be saved."


class MalformedResponse(SpeakEasyError):
    """The generative backend answered with something we cannot use."""


class StaleResult(SpeakEasyError):
    """A correction finished after a newer request had superseded it."""
