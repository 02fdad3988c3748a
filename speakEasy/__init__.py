"""SpeakEasy - tremor-friendly text editing core.

Turns text typed with unsteady hands into three candidate corrections using
Google's Gemini API (with a rule-based fallback), keeps the draft safely
autosaved, and reads text aloud through the system speech engine.
"""

__version__ = "1.0.0"
__author__ = "SpeakEasy Project"
__license__ = "MIT"

# Package metadata
__all__ = [
    "__version__",
    "__author__",
    "__license__",
]
