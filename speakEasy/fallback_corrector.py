"""Rule-based corrections used when the generative backend cannot answer."""
from __future__ import annotations

import re
from typing import Dict, List, Tuple

from .errors import ProcessingFailed

TERMINAL_PUNCTUATION = (".", "!", "?")

# Common typos produced by tremoring hands (extra, swapped or slipped keys).
TYPO_CORRECTIONS: Dict[str, str] = {
    "woudl": "would",
    "teh": "the",
    "adn": "and",
    "taht": "that",
    "recieve": "receive",
    "occured": "occurred",
    "seperate": "separate",
    "glasss": "glass",
    "wster": "water",
    "plese": "please",
    "cna": "can",
    "yuo": "you",
    "hte": "the",
    "dont": "don't",
    "cant": "can't",
    "wont": "won't",
    "didnt": "didn't",
    "doesnt": "doesn't",
    "havnt": "haven't",
    "hasnt": "hasn't",
}

REFINEMENTS: List[Tuple[str, str]] = [
    ("would like", "would like to have"),
    ("can you", "could you please"),
    ("wanna", "want to"),
]

CASUAL_REWRITES: List[Tuple[str, str]] = [
    ("would like", "want"),
    ("do not", "don't"),
    ("cannot", "can't"),
    ("i am", "I'm"),
]


def _phrase_pattern(phrase: str, replacement: str) -> "re.Pattern[str]":
    # Never rewrite a phrase that already reads as its replacement.
    pattern = r"\b" + re.escape(phrase) + r"\b"
    if replacement.lower().startswith(phrase.lower()):
        remainder = replacement[len(phrase):]
        if remainder:
            pattern += "(?!" + re.escape(remainder) + ")"
    return re.compile(pattern, re.IGNORECASE)


def replace_phrase(text: str, phrase: str, replacement: str) -> str:
    """Case-insensitive whole-word replacement keeping a leading capital."""
    def _substitute(match: "re.Match[str]") -> str:
        if match.group(0)[:1].isupper():
            return replacement[:1].upper() + replacement[1:]
        return replacement

    return _phrase_pattern(phrase, replacement).sub(_substitute, text)


def ensure_terminal_punctuation(text: str) -> str:
    if text and not text.endswith(TERMINAL_PUNCTUATION):
        return text + "."
    return text


def correct_typos(text: str) -> str:
    corrected = text
    for typo, correction in TYPO_CORRECTIONS.items():
        corrected = replace_phrase(corrected, typo, correction)

    if corrected:
        corrected = corrected[0].upper() + corrected[1:]
    return ensure_terminal_punctuation(corrected)


def refine_phrase(text: str) -> str:
    refined = text
    for phrase, replacement in REFINEMENTS:
        refined = replace_phrase(refined, phrase, replacement)
    return ensure_terminal_punctuation(refined)


def alternative_interpretation(text: str) -> str:
    alternative = text
    for phrase, replacement in CASUAL_REWRITES:
        alternative = replace_phrase(alternative, phrase, replacement)
    if alternative.endswith("."):
        alternative = alternative[:-1]
    return alternative


def generate_fallback_variations(text: str) -> List[str]:
    """Return literal, refined and alternative renderings of ``text``.

    Raises:
        ProcessingFailed: ``text`` is empty after trimming
    """
    trimmed = (text or "").strip()
    if not trimmed:
        raise ProcessingFailed("Nothing to correct after trimming input")

    literal = correct_typos(trimmed)
    return [
        literal,
        refine_phrase(literal),
        alternative_interpretation(literal),
    ]
