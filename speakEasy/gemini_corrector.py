"""
Gemini API backend that turns tremor-typed text into three structured variations.
"""
from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional

import google.generativeai as genai

from .errors import EngineUnavailable, MalformedResponse
from .logger import get_logger

logger = get_logger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"


class GeminiCorrector:
    """Structured text correction using the Google Gemini API."""

    SYSTEM_INSTRUCTION = "\n".join([
        "You are a text correction assistant for someone with hand tremors that cause typos.",
        "When given input text, generate exactly 3 different corrected interpretations.",
        "",
        "Requirements:",
        "- Variation 1: Direct correction of typos and errors (stay closest to original)",
        "- Variation 2: Refined phrasing with better grammar/punctuation",
        "- Variation 3: Alternative interpretation if meaning is ambiguous",
        "",
        "Each variation should be a complete, well-formed sentence.",
        "Variations must be meaningfully different, not just punctuation changes.",
    ])

    # Field order matches the candidate ranking shown to the user.
    RESPONSE_FIELDS: Dict[str, str] = {
        "direct_correction": "Direct correction of typos, staying closest to original input",
        "refined_phrasing": "Refined phrasing with improved grammar and punctuation",
        "alternative_interpretation": "Alternative interpretation if meaning is ambiguous",
    }

    @classmethod
    def response_schema(cls) -> Dict[str, Any]:
        """JSON schema handed to Gemini's structured output mode."""
        return {
            "type": "OBJECT",
            "properties": {
                name: {"type": "STRING", "description": description}
                for name, description in cls.RESPONSE_FIELDS.items()
            },
            "required": list(cls.RESPONSE_FIELDS),
        }

    @staticmethod
    def build_prompt(text: str) -> str:
        return f'Correct this text typed with tremoring hands: "{text}"'

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = DEFAULT_MODEL,
        temperature: float = 0.4,
        request_timeout: Optional[float] = None,
    ):
        """
        Initialize Gemini corrector.

        Args:
            api_key: Google API key (or set GEMINI_API_KEY env var)
            model_name: Gemini model to use
            temperature: Sampling temperature for all three variations
            request_timeout: Per-request timeout passed to the API client
        """
        self.api_key = api_key or os.getenv("GEMINI_API_KEY")
        self.model_name = model_name
        self.temperature = temperature
        self.request_timeout = request_timeout
        self.model = None
        self.is_configured = False

        if not self.api_key:
            logger.info("GeminiCorrector created without an API key; rule-based corrections only")
            return

        try:
            genai.configure(api_key=self.api_key)
            self.model = genai.GenerativeModel(
                model_name,
                system_instruction=self.SYSTEM_INSTRUCTION,
            )
            self.is_configured = True
            logger.info("GeminiCorrector initialized with model: %s", model_name)
        except Exception as e:
            logger.warning("Failed to configure Gemini: %s", e)
            self.model = None
            self.is_configured = False

    def respond(self, prompt: str, schema: Dict[str, Any]) -> Dict[str, Any]:
        """Send ``prompt`` and return the JSON object Gemini produced for ``schema``.

        Raises:
            EngineUnavailable: no API key or the client could not be configured
            MalformedResponse: the response was empty or not a JSON object
        """
        if not self.is_configured or self.model is None:
            raise EngineUnavailable("Gemini API not configured")

        request_options = {"timeout": self.request_timeout} if self.request_timeout else None
        response = self.model.generate_content(
            prompt,
            generation_config=genai.GenerationConfig(
                temperature=self.temperature,
                top_p=0.95,
                top_k=40,
                max_output_tokens=512,
                candidate_count=1,
                response_mime_type="application/json",
                response_schema=schema,
            ),
            request_options=request_options,
        )

        if not response or not hasattr(response, "text"):
            raise MalformedResponse("Empty response from Gemini")

        raw = self._clean_ai_response(response.text or "")
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise MalformedResponse(f"Gemini returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise MalformedResponse(f"Expected a JSON object, got {type(data).__name__}")
        return data

    def generate_variations(self, text: str) -> List[str]:
        """Return the three variations for ``text`` in ranking order."""
        data = self.respond(self.build_prompt(text), self.response_schema())

        variations: List[str] = []
        for name in self.RESPONSE_FIELDS:
            value = data.get(name)
            if not isinstance(value, str) or not value.strip():
                raise MalformedResponse(f"Missing or empty field '{name}'")
            variations.append(value.strip())

        for idx, variation in enumerate(variations, 1):
            preview = variation[:80] + ("..." if len(variation) > 80 else "")
            logger.debug("Gemini variation %d: '%s'", idx, preview)
        return variations

    @staticmethod
    def _clean_ai_response(text: str) -> str:
        """
        Strip formatting the model sometimes wraps around its JSON.

        Args:
            text: Raw AI response

        Returns:
            Text ready for ``json.loads``
        """
        text = text.strip()
        if not text:
            return ""

        # Remove markdown code blocks
        if text.startswith("```") and text.endswith("```"):
            text = text[3:-3].strip()
            # Remove language identifier if present
            if "\n" in text:
                lines = text.split("\n")
                if lines[0].strip().isalpha():
                    text = "\n".join(lines[1:]).strip()

        return text
