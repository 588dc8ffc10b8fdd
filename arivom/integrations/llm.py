"""
Language model clients.

The engine treats text generation as a black box:
    complete(prompt) -> str, raising LanguageModelError on any failure.

Implementations:
- NullLanguageModel: always fails (no provider configured); callers degrade
- GeminiLanguageModel: Google Generative AI (Gemini)
"""

from __future__ import annotations

import json
import re
from typing import Any, Protocol, runtime_checkable

from loguru import logger

from arivom.core.errors import LanguageModelError


@runtime_checkable
class LanguageModel(Protocol):
    @property
    def is_available(self) -> bool: ...

    def complete(self, prompt: str) -> str: ...


class NullLanguageModel:
    """Stand-in used when no API key is configured."""

    @property
    def is_available(self) -> bool:
        return False

    def complete(self, prompt: str) -> str:
        raise LanguageModelError("No language model configured")


class GeminiLanguageModel:
    """
    Text generation through Gemini.

    The google-generativeai client is created on first use.
    """

    def __init__(
        self,
        api_key: str | None,
        model_name: str = "gemini-1.5-flash",
        timeout_seconds: float = 30.0,
    ):
        """
        Initialize the client.

        Args:
            api_key: Gemini API key
            model_name: Model to use for generation
            timeout_seconds: Per-request timeout
        """
        self.api_key = api_key
        self.model_name = model_name
        self.timeout_seconds = timeout_seconds
        self._client = None

        if not self.api_key:
            logger.warning("No Gemini API key - language model disabled")

    @property
    def is_available(self) -> bool:
        return bool(self.api_key)

    def complete(self, prompt: str) -> str:
        if not self.is_available:
            raise LanguageModelError("Gemini API key not configured")

        try:
            # Lazy import to avoid dependency if not used
            import google.generativeai as genai

            if self._client is None:
                genai.configure(api_key=self.api_key)
                self._client = genai.GenerativeModel(model_name=self.model_name)

            response = self._client.generate_content(
                prompt, request_options={"timeout": self.timeout_seconds}
            )
            text = response.text
        except Exception as e:
            logger.error(f"Gemini generation failed: {e}")
            raise LanguageModelError(str(e)) from e

        if not text or not text.strip():
            raise LanguageModelError("Empty response from Gemini")
        return text


def build_language_model(settings) -> LanguageModel:
    """Pick the language model for the configured credentials."""
    if settings.has_ai_configured():
        return GeminiLanguageModel(
            api_key=settings.gemini_api_key,
            model_name=settings.llm_model,
            timeout_seconds=settings.llm_timeout_seconds,
        )
    logger.info("Language model not configured - using fallbacks")
    return NullLanguageModel()


_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


def extract_json(text: str) -> Any:
    """
    Parse JSON from a model reply, tolerating markdown code fences and
    surrounding prose.

    Raises:
        LanguageModelError: no JSON could be parsed
    """
    candidates = [m.group(1) for m in _FENCE_PATTERN.finditer(text)]
    candidates.append(text)
    for opener, closer in (("[", "]"), ("{", "}")):
        start, end = text.find(opener), text.rfind(closer)
        if 0 <= start < end:
            candidates.append(text[start : end + 1])

    for candidate in candidates:
        try:
            return json.loads(candidate.strip())
        except json.JSONDecodeError:
            continue
    raise LanguageModelError("Model reply did not contain valid JSON")
