"""
Exception types raised by the engine.

Missing entities and validation failures reach the caller. Provider failures
(LanguageModelError, QuizGenerationError) are caught inside the services and
turned into degraded results.
"""

from __future__ import annotations


class ArivomError(Exception):
    """Base class for engine errors."""


class NotFoundError(ArivomError, LookupError):
    """A course, quiz, plan or journal entry does not exist."""

    def __init__(self, entity: str, key: str):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class ValidationError(ArivomError, ValueError):
    """Input rejected before any state was changed."""


class LanguageModelError(ArivomError):
    """The language model provider failed or is not configured."""


class QuizGenerationError(ArivomError):
    """Questions could not be produced for a quiz."""
