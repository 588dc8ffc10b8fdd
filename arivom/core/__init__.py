"""
Core utilities shared by every component.

- errors: exception taxonomy (not found, validation, provider failures)
- logging: loguru sink configuration
- scoring: rounding and timestamp helpers
"""

from arivom.core.errors import (
    ArivomError,
    LanguageModelError,
    NotFoundError,
    QuizGenerationError,
    ValidationError,
)
from arivom.core.scoring import round_half_up, utcnow

__all__ = [
    "ArivomError",
    "LanguageModelError",
    "NotFoundError",
    "QuizGenerationError",
    "ValidationError",
    "round_half_up",
    "utcnow",
]
