"""
Topic mastery models.

TopicMastery is keyed by (user, course, topic). Its classification is always
derived from mastery_score by arivom.learning.mastery_tracker.classify; nothing
in this module recomputes it implicitly.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from arivom.models.quiz import Difficulty


class Classification(str, Enum):
    """Mastery bucket derived from the 0-100 mastery score."""

    WEAK = "weak"  # < 40
    MEDIUM = "medium"  # 40-74
    STRONG = "strong"  # >= 75


class LearningSpeed(str, Enum):
    SLOW = "slow"
    MODERATE = "moderate"
    FAST = "fast"


class RecentQuiz(BaseModel):
    """One entry of the recent-quiz ring buffer."""

    quiz_id: str | None = None
    score: int = Field(ge=0, le=100)
    difficulty: Difficulty = Difficulty.MEDIUM
    time_spent: float = 0.0
    attempted_at: datetime


class TrackedMistake(BaseModel):
    mistake: str
    first_occurred_at: datetime
    occurrences: int = 1
    corrected_at: datetime | None = None


class TopicMastery(BaseModel):
    """Per-learner mastery state for a single course topic."""

    user_id: str
    course_id: str
    topic_name: str
    topic_order: int = 0

    mastery_score: int = Field(default=0, ge=0, le=100)
    classification: Classification = Classification.WEAK

    quiz_attempts: int = 0
    practice_sessions_completed: int = 0
    total_time_spent: float = 0.0  # minutes

    average_quiz_score: int = Field(default=0, ge=0, le=100)
    highest_quiz_score: int = Field(default=0, ge=0, le=100)
    lowest_quiz_score: int = Field(default=0, ge=0, le=100)
    recent_quizzes: list[RecentQuiz] = Field(default_factory=list)

    weak_areas: list[str] = Field(default_factory=list)
    concepts_understood: list[str] = Field(default_factory=list)
    concepts_to_review: list[str] = Field(default_factory=list)
    learning_speed: LearningSpeed = LearningSpeed.MODERATE
    mistakes_tracked: list[TrackedMistake] = Field(default_factory=list)

    first_attempt_at: datetime | None = None
    last_studied_at: datetime | None = None
    completed_at: datetime | None = None
    updated_at: datetime | None = None
