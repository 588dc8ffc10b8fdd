"""
Learning memory models: the long-lived learner journal per (user, course).
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

from arivom.models.quiz import Difficulty


class LearningVelocity(str, Enum):
    SLOW = "slow"
    MODERATE = "moderate"
    FAST = "fast"
    VARIABLE = "variable"


class AdjustmentSource(str, Enum):
    USER = "user"
    COPILOT = "copilot-recommendation"
    SYSTEM = "system-auto"


class CompletedTopic(BaseModel):
    topic_name: str
    completed_at: datetime
    mastery_score_at_completion: int = 0
    time_spent: float = 0.0
    resources_used: list[str] = Field(default_factory=list)


class CurrentTopic(BaseModel):
    topic_name: str
    started_at: datetime
    time_spent: float = 0.0
    progress_percentage: int = 0


class QuizHistoryEntry(BaseModel):
    quiz_id: str | None = None
    topic_name: str
    attempt_number: int
    score: float
    max_score: float = 100
    difficulty: Difficulty = Difficulty.MEDIUM
    time_spent: float = 0.0
    questions_answered: int = 0
    questions_correct: int = 0
    attempted_at: datetime
    key_learnings: list[str] = Field(default_factory=list)


class MistakeEntry(BaseModel):
    """A logged mistake. Open until corrected; never reopened."""

    mistake_id: str = Field(default_factory=lambda: uuid4().hex)
    topic: str
    concept: str
    mistake_description: str = ""
    correct_answer: str = ""
    first_occurred_at: datetime
    last_occurred_at: datetime
    occurrence_count: int = 1
    is_corrected: bool = False
    corrected_at: datetime | None = None
    reviewed_count: int = 0


class LearningPatterns(BaseModel):
    average_session_duration: int = 0  # minutes
    average_sessions_per_week: float = 0.0
    average_time_per_topic: float = 0.0
    learning_velocity: LearningVelocity = LearningVelocity.MODERATE
    consistency_score: int = Field(default=0, ge=0, le=100)
    consecutive_days_learning: int = 0
    longest_streak: int = 0


class TopicClassificationCache(BaseModel):
    weak: list[str] = Field(default_factory=list)
    medium: list[str] = Field(default_factory=list)
    strong: list[str] = Field(default_factory=list)


class CopilotInteraction(BaseModel):
    interaction_id: str = Field(default_factory=lambda: uuid4().hex)
    interaction_type: str  # question, explanation, agent-session, plan-adjustment
    topic: str | None = None
    query: str
    response: str
    helpfulness_rating: int | None = None
    timestamp: datetime


class PlanAdjustment(BaseModel):
    adjustment_date: datetime
    reason: str  # weak-topic-repeat, fast-track-strong, pacing-adjustment
    topics_affected: list[str] = Field(default_factory=list)
    old_weeks: list[int] = Field(default_factory=list)
    new_weeks: list[int] = Field(default_factory=list)
    automated_by: AdjustmentSource = AdjustmentSource.COPILOT


class LearningStatistics(BaseModel):
    total_topics_covered: int = 0
    total_quizzes_taken: int = 0
    average_quiz_score: int = 0
    total_mistakes_made: int = 0
    total_mistakes_corrected: int = 0
    total_time_invested: float = 0.0  # minutes
    last_activity_at: datetime | None = None


class LearningMemory(BaseModel):
    user_id: str
    course_id: str
    learning_plan_id: str | None = None
    course_title: str = ""
    course_level: str = ""

    completed_topics: list[CompletedTopic] = Field(default_factory=list)
    current_topics: list[CurrentTopic] = Field(default_factory=list)
    quiz_history: list[QuizHistoryEntry] = Field(default_factory=list)
    mistake_log: list[MistakeEntry] = Field(default_factory=list)
    learning_patterns: LearningPatterns = Field(default_factory=LearningPatterns)
    topic_classification: TopicClassificationCache = Field(default_factory=TopicClassificationCache)
    copilot_interactions: list[CopilotInteraction] = Field(default_factory=list)
    statistics: LearningStatistics = Field(default_factory=LearningStatistics)
    plan_adjustments: list[PlanAdjustment] = Field(default_factory=list)

    @property
    def open_mistakes(self) -> list[MistakeEntry]:
        return [m for m in self.mistake_log if not m.is_corrected]
