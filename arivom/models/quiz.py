"""
Adaptive quiz models.

An AdaptiveQuiz owns its questions, an append-only attempt log and the
aggregates recomputed from that log (performance metrics, per-concept stats).
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field


class Difficulty(str, Enum):
    """Quiz difficulty, ordered easy < medium < hard."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


DIFFICULTY_SCALE: tuple[Difficulty, ...] = (Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD)


class QuizStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    SHORT_ANSWER = "short-answer"


class QuizOrigin(str, Enum):
    INSTRUCTOR = "instructor"
    SYSTEM = "system-generated"
    AI = "ai-generated"


class Question(BaseModel):
    question_id: str = Field(default_factory=lambda: uuid4().hex)
    question_text: str
    question_type: QuestionType = QuestionType.MULTIPLE_CHOICE
    options: list[str] = Field(default_factory=list)
    correct_answer_index: int | None = None
    correct_answer: str | None = None  # short-answer questions
    explanation: str = ""
    difficulty: Difficulty = Difficulty.MEDIUM
    concepts: list[str] = Field(default_factory=list)
    points_value: int = 1


class AnswerRecord(BaseModel):
    """A learner's answer to one question, already graded by the caller."""

    question_id: str = Field(min_length=1)
    selected_answer: str | None = None
    is_correct: bool
    time_taken: float | None = None
    flagged_for_review: bool = False


class Attempt(BaseModel):
    attempt_number: int
    started_at: datetime
    completed_at: datetime
    time_spent: float  # minutes
    score: int
    max_score: int
    percentage_score: int
    passed: bool
    answers: list[AnswerRecord] = Field(default_factory=list)
    correct_answers: int
    incorrect_answers: int
    unanswered: int = 0
    concepts_with_errors: list[str] = Field(default_factory=list)
    next_difficulty_recommended: Difficulty | None = None


class PerformanceMetrics(BaseModel):
    total_attempts: int = 0
    best_score: int = 0
    average_score: int = 0
    lowest_score: int = 0
    pass_count: int = 0
    fail_count: int = 0
    pass_rate: int = 0
    average_time_spent: int = 0


class ConceptPerformance(BaseModel):
    concept: str
    questions_asked: int
    questions_correct: int
    accuracy: int
    needs_review: bool


class AdaptiveDifficultyConfig(BaseModel):
    """Per-quiz thresholds for the difficulty step function."""

    enabled: bool = True
    level_up_threshold: int = Field(default=80, ge=0, le=100)
    level_down_threshold: int = Field(default=60, ge=0, le=100)


class AdaptiveQuiz(BaseModel):
    quiz_id: str = Field(default_factory=lambda: uuid4().hex)
    user_id: str
    course_id: str
    topic_name: str

    title: str
    description: str = ""
    difficulty: Difficulty = Difficulty.MEDIUM
    adaptive_config: AdaptiveDifficultyConfig = Field(default_factory=AdaptiveDifficultyConfig)

    questions: list[Question] = Field(default_factory=list)
    total_questions: int = 0
    max_score: int = 100
    time_limit: int = 30  # minutes

    status: QuizStatus = QuizStatus.DRAFT
    attempts: list[Attempt] = Field(default_factory=list)
    performance_metrics: PerformanceMetrics = Field(default_factory=PerformanceMetrics)
    concept_performance: list[ConceptPerformance] = Field(default_factory=list)

    created_by: QuizOrigin = QuizOrigin.SYSTEM
    generation_prompt: str | None = None
    created_at: datetime | None = None

    def find_question(self, question_id: str) -> Question | None:
        for question in self.questions:
            if question.question_id == question_id:
                return question
        return None

    @property
    def last_attempt(self) -> Attempt | None:
        return self.attempts[-1] if self.attempts else None
