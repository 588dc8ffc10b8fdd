"""
Domain models for the learning engine.

Every persisted entity is a pydantic model; the document store holds their
JSON form (model_dump(mode="json")).
"""

from arivom.models.course import Chunk, Course, Material
from arivom.models.evaluation import EvaluationMetric, MetricType
from arivom.models.mastery import (
    Classification,
    LearningSpeed,
    RecentQuiz,
    TopicMastery,
    TrackedMistake,
)
from arivom.models.memory import (
    AdjustmentSource,
    CompletedTopic,
    CopilotInteraction,
    CurrentTopic,
    LearningMemory,
    LearningPatterns,
    LearningStatistics,
    LearningVelocity,
    MistakeEntry,
    PlanAdjustment,
    QuizHistoryEntry,
    TopicClassificationCache,
)
from arivom.models.plan import LearningPlan, Week, WeekStatus
from arivom.models.quiz import (
    DIFFICULTY_SCALE,
    AdaptiveDifficultyConfig,
    AdaptiveQuiz,
    AnswerRecord,
    Attempt,
    ConceptPerformance,
    Difficulty,
    PerformanceMetrics,
    Question,
    QuestionType,
    QuizOrigin,
    QuizStatus,
)

__all__ = [
    # Course
    "Chunk",
    "Course",
    "Material",
    # Mastery
    "Classification",
    "LearningSpeed",
    "RecentQuiz",
    "TopicMastery",
    "TrackedMistake",
    # Quiz
    "DIFFICULTY_SCALE",
    "AdaptiveDifficultyConfig",
    "AdaptiveQuiz",
    "AnswerRecord",
    "Attempt",
    "ConceptPerformance",
    "Difficulty",
    "PerformanceMetrics",
    "Question",
    "QuestionType",
    "QuizOrigin",
    "QuizStatus",
    # Memory
    "AdjustmentSource",
    "CompletedTopic",
    "CopilotInteraction",
    "CurrentTopic",
    "LearningMemory",
    "LearningPatterns",
    "LearningStatistics",
    "LearningVelocity",
    "MistakeEntry",
    "PlanAdjustment",
    "QuizHistoryEntry",
    "TopicClassificationCache",
    # Plan
    "LearningPlan",
    "Week",
    "WeekStatus",
    # Evaluation
    "EvaluationMetric",
    "MetricType",
]
