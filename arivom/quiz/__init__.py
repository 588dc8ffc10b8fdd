# Adaptive quizzes: difficulty logic, question generation and attempt handling
from .adaptive_engine import (
    identify_weak_concepts,
    record_attempt,
    select_difficulty,
    step_difficulty,
    transition,
)
from .question_generator import QuestionGenerator
from .quiz_service import AdaptiveQuizService, QuizSubmission, grade_answers

__all__ = [
    "AdaptiveQuizService",
    "QuestionGenerator",
    "QuizSubmission",
    "grade_answers",
    "identify_weak_concepts",
    "record_attempt",
    "select_difficulty",
    "step_difficulty",
    "transition",
]
