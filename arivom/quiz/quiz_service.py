"""
Adaptive quiz service.

Ties the quiz engine to the learner state:
- generate_quiz: difficulty from mastery, questions from the model, published
  on success and stored as an empty draft on failure
- submit_attempt: score, find weak concepts, then update mastery, the
  learning memory and the evaluation metrics
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from loguru import logger

from arivom.core.errors import QuizGenerationError
from arivom.core.scoring import utcnow
from arivom.db.repositories import AdaptiveQuizRepository, CourseRepository
from arivom.evaluation.metrics import EvaluationService
from arivom.learning.mastery_tracker import MasteryTracker
from arivom.learning.memory import LearningMemoryService
from arivom.models import (
    AdaptiveDifficultyConfig,
    AdaptiveQuiz,
    AnswerRecord,
    Attempt,
    Classification,
    Difficulty,
    Question,
    QuestionType,
    QuizOrigin,
    QuizStatus,
    TopicMastery,
)
from arivom.quiz.adaptive_engine import identify_weak_concepts, record_attempt, select_difficulty
from arivom.quiz.question_generator import QuestionGenerator
from arivom.semantic.retriever import Retriever

DEFAULT_QUESTION_COUNT = 10
CONTEXT_SNIPPETS = 3


@dataclass
class QuizSubmission:
    """Outcome of a submitted attempt."""

    quiz: AdaptiveQuiz
    attempt: Attempt
    weak_concepts: list[str]
    mastery: TopicMastery
    mastery_delta: int
    next_difficulty: Difficulty | None = None
    notes: list[str] = field(default_factory=list)


def grade_answer(question: Question, selected: str | None) -> bool:
    """Check a raw selection (option index or text) against a question."""
    if selected is None or not str(selected).strip():
        return False
    selected = str(selected).strip()

    if question.question_type == QuestionType.SHORT_ANSWER:
        return bool(question.correct_answer) and selected.lower() == question.correct_answer.strip().lower()

    if question.correct_answer_index is None:
        return False
    correct_text = question.options[question.correct_answer_index].strip().lower()
    if selected.lower() == correct_text:
        return True
    # an index only counts when it does not name another option by text
    if selected.isdigit() and selected.lower() not in (o.strip().lower() for o in question.options):
        return int(selected) == question.correct_answer_index
    return False


def grade_answers(quiz: AdaptiveQuiz, selections: Mapping[str, str | None]) -> list[AnswerRecord]:
    """Grade raw selections keyed by question id, in question order."""
    records = []
    for question in quiz.questions:
        if question.question_id not in selections:
            continue
        selected = selections[question.question_id]
        records.append(
            AnswerRecord(
                question_id=question.question_id,
                selected_answer=selected,
                is_correct=grade_answer(question, selected),
            )
        )
    return records


class AdaptiveQuizService:
    def __init__(
        self,
        quizzes: AdaptiveQuizRepository,
        courses: CourseRepository,
        mastery: MasteryTracker,
        memory: LearningMemoryService,
        generator: QuestionGenerator,
        evaluation: EvaluationService,
        retriever: Retriever | None = None,
        quiz_config: Mapping[str, int] | None = None,
    ):
        self.quizzes = quizzes
        self.courses = courses
        self.mastery = mastery
        self.memory = memory
        self.generator = generator
        self.evaluation = evaluation
        self.retriever = retriever
        self.config = dict(quiz_config or {})

    def generate_quiz(
        self,
        user_id: str,
        course_id: str,
        topic_name: str,
        requested_difficulty: Difficulty | str | None = None,
        question_count: int | None = None,
    ) -> AdaptiveQuiz:
        """
        Create a quiz for a topic at a difficulty matched to the learner.

        Raises:
            NotFoundError: the course does not exist
        """
        course = self.courses.require(course_id)
        question_count = question_count or self.config.get("question_count", DEFAULT_QUESTION_COUNT)

        mastery = self.mastery.get(user_id, course_id, topic_name)
        difficulty = select_difficulty(mastery.mastery_score if mastery else None, requested_difficulty)

        quiz = AdaptiveQuiz(
            user_id=user_id,
            course_id=course_id,
            topic_name=topic_name,
            title=f"Adaptive Quiz: {topic_name}",
            description=f"{difficulty.value.capitalize()} quiz on {topic_name}",
            difficulty=difficulty,
            adaptive_config=AdaptiveDifficultyConfig(
                level_up_threshold=self.config.get("level_up_threshold", 80),
                level_down_threshold=self.config.get("level_down_threshold", 60),
            ),
            max_score=self.config.get("max_score", 100),
            time_limit=self.config.get("time_limit", 30),
            created_at=utcnow(),
        )

        context = []
        if self.retriever is not None:
            context = [r.text for r in self.retriever.retrieve_for_course(course, topic_name, CONTEXT_SNIPPETS)]

        try:
            questions = self.generator.generate(
                topic_name, difficulty, question_count, course_title=course.title, context=context
            )
        except QuizGenerationError as e:
            logger.warning(f"Quiz generation for '{topic_name}' failed, storing draft: {e}")
            self.quizzes.save(quiz)
            return quiz

        quiz.questions = questions
        quiz.total_questions = len(questions)
        quiz.status = QuizStatus.PUBLISHED
        quiz.created_by = QuizOrigin.AI
        quiz.generation_prompt = self.generator.build_prompt(
            topic_name, difficulty, question_count, course.title, context
        )
        self.quizzes.save(quiz)
        logger.info(f"Published quiz {quiz.quiz_id} ({difficulty.value}, {quiz.total_questions} questions)")
        return quiz

    def get_quiz(self, quiz_id: str) -> AdaptiveQuiz:
        return self.quizzes.require(quiz_id)

    def submit_attempt(
        self,
        quiz_id: str,
        started_at: datetime,
        completed_at: datetime,
        answers: Sequence[AnswerRecord],
    ) -> QuizSubmission:
        """
        Record an attempt and propagate it to mastery and memory.

        Raises:
            NotFoundError: no such quiz
            ValidationError: attempt rejected (draft quiz, bad timing, too many answers)
        """
        quiz = self.quizzes.require(quiz_id)
        updated = record_attempt(quiz, started_at, completed_at, answers)
        updated, weak_concepts = identify_weak_concepts(updated)
        self.quizzes.save(updated)

        attempt = updated.attempts[-1]
        user_id, course_id, topic = quiz.user_id, quiz.course_id, quiz.topic_name

        before = self.mastery.get_or_create(user_id, course_id, topic)
        mastery = self.mastery.record_quiz_result(
            user_id,
            course_id,
            topic,
            attempt.percentage_score,
            difficulty=quiz.difficulty,
            time_spent=attempt.time_spent,
            quiz_id=quiz.quiz_id,
        )
        for concept in attempt.concepts_with_errors:
            mastery = self.mastery.track_mistake(user_id, course_id, topic, concept)

        self.memory.record_quiz_attempt(
            user_id,
            course_id,
            topic,
            attempt.score,
            max_score=attempt.max_score,
            difficulty=quiz.difficulty,
            time_spent=attempt.time_spent,
            questions_answered=len(attempt.answers),
            questions_correct=attempt.correct_answers,
            quiz_id=quiz.quiz_id,
        )
        for concept in attempt.concepts_with_errors:
            self.memory.record_mistake(user_id, course_id, topic, concept, description=f"Missed question on {concept}")

        notes = []
        if mastery.classification == Classification.STRONG:
            self.memory.complete_topic(
                user_id, course_id, topic, mastery_score=mastery.mastery_score, time_spent=mastery.total_time_spent
            )
            notes.append(f"'{topic}' mastered")
        self.memory.refresh_topic_classification(user_id, course_id, self.mastery.list_topics(user_id, course_id))

        delta = mastery.mastery_score - before.mastery_score
        self.evaluation.log_answer_correctness(course_id, user_id, attempt.percentage_score)
        self.evaluation.log_mastery_improvement(course_id, user_id, delta)

        logger.info(
            f"Attempt {attempt.attempt_number} on quiz {quiz.quiz_id}: {attempt.percentage_score}% "
            f"({'passed' if attempt.passed else 'failed'}), mastery {before.mastery_score} -> {mastery.mastery_score}"
        )
        return QuizSubmission(
            quiz=updated,
            attempt=attempt,
            weak_concepts=weak_concepts,
            mastery=mastery,
            mastery_delta=delta,
            next_difficulty=attempt.next_difficulty_recommended,
            notes=notes,
        )
