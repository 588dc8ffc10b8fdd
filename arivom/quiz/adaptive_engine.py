"""
Adaptive Quiz Engine.

Pure quiz logic:
- select_difficulty: initial difficulty from the learner's mastery
- step_difficulty: one step easy <-> medium <-> hard from an attempt's score
- record_attempt: score an attempt, append it and recompute metrics
- identify_weak_concepts: per-concept accuracy across every attempt
- transition: quiz lifecycle (draft -> published -> active -> completed -> archived)

All functions validate before changing anything and return an updated copy.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime

from arivom.core.errors import ValidationError
from arivom.core.scoring import round_half_up
from arivom.models import (
    DIFFICULTY_SCALE,
    AdaptiveDifficultyConfig,
    AdaptiveQuiz,
    AnswerRecord,
    Attempt,
    ConceptPerformance,
    Difficulty,
    PerformanceMetrics,
    QuizStatus,
)

EASY_CEILING = 40
MEDIUM_CEILING = 70
CONCEPT_REVIEW_THRESHOLD = 70
PASS_THRESHOLD = 70

ATTEMPTABLE_STATUSES = frozenset({QuizStatus.PUBLISHED, QuizStatus.ACTIVE})

ALLOWED_TRANSITIONS: dict[QuizStatus, frozenset[QuizStatus]] = {
    QuizStatus.DRAFT: frozenset({QuizStatus.PUBLISHED, QuizStatus.ACTIVE, QuizStatus.ARCHIVED}),
    QuizStatus.PUBLISHED: frozenset({QuizStatus.ACTIVE, QuizStatus.COMPLETED, QuizStatus.ARCHIVED}),
    QuizStatus.ACTIVE: frozenset({QuizStatus.COMPLETED, QuizStatus.ARCHIVED}),
    QuizStatus.COMPLETED: frozenset({QuizStatus.ARCHIVED}),
    QuizStatus.ARCHIVED: frozenset(),
}


# =============================================================================
# Difficulty
# =============================================================================

def select_difficulty(mastery_score: float | None = None, requested: Difficulty | str | None = None) -> Difficulty:
    """
    Pick a quiz difficulty.

    A requested difficulty always wins. Otherwise the mastery score decides
    (a learner with no record counts as 0): < 40 easy, < 70 medium, else hard.
    """
    if requested is not None:
        return Difficulty(requested)
    score = mastery_score or 0
    if score < EASY_CEILING:
        return Difficulty.EASY
    if score < MEDIUM_CEILING:
        return Difficulty.MEDIUM
    return Difficulty.HARD


def step_difficulty(current: Difficulty, percentage: float, config: AdaptiveDifficultyConfig) -> Difficulty:
    """Move one step up or down the difficulty scale, clamped at both ends."""
    if not config.enabled:
        return current
    index = DIFFICULTY_SCALE.index(current)
    if percentage >= config.level_up_threshold:
        return DIFFICULTY_SCALE[min(index + 1, len(DIFFICULTY_SCALE) - 1)]
    if percentage < config.level_down_threshold:
        return DIFFICULTY_SCALE[max(index - 1, 0)]
    return current


# =============================================================================
# Attempts
# =============================================================================

def _validate_attempt(
    quiz: AdaptiveQuiz,
    started_at: datetime,
    completed_at: datetime,
    answers: Sequence[AnswerRecord],
) -> None:
    if quiz.status not in ATTEMPTABLE_STATUSES:
        raise ValidationError(f"Quiz {quiz.quiz_id} is {quiz.status.value}; attempts need a published or active quiz")
    if quiz.total_questions <= 0 or not quiz.questions:
        raise ValidationError(f"Quiz {quiz.quiz_id} has no questions")
    if quiz.total_questions != len(quiz.questions):
        raise ValidationError(
            f"Quiz {quiz.quiz_id} lists {quiz.total_questions} questions but holds {len(quiz.questions)}"
        )
    if completed_at < started_at:
        raise ValidationError("completed_at is before started_at")
    if len(answers) > quiz.total_questions:
        raise ValidationError(f"{len(answers)} answers for {quiz.total_questions} questions")

    known_ids = {q.question_id for q in quiz.questions}
    seen: set[str] = set()
    for answer in answers:
        if not answer.question_id:
            raise ValidationError("Every answer must reference a question")
        if answer.question_id not in known_ids:
            raise ValidationError(f"Unknown question {answer.question_id}")
        if answer.question_id in seen:
            raise ValidationError(f"Question {answer.question_id} answered more than once")
        seen.add(answer.question_id)


def _concepts_missed(quiz: AdaptiveQuiz, answers: Iterable[AnswerRecord]) -> list[str]:
    missed: list[str] = []
    for answer in answers:
        if answer.is_correct:
            continue
        question = quiz.find_question(answer.question_id)
        if question is None:
            continue
        for concept in question.concepts:
            if concept not in missed:
                missed.append(concept)
    return missed


def compute_performance_metrics(attempts: Sequence[Attempt]) -> PerformanceMetrics:
    """Aggregate metrics over the full attempt log."""
    if not attempts:
        return PerformanceMetrics()
    scores = [a.score for a in attempts]
    passes = sum(1 for a in attempts if a.passed)
    return PerformanceMetrics(
        total_attempts=len(attempts),
        best_score=max(scores),
        lowest_score=min(scores),
        average_score=round_half_up(sum(scores) / len(scores)),
        pass_count=passes,
        fail_count=len(attempts) - passes,
        pass_rate=round_half_up(passes / len(attempts) * 100),
        average_time_spent=round_half_up(sum(a.time_spent for a in attempts) / len(attempts)),
    )


def record_attempt(
    quiz: AdaptiveQuiz,
    started_at: datetime,
    completed_at: datetime,
    answers: Sequence[AnswerRecord],
    concepts_with_errors: Iterable[str] | None = None,
) -> AdaptiveQuiz:
    """
    Score an attempt and append it to the quiz.

    An attempt passes at PASS_THRESHOLD percent, whatever the quiz's max_score.

    Args:
        quiz: Published or active quiz (not modified)
        started_at: Attempt start
        completed_at: Attempt end
        answers: Graded answers; unanswered questions count as incorrect
        concepts_with_errors: Override for the concepts missed; derived
            from the incorrectly answered questions when omitted

    Returns:
        Updated copy with the attempt and refreshed performance metrics

    Raises:
        ValidationError: quiz not attemptable or inconsistent input
    """
    _validate_attempt(quiz, started_at, completed_at, answers)

    total = quiz.total_questions
    correct = sum(1 for a in answers if a.is_correct)
    percentage = round_half_up(correct / total * 100)

    if concepts_with_errors is None:
        concepts = _concepts_missed(quiz, answers)
    else:
        concepts = list(concepts_with_errors)

    attempt = Attempt(
        attempt_number=len(quiz.attempts) + 1,
        started_at=started_at,
        completed_at=completed_at,
        time_spent=(completed_at - started_at).total_seconds() / 60,
        score=round_half_up(correct / total * quiz.max_score),
        max_score=quiz.max_score,
        percentage_score=percentage,
        passed=percentage >= PASS_THRESHOLD,
        answers=list(answers),
        correct_answers=correct,
        incorrect_answers=total - correct,
        unanswered=total - len(answers),
        concepts_with_errors=concepts,
        next_difficulty_recommended=step_difficulty(quiz.difficulty, percentage, quiz.adaptive_config),
    )

    updated = quiz.model_copy(deep=True)
    updated.attempts.append(attempt)
    updated.performance_metrics = compute_performance_metrics(updated.attempts)
    return updated


def identify_weak_concepts(quiz: AdaptiveQuiz) -> tuple[AdaptiveQuiz, list[str]]:
    """
    Rebuild per-concept accuracy from every answer of every attempt.

    Returns:
        (updated quiz, concepts with accuracy below 70) - calling it again on
        the result yields the same performance table
    """
    stats: dict[str, list[int]] = {}  # concept -> [correct, total]
    for attempt in quiz.attempts:
        for answer in attempt.answers:
            question = quiz.find_question(answer.question_id)
            if question is None:
                continue
            for concept in question.concepts:
                entry = stats.setdefault(concept, [0, 0])
                entry[1] += 1
                if answer.is_correct:
                    entry[0] += 1

    performance = []
    for concept, (correct, asked) in stats.items():
        accuracy = round_half_up(correct / asked * 100)
        performance.append(
            ConceptPerformance(
                concept=concept,
                questions_asked=asked,
                questions_correct=correct,
                accuracy=accuracy,
                needs_review=accuracy < CONCEPT_REVIEW_THRESHOLD,
            )
        )

    updated = quiz.model_copy(deep=True)
    updated.concept_performance = performance
    return updated, [p.concept for p in performance if p.needs_review]


# =============================================================================
# Lifecycle
# =============================================================================

def transition(quiz: AdaptiveQuiz, status: QuizStatus | str) -> AdaptiveQuiz:
    """
    Move a quiz to a new lifecycle status.

    Raises:
        ValueError: the move is not allowed (e.g. archived -> active)
    """
    status = QuizStatus(status)
    if status == quiz.status:
        return quiz
    if status not in ALLOWED_TRANSITIONS[quiz.status]:
        raise ValidationError(f"Cannot move quiz from {quiz.status.value} to {status.value}")
    if status in ATTEMPTABLE_STATUSES and not quiz.questions:
        raise ValidationError("A quiz without questions cannot be published")
    return quiz.model_copy(update={"status": status})
