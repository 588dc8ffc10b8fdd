"""
Learning Memory: the learner journal per (user, course).

Records quiz history, the mistake log, copilot interactions, plan adjustments
and aggregate statistics. All journal updates are pure functions returning an
updated copy; LearningMemoryService loads and saves around them.

Mistakes:
- deduplicated per (topic, concept) among open mistakes
- correcting is one-way; a recurrence after correction opens a new entry
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from loguru import logger

from arivom.core.errors import NotFoundError, ValidationError
from arivom.core.scoring import round_half_up, utcnow
from arivom.db.repositories import LearningMemoryRepository, compose_key
from arivom.models import (
    AdjustmentSource,
    Classification,
    CompletedTopic,
    CopilotInteraction,
    Difficulty,
    LearningMemory,
    LearningVelocity,
    MistakeEntry,
    PlanAdjustment,
    QuizHistoryEntry,
    TopicMastery,
)

INTERACTION_RESPONSE_MAX_CHARS = 500

FAST_MINUTES_PER_TOPIC = 30
MODERATE_MINUTES_PER_TOPIC = 60


# =============================================================================
# Journal updates
# =============================================================================

def record_quiz_attempt(
    memory: LearningMemory,
    topic_name: str,
    score: float,
    max_score: float = 100,
    difficulty: Difficulty = Difficulty.MEDIUM,
    time_spent: float = 0.0,
    questions_answered: int = 0,
    questions_correct: int = 0,
    quiz_id: str | None = None,
    key_learnings: Iterable[str] = (),
    now: datetime | None = None,
) -> LearningMemory:
    """Append a quiz to the history; attempt numbers count per topic."""
    if max_score <= 0:
        raise ValidationError(f"max_score must be positive, got {max_score}")
    now = now or utcnow()
    updated = memory.model_copy(deep=True)

    attempt_number = sum(1 for q in updated.quiz_history if q.topic_name == topic_name) + 1
    updated.quiz_history.append(
        QuizHistoryEntry(
            quiz_id=quiz_id,
            topic_name=topic_name,
            attempt_number=attempt_number,
            score=score,
            max_score=max_score,
            difficulty=difficulty,
            time_spent=time_spent,
            questions_answered=questions_answered,
            questions_correct=questions_correct,
            attempted_at=now,
            key_learnings=list(key_learnings),
        )
    )

    stats = updated.statistics
    stats.total_quizzes_taken += 1
    percentages = [q.score / q.max_score * 100 for q in updated.quiz_history]
    stats.average_quiz_score = round_half_up(sum(percentages) / len(percentages))
    stats.last_activity_at = now
    return updated


def record_mistake(
    memory: LearningMemory,
    topic: str,
    concept: str,
    description: str = "",
    correct_answer: str = "",
    now: datetime | None = None,
) -> LearningMemory:
    now = now or utcnow()
    updated = memory.model_copy(deep=True)

    for mistake in updated.mistake_log:
        if mistake.topic == topic and mistake.concept == concept and not mistake.is_corrected:
            mistake.occurrence_count += 1
            mistake.last_occurred_at = now
            return updated

    updated.mistake_log.append(
        MistakeEntry(
            topic=topic,
            concept=concept,
            mistake_description=description,
            correct_answer=correct_answer,
            first_occurred_at=now,
            last_occurred_at=now,
        )
    )
    updated.statistics.total_mistakes_made += 1
    return updated


def correct_mistake(memory: LearningMemory, mistake_id: str, now: datetime | None = None) -> LearningMemory:
    """
    Mark a mistake corrected. Already-corrected mistakes are left as they are.

    Raises:
        NotFoundError: no mistake with this id
    """
    updated = memory.model_copy(deep=True)
    for mistake in updated.mistake_log:
        if mistake.mistake_id == mistake_id:
            if not mistake.is_corrected:
                mistake.is_corrected = True
                mistake.corrected_at = now or utcnow()
                updated.statistics.total_mistakes_corrected += 1
            return updated
    raise NotFoundError("Mistake", mistake_id)


def record_interaction(
    memory: LearningMemory,
    interaction_type: str,
    query: str,
    response: str,
    topic: str | None = None,
    now: datetime | None = None,
    max_chars: int = INTERACTION_RESPONSE_MAX_CHARS,
) -> LearningMemory:
    """Log a copilot exchange; the stored response is truncated."""
    updated = memory.model_copy(deep=True)
    updated.copilot_interactions.append(
        CopilotInteraction(
            interaction_type=interaction_type,
            topic=topic,
            query=query,
            response=response[:max_chars],
            timestamp=now or utcnow(),
        )
    )
    return updated


def record_plan_adjustment(
    memory: LearningMemory,
    reason: str,
    topics_affected: Iterable[str],
    old_weeks: Iterable[int] = (),
    new_weeks: Iterable[int] = (),
    automated_by: AdjustmentSource = AdjustmentSource.COPILOT,
    now: datetime | None = None,
) -> LearningMemory:
    updated = memory.model_copy(deep=True)
    updated.plan_adjustments.append(
        PlanAdjustment(
            adjustment_date=now or utcnow(),
            reason=reason,
            topics_affected=list(topics_affected),
            old_weeks=list(old_weeks),
            new_weeks=list(new_weeks),
            automated_by=automated_by,
        )
    )
    return updated


def complete_topic(
    memory: LearningMemory,
    topic_name: str,
    mastery_score: int = 0,
    time_spent: float = 0.0,
    resources_used: Iterable[str] = (),
    now: datetime | None = None,
) -> LearningMemory:
    """Move a topic to the completed list (no-op if it is already there)."""
    if any(t.topic_name == topic_name for t in memory.completed_topics):
        return memory
    now = now or utcnow()
    updated = memory.model_copy(deep=True)
    updated.current_topics = [t for t in updated.current_topics if t.topic_name != topic_name]
    updated.completed_topics.append(
        CompletedTopic(
            topic_name=topic_name,
            completed_at=now,
            mastery_score_at_completion=mastery_score,
            time_spent=time_spent,
            resources_used=list(resources_used),
        )
    )
    updated.statistics.total_topics_covered += 1
    updated.statistics.total_time_invested += time_spent
    updated.statistics.last_activity_at = now
    return updated


# =============================================================================
# Derived patterns
# =============================================================================

def calculate_learning_velocity(memory: LearningMemory) -> LearningVelocity:
    """Average minutes per covered topic: < 30 fast, < 60 moderate, else slow."""
    stats = memory.statistics
    if stats.total_topics_covered == 0:
        return LearningVelocity.MODERATE

    minutes_per_topic = stats.total_time_invested / stats.total_topics_covered
    if minutes_per_topic < FAST_MINUTES_PER_TOPIC:
        return LearningVelocity.FAST
    if minutes_per_topic < MODERATE_MINUTES_PER_TOPIC:
        return LearningVelocity.MODERATE
    return LearningVelocity.SLOW


def consistency_score(memory: LearningMemory) -> int:
    covered = memory.statistics.total_topics_covered
    pending = len(memory.topic_classification.weak) + len(memory.topic_classification.medium)
    coverage_ratio = covered / (covered + pending) if covered + pending else 0.0
    quiz_ratio = 1.0 if memory.quiz_history else 0.0
    return round_half_up((coverage_ratio + quiz_ratio) / 2 * 100)


def update_learning_patterns(memory: LearningMemory) -> LearningMemory:
    """Recompute session duration, velocity and consistency (needs quiz history)."""
    if not memory.quiz_history:
        return memory
    updated = memory.model_copy(deep=True)
    patterns = updated.learning_patterns
    total_time = sum(q.time_spent for q in updated.quiz_history)
    patterns.average_session_duration = round_half_up(total_time / len(updated.quiz_history))
    patterns.learning_velocity = calculate_learning_velocity(updated)
    if updated.statistics.total_topics_covered:
        patterns.average_time_per_topic = (
            updated.statistics.total_time_invested / updated.statistics.total_topics_covered
        )
    patterns.consistency_score = consistency_score(updated)
    return updated


def refresh_topic_classification(memory: LearningMemory, masteries: Iterable[TopicMastery]) -> LearningMemory:
    """Rebuild the cached weak/medium/strong topic lists."""
    updated = memory.model_copy(deep=True)
    cache = updated.topic_classification
    cache.weak, cache.medium, cache.strong = [], [], []
    buckets = {
        Classification.WEAK: cache.weak,
        Classification.MEDIUM: cache.medium,
        Classification.STRONG: cache.strong,
    }
    for mastery in masteries:
        buckets[mastery.classification].append(mastery.topic_name)
    return updated


# =============================================================================
# Service
# =============================================================================

class LearningMemoryService:
    """Load-modify-save wrapper around the journal functions."""

    def __init__(self, repository: LearningMemoryRepository, response_max_chars: int = INTERACTION_RESPONSE_MAX_CHARS):
        self.repository = repository
        self.response_max_chars = response_max_chars

    def get(self, user_id: str, course_id: str) -> LearningMemory | None:
        return self.repository.find(user_id, course_id)

    def get_or_create(self, user_id: str, course_id: str) -> LearningMemory:
        memory = self.repository.find(user_id, course_id)
        if memory is None:
            memory = LearningMemory(user_id=user_id, course_id=course_id)
            self.repository.save(memory)
            logger.debug(f"Created learning memory {compose_key(user_id, course_id)}")
        return memory

    def save(self, memory: LearningMemory) -> LearningMemory:
        return self.repository.save(memory)

    def record_quiz_attempt(self, user_id: str, course_id: str, topic_name: str, score: float, **kwargs) -> LearningMemory:
        memory = record_quiz_attempt(self.get_or_create(user_id, course_id), topic_name, score, **kwargs)
        memory = update_learning_patterns(memory)
        return self.repository.save(memory)

    def record_mistake(self, user_id: str, course_id: str, topic: str, concept: str, **kwargs) -> LearningMemory:
        memory = record_mistake(self.get_or_create(user_id, course_id), topic, concept, **kwargs)
        return self.repository.save(memory)

    def correct_mistake(self, user_id: str, course_id: str, mistake_id: str) -> LearningMemory:
        memory = self.repository.require(compose_key(user_id, course_id))
        return self.repository.save(correct_mistake(memory, mistake_id))

    def record_interaction(
        self,
        user_id: str,
        course_id: str,
        interaction_type: str,
        query: str,
        response: str,
        topic: str | None = None,
    ) -> LearningMemory:
        memory = record_interaction(
            self.get_or_create(user_id, course_id),
            interaction_type,
            query,
            response,
            topic=topic,
            max_chars=self.response_max_chars,
        )
        return self.repository.save(memory)

    def complete_topic(self, user_id: str, course_id: str, topic_name: str, **kwargs) -> LearningMemory:
        memory = complete_topic(self.get_or_create(user_id, course_id), topic_name, **kwargs)
        memory = update_learning_patterns(memory)
        return self.repository.save(memory)

    def refresh_topic_classification(
        self, user_id: str, course_id: str, masteries: Iterable[TopicMastery]
    ) -> LearningMemory:
        memory = refresh_topic_classification(self.get_or_create(user_id, course_id), masteries)
        return self.repository.save(update_learning_patterns(memory))
