"""
Topic Mastery Tracker.

Tracks learner mastery per (user, course, topic) from quiz results:
- A ring buffer of the last 10 quiz scores
- average = round(mean(buffer))
- mastery = round(0.7 * average + 0.3 * previous mastery)
- classification: weak < 40 <= medium < 75 <= strong

The update functions are pure: they validate, then return an updated copy.
Classification is recomputed explicitly at every mutation site.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime

from loguru import logger

from arivom.core.errors import ValidationError
from arivom.core.scoring import round_half_up, utcnow
from arivom.db.repositories import TopicMasteryRepository
from arivom.models import (
    Classification,
    Difficulty,
    RecentQuiz,
    TopicMastery,
    TrackedMistake,
)

WEAK_CEILING = 40
STRONG_FLOOR = 75

RECENT_WEIGHT = 0.7
HISTORICAL_WEIGHT = 0.3

RECENT_QUIZ_CAPACITY = 10


def classify(score: float) -> Classification:
    """Map a 0-100 mastery score to its classification."""
    if score < WEAK_CEILING:
        return Classification.WEAK
    if score < STRONG_FLOOR:
        return Classification.MEDIUM
    return Classification.STRONG


def _validate_score(score: float) -> int:
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise ValidationError(f"Quiz score must be a number, got {score!r}")
    if not 0 <= score <= 100:
        raise ValidationError(f"Quiz score must be between 0 and 100, got {score}")
    return round_half_up(score)


def record_quiz_result(
    mastery: TopicMastery,
    score: float,
    difficulty: Difficulty = Difficulty.MEDIUM,
    time_spent: float = 0.0,
    quiz_id: str | None = None,
    now: datetime | None = None,
    capacity: int = RECENT_QUIZ_CAPACITY,
) -> TopicMastery:
    """
    Fold a quiz percentage into the mastery record.

    Args:
        mastery: Current mastery record (not modified)
        score: Percentage score 0-100
        difficulty: Difficulty of the quiz taken
        time_spent: Minutes spent on the quiz
        quiz_id: Source quiz, if any
        now: Clock override
        capacity: Ring buffer size

    Returns:
        Updated copy of the mastery record

    Raises:
        ValidationError: score outside 0-100 (record untouched)
    """
    score = _validate_score(score)
    now = now or utcnow()
    updated = mastery.model_copy(deep=True)

    updated.quiz_attempts += 1

    updated.recent_quizzes.append(
        RecentQuiz(quiz_id=quiz_id, score=score, difficulty=difficulty, time_spent=time_spent, attempted_at=now)
    )
    if len(updated.recent_quizzes) > capacity:
        updated.recent_quizzes = updated.recent_quizzes[-capacity:]

    if updated.quiz_attempts == 1:
        updated.first_attempt_at = now
        updated.highest_quiz_score = score
        updated.lowest_quiz_score = score
    else:
        updated.highest_quiz_score = max(updated.highest_quiz_score, score)
        updated.lowest_quiz_score = min(updated.lowest_quiz_score, score)

    scores = [q.score for q in updated.recent_quizzes]
    updated.average_quiz_score = round_half_up(sum(scores) / len(scores))
    updated.mastery_score = round_half_up(
        updated.average_quiz_score * RECENT_WEIGHT + mastery.mastery_score * HISTORICAL_WEIGHT
    )
    updated.classification = classify(updated.mastery_score)

    if updated.classification == Classification.STRONG and updated.completed_at is None:
        updated.completed_at = now

    updated.total_time_spent += time_spent
    updated.last_studied_at = now
    updated.updated_at = now
    return updated


def record_study_session(mastery: TopicMastery, minutes: float, now: datetime | None = None) -> TopicMastery:
    """Count a practice session and its time."""
    if minutes < 0:
        raise ValidationError(f"Study time cannot be negative, got {minutes}")
    now = now or utcnow()
    updated = mastery.model_copy(deep=True)
    updated.practice_sessions_completed += 1
    updated.total_time_spent += minutes
    updated.classification = classify(updated.mastery_score)
    updated.last_studied_at = now
    updated.updated_at = now
    return updated


def track_mistake(mastery: TopicMastery, description: str, now: datetime | None = None) -> TopicMastery:
    """Count a mistake, merging repeats of the same description."""
    description = description.strip()
    if not description:
        raise ValidationError("Mistake description cannot be empty")
    now = now or utcnow()
    updated = mastery.model_copy(deep=True)

    for tracked in updated.mistakes_tracked:
        if tracked.mistake == description:
            tracked.occurrences += 1
            break
    else:
        updated.mistakes_tracked.append(TrackedMistake(mistake=description, first_occurred_at=now))

    updated.weak_areas = get_weak_areas(updated)
    updated.classification = classify(updated.mastery_score)
    updated.updated_at = now
    return updated


def get_weak_areas(mastery: TopicMastery, limit: int = 5) -> list[str]:
    """Most frequent tracked mistakes first."""
    ranked = sorted(mastery.mistakes_tracked, key=lambda m: m.occurrences, reverse=True)
    return [m.mistake for m in ranked[:limit]]


class MasteryTracker:
    """
    Persistent mastery tracking on top of the pure update functions.

    Records are created lazily on first access and never deleted.
    """

    def __init__(self, repository: TopicMasteryRepository, capacity: int = RECENT_QUIZ_CAPACITY):
        self.repository = repository
        self.capacity = capacity

    def get(self, user_id: str, course_id: str, topic_name: str) -> TopicMastery | None:
        return self.repository.find(user_id, course_id, topic_name)

    def get_or_create(self, user_id: str, course_id: str, topic_name: str, topic_order: int = 0) -> TopicMastery:
        mastery = self.repository.find(user_id, course_id, topic_name)
        if mastery is None:
            mastery = TopicMastery(
                user_id=user_id,
                course_id=course_id,
                topic_name=topic_name,
                topic_order=topic_order,
                classification=classify(0),
                updated_at=utcnow(),
            )
            self.repository.save(mastery)
            logger.debug(f"Created mastery record {user_id}/{course_id}/{topic_name}")
        return mastery

    def record_quiz_result(
        self,
        user_id: str,
        course_id: str,
        topic_name: str,
        score: float,
        difficulty: Difficulty = Difficulty.MEDIUM,
        time_spent: float = 0.0,
        quiz_id: str | None = None,
    ) -> TopicMastery:
        _validate_score(score)
        current = self.get_or_create(user_id, course_id, topic_name)
        updated = record_quiz_result(
            current, score, difficulty, time_spent=time_spent, quiz_id=quiz_id, capacity=self.capacity
        )
        self.repository.save(updated)

        if updated.classification != current.classification:
            logger.info(
                f"{user_id} mastery of '{topic_name}' moved "
                f"{current.classification.value} -> {updated.classification.value} ({updated.mastery_score})"
            )
        return updated

    def record_study_session(self, user_id: str, course_id: str, topic_name: str, minutes: float) -> TopicMastery:
        current = self.get_or_create(user_id, course_id, topic_name)
        updated = record_study_session(current, minutes)
        self.repository.save(updated)
        return updated

    def track_mistake(self, user_id: str, course_id: str, topic_name: str, description: str) -> TopicMastery:
        current = self.get_or_create(user_id, course_id, topic_name)
        updated = track_mistake(current, description)
        self.repository.save(updated)
        return updated

    def list_topics(self, user_id: str, course_id: str) -> list[TopicMastery]:
        return sorted(self.repository.for_course(user_id, course_id), key=lambda m: m.topic_order)

    def recent(self, user_id: str, course_id: str, limit: int = 5) -> list[TopicMastery]:
        """Most recently updated masteries first."""
        masteries = self.repository.for_course(user_id, course_id)
        ranked = sorted(
            masteries,
            key=lambda m: m.updated_at.replace(tzinfo=None) if m.updated_at else datetime.min,
            reverse=True,
        )
        return ranked[:limit]

    def weak_topics(self, user_id: str, course_id: str) -> list[TopicMastery]:
        return [m for m in self.list_topics(user_id, course_id) if m.classification == Classification.WEAK]

    def overview(self, user_id: str, course_id: str) -> dict[str, int]:
        """Topic counts per classification, plus the total."""
        masteries = self.list_topics(user_id, course_id)
        counts = Counter(m.classification.value for m in masteries)
        return {
            "total": len(masteries),
            **{c.value: counts.get(c.value, 0) for c in Classification},
        }
