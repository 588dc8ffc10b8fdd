"""
Unit tests for topic mastery tracking.
"""
from datetime import datetime, timedelta, timezone

import pytest

from arivom.core.errors import ValidationError
from arivom.learning.mastery_tracker import (
    classify,
    get_weak_areas,
    record_quiz_result,
    record_study_session,
    track_mistake,
)
from arivom.models import Classification, Difficulty, TopicMastery


@pytest.fixture
def mastery():
    return TopicMastery(user_id="u1", course_id="c1", topic_name="Subnetting")


class TestClassify:
    @pytest.mark.parametrize(
        "score,expected",
        [
            (0, Classification.WEAK),
            (39, Classification.WEAK),
            (40, Classification.MEDIUM),
            (74, Classification.MEDIUM),
            (75, Classification.STRONG),
            (100, Classification.STRONG),
        ],
    )
    def test_boundaries(self, score, expected):
        assert classify(score) == expected


class TestRecordQuizResult:
    def test_weighted_mastery_formula(self, mastery):
        first = record_quiz_result(mastery, 90)
        second = record_quiz_result(first, 90)

        assert first.mastery_score == 63
        assert first.classification == Classification.MEDIUM
        assert second.mastery_score == 82
        assert second.classification == Classification.STRONG

    def test_does_not_mutate_input(self, mastery):
        record_quiz_result(mastery, 90)

        assert mastery.quiz_attempts == 0
        assert mastery.recent_quizzes == []

    def test_first_attempt_sets_extremes(self, mastery, now):
        updated = record_quiz_result(mastery, 55, now=now)

        assert updated.quiz_attempts == 1
        assert updated.highest_quiz_score == 55
        assert updated.lowest_quiz_score == 55
        assert updated.first_attempt_at == now
        assert updated.last_studied_at == now

    def test_extremes_track_later_attempts(self, mastery):
        updated = mastery
        for score in (55, 80, 30, 60):
            updated = record_quiz_result(updated, score)

        assert updated.highest_quiz_score == 80
        assert updated.lowest_quiz_score == 30
        assert updated.average_quiz_score == 56  # 56.25

    def test_ring_buffer_keeps_last_ten(self, mastery):
        scores = list(range(0, 110, 10))
        updated = mastery
        for score in scores:
            updated = record_quiz_result(updated, score)

        assert updated.quiz_attempts == 11
        assert [q.score for q in updated.recent_quizzes] == scores[1:]
        assert updated.average_quiz_score == 55

    def test_records_quiz_details(self, mastery, now):
        updated = record_quiz_result(mastery, 70, Difficulty.HARD, time_spent=12.5, quiz_id="quiz-1", now=now)

        entry = updated.recent_quizzes[0]
        assert entry.quiz_id == "quiz-1"
        assert entry.difficulty == Difficulty.HARD
        assert entry.time_spent == 12.5
        assert entry.attempted_at == now

    def test_classification_consistent_after_every_update(self, mastery):
        updated = mastery
        for score in (100, 0, 45, 90, 90, 10, 75, 60):
            updated = record_quiz_result(updated, score)
            assert updated.classification == classify(updated.mastery_score)

    @pytest.mark.parametrize("score", [-1, 101, 250])
    def test_rejects_out_of_range_scores(self, mastery, score):
        with pytest.raises(ValidationError):
            record_quiz_result(mastery, score)

    def test_strong_sets_completed_at(self, mastery, now):
        updated = record_quiz_result(mastery, 100, now=now)
        updated = record_quiz_result(updated, 100, now=now + timedelta(days=1))

        assert updated.classification == Classification.STRONG
        assert updated.completed_at == now + timedelta(days=1)


class TestStudyAndMistakes:
    def test_study_session(self, mastery):
        updated = record_study_session(record_study_session(mastery, 20), 15)

        assert updated.practice_sessions_completed == 2
        assert updated.total_time_spent == 35
        assert updated.classification == classify(updated.mastery_score)

    def test_negative_study_time_rejected(self, mastery):
        with pytest.raises(ValidationError):
            record_study_session(mastery, -5)

    def test_mistakes_deduplicate_and_rank(self, mastery):
        updated = mastery
        for description in ("wildcard masks", "cidr notation", "wildcard masks", "wildcard masks", "cidr notation"):
            updated = track_mistake(updated, description)
        updated = track_mistake(updated, "default routes")

        assert len(updated.mistakes_tracked) == 3
        assert get_weak_areas(updated) == ["wildcard masks", "cidr notation", "default routes"]
        assert updated.weak_areas == get_weak_areas(updated)

    def test_weak_areas_limit(self, mastery):
        updated = mastery
        for i in range(7):
            updated = track_mistake(updated, f"mistake {i}")

        assert len(get_weak_areas(updated)) == 5


class TestMasteryTrackerService:
    def test_get_or_create_is_lazy_and_stable(self, services):
        tracker = services.mastery

        assert tracker.get("u1", "c1", "Subnetting") is None
        created = tracker.get_or_create("u1", "c1", "Subnetting")
        again = tracker.get_or_create("u1", "c1", "Subnetting")

        assert created.mastery_score == 0
        assert created.classification == Classification.WEAK
        assert again.topic_name == created.topic_name

    def test_record_quiz_result_persists(self, services):
        services.mastery.record_quiz_result("u1", "c1", "Subnetting", 90)
        stored = services.mastery.get("u1", "c1", "Subnetting")

        assert stored.mastery_score == 63
        assert stored.quiz_attempts == 1

    def test_invalid_score_creates_nothing(self, services):
        with pytest.raises(ValidationError):
            services.mastery.record_quiz_result("u1", "c1", "Subnetting", 150)

        assert services.mastery.get("u1", "c1", "Subnetting") is None

    def test_list_topics_in_topic_order(self, services):
        repo = services.repositories.mastery
        for order, name in ((2, "Switching"), (0, "Subnetting"), (1, "Routing")):
            repo.save(TopicMastery(user_id="u1", course_id="c1", topic_name=name, topic_order=order))

        assert [m.topic_name for m in services.mastery.list_topics("u1", "c1")] == [
            "Subnetting",
            "Routing",
            "Switching",
        ]

    def test_recent_most_recently_updated_first(self, services):
        repo = services.repositories.mastery
        base = datetime(2025, 1, 1, tzinfo=timezone.utc)
        for offset, name in enumerate(["A", "B", "C", "D", "E", "F"]):
            repo.save(
                TopicMastery(user_id="u1", course_id="c1", topic_name=name, updated_at=base + timedelta(hours=offset))
            )

        recent = services.mastery.recent("u1", "c1", limit=5)

        assert [m.topic_name for m in recent] == ["F", "E", "D", "C", "B"]

    def test_masteries_scoped_to_user_and_course(self, services):
        services.mastery.get_or_create("u1", "c1", "Subnetting")
        services.mastery.get_or_create("u1", "c2", "Subnetting")
        services.mastery.get_or_create("u2", "c1", "Subnetting")

        assert len(services.mastery.list_topics("u1", "c1")) == 1

    def test_weak_topics_and_overview(self, services):
        services.mastery.record_quiz_result("u1", "c1", "Subnetting", 20)
        services.mastery.record_quiz_result("u1", "c1", "Routing", 100)
        services.mastery.record_quiz_result("u1", "c1", "Routing", 100)
        services.mastery.record_quiz_result("u1", "c1", "Switching", 80)

        assert [m.topic_name for m in services.mastery.weak_topics("u1", "c1")] == ["Subnetting"]
        assert services.mastery.overview("u1", "c1") == {"total": 3, "weak": 1, "medium": 1, "strong": 1}
