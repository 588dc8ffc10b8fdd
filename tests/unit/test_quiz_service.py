"""
Unit tests for the adaptive quiz service.
"""
import json
from datetime import timedelta

import pytest

from arivom.core.errors import NotFoundError, ValidationError
from arivom.models import (
    AdaptiveQuiz,
    AnswerRecord,
    Classification,
    Difficulty,
    MetricType,
    Question,
    QuestionType,
    QuizOrigin,
    QuizStatus,
)
from arivom.quiz.quiz_service import grade_answer, grade_answers


def question_payload(count, concept="masks"):
    return json.dumps(
        [
            {
                "question_text": f"Question {i}?",
                "options": ["right", "wrong"],
                "correct_answer_index": 0,
                "concepts": [concept if i % 2 == 0 else "cidr"],
            }
            for i in range(count)
        ]
    )


class TestGrading:
    @pytest.fixture
    def choice(self):
        return Question(question_id="q", question_text="?", options=["Alpha", "Beta"], correct_answer_index=1)

    @pytest.mark.parametrize("selected,expected", [("1", True), ("0", False), ("beta", True), (" Beta ", True), ("", False), (None, False)])
    def test_multiple_choice(self, choice, selected, expected):
        assert grade_answer(choice, selected) is expected

    @pytest.mark.parametrize("selected,expected", [("10", True), ("2", False), ("1", True), ("0", False)])
    def test_numeric_option_text_beats_index(self, selected, expected):
        question = Question(question_text="Hosts in a /28?", options=["14", "10", "2", "16"], correct_answer_index=1)

        assert grade_answer(question, selected) is expected

    def test_short_answer(self):
        question = Question(
            question_text="?", question_type=QuestionType.SHORT_ANSWER, correct_answer="Network Address"
        )

        assert grade_answer(question, "network address") is True
        assert grade_answer(question, "broadcast") is False

    def test_grade_answers_in_question_order(self, sample_questions):
        quiz = AdaptiveQuiz(user_id="u", course_id="c", topic_name="t", title="t", questions=sample_questions)

        records = grade_answers(quiz, {"q2": "A", "q0": "1"})

        assert [(r.question_id, r.is_correct) for r in records] == [("q0", False), ("q2", True)]


class TestGenerateQuiz:
    def test_published_with_questions(self, services, course, fake_llm):
        fake_llm.replies.append(question_payload(4))

        quiz = services.quizzes.generate_quiz("u1", "net101", "Subnetting", question_count=4)

        assert quiz.status == QuizStatus.PUBLISHED
        assert quiz.title == "Adaptive Quiz: Subnetting"
        assert quiz.total_questions == 4
        assert quiz.created_by == QuizOrigin.AI
        assert quiz.generation_prompt
        assert services.quizzes.get_quiz(quiz.quiz_id).total_questions == 4

    def test_new_learner_gets_easy(self, services, course, fake_llm):
        fake_llm.replies.append(question_payload(2))

        quiz = services.quizzes.generate_quiz("u1", "net101", "Subnetting", question_count=2)

        assert quiz.difficulty == Difficulty.EASY

    def test_difficulty_follows_mastery(self, services, course, fake_llm):
        services.mastery.record_quiz_result("u1", "net101", "Subnetting", 100)  # mastery 70
        fake_llm.replies.append(question_payload(2))

        quiz = services.quizzes.generate_quiz("u1", "net101", "Subnetting", question_count=2)

        assert quiz.difficulty == Difficulty.HARD

    def test_requested_difficulty(self, services, course, fake_llm):
        fake_llm.replies.append(question_payload(2))

        quiz = services.quizzes.generate_quiz("u1", "net101", "Subnetting", "medium", question_count=2)

        assert quiz.difficulty == Difficulty.MEDIUM

    def test_generation_failure_stores_draft(self, services, course):
        quiz = services.quizzes.generate_quiz("u1", "net101", "Subnetting")

        assert quiz.status == QuizStatus.DRAFT
        assert quiz.questions == []
        stored = services.quizzes.get_quiz(quiz.quiz_id)
        assert stored.status == QuizStatus.DRAFT

    def test_draft_rejects_attempts(self, services, course, now):
        quiz = services.quizzes.generate_quiz("u1", "net101", "Subnetting")

        with pytest.raises(ValidationError):
            services.quizzes.submit_attempt(quiz.quiz_id, now, now, [])

    def test_unknown_course(self, services):
        with pytest.raises(NotFoundError):
            services.quizzes.generate_quiz("u1", "missing", "Subnetting")

    def test_quiz_config_applied(self, services, course, fake_llm):
        fake_llm.replies.append(question_payload(2))

        quiz = services.quizzes.generate_quiz("u1", "net101", "Subnetting", question_count=2)

        assert quiz.adaptive_config.level_up_threshold == 80
        assert quiz.adaptive_config.level_down_threshold == 60


class TestSubmitAttempt:
    @pytest.fixture
    def quiz(self, services, course, fake_llm):
        fake_llm.replies.append(question_payload(4))
        return services.quizzes.generate_quiz("u1", "net101", "Subnetting", question_count=4)

    def answers_for(self, quiz, correct_flags):
        return [
            AnswerRecord(question_id=q.question_id, is_correct=flag)
            for q, flag in zip(quiz.questions, correct_flags)
        ]

    def test_updates_mastery_and_memory(self, services, quiz, now):
        result = services.quizzes.submit_attempt(
            quiz.quiz_id, now, now + timedelta(minutes=8), self.answers_for(quiz, [True, True, False, True])
        )

        assert result.attempt.percentage_score == 75
        assert result.weak_concepts == ["masks"]
        assert result.mastery.mastery_score == 53  # 75 * 0.7
        assert result.mastery.classification == Classification.MEDIUM
        assert result.mastery_delta == 53
        assert result.mastery.weak_areas == ["masks"]

        memory = services.memory.get("u1", "net101")
        assert memory.quiz_history[0].score == 75
        assert memory.quiz_history[0].questions_correct == 3
        assert [m.concept for m in memory.open_mistakes] == ["masks"]
        assert memory.topic_classification.medium == ["Subnetting"]

        stored = services.quizzes.get_quiz(quiz.quiz_id)
        assert len(stored.attempts) == 1
        assert stored.performance_metrics.total_attempts == 1

    def test_logs_metrics(self, services, quiz, now):
        services.quizzes.submit_attempt(quiz.quiz_id, now, now, self.answers_for(quiz, [True] * 4))

        correctness = services.evaluation.list_metrics(MetricType.ANSWER_CORRECTNESS)
        improvement = services.evaluation.list_metrics(MetricType.MASTERY_IMPROVEMENT)
        assert [m.value for m in correctness] == [100]
        assert [m.value for m in improvement] == [70]

    def test_strong_mastery_completes_topic(self, services, quiz, now):
        perfect = self.answers_for(quiz, [True] * 4)

        services.quizzes.submit_attempt(quiz.quiz_id, now, now, perfect)
        result = services.quizzes.submit_attempt(quiz.quiz_id, now, now, perfect)

        assert result.mastery.classification == Classification.STRONG
        assert result.notes == ["'Subnetting' mastered"]
        memory = services.memory.get("u1", "net101")
        assert [t.topic_name for t in memory.completed_topics] == ["Subnetting"]
        assert memory.topic_classification.strong == ["Subnetting"]

    def test_next_difficulty(self, services, quiz, now):
        result = services.quizzes.submit_attempt(quiz.quiz_id, now, now, self.answers_for(quiz, [True] * 4))

        # easy quiz for a new learner, 100% steps up
        assert result.next_difficulty == Difficulty.MEDIUM

    def test_rejected_attempt_changes_nothing(self, services, quiz, now):
        with pytest.raises(ValidationError):
            services.quizzes.submit_attempt(quiz.quiz_id, now, now - timedelta(minutes=1), [])

        assert services.quizzes.get_quiz(quiz.quiz_id).attempts == []
        assert services.mastery.get("u1", "net101", "Subnetting") is None
        assert services.memory.get("u1", "net101") is None

    def test_repeated_answers_rejected(self, services, quiz, now):
        repeated = [AnswerRecord(question_id=quiz.questions[0].question_id, is_correct=True)] * 4

        with pytest.raises(ValidationError):
            services.quizzes.submit_attempt(quiz.quiz_id, now, now, repeated)

        assert services.quizzes.get_quiz(quiz.quiz_id).attempts == []
        assert services.mastery.get("u1", "net101", "Subnetting") is None

    def test_unknown_quiz(self, services, now):
        with pytest.raises(NotFoundError):
            services.quizzes.submit_attempt("missing", now, now, [])
