"""
Unit tests for the learning copilot helpers.
"""
import pytest

from arivom.core.errors import NotFoundError
from arivom.models import AdaptiveQuiz, Difficulty, QuizStatus, WeekStatus


@pytest.fixture
def plan(services, course):
    return services.plans.generate_plan("u1", "net101", weeks=3)


class TestExplainConcept:
    def test_model_explanation(self, services, course, fake_llm):
        fake_llm.replies.append("A subnet mask marks the network bits.")

        explanation = services.copilot.explain_concept("u1", "net101", "subnet mask")

        assert explanation.source == "llm"
        assert explanation.explanation == "A subnet mask marks the network bits."
        assert '"subnet mask"' in fake_llm.prompts[0]
        memory = services.memory.get("u1", "net101")
        assert memory.copilot_interactions[0].interaction_type == "explanation"

    def test_fallback_template(self, services, course):
        explanation = services.copilot.explain_concept("u1", "net101", "subnet mask")

        assert explanation.source == "fallback"
        assert 'Understanding "subnet mask"' in explanation.explanation
        assert "Networking Fundamentals" in explanation.explanation


class TestSuggestNextTopic:
    def test_weak_topic_first(self, services, plan):
        services.mastery.record_quiz_result("u1", "net101", "Routing", 30)
        services.mastery.record_quiz_result("u1", "net101", "Switching", 10)

        suggestion = services.copilot.suggest_next_topic("u1", "net101")

        assert suggestion.next_topic == "Switching"
        assert suggestion.weak_topics == ["Switching", "Routing"]
        assert suggestion.current_week == 1

    def test_current_week_topic(self, services, plan):
        suggestion = services.copilot.suggest_next_topic("u1", "net101")

        assert suggestion.next_topic == "Subnetting"
        assert suggestion.weak_topics == []

    def test_skips_completed_weeks(self, services, plan):
        services.plans.set_week_status("u1", "net101", 1, WeekStatus.COMPLETED)

        suggestion = services.copilot.suggest_next_topic("u1", "net101")

        assert suggestion.current_week == 2
        assert suggestion.next_topic == "Routing"

    def test_all_weeks_done(self, services, plan):
        for week in (1, 2, 3):
            services.plans.set_week_status("u1", "net101", week, WeekStatus.COMPLETED)

        suggestion = services.copilot.suggest_next_topic("u1", "net101")

        assert suggestion.next_topic is None
        assert "Congratulations" in suggestion.reason

    def test_requires_plan(self, services, course):
        with pytest.raises(NotFoundError):
            services.copilot.suggest_next_topic("u1", "net101")


class TestRecommendAdaptiveQuiz:
    def test_no_weak_topics(self, services, course):
        recommendation = services.copilot.recommend_adaptive_quiz("u1", "net101")

        assert recommendation.topic is None
        assert recommendation.difficulty == Difficulty.HARD

    def test_lowest_mastery_topic(self, services, course):
        services.mastery.record_quiz_result("u1", "net101", "Routing", 50)  # 35
        services.mastery.record_quiz_result("u1", "net101", "Subnetting", 20)  # 14

        recommendation = services.copilot.recommend_adaptive_quiz("u1", "net101")

        assert recommendation.topic == "Subnetting"
        assert recommendation.mastery_score == 14
        assert recommendation.difficulty == Difficulty.EASY
        assert recommendation.existing_quiz is None

    def test_reuses_open_quiz(self, services, course):
        services.mastery.record_quiz_result("u1", "net101", "Subnetting", 20)
        quiz = AdaptiveQuiz(
            user_id="u1",
            course_id="net101",
            topic_name="Subnetting",
            title="Adaptive Quiz: Subnetting",
            difficulty=Difficulty.MEDIUM,
            status=QuizStatus.PUBLISHED,
        )
        services.repositories.quizzes.save(quiz)

        recommendation = services.copilot.recommend_adaptive_quiz("u1", "net101")

        assert recommendation.existing_quiz.quiz_id == quiz.quiz_id
        assert recommendation.difficulty == Difficulty.MEDIUM
        assert "weak area" in recommendation.message


class TestStudyTips:
    def test_generic_tips_for_new_learner(self, services, course):
        tips = services.copilot.study_tips("u1", "net101")

        titles = [t.title for t in tips]
        assert "Build Consistency" in titles
        assert "Test Your Knowledge" in titles
        assert len(tips) <= 5

    def test_weak_topics_and_recurring_mistakes(self, services, course):
        for topic in ("Subnetting", "Routing", "Switching"):
            services.mastery.record_quiz_result("u1", "net101", topic, 10)
        for _ in range(3):
            services.memory.record_mistake("u1", "net101", "Subnetting", "masks")

        tips = services.copilot.study_tips("u1", "net101")

        titles = [t.title for t in tips]
        assert "Focus on Weak Topics (3)" in titles
        assert "Review Recurring Mistakes" in titles
        recurring = next(t for t in tips if t.title == "Review Recurring Mistakes")
        assert "masks" in recurring.description
