"""
Unit tests for remedial task injection.
"""
import pytest

from arivom.agent.replanner import inject_remedial_task, review_task
from arivom.models import LearningPlan, Week, WeekStatus


@pytest.fixture
def plan():
    return LearningPlan(
        user_id="u1",
        course_id="c1",
        weeks=[
            Week(week_number=1, topics=["Subnetting"], tasks=["Study: Subnetting"], status=WeekStatus.COMPLETED),
            Week(week_number=2, topics=["Routing"], tasks=["Study: Routing"], description="Week 2: Routing"),
            Week(week_number=3, topics=["Switching"], tasks=["Study: Switching"]),
        ],
    )


def test_appends_to_first_open_week(plan):
    updated, week_number = inject_remedial_task(plan, "Subnetting")

    assert week_number == 2
    assert updated.weeks[1].tasks == ["Study: Routing", "Review: Subnetting"]
    assert updated.weeks[1].description == "Week 2: Routing (Includes remedial focus on Subnetting)"
    assert updated.weeks[0].tasks == ["Study: Subnetting"]
    assert updated.weeks[2].tasks == ["Study: Switching"]


def test_input_plan_untouched(plan):
    inject_remedial_task(plan, "Subnetting")

    assert plan.weeks[1].tasks == ["Study: Routing"]


def test_second_injection_is_noop(plan):
    updated, _ = inject_remedial_task(plan, "Subnetting")

    again, week_number = inject_remedial_task(updated, "Subnetting")

    assert week_number is None
    assert again.weeks[1].tasks.count(review_task("Subnetting")) == 1


def test_different_topics_both_added(plan):
    updated, _ = inject_remedial_task(plan, "Subnetting")
    updated, week_number = inject_remedial_task(updated, "Routing")

    assert week_number == 2
    assert updated.weeks[1].tasks[-2:] == ["Review: Subnetting", "Review: Routing"]


def test_all_weeks_completed(plan):
    for week in plan.weeks:
        week.status = WeekStatus.COMPLETED

    updated, week_number = inject_remedial_task(plan, "Subnetting")

    assert week_number is None
    assert updated is plan


def test_empty_plan():
    plan = LearningPlan(user_id="u1", course_id="c1")

    assert inject_remedial_task(plan, "Subnetting") == (plan, None)


def test_weeks_never_reordered(plan):
    updated, _ = inject_remedial_task(plan, "Switching")

    assert [w.week_number for w in updated.weeks] == [1, 2, 3]
    assert [w.topics for w in updated.weeks] == [["Subnetting"], ["Routing"], ["Switching"]]
