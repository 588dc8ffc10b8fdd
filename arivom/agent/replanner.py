"""
Plan adjustment after quiz results.

The replanner only ever appends a "Review: <topic>" task to the first week
that is not completed; weeks are never reordered or removed. Injecting the
same topic twice into the same week changes nothing.
"""

from __future__ import annotations

from dataclasses import dataclass

from arivom.models import LearningPlan

REVIEW_TASK_PREFIX = "Review: "
REMEDIAL_NOTE = " (Includes remedial focus on {topic})"

ADJUSTED_MESSAGE = (
    'I\'ve adjusted your plan for Week {week} to include a review of "{topic}" based on your recent quiz results.'
)
UNCHANGED_MESSAGE = "Your current plan looks solid. Keep it up!"


@dataclass
class ReplanResult:
    adjusted: bool
    message: str
    week_number: int | None = None
    topic: str | None = None


def review_task(topic: str) -> str:
    return f"{REVIEW_TASK_PREFIX}{topic}"


def inject_remedial_task(plan: LearningPlan, topic: str) -> tuple[LearningPlan, int | None]:
    """
    Add a review task for topic to the first incomplete week.

    Returns:
        (plan, week number) when a task was added, or (the same plan, None)
        when every week is completed or the task is already there
    """
    index = plan.first_open_week_index()
    if index is None:
        return plan, None

    task = review_task(topic)
    if task in plan.weeks[index].tasks:
        return plan, None

    updated = plan.model_copy(deep=True)
    week = updated.weeks[index]
    week.tasks.append(task)
    week.description += REMEDIAL_NOTE.format(topic=topic)
    return updated, week.week_number
