"""
Learning Plan service.

Generates a week-by-week plan with the language model and falls back to a
round-robin spread of the course topics when the model is unavailable or its
reply cannot be parsed. One plan per (user, course); regeneration keeps the
plan id.
"""

from __future__ import annotations

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from arivom.core.errors import LanguageModelError, NotFoundError, ValidationError
from arivom.core.scoring import utcnow
from arivom.db.repositories import CourseRepository, LearningPlanRepository, compose_key
from arivom.evaluation.metrics import EvaluationService
from arivom.integrations.llm import LanguageModel, extract_json
from arivom.models import Course, LearningPlan, Week, WeekStatus

DEFAULT_WEEKS = 8
DEFAULT_HOURS_PER_WEEK = 5

GENERIC_TASKS = ("Review course materials", "Complete practice exercises", "Take assessment quiz")

PLAN_PROMPT = """You are a learning planner for the course "{title}".

Course topics (in order): {topics}
Learner goals: {goals}

Create a {weeks}-week study plan with {hours} hours per week.
Respond with JSON only: a list of {weeks} objects with keys
"week_number" (int), "topics" (list of course topic names),
"tasks" (list of short task strings) and "description" (one sentence).
"""


def round_robin_weeks(topics: list[str], weeks: int, hours_per_week: float) -> list[Week]:
    """Spread topics over the weeks in order, cycling when weeks outnumber topics."""
    plan_weeks = []
    for index in range(weeks):
        if topics and len(topics) >= weeks:
            week_topics = topics[index::weeks]
        elif topics:
            week_topics = [topics[index % len(topics)]]
        else:
            week_topics = []
        tasks = [f"Study: {topic}" for topic in week_topics] + list(GENERIC_TASKS)
        plan_weeks.append(
            Week(
                week_number=index + 1,
                topics=week_topics,
                hours_per_week=hours_per_week,
                tasks=tasks,
                description=f"Week {index + 1}: " + (", ".join(week_topics) or "Course review"),
                status=WeekStatus.IN_PROGRESS if index == 0 else WeekStatus.PENDING,
            )
        )
    return plan_weeks


def parse_plan_weeks(reply: str, weeks: int, hours_per_week: float) -> list[Week]:
    """Parse the model's JSON week list into Week models."""
    payload = extract_json(reply)
    if isinstance(payload, dict):
        payload = payload.get("weeks", [])
    if not isinstance(payload, list) or not payload:
        raise LanguageModelError("Plan reply did not contain a week list")

    parsed = []
    for index, item in enumerate(payload[:weeks]):
        if not isinstance(item, dict):
            raise LanguageModelError(f"Plan week {index + 1} is not an object")
        topics = item.get("topics", [])
        tasks = item.get("tasks", [])
        if not isinstance(topics, list) or not isinstance(tasks, list):
            raise LanguageModelError(f"Plan week {index + 1} topics and tasks must be lists")
        try:
            parsed.append(
                Week(
                    week_number=index + 1,
                    topics=[str(t) for t in topics],
                    hours_per_week=item.get("hours_per_week") or hours_per_week,
                    tasks=[str(t) for t in tasks],
                    description=str(item.get("description") or ""),
                    status=WeekStatus.IN_PROGRESS if index == 0 else WeekStatus.PENDING,
                )
            )
        except PydanticValidationError as e:
            raise LanguageModelError(f"Malformed plan week: {e}") from e
    return parsed


class LearningPlanService:
    def __init__(
        self,
        plans: LearningPlanRepository,
        courses: CourseRepository,
        llm: LanguageModel,
        evaluation: EvaluationService,
    ):
        self.plans = plans
        self.courses = courses
        self.llm = llm
        self.evaluation = evaluation

    def generate_plan(
        self,
        user_id: str,
        course_id: str,
        weeks: int = DEFAULT_WEEKS,
        hours_per_week: float = DEFAULT_HOURS_PER_WEEK,
        goals: str = "",
    ) -> LearningPlan:
        """
        Create or regenerate the learner's plan for a course.

        Raises:
            NotFoundError: the course does not exist
            ValidationError: weeks or hours_per_week not positive
        """
        if weeks <= 0 or hours_per_week <= 0:
            raise ValidationError("weeks and hours_per_week must be positive")
        course = self.courses.require(course_id)

        source = "copilot"
        try:
            plan_weeks = self._generate_weeks(course, weeks, hours_per_week, goals)
        except LanguageModelError as e:
            logger.warning(f"Plan generation degraded to round-robin: {e}")
            plan_weeks = round_robin_weeks(course.topics, weeks, hours_per_week)
            source = "fallback"

        existing = self.plans.find(user_id, course_id)
        plan = LearningPlan(
            user_id=user_id,
            course_id=course_id,
            title=f"Plan for {course.title or course_id}",
            description=f"Personalized {weeks}-week learning plan ({hours_per_week:g} hours/week)",
            weeks=plan_weeks,
            metadata={"source": source, "goals": goals, "generated_at": utcnow().isoformat()},
        )
        if existing:
            plan.plan_id = existing.plan_id
        self.plans.save(plan)

        coverage = self.evaluation.evaluate_syllabus_coverage(course, plan)
        logger.info(f"Plan for {user_id}/{course_id}: {len(plan_weeks)} weeks, {coverage:.0f}% syllabus coverage")
        return plan

    def _generate_weeks(self, course: Course, weeks: int, hours_per_week: float, goals: str) -> list[Week]:
        prompt = PLAN_PROMPT.format(
            title=course.title or course.course_id,
            topics=", ".join(course.topics) or "(not listed)",
            goals=goals or "Complete the course",
            weeks=weeks,
            hours=f"{hours_per_week:g}",
        )
        return parse_plan_weeks(self.llm.complete(prompt), weeks, hours_per_week)

    def get_plan(self, user_id: str, course_id: str) -> LearningPlan:
        return self.plans.require(compose_key(user_id, course_id))

    def set_week_status(self, user_id: str, course_id: str, week_number: int, status: WeekStatus) -> LearningPlan:
        plan = self.get_plan(user_id, course_id)
        for week in plan.weeks:
            if week.week_number == week_number:
                week.status = status
                break
        else:
            raise NotFoundError("Week", f"{compose_key(user_id, course_id)}#{week_number}")
        return self.plans.save(plan)
