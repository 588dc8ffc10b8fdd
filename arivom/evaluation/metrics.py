"""
Evaluation metrics for the learning engine.

Records quality signals as EvaluationMetric documents:
- latency of agent interactions
- syllabus coverage of generated plans
- answer correctness per quiz attempt
- mastery improvement per quiz attempt
- quiz discrimination (hard average / easy average)
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from arivom.core.scoring import utcnow
from arivom.db.repositories import EvaluationMetricRepository
from arivom.models import Course, EvaluationMetric, LearningPlan, MetricType


class EvaluationService:
    def __init__(self, repository: EvaluationMetricRepository):
        self.repository = repository

    def _record(
        self,
        metric_type: MetricType,
        value: float,
        course_id: str | None = None,
        user_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> EvaluationMetric:
        metric = EvaluationMetric(
            metric_type=metric_type,
            value=value,
            course_id=course_id,
            user_id=user_id,
            metadata=metadata or {},
            timestamp=utcnow(),
        )
        self.repository.save(metric)
        logger.debug(f"Metric {metric_type.value}={value:.2f}")
        return metric

    def log_latency(self, kind: str, ms: float) -> EvaluationMetric:
        return self._record(MetricType.LATENCY, ms, metadata={"type": kind})

    def log_answer_correctness(self, course_id: str, user_id: str, score: float) -> EvaluationMetric:
        return self._record(MetricType.ANSWER_CORRECTNESS, score, course_id=course_id, user_id=user_id)

    def log_mastery_improvement(self, course_id: str, user_id: str, delta: float) -> EvaluationMetric:
        return self._record(MetricType.MASTERY_IMPROVEMENT, delta, course_id=course_id, user_id=user_id)

    def log_quiz_discrimination(self, course_id: str, easy_avg: float, hard_avg: float) -> EvaluationMetric:
        """Simple discrimination index: hard average over easy average (or 1)."""
        index = hard_avg / (easy_avg or 1)
        return self._record(
            MetricType.QUIZ_DISCRIMINATION,
            index,
            course_id=course_id,
            metadata={"easy_avg": easy_avg, "hard_avg": hard_avg},
        )

    def evaluate_syllabus_coverage(self, course: Course, plan: LearningPlan) -> float:
        """
        Percentage of course topics that appear somewhere in the plan.

        Returns 0 (and records nothing) when the course has no topics.
        """
        total = len(course.topics)
        if total == 0:
            return 0.0

        syllabus = set(course.topics)
        covered = {topic for week in plan.weeks for topic in week.topics if topic in syllabus}
        coverage = len(covered) / total * 100

        self._record(
            MetricType.SYLLABUS_COVERAGE,
            coverage,
            course_id=course.course_id,
            user_id=plan.user_id,
            metadata={"total_topics": total, "covered_topics": len(covered)},
        )
        return coverage

    def list_metrics(self, metric_type: MetricType | None = None, course_id: str | None = None) -> list[EvaluationMetric]:
        metrics = [
            m
            for m in self.repository.scan()
            if (metric_type is None or m.metric_type == metric_type)
            and (course_id is None or m.course_id == course_id)
        ]
        return sorted(metrics, key=lambda m: m.timestamp)
