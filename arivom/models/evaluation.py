"""Evaluation metric records."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


class MetricType(str, Enum):
    SYLLABUS_COVERAGE = "syllabus-coverage"
    ANSWER_CORRECTNESS = "answer-correctness"
    QUIZ_DISCRIMINATION = "quiz-discrimination"
    MASTERY_IMPROVEMENT = "mastery-improvement"
    LATENCY = "latency"


class EvaluationMetric(BaseModel):
    metric_id: str = Field(default_factory=lambda: uuid4().hex)
    metric_type: MetricType
    value: float
    course_id: str | None = None
    user_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime
