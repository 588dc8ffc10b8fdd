"""Learning plan models."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


class WeekStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class Week(BaseModel):
    week_number: int = Field(ge=1)
    topics: list[str] = Field(default_factory=list)
    hours_per_week: float = 5
    tasks: list[str] = Field(default_factory=list)
    description: str = ""
    status: WeekStatus = WeekStatus.PENDING


class LearningPlan(BaseModel):
    plan_id: str = Field(default_factory=lambda: uuid4().hex)
    user_id: str
    course_id: str
    title: str = "Personalized Learning Plan"
    description: str = ""
    weeks: list[Week] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    updated_at: datetime | None = None

    def first_open_week_index(self) -> int | None:
        """Index of the first week that is not completed."""
        for index, week in enumerate(self.weeks):
            if week.status != WeekStatus.COMPLETED:
                return index
        return None
