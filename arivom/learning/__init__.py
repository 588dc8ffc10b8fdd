# Learner state: topic mastery, learning memory journal and study plans
from .mastery_tracker import MasteryTracker, classify, get_weak_areas, record_quiz_result
from .memory import LearningMemoryService
from .plan_service import LearningPlanService

__all__ = [
    "LearningMemoryService",
    "LearningPlanService",
    "MasteryTracker",
    "classify",
    "get_weak_areas",
    "record_quiz_result",
]
