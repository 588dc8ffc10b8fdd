"""
Typed repositories over the document store.

Keys:
- courses/<course>
- topic_mastery/<user>|<course>|<topic>
- adaptive_quizzes/<quiz>
- learning_memory/<user>|<course>
- learning_plans/<user>|<course>
- evaluation_metrics/<id>

`get` returns None for a missing document; `require` raises NotFoundError.
Saves are last-writer-wins.
"""
from __future__ import annotations

from collections.abc import Iterator
from typing import Generic, TypeVar

from pydantic import BaseModel

from arivom.core.errors import NotFoundError
from arivom.core.scoring import utcnow
from arivom.db.store import DocumentStore
from arivom.models import (
    AdaptiveQuiz,
    Course,
    EvaluationMetric,
    LearningMemory,
    LearningPlan,
    TopicMastery,
)

ModelT = TypeVar("ModelT", bound=BaseModel)

KEY_SEPARATOR = "|"


def compose_key(*parts: str) -> str:
    return KEY_SEPARATOR.join(parts)


class Repository(Generic[ModelT]):
    collection: str
    model: type[ModelT]
    entity_name: str

    def __init__(self, store: DocumentStore):
        self.store = store

    def key_for(self, item: ModelT) -> str:
        raise NotImplementedError

    def get(self, key: str) -> ModelT | None:
        document = self.store.get(self.collection, key)
        if document is None:
            return None
        return self.model.model_validate(document)

    def require(self, key: str) -> ModelT:
        item = self.get(key)
        if item is None:
            raise NotFoundError(self.entity_name, key)
        return item

    def save(self, item: ModelT) -> ModelT:
        self.store.put(self.collection, self.key_for(item), item.model_dump(mode="json"))
        return item

    def scan(self, prefix: str = "") -> Iterator[ModelT]:
        for _key, document in self.store.scan(self.collection, prefix):
            yield self.model.model_validate(document)

    def delete(self, key: str) -> bool:
        return self.store.delete(self.collection, key)


class CourseRepository(Repository[Course]):
    collection = "courses"
    model = Course
    entity_name = "Course"

    def key_for(self, item: Course) -> str:
        return item.course_id


class TopicMasteryRepository(Repository[TopicMastery]):
    collection = "topic_mastery"
    model = TopicMastery
    entity_name = "TopicMastery"

    def key_for(self, item: TopicMastery) -> str:
        return compose_key(item.user_id, item.course_id, item.topic_name)

    def find(self, user_id: str, course_id: str, topic_name: str) -> TopicMastery | None:
        return self.get(compose_key(user_id, course_id, topic_name))

    def for_course(self, user_id: str, course_id: str) -> list[TopicMastery]:
        return list(self.scan(compose_key(user_id, course_id) + KEY_SEPARATOR))


class AdaptiveQuizRepository(Repository[AdaptiveQuiz]):
    collection = "adaptive_quizzes"
    model = AdaptiveQuiz
    entity_name = "AdaptiveQuiz"

    def key_for(self, item: AdaptiveQuiz) -> str:
        return item.quiz_id

    def for_topic(self, user_id: str, course_id: str, topic_name: str) -> list[AdaptiveQuiz]:
        return [
            quiz
            for quiz in self.scan()
            if quiz.user_id == user_id and quiz.course_id == course_id and quiz.topic_name == topic_name
        ]


class LearningMemoryRepository(Repository[LearningMemory]):
    collection = "learning_memory"
    model = LearningMemory
    entity_name = "LearningMemory"

    def key_for(self, item: LearningMemory) -> str:
        return compose_key(item.user_id, item.course_id)

    def find(self, user_id: str, course_id: str) -> LearningMemory | None:
        return self.get(compose_key(user_id, course_id))


class LearningPlanRepository(Repository[LearningPlan]):
    collection = "learning_plans"
    model = LearningPlan
    entity_name = "LearningPlan"

    def key_for(self, item: LearningPlan) -> str:
        return compose_key(item.user_id, item.course_id)

    def find(self, user_id: str, course_id: str) -> LearningPlan | None:
        return self.get(compose_key(user_id, course_id))

    def save(self, item: LearningPlan) -> LearningPlan:
        item = item.model_copy(update={"updated_at": utcnow()})
        return super().save(item)


class EvaluationMetricRepository(Repository[EvaluationMetric]):
    collection = "evaluation_metrics"
    model = EvaluationMetric
    entity_name = "EvaluationMetric"

    def key_for(self, item: EvaluationMetric) -> str:
        return item.metric_id


class Repositories:
    """All repositories sharing one document store."""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.courses = CourseRepository(store)
        self.mastery = TopicMasteryRepository(store)
        self.quizzes = AdaptiveQuizRepository(store)
        self.memory = LearningMemoryRepository(store)
        self.plans = LearningPlanRepository(store)
        self.metrics = EvaluationMetricRepository(store)
