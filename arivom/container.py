"""
Service wiring.

build_services assembles every service around one document store. Any
collaborator can be injected (tests pass an in-memory store and fake
providers); missing ones are built from settings, falling back to the null
providers when nothing is configured.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from arivom.agent.copilot import LearningCopilot
from arivom.agent.learning_agent import LearningAgent
from arivom.db.database import get_engine
from arivom.db.repositories import Repositories
from arivom.db.store import DocumentStore, InMemoryDocumentStore, SqlDocumentStore
from arivom.evaluation.metrics import EvaluationService
from arivom.integrations.llm import LanguageModel, build_language_model
from arivom.learning.mastery_tracker import MasteryTracker
from arivom.learning.memory import LearningMemoryService
from arivom.learning.plan_service import LearningPlanService
from arivom.models import Course
from arivom.processing.chunker import Chunker
from arivom.quiz.question_generator import QuestionGenerator
from arivom.quiz.quiz_service import AdaptiveQuizService
from arivom.semantic.embedding_service import EmbeddingProvider, build_embedding_provider
from arivom.semantic.ingestion import MaterialIngestionService
from arivom.semantic.retriever import Retriever
from config import Settings, get_settings


@dataclass
class Services:
    settings: Settings
    repositories: Repositories
    llm: LanguageModel
    embedder: EmbeddingProvider
    retriever: Retriever
    ingestion: MaterialIngestionService
    mastery: MasteryTracker
    memory: LearningMemoryService
    plans: LearningPlanService
    quizzes: AdaptiveQuizService
    agent: LearningAgent
    copilot: LearningCopilot
    evaluation: EvaluationService

    def create_course(
        self,
        course_id: str,
        title: str = "",
        topics: list[str] | None = None,
        description: str = "",
        level: str | None = None,
    ) -> Course:
        """Create or update course metadata, keeping existing materials."""
        course = self.repositories.courses.get(course_id) or Course(course_id=course_id)
        course.title = title or course.title
        course.description = description or course.description
        course.level = level or course.level
        if topics is not None:
            course.topics = topics
        return self.repositories.courses.save(course)


def build_store(settings: Settings) -> DocumentStore:
    if settings.store_backend == "memory":
        return InMemoryDocumentStore()
    return SqlDocumentStore(get_engine(settings.database_url))


def build_services(
    settings: Settings | None = None,
    store: DocumentStore | None = None,
    llm: LanguageModel | None = None,
    embedder: EmbeddingProvider | None = None,
) -> Services:
    settings = settings or get_settings()
    store = store if store is not None else build_store(settings)
    llm = llm or build_language_model(settings)
    embedder = embedder or build_embedding_provider(settings)

    repos = Repositories(store)
    evaluation = EvaluationService(repos.metrics)
    retriever = Retriever(embedder, default_top_k=settings.retrieval_top_k)
    mastery = MasteryTracker(repos.mastery, capacity=settings.recent_quiz_capacity)
    memory = LearningMemoryService(repos.memory, response_max_chars=settings.interaction_response_max_chars)

    services = Services(
        settings=settings,
        repositories=repos,
        llm=llm,
        embedder=embedder,
        retriever=retriever,
        ingestion=MaterialIngestionService(repos.courses, embedder, Chunker(settings.chunk_size)),
        mastery=mastery,
        memory=memory,
        plans=LearningPlanService(repos.plans, repos.courses, llm, evaluation),
        quizzes=AdaptiveQuizService(
            repos.quizzes,
            repos.courses,
            mastery,
            memory,
            QuestionGenerator(llm),
            evaluation,
            retriever=retriever,
            quiz_config=settings.get_quiz_config(),
        ),
        agent=LearningAgent(
            repos.courses, repos.plans, mastery, memory, retriever, llm, evaluation, top_k=settings.retrieval_top_k
        ),
        copilot=LearningCopilot(repos.courses, repos.plans, repos.quizzes, mastery, memory, llm),
        evaluation=evaluation,
    )
    logger.debug(
        f"Services ready (store={type(store).__name__}, llm={type(llm).__name__}, embedder={embedder.model_name})"
    )
    return services
