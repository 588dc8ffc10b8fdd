"""
Learning Agent: the plan -> retrieve -> quiz -> evaluate -> replan loop.

process_interaction answers a learner message from retrieved course snippets
and the learner's mastery state. self_reflect_and_replan injects remedial
review tasks for weak topics into the learning plan.

Provider failures never reach the caller: a failed model call produces a
canned reply with source "fallback".
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from loguru import logger

from arivom.agent.replanner import (
    ADJUSTED_MESSAGE,
    UNCHANGED_MESSAGE,
    ReplanResult,
    inject_remedial_task,
)
from arivom.core.errors import LanguageModelError
from arivom.db.repositories import CourseRepository, LearningPlanRepository, compose_key
from arivom.evaluation.metrics import EvaluationService
from arivom.integrations.llm import LanguageModel
from arivom.learning.mastery_tracker import MasteryTracker
from arivom.learning.memory import LearningMemoryService, record_interaction, record_plan_adjustment
from arivom.models import AdjustmentSource, Classification, LearningPlan
from arivom.semantic.retriever import RetrievedChunk, Retriever

RECENT_MASTERY_LIMIT = 5
AGENT_SESSION = "agent-session"

AGENT_PROMPT = """You are the Arivom Learning Agent, a personal mentor rather than a chatbot.
Guide the student through the cycle: Plan -> Retrieve -> Quiz -> Evaluate -> Replan.

CURRENT STATE:
- Course: {course}
- Weak topics identified: {weak_topics}
- Progress: {completed} topics completed.
- Current plan week: {current_week}

RELEVANT MATERIAL SNIPPETS:
{snippets}

INSTRUCTIONS:
1. Answer questions using the snippets above and always cite the source.
2. If the student seems to understand a topic, suggest a quick quiz.
3. If the question concerns a weak topic, explain it with extra examples.
4. Reflect on their past performance.
5. End with one actionable next step (Study, Quiz or Review).

STUDENT MESSAGE:
{message}
"""

NO_SNIPPETS = "No specific snippets found in the course materials."

FALLBACK_REPLY = (
    'I\'m currently unable to provide a detailed response to: "{message}". '
    "This might be due to API availability. However, I recommend:\n\n"
    "1. Review your course materials\n"
    "2. Check the related assessment\n"
    "3. Ask in the course discussion forum\n\n"
    "Try again in a moment!"
)


@dataclass
class AgentReply:
    reply: str
    context_used: list[str] = field(default_factory=list)
    suggested_next_step: str = ""
    source: str = "llm"


def format_snippets(chunks: list[RetrievedChunk]) -> str:
    return "\n\n".join(f"[Source: {c.source}] {c.text}" for c in chunks)


def next_action(weak_topics: list[str]) -> str:
    if weak_topics:
        return f"Review {weak_topics[0]}"
    return "Continue current module"


def _current_week(plan: LearningPlan | None) -> str:
    if plan is None:
        return "No plan yet"
    index = plan.first_open_week_index()
    if index is None:
        return "All weeks completed"
    week = plan.weeks[index]
    return f"Week {week.week_number} (" + (", ".join(week.topics) or "review") + ")"


class LearningAgent:
    """
    Example:
        >>> agent = services.agent
        >>> reply = agent.process_interaction("u1", "c1", "What is a subnet mask?")
        >>> reply.suggested_next_step  # "Review Subnetting"
    """

    def __init__(
        self,
        courses: CourseRepository,
        plans: LearningPlanRepository,
        mastery: MasteryTracker,
        memory: LearningMemoryService,
        retriever: Retriever,
        llm: LanguageModel,
        evaluation: EvaluationService,
        top_k: int = 3,
    ):
        self.courses = courses
        self.plans = plans
        self.mastery = mastery
        self.memory = memory
        self.retriever = retriever
        self.llm = llm
        self.evaluation = evaluation
        self.top_k = top_k

    def process_interaction(self, user_id: str, course_id: str, message: str) -> AgentReply:
        """
        Answer a learner message with course context.

        Raises:
            NotFoundError: the course does not exist
        """
        started = time.perf_counter()

        course = self.courses.require(course_id)
        recent = self.mastery.recent(user_id, course_id, limit=RECENT_MASTERY_LIMIT)
        weak_topics = [m.topic_name for m in recent if m.classification == Classification.WEAK]
        memory = self.memory.get_or_create(user_id, course_id)
        plan = self.plans.find(user_id, course_id)
        current_week = _current_week(plan)

        chunks = self.retriever.retrieve_for_course(course, message, top_k=self.top_k)
        prompt = AGENT_PROMPT.format(
            course=course.title or course_id,
            weak_topics=", ".join(weak_topics) or "None yet",
            completed=len(memory.completed_topics),
            current_week=current_week,
            snippets=format_snippets(chunks) or NO_SNIPPETS,
            message=message,
        )

        try:
            reply = self.llm.complete(prompt)
            source = "llm"
        except LanguageModelError as e:
            logger.warning(f"Agent reply degraded to fallback: {e}")
            reply = FALLBACK_REPLY.format(message=message)
            source = "fallback"

        memory = record_interaction(
            memory, AGENT_SESSION, message, reply, max_chars=self.memory.response_max_chars
        )
        self.memory.save(memory)

        elapsed_ms = (time.perf_counter() - started) * 1000
        self.evaluation.log_latency("agent-interaction", elapsed_ms)
        logger.info(f"Agent answered {user_id}/{course_id} in {elapsed_ms:.0f}ms ({source}, {len(chunks)} snippets)")

        return AgentReply(
            reply=reply,
            context_used=[c.source for c in chunks],
            suggested_next_step=next_action(weak_topics),
            source=source,
        )

    def self_reflect_and_replan(self, user_id: str, course_id: str) -> ReplanResult:
        """
        Add a review task for the first weak topic to the first open week.

        Raises:
            NotFoundError: the learner has no plan for this course
        """
        plan = self.plans.require(compose_key(user_id, course_id))
        weak = self.mastery.weak_topics(user_id, course_id)
        if not weak:
            return ReplanResult(adjusted=False, message=UNCHANGED_MESSAGE)

        topic = weak[0].topic_name
        updated, week_number = inject_remedial_task(plan, topic)
        if week_number is None:
            return ReplanResult(adjusted=False, message=UNCHANGED_MESSAGE, topic=topic)

        memory = record_plan_adjustment(
            self.memory.get_or_create(user_id, course_id),
            reason="weak-topic-repeat",
            topics_affected=[topic],
            old_weeks=[week_number],
            new_weeks=[week_number],
            automated_by=AdjustmentSource.COPILOT,
        )
        self.plans.save(updated)
        self.memory.save(memory)

        logger.info(f"Replanned {user_id}/{course_id}: review of '{topic}' added to week {week_number}")
        return ReplanResult(
            adjusted=True,
            message=ADJUSTED_MESSAGE.format(week=week_number, topic=topic),
            week_number=week_number,
            topic=topic,
        )
