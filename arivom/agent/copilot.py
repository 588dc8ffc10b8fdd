"""
Learning Copilot helpers.

Rule-based guidance around the learner state, with the language model used
only for concept explanations:
- explain_concept: model explanation, templated fallback
- suggest_next_topic: weakest weak topic, else the current week's next topic
- recommend_adaptive_quiz: quiz target for the lowest-mastery weak topic
- study_tips: rules on velocity, weak topics, recurring mistakes, consistency
"""

from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger

from arivom.core.errors import LanguageModelError
from arivom.db.repositories import (
    AdaptiveQuizRepository,
    CourseRepository,
    LearningPlanRepository,
    compose_key,
)
from arivom.integrations.llm import LanguageModel
from arivom.learning.mastery_tracker import MasteryTracker
from arivom.learning.memory import LearningMemoryService, record_interaction
from arivom.models import AdaptiveQuiz, Classification, Difficulty, LearningVelocity, QuizStatus, WeekStatus
from arivom.quiz.adaptive_engine import select_difficulty

MAX_TIPS = 5
RECURRING_MISTAKE_OCCURRENCES = 2
WEAK_TOPIC_TIP_THRESHOLD = 2
LOW_CONSISTENCY = 50

EXPLAIN_PROMPT = """You are an expert learning assistant. Explain the concept "{concept}" in the context of the course "{course}".

Learner level: {depth}
Learning pace: {pace}
Topics completed: {completed}

Give a structured, step-by-step explanation that:
1. Starts with a simple definition
2. Breaks it down into smaller concepts
3. Gives concrete examples
4. Connects it to topics already completed
5. Ends with a practical application
"""

FALLBACK_EXPLANATION = """## Understanding "{concept}"

### Simple Definition
"{concept}" is an important concept in {course}.

### Key Components
1. **Foundation**: Start with the basic definition
2. **Building Blocks**: Break it into smaller pieces
3. **Relationships**: See how it connects to other concepts
4. **Application**: Learn how it is used in practice

### Next Steps
1. Review the course materials on this topic
2. Take a practice quiz to test your understanding
"""

GENERIC_TIPS = (
    ("Test Your Knowledge", "Take quizzes regularly to identify weak areas early.", "medium"),
    (
        "Teach Others",
        "Try explaining concepts to someone else. It is one of the best ways to solidify understanding.",
        "medium",
    ),
)


@dataclass
class Explanation:
    concept: str
    explanation: str
    depth: str
    source: str
    next_steps: list[str] = field(
        default_factory=lambda: [
            "Practice this concept with a quiz",
            "Read additional materials",
            "Apply it in a real-world scenario",
        ]
    )


@dataclass
class TopicSuggestion:
    next_topic: str | None
    reason: str
    current_week: int | None = None
    weak_topics: list[str] = field(default_factory=list)


@dataclass
class QuizRecommendation:
    topic: str | None
    difficulty: Difficulty
    message: str
    mastery_score: int | None = None
    existing_quiz: AdaptiveQuiz | None = None


@dataclass
class StudyTip:
    title: str
    description: str
    priority: str


class LearningCopilot:
    def __init__(
        self,
        courses: CourseRepository,
        plans: LearningPlanRepository,
        quizzes: AdaptiveQuizRepository,
        mastery: MasteryTracker,
        memory: LearningMemoryService,
        llm: LanguageModel,
    ):
        self.courses = courses
        self.plans = plans
        self.quizzes = quizzes
        self.mastery = mastery
        self.memory = memory
        self.llm = llm

    def explain_concept(self, user_id: str, course_id: str, concept: str, depth: str = "beginner") -> Explanation:
        course = self.courses.require(course_id)
        memory = self.memory.get_or_create(user_id, course_id)
        course_title = course.title or course_id

        prompt = EXPLAIN_PROMPT.format(
            concept=concept,
            course=course_title,
            depth=depth,
            pace=memory.learning_patterns.learning_velocity.value,
            completed=", ".join(t.topic_name for t in memory.completed_topics) or "none yet",
        )
        try:
            text = self.llm.complete(prompt)
            source = "llm"
        except LanguageModelError as e:
            logger.warning(f"Concept explanation degraded to template: {e}")
            text = FALLBACK_EXPLANATION.format(concept=concept, course=course_title)
            source = "fallback"

        memory = record_interaction(
            memory, "explanation", concept, text, topic=concept, max_chars=self.memory.response_max_chars
        )
        self.memory.save(memory)
        return Explanation(concept=concept, explanation=text, depth=depth, source=source)

    def suggest_next_topic(self, user_id: str, course_id: str) -> TopicSuggestion:
        """
        Weak topics first (lowest mastery), then the current week's first
        uncompleted topic.

        Raises:
            NotFoundError: no plan for this course
        """
        plan = self.plans.require(compose_key(user_id, course_id))
        memory = self.memory.get_or_create(user_id, course_id)

        week = next((w for w in plan.weeks if w.status != WeekStatus.COMPLETED), None)
        if week is None:
            return TopicSuggestion(None, "Congratulations! You have completed all topics in this course.")

        weak = sorted(self.mastery.weak_topics(user_id, course_id), key=lambda m: m.mastery_score)
        weak_names = [m.topic_name for m in weak]
        if weak_names:
            topic = weak_names[0]
            reason = f'You have {len(weak_names)} weak topics. Let\'s strengthen "{topic}" first.'
        else:
            completed = {t.topic_name for t in memory.completed_topics}
            topic = next((t for t in week.topics if t not in completed), None)
            reason = f'This week\'s focus: "{topic}"' if topic else "This week's topics are done. Mark the week complete."

        return TopicSuggestion(topic, reason, current_week=week.week_number, weak_topics=weak_names[:3])

    def recommend_adaptive_quiz(self, user_id: str, course_id: str) -> QuizRecommendation:
        weak = sorted(self.mastery.weak_topics(user_id, course_id), key=lambda m: m.mastery_score)
        if not weak:
            return QuizRecommendation(
                topic=None,
                difficulty=Difficulty.HARD,
                message="Great work! No weak topics identified. You can take a comprehensive review quiz.",
            )

        target = weak[0]
        difficulty = select_difficulty(target.mastery_score)
        existing = next(
            (
                q
                for q in self.quizzes.for_topic(user_id, course_id, target.topic_name)
                if q.status in (QuizStatus.DRAFT, QuizStatus.PUBLISHED)
            ),
            None,
        )
        if existing is not None:
            message = (
                f'This quiz targets your weak area: "{target.topic_name}" (Mastery: {target.mastery_score}%)'
            )
        else:
            message = f'Quiz recommended for topic: "{target.topic_name}"'
        return QuizRecommendation(
            topic=target.topic_name,
            difficulty=existing.difficulty if existing else difficulty,
            message=message,
            mastery_score=target.mastery_score,
            existing_quiz=existing,
        )

    def study_tips(self, user_id: str, course_id: str) -> list[StudyTip]:
        memory = self.memory.get_or_create(user_id, course_id)
        tips: list[StudyTip] = []

        if memory.learning_patterns.learning_velocity == LearningVelocity.SLOW:
            tips.append(
                StudyTip(
                    "Try Shorter Sessions",
                    "You seem to learn better with shorter, focused sessions. Try 20-30 minutes at a time.",
                    "high",
                )
            )

        weak = [m.topic_name for m in self.mastery.list_topics(user_id, course_id) if m.classification == Classification.WEAK]
        if len(weak) > WEAK_TOPIC_TIP_THRESHOLD:
            tips.append(
                StudyTip(
                    f"Focus on Weak Topics ({len(weak)})",
                    f"These topics need attention: {', '.join(weak)}. Allocate more time to them.",
                    "high",
                )
            )

        recurring = [m for m in memory.open_mistakes if m.occurrence_count > RECURRING_MISTAKE_OCCURRENCES][:3]
        if recurring:
            tips.append(
                StudyTip(
                    "Review Recurring Mistakes",
                    f"You've made these mistakes multiple times: {', '.join(m.concept for m in recurring)}.",
                    "high",
                )
            )

        if memory.learning_patterns.consistency_score < LOW_CONSISTENCY:
            tips.append(
                StudyTip(
                    "Build Consistency",
                    "Keep a regular schedule. Fifteen minutes daily beats sporadic long sessions.",
                    "medium",
                )
            )

        if len(tips) < 3:
            tips.extend(StudyTip(*tip) for tip in GENERIC_TIPS)
        return tips[:MAX_TIPS]
