"""
Question generation through the language model.

The model is asked for a JSON array of questions; replies wrapped in markdown
code fences are accepted. Any provider or parse failure surfaces as
QuizGenerationError so the caller can degrade to a draft quiz.
"""

from __future__ import annotations

from typing import Any

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from arivom.core.errors import LanguageModelError, QuizGenerationError
from arivom.integrations.llm import LanguageModel, extract_json
from arivom.models import Difficulty, Question, QuestionType

QUIZ_PROMPT = """You are writing an adaptive quiz for the course "{course}".

Topic: {topic}
Difficulty: {difficulty}
Number of questions: {count}
{context}
Respond with JSON only: a list of {count} objects with keys
"question_text", "question_type" (one of "multiple-choice", "true-false",
"short-answer"), "options" (list of strings, empty for short-answer),
"correct_answer_index" (int, for multiple-choice and true-false),
"correct_answer" (string, for short-answer), "explanation" and
"concepts" (list of the concepts the question tests).
"""


class QuestionGenerator:
    def __init__(self, llm: LanguageModel):
        self.llm = llm

    def build_prompt(
        self,
        topic: str,
        difficulty: Difficulty,
        count: int,
        course_title: str = "",
        context: list[str] | None = None,
    ) -> str:
        context_block = ""
        if context:
            context_block = "\nCourse material excerpts:\n" + "\n---\n".join(context) + "\n"
        return QUIZ_PROMPT.format(
            course=course_title or "this course",
            topic=topic,
            difficulty=difficulty.value,
            count=count,
            context=context_block,
        )

    def generate(
        self,
        topic: str,
        difficulty: Difficulty,
        count: int = 10,
        course_title: str = "",
        context: list[str] | None = None,
    ) -> list[Question]:
        """
        Generate questions for a topic.

        Raises:
            QuizGenerationError: the model failed or returned unusable output
        """
        if count <= 0:
            raise QuizGenerationError(f"Question count must be positive, got {count}")

        prompt = self.build_prompt(topic, difficulty, count, course_title, context)
        try:
            reply = self.llm.complete(prompt)
            questions = parse_questions(reply, difficulty)
        except LanguageModelError as e:
            raise QuizGenerationError(str(e)) from e

        if not questions:
            raise QuizGenerationError("Model returned no questions")
        logger.info(f"Generated {len(questions[:count])} {difficulty.value} questions for '{topic}'")
        return questions[:count]


def parse_questions(reply: str, difficulty: Difficulty) -> list[Question]:
    """Parse a JSON question list into Question models."""
    payload = extract_json(reply)
    if isinstance(payload, dict):
        payload = payload.get("questions", [])
    if not isinstance(payload, list):
        raise QuizGenerationError("Question reply is not a list")

    questions = []
    for item in payload:
        try:
            questions.append(_to_question(item, difficulty))
        except (AttributeError, KeyError, TypeError, ValueError, PydanticValidationError) as e:
            raise QuizGenerationError(f"Malformed question: {e}") from e
    return questions


def _to_question(item: dict[str, Any], difficulty: Difficulty) -> Question:
    text = str(item["question_text"]).strip()
    if not text:
        raise ValueError("empty question_text")

    question_type = QuestionType(item.get("question_type", QuestionType.MULTIPLE_CHOICE.value))
    options = [str(o) for o in item.get("options", [])]
    index = item.get("correct_answer_index")

    if question_type != QuestionType.SHORT_ANSWER:
        if index is None or not 0 <= int(index) < len(options):
            raise ValueError(f"correct_answer_index out of range for '{text}'")
        index = int(index)

    return Question(
        question_text=text,
        question_type=question_type,
        options=options,
        correct_answer_index=index,
        correct_answer=item.get("correct_answer"),
        explanation=str(item.get("explanation", "")),
        difficulty=difficulty,
        concepts=[str(c) for c in item.get("concepts", [])],
    )
