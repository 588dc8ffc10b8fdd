"""
Unit tests for model-backed question generation.
"""
import json

import pytest

from arivom.core.errors import LanguageModelError, QuizGenerationError
from arivom.integrations.llm import extract_json
from arivom.models import Difficulty, QuestionType
from arivom.quiz.question_generator import QuestionGenerator, parse_questions

QUESTIONS = [
    {
        "question_text": "How many hosts fit in a /30?",
        "question_type": "multiple-choice",
        "options": ["2", "4", "6", "8"],
        "correct_answer_index": 0,
        "explanation": "Four addresses minus network and broadcast.",
        "concepts": ["cidr"],
    },
    {
        "question_text": "A /24 mask is 255.255.255.0.",
        "question_type": "true-false",
        "options": ["True", "False"],
        "correct_answer_index": 0,
        "concepts": ["masks"],
    },
    {
        "question_text": "Name the address that identifies the subnet itself.",
        "question_type": "short-answer",
        "correct_answer": "network address",
        "concepts": ["masks"],
    },
]


class TestExtractJson:
    def test_plain(self):
        assert extract_json('[{"a": 1}]') == [{"a": 1}]

    def test_code_fence(self):
        assert extract_json('Sure!\n```json\n{"weeks": []}\n```\nEnjoy.') == {"weeks": []}

    def test_surrounding_prose(self):
        assert extract_json('Here you go: [1, 2, 3] -- good luck') == [1, 2, 3]

    def test_no_json(self):
        with pytest.raises(LanguageModelError):
            extract_json("no structured data here")


class TestParseQuestions:
    def test_all_types(self):
        questions = parse_questions(json.dumps(QUESTIONS), Difficulty.HARD)

        assert [q.question_type for q in questions] == [
            QuestionType.MULTIPLE_CHOICE,
            QuestionType.TRUE_FALSE,
            QuestionType.SHORT_ANSWER,
        ]
        assert all(q.difficulty == Difficulty.HARD for q in questions)
        assert questions[2].correct_answer == "network address"
        assert questions[2].correct_answer_index is None
        assert len({q.question_id for q in questions}) == 3

    def test_questions_key(self):
        questions = parse_questions(json.dumps({"questions": QUESTIONS[:1]}), Difficulty.EASY)

        assert questions[0].concepts == ["cidr"]

    def test_index_out_of_range(self):
        bad = dict(QUESTIONS[0], correct_answer_index=4)

        with pytest.raises(QuizGenerationError):
            parse_questions(json.dumps([bad]), Difficulty.EASY)

    def test_missing_text(self):
        with pytest.raises(QuizGenerationError):
            parse_questions(json.dumps([{"options": ["a"], "correct_answer_index": 0}]), Difficulty.EASY)

    def test_unknown_type(self):
        bad = dict(QUESTIONS[0], question_type="essay")

        with pytest.raises(QuizGenerationError):
            parse_questions(json.dumps([bad]), Difficulty.EASY)


class TestQuestionGenerator:
    def test_generate(self, fake_llm):
        fake_llm.replies.append("```json\n" + json.dumps(QUESTIONS) + "\n```")
        generator = QuestionGenerator(fake_llm)

        questions = generator.generate("Subnetting", Difficulty.MEDIUM, 3, course_title="Networking")

        assert len(questions) == 3
        prompt = fake_llm.prompts[0]
        assert "Topic: Subnetting" in prompt
        assert "Difficulty: medium" in prompt
        assert '"Networking"' in prompt

    def test_truncates_to_count(self, fake_llm):
        fake_llm.replies.append(json.dumps(QUESTIONS))

        questions = QuestionGenerator(fake_llm).generate("Subnetting", Difficulty.MEDIUM, 2)

        assert len(questions) == 2

    def test_context_in_prompt(self, fake_llm):
        prompt = QuestionGenerator(fake_llm).build_prompt(
            "Routing", Difficulty.EASY, 5, context=["Routers forward packets."]
        )

        assert "Routers forward packets." in prompt

    def test_model_failure(self, fake_llm):
        with pytest.raises(QuizGenerationError):
            QuestionGenerator(fake_llm).generate("Subnetting", Difficulty.MEDIUM, 3)

    def test_empty_list(self, fake_llm):
        fake_llm.replies.append("[]")

        with pytest.raises(QuizGenerationError):
            QuestionGenerator(fake_llm).generate("Subnetting", Difficulty.MEDIUM, 3)

    def test_rejects_non_positive_count(self, fake_llm):
        with pytest.raises(QuizGenerationError):
            QuestionGenerator(fake_llm).generate("Subnetting", Difficulty.MEDIUM, 0)
        assert fake_llm.prompts == []
