"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests:
fake providers, an in-memory document store and fully wired services.
"""
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from arivom.container import build_services  # noqa: E402
from arivom.core.errors import LanguageModelError  # noqa: E402
from arivom.db.store import InMemoryDocumentStore  # noqa: E402
from arivom.models import Question  # noqa: E402
from config import Settings  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (wired services, SQLite)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


# ========================================
# Fake providers
# ========================================


class FakeLanguageModel:
    """Returns queued replies in order; raises when the queue is empty."""

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.prompts: list[str] = []

    @property
    def is_available(self) -> bool:
        return True

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.replies:
            raise LanguageModelError("no scripted reply")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeEmbedder:
    """Looks vectors up by exact text; unknown text gets []."""

    model_name = "fake"

    def __init__(self, vectors=None):
        self.vectors = dict(vectors or {})
        self.calls: list[str] = []

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        return list(self.vectors.get(text, []))


# ========================================
# Fixtures
# ========================================


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def settings():
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        store_backend="memory",
        gemini_api_key=None,
        embedding_provider="none",
        log_file=None,
    )


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def fake_llm():
    return FakeLanguageModel()


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def services(settings, store, fake_llm, fake_embedder):
    """All services wired around the in-memory store and fake providers."""
    return build_services(settings, store=store, llm=fake_llm, embedder=fake_embedder)


@pytest.fixture
def course(services):
    """A networking course with three ordered topics."""
    return services.create_course(
        "net101",
        title="Networking Fundamentals",
        topics=["Subnetting", "Routing", "Switching"],
    )


@pytest.fixture
def now():
    return datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_questions():
    """Four multiple-choice questions over two concepts."""
    return [
        Question(
            question_id=f"q{i}",
            question_text=f"Question {i}?",
            options=["A", "B", "C", "D"],
            correct_answer_index=0,
            concepts=["masks"] if i < 2 else ["cidr"],
        )
        for i in range(4)
    ]

