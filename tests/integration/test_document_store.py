"""
Integration Tests for the SQL Document Store.

Runs the repositories against SQLAlchemy on an in-memory SQLite database:
1. Raw get/put/scan/delete on the documents table
2. Typed repositories round-trip pydantic models
3. Fully wired services on the SQL backend
"""

import pytest
from sqlalchemy import create_engine, inspect

from arivom.container import build_services
from arivom.core.errors import NotFoundError
from arivom.db.repositories import Repositories
from arivom.db.store import DocumentStore, SqlDocumentStore
from arivom.models import Course, LearningPlan, Week

pytestmark = pytest.mark.integration


@pytest.fixture
def engine():
    engine = create_engine("sqlite://")
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(engine):
    return SqlDocumentStore(engine)


class TestSqlDocumentStore:
    def test_creates_documents_table(self, engine, sql_store):
        assert "documents" in inspect(engine).get_table_names()

    def test_satisfies_protocol(self, sql_store):
        assert isinstance(sql_store, DocumentStore)

    def test_put_and_get(self, sql_store):
        sql_store.put("courses", "net101", {"course_id": "net101", "topics": ["A"]})

        assert sql_store.get("courses", "net101") == {"course_id": "net101", "topics": ["A"]}
        assert sql_store.get("courses", "missing") is None
        assert sql_store.get("plans", "net101") is None

    def test_put_overwrites(self, sql_store):
        sql_store.put("courses", "net101", {"v": 1})
        sql_store.put("courses", "net101", {"v": 2})

        assert sql_store.get("courses", "net101") == {"v": 2}
        assert len(list(sql_store.scan("courses"))) == 1

    def test_returned_documents_are_copies(self, sql_store):
        sql_store.put("courses", "net101", {"topics": ["A"]})

        sql_store.get("courses", "net101")["topics"].append("B")

        assert sql_store.get("courses", "net101") == {"topics": ["A"]}

    def test_scan_by_prefix_in_key_order(self, sql_store):
        for key in ("u1|c1|Routing", "u1|c1|Arp", "u1|c2|Routing", "u2|c1|Routing"):
            sql_store.put("topic_mastery", key, {"key": key})

        keys = [key for key, _ in sql_store.scan("topic_mastery", "u1|c1|")]

        assert keys == ["u1|c1|Arp", "u1|c1|Routing"]

    def test_scan_prefix_is_literal(self, sql_store):
        sql_store.put("docs", "a%b", {})
        sql_store.put("docs", "axb", {})

        assert [key for key, _ in sql_store.scan("docs", "a%")] == ["a%b"]

    def test_delete(self, sql_store):
        sql_store.put("courses", "net101", {})

        assert sql_store.delete("courses", "net101") is True
        assert sql_store.delete("courses", "net101") is False
        assert sql_store.get("courses", "net101") is None


class TestRepositoriesOnSql:
    def test_course_roundtrip(self, sql_store):
        repos = Repositories(sql_store)
        repos.courses.save(Course(course_id="net101", title="Networking", topics=["Subnetting"]))

        course = repos.courses.require("net101")

        assert course.title == "Networking"
        assert course.topics == ["Subnetting"]

    def test_require_missing(self, sql_store):
        with pytest.raises(NotFoundError):
            Repositories(sql_store).courses.require("missing")

    def test_plan_save_stamps_updated_at(self, sql_store):
        repos = Repositories(sql_store)
        repos.plans.save(LearningPlan(user_id="u1", course_id="c1", weeks=[Week(week_number=1)]))

        plan = repos.plans.find("u1", "c1")

        assert plan.updated_at is not None
        assert plan.weeks[0].week_number == 1


class TestServicesOnSql:
    def test_quiz_flow_persists(self, settings, sql_store, fake_llm, fake_embedder, now):
        services = build_services(settings, store=sql_store, llm=fake_llm, embedder=fake_embedder)
        services.create_course("net101", title="Networking", topics=["Subnetting"])
        services.mastery.record_quiz_result("u1", "net101", "Subnetting", 90)

        # a second wiring over the same store sees the same state
        reloaded = build_services(settings, store=sql_store, llm=fake_llm, embedder=fake_embedder)

        mastery = reloaded.mastery.get("u1", "net101", "Subnetting")
        assert mastery.mastery_score == 63
        assert mastery.recent_quizzes[0].score == 90
