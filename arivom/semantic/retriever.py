"""
Chunk retrieval for course questions.

Two scoring modes:
- vector: cosine similarity between the query embedding and each chunk
  embedding (chunks without an embedding score 0)
- keyword: count of query terms (longer than 3 characters) contained in the
  chunk text; zero-score chunks are dropped

Vector mode is used only when it can rank anything: the query has an
embedding, some chunk has one, and at least one similarity is non-zero.
Otherwise retrieval silently falls back to keyword mode. Sorting is stable,
so ties keep corpus order.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

from loguru import logger

from arivom.models import Course
from arivom.semantic.embedding_service import (
    EmbeddingProvider,
    NullEmbeddingProvider,
    cosine_similarity,
)

MIN_KEYWORD_LENGTH = 3


class RetrievalMode(str, Enum):
    VECTOR = "vector"
    KEYWORD = "keyword"


@dataclass
class CorpusEntry:
    """A chunk as seen by the retriever."""

    text: str
    embedding: Sequence[float] = field(default_factory=list)
    source: str = ""
    page: int = 0


@dataclass
class RetrievedChunk:
    text: str
    source: str
    page: int
    score: float
    mode: RetrievalMode


def keyword_terms(query: str) -> list[str]:
    return [t for t in query.lower().split() if len(t) > MIN_KEYWORD_LENGTH]


def keyword_score(terms: Iterable[str], text: str) -> int:
    lowered = text.lower()
    return sum(1 for term in terms if term in lowered)


def _as_entries(corpus: Mapping[str, Sequence[float]] | Iterable[CorpusEntry]) -> list[CorpusEntry]:
    if isinstance(corpus, Mapping):
        return [CorpusEntry(text=text, embedding=vector or []) for text, vector in corpus.items()]
    return list(corpus)


class Retriever:
    """
    Rank corpus chunks against a query.

    Example:
        >>> retriever = Retriever()
        >>> retriever.retrieve({"a": [1, 0], "b": [0, 1]}, "q", top_k=1, query_embedding=[1, 0])
    """

    def __init__(self, embedder: EmbeddingProvider | None = None, default_top_k: int = 3):
        self.embedder = embedder or NullEmbeddingProvider()
        self.default_top_k = default_top_k

    def retrieve(
        self,
        corpus: Mapping[str, Sequence[float]] | Iterable[CorpusEntry],
        query: str,
        top_k: int | None = None,
        query_embedding: Sequence[float] | None = None,
    ) -> list[RetrievedChunk]:
        """
        Return up to top_k chunks most relevant to the query.

        Args:
            corpus: chunk text -> embedding mapping, or CorpusEntry items
            query: Learner question
            top_k: Result limit (defaults to the retriever's default)
            query_embedding: Precomputed query vector; [] or None means none

        Returns:
            RetrievedChunk list, best first
        """
        top_k = self.default_top_k if top_k is None else top_k
        entries = _as_entries(corpus)
        if not entries or top_k <= 0:
            return []

        if query_embedding and any(len(e.embedding) > 0 for e in entries):
            scores = [cosine_similarity(query_embedding, e.embedding) if len(e.embedding) else 0.0 for e in entries]
            if any(score != 0.0 for score in scores):
                ranked = sorted(zip(entries, scores), key=lambda pair: pair[1], reverse=True)
                return [
                    RetrievedChunk(e.text, e.source, e.page, score, RetrievalMode.VECTOR)
                    for e, score in ranked[:top_k]
                ]
            logger.debug("No usable similarity scores - falling back to keyword retrieval")

        terms = keyword_terms(query)
        scored = [(e, keyword_score(terms, e.text)) for e in entries]
        ranked = sorted((pair for pair in scored if pair[1] > 0), key=lambda pair: pair[1], reverse=True)
        return [
            RetrievedChunk(e.text, e.source, e.page, float(score), RetrievalMode.KEYWORD)
            for e, score in ranked[:top_k]
        ]

    def retrieve_for_course(self, course: Course, query: str, top_k: int | None = None) -> list[RetrievedChunk]:
        """Embed the query (if possible) and rank every chunk of the course."""
        corpus = [
            CorpusEntry(text=chunk.text, embedding=chunk.embedding, source=material.title, page=chunk.page_number)
            for material, chunk in course.iter_chunks()
        ]
        if not corpus:
            return []

        query_embedding = self.embedder.embed(query)
        results = self.retrieve(corpus, query, top_k=top_k, query_embedding=query_embedding)
        logger.debug(
            f"Retrieved {len(results)} chunks for course {course.course_id}"
            f" ({results[0].mode.value if results else 'no match'})"
        )
        return results
