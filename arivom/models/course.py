"""
Course content models.

A Course owns an ordered list of Material; each Material owns the ordered
Chunks produced at ingestion. Chunks are shared read-only by every learner
retrieving from the course.
"""
from __future__ import annotations

from collections.abc import Iterator
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class Chunk(BaseModel):
    """A retrieval-sized text segment and its embedding (empty if the provider failed)."""

    model_config = ConfigDict(frozen=True)

    text: str
    position: int = 0
    page_number: int = 0
    section: str = "General"
    embedding: list[float] = Field(default_factory=list)

    @property
    def has_embedding(self) -> bool:
        return len(self.embedding) > 0


class Material(BaseModel):
    """An uploaded document after text extraction."""

    material_id: str = Field(default_factory=lambda: uuid4().hex)
    title: str
    content: str = ""
    material_type: str = "pdf"
    page_count: int = 0
    is_processed: bool = False
    chunks: list[Chunk] = Field(default_factory=list)

    @property
    def embedding_coverage(self) -> float:
        """Fraction of chunks that carry an embedding."""
        if not self.chunks:
            return 0.0
        return sum(1 for c in self.chunks if c.has_embedding) / len(self.chunks)


class Course(BaseModel):
    """A course and its material corpus."""

    course_id: str
    title: str = ""
    description: str = ""
    level: str = "beginner"
    topics: list[str] = Field(default_factory=list)
    materials: list[Material] = Field(default_factory=list)

    def iter_chunks(self) -> Iterator[tuple[Material, Chunk]]:
        """Yield every (material, chunk) pair in upload order."""
        for material in self.materials:
            for chunk in material.chunks:
                yield material, chunk
