"""
Material ingestion: chunk, embed and attach a document to its course.

Embedding calls are sequential and fail independently; a failed chunk keeps an
empty embedding and can be filled in later by backfill_embeddings.
"""

from __future__ import annotations

from loguru import logger

from arivom.db.repositories import CourseRepository
from arivom.models import Chunk, Material
from arivom.processing.chunker import Chunker, analyze_chunks
from arivom.semantic.embedding_service import EmbeddingProvider


class MaterialIngestionService:
    def __init__(self, courses: CourseRepository, embedder: EmbeddingProvider, chunker: Chunker | None = None):
        self.courses = courses
        self.embedder = embedder
        self.chunker = chunker or Chunker()

    def add_material(
        self,
        course_id: str,
        title: str,
        text: str,
        page_count: int = 0,
        material_type: str = "pdf",
    ) -> Material:
        """
        Chunk and embed a document, then append it to the course.

        Raises:
            NotFoundError: the course does not exist
        """
        course = self.courses.require(course_id)

        chunks = self.chunker.chunk_document(text, page_count)
        stats = analyze_chunks(chunks, self.chunker.target_size)
        logger.info(
            f"Chunked '{title}': {stats.total_chunks} chunks "
            f"(avg {stats.avg_length:.0f} chars, max {stats.max_length})"
        )

        embedded = [chunk.model_copy(update={"embedding": self.embedder.embed(chunk.text)}) for chunk in chunks]

        material = Material(
            title=title,
            content=text,
            material_type=material_type,
            page_count=page_count,
            is_processed=True,
            chunks=embedded,
        )
        course.materials.append(material)
        self.courses.save(course)

        coverage = material.embedding_coverage
        if embedded and coverage < 1.0:
            logger.warning(
                f"Embedded {coverage:.0%} of chunks for '{title}' - missing vectors fall back to keyword retrieval"
            )
        else:
            logger.info(f"Material '{title}' added to course {course_id}")
        return material

    def backfill_embeddings(self, course_id: str) -> int:
        """
        Fill in missing chunk embeddings. Existing vectors are never replaced.

        Returns:
            Number of chunks that received an embedding
        """
        course = self.courses.require(course_id)
        filled = 0

        for material in course.materials:
            updated: list[Chunk] = []
            for chunk in material.chunks:
                if not chunk.has_embedding:
                    vector = self.embedder.embed(chunk.text)
                    if vector:
                        chunk = chunk.model_copy(update={"embedding": vector})
                        filled += 1
                updated.append(chunk)
            material.chunks = updated

        if filled:
            self.courses.save(course)
        logger.info(f"Backfilled {filled} embeddings for course {course_id}")
        return filled
