"""
Sentence-Packing Chunker for Course Materials.

Splits extracted document text into retrieval-sized chunks by packing whole
sentences into a buffer until the next sentence would reach the target size.

Key Features:
1. Single pass over the text (iter_chunks is a generator)
2. Sentences keep their own terminal punctuation (., !, ?)
3. Never emits an empty chunk
4. A single sentence longer than the target becomes its own oversized chunk
"""
from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

from arivom.models import Chunk

DEFAULT_TARGET_SIZE = 1000

# A run of non-terminators followed by any terminators
SENTENCE_PATTERN = re.compile(r"[^.!?]+[.!?]*")


def iter_sentences(text: str) -> Iterator[str]:
    for match in SENTENCE_PATTERN.finditer(text):
        sentence = match.group(0).strip()
        if sentence:
            yield sentence


def iter_chunks(text: str, target_size: int = DEFAULT_TARGET_SIZE) -> Iterator[str]:
    """
    Pack sentences into chunks of roughly target_size characters.

    Args:
        text: Extracted document text
        target_size: Flush the buffer when buffer + next sentence >= this

    Yields:
        Trimmed, non-empty chunk strings in document order

    Raises:
        ValueError: target_size is not positive
    """
    if target_size <= 0:
        raise ValueError(f"target_size must be positive, got {target_size}")

    buffer = ""
    for sentence in iter_sentences(text):
        if buffer and len(buffer) + len(sentence) >= target_size:
            yield buffer
            buffer = sentence
        else:
            buffer = f"{buffer} {sentence}" if buffer else sentence

    if buffer:
        yield buffer


def chunk_text(text: str, target_size: int = DEFAULT_TARGET_SIZE) -> list[str]:
    return list(iter_chunks(text, target_size))


class Chunker:
    """
    Turns a material's text into Chunk models.

    Example:
        >>> chunker = Chunker(target_size=500)
        >>> chunks = chunker.chunk_document(text, page_count=12)
        >>> chunks[0].position  # 0
    """

    def __init__(self, target_size: int = DEFAULT_TARGET_SIZE, section: str = "General"):
        if target_size <= 0:
            raise ValueError(f"target_size must be positive, got {target_size}")
        self.target_size = target_size
        self.section = section

    def chunk_document(self, text: str, page_count: int = 0) -> list[Chunk]:
        """
        Chunk a document and estimate each chunk's page.

        Pages are estimated from the chunk's character offset when the page
        count is known; otherwise page_number stays 0.
        """
        chunks: list[Chunk] = []
        cursor = 0
        for position, piece in enumerate(iter_chunks(text, self.target_size)):
            head = piece.split(" ", 1)[0]
            offset = text.find(head, cursor)
            if offset >= 0:
                cursor = offset
            chunks.append(
                Chunk(
                    text=piece,
                    position=position,
                    page_number=_estimate_page(cursor, len(text), page_count),
                    section=self.section,
                )
            )
        return chunks


def _estimate_page(offset: int, text_length: int, page_count: int) -> int:
    if page_count <= 0 or text_length <= 0:
        return 0
    return min(page_count, offset * page_count // text_length + 1)


# =============================================================================
# Chunk Statistics and Analysis
# =============================================================================

@dataclass
class ChunkingStats:
    """Statistics about chunking results."""
    total_chunks: int = 0
    avg_length: float = 0.0
    min_length: int = 0
    max_length: int = 0
    oversized_chunks: int = 0


def analyze_chunks(chunks: list[str] | list[Chunk], target_size: int = DEFAULT_TARGET_SIZE) -> ChunkingStats:
    """Analyze a list of chunks and return statistics."""
    if not chunks:
        return ChunkingStats()

    lengths = [len(c.text) if isinstance(c, Chunk) else len(c) for c in chunks]

    return ChunkingStats(
        total_chunks=len(lengths),
        avg_length=sum(lengths) / len(lengths),
        min_length=min(lengths),
        max_length=max(lengths),
        oversized_chunks=sum(1 for n in lengths if n > target_size),
    )
