# Text processing: sentence chunking of course materials
from .chunker import Chunker, ChunkingStats, analyze_chunks, chunk_text, iter_chunks

__all__ = ["Chunker", "ChunkingStats", "analyze_chunks", "chunk_text", "iter_chunks"]
