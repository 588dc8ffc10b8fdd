# Semantic layer: embeddings, retrieval and material ingestion
from .embedding_service import (
    EmbeddingProvider,
    GeminiEmbeddingProvider,
    NullEmbeddingProvider,
    SentenceTransformerEmbeddingProvider,
    build_embedding_provider,
    cosine_similarity,
)
from .retriever import CorpusEntry, RetrievalMode, RetrievedChunk, Retriever

__all__ = [
    "CorpusEntry",
    "EmbeddingProvider",
    "GeminiEmbeddingProvider",
    "NullEmbeddingProvider",
    "RetrievalMode",
    "RetrievedChunk",
    "Retriever",
    "SentenceTransformerEmbeddingProvider",
    "build_embedding_provider",
    "cosine_similarity",
]
