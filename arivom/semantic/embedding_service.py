"""
Embedding providers for course material retrieval.

Every provider implements embed(text) -> list[float] and returns [] on any
failure instead of raising, so ingestion and retrieval keep working (retrieval
falls back to keyword scoring when vectors are missing).

Providers:
- NullEmbeddingProvider: embeddings disabled
- GeminiEmbeddingProvider: google-generativeai embed_content
- SentenceTransformerEmbeddingProvider: local all-MiniLM-L6-v2 (384-dim),
  installed with the `local-embeddings` extra

References:
- https://ai.google.dev/gemini-api/docs/embeddings
- https://www.sbert.net/docs/pretrained_models.html
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import numpy as np
from loguru import logger

if TYPE_CHECKING:
    from sentence_transformers import SentenceTransformer


@runtime_checkable
class EmbeddingProvider(Protocol):
    model_name: str

    def embed(self, text: str) -> list[float]: ...


class NullEmbeddingProvider:
    model_name = "none"

    def embed(self, text: str) -> list[float]:
        return []


class GeminiEmbeddingProvider:
    """
    Generate embeddings with the Gemini embedding endpoint.

    Example:
        >>> provider = GeminiEmbeddingProvider(api_key="...")
        >>> len(provider.embed("What is a subnet?"))  # 768
    """

    def __init__(self, api_key: str | None, model_name: str = "models/text-embedding-004"):
        self.api_key = api_key
        self.model_name = model_name
        self._configured = False

    def embed(self, text: str) -> list[float]:
        if not self.api_key or not text.strip():
            return []
        try:
            # Lazy import to avoid dependency if not used
            import google.generativeai as genai

            if not self._configured:
                genai.configure(api_key=self.api_key)
                self._configured = True

            result = genai.embed_content(model=self.model_name, content=text)
            return [float(v) for v in result["embedding"]]
        except Exception as e:
            logger.error(f"Gemini embedding failed: {e}")
            return []


class SentenceTransformerEmbeddingProvider:
    """
    Local embeddings through sentence-transformers.

    The model is lazy-loaded on first use to avoid startup delays.
    """

    def __init__(self, model_name: str = "all-MiniLM-L6-v2"):
        self.model_name = model_name
        self._model: SentenceTransformer | None = None

    @property
    def model(self) -> SentenceTransformer:
        """
        Lazy load the model on first use.

        The model is downloaded from HuggingFace Hub on first run (~90MB).
        Subsequent runs use the cached version.
        """
        if self._model is None:
            from sentence_transformers import SentenceTransformer

            logger.info(f"Loading embedding model: {self.model_name}")
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def embed(self, text: str) -> list[float]:
        if not text.strip():
            return []
        try:
            embedding = self.model.encode(text, convert_to_numpy=True)
            return embedding.astype(float).tolist()
        except Exception as e:
            logger.error(f"Local embedding failed: {e}")
            return []


def cosine_similarity(emb1: Sequence[float], emb2: Sequence[float]) -> float:
    """
    Calculate cosine similarity between two embeddings.

    Args:
        emb1: First embedding vector.
        emb2: Second embedding vector.

    Returns:
        Cosine similarity between -1 and 1; 0.0 when either vector is empty,
        has zero norm, or the dimensions differ.
    """
    if len(emb1) == 0 or len(emb1) != len(emb2):
        return 0.0

    a = np.asarray(emb1, dtype=float)
    b = np.asarray(emb2, dtype=float)
    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.dot(a, b) / (norm_a * norm_b))


def build_embedding_provider(settings) -> EmbeddingProvider:
    """Pick the embedding provider named in settings."""
    if settings.embedding_provider == "gemini" and settings.gemini_api_key:
        return GeminiEmbeddingProvider(settings.gemini_api_key, settings.gemini_embedding_model)
    if settings.embedding_provider == "sentence-transformers":
        return SentenceTransformerEmbeddingProvider(settings.embedding_model)
    if settings.embedding_provider != "none":
        logger.warning(f"Embedding provider '{settings.embedding_provider}' not configured - vector search disabled")
    return NullEmbeddingProvider()
