"""
Configuration settings for the Arivom learning engine.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Document Store
    # ========================================
    store_backend: Literal["memory", "sql"] = Field(
        default="sql",
        description="Document store backend (memory for tests, sql for persistence)",
    )
    database_url: str = Field(
        default="sqlite:///arivom.db",
        description="SQLAlchemy connection string for the document store",
    )

    # ========================================
    # Language Model (Gemini)
    # ========================================
    gemini_api_key: str | None = Field(
        default=None,
        description="Google Generative AI (Gemini) API key",
    )
    llm_model: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model used for replies, quizzes and plans",
    )
    llm_timeout_seconds: float = Field(
        default=30.0,
        description="Request timeout for a single language model call",
    )

    # ========================================
    # Embeddings & Retrieval
    # ========================================
    embedding_provider: Literal["none", "gemini", "sentence-transformers"] = Field(
        default="gemini",
        description="Embedding backend (none disables vector search)",
    )
    gemini_embedding_model: str = Field(
        default="models/text-embedding-004",
        description="Gemini embedding model",
    )
    embedding_model: str = Field(
        default="all-MiniLM-L6-v2",
        description="Sentence transformer model for local embeddings (384-dim)",
    )
    chunk_size: int = Field(
        default=1000,
        description="Target chunk size in characters",
    )
    retrieval_top_k: int = Field(
        default=3,
        description="Number of snippets retrieved per question",
    )

    # ========================================
    # Adaptive Quiz
    # ========================================
    quiz_level_up_threshold: int = Field(
        default=80,
        description="Percentage score at or above which difficulty steps up",
    )
    quiz_level_down_threshold: int = Field(
        default=60,
        description="Percentage score below which difficulty steps down",
    )
    quiz_default_question_count: int = Field(
        default=10,
        description="Questions per generated quiz",
    )
    quiz_max_score: int = Field(
        default=100,
        description="Maximum raw score of a quiz",
    )
    quiz_time_limit_minutes: int = Field(
        default=30,
        description="Default quiz time limit",
    )

    # ========================================
    # Mastery & Memory
    # ========================================
    recent_quiz_capacity: int = Field(
        default=10,
        description="Size of the recent quiz ring buffer per topic",
    )
    interaction_response_max_chars: int = Field(
        default=500,
        description="Stored length of agent responses in the learner journal",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default="logs/arivom.log",
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # Helper Methods
    # ========================================
    def has_ai_configured(self) -> bool:
        """Check if a language model provider is configured."""
        return bool(self.gemini_api_key)

    def get_quiz_config(self) -> dict[str, Any]:
        """Get adaptive quiz configuration as a dictionary."""
        return {
            "level_up_threshold": self.quiz_level_up_threshold,
            "level_down_threshold": self.quiz_level_down_threshold,
            "question_count": self.quiz_default_question_count,
            "max_score": self.quiz_max_score,
            "time_limit": self.quiz_time_limit_minutes,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
