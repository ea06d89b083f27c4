"""Configuration management for mbox-search.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with
    the MBOX_SEARCH_ prefix (e.g., MBOX_SEARCH_WORKER_COUNT).
    """

    model_config = SettingsConfigDict(
        env_prefix="MBOX_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Embedding Configuration
    embedding_backend: Literal["sentence-transformer", "deterministic"] = Field(
        default="sentence-transformer",
        description=(
            "Embedder used for indexing and queries. 'deterministic' produces "
            "hash-seeded, non-semantic vectors and needs no model download."
        ),
    )
    embedding_model: str = Field(
        default="sentence-transformers/all-MiniLM-L12-v2",
        description="Sentence-transformers model name or local path",
    )
    embedding_dimension: int = Field(
        default=384,
        ge=1,
        description="Dimension of the vectors produced by the embedding model",
    )
    embedding_device: str = Field(
        default="cpu",
        description="Torch device the embedding model is loaded on",
    )
    model_load_retries: int = Field(
        default=2,
        ge=0,
        description="Retries when loading the embedding model fails",
    )
    model_load_retry_delay: float = Field(
        default=1.0,
        ge=0.0,
        description="Initial delay between model load retries in seconds",
    )

    # Indexing Configuration
    worker_count: int = Field(
        default=4,
        ge=1,
        description="Number of long-lived embedding workers, each owning one model",
    )
    queue_capacity: int = Field(
        default=100,
        ge=1,
        description="Capacity of the bounded task and result queues",
    )
    index_batch_size: int = Field(
        default=600,
        ge=1,
        description="Number of messages sent to the embedding pool per batch",
    )
    strict_parse: bool = Field(
        default=True,
        description=(
            "Abort loading on an unbalanced token stack. When false the offending "
            "End token is logged and skipped."
        ),
    )

    # Search Configuration
    default_top_k: int = Field(
        default=5,
        ge=1,
        description="Number of results returned by a search when none is requested",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
