"""Configuration management for the retrieval core."""

from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.domain import SearchOptions


def _sanitize_secret(value: str) -> str:
    """Strip a leading BOM and surrounding whitespace.

    Values pasted into secret managers often carry both, and either one
    makes the HTTP client reject the header.
    """
    if not value:
        return value
    return value.lstrip("\ufeff").strip()


class Settings(BaseSettings):
    """Runtime configuration, read from the environment and ``.env``."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Embedding provider
    google_api_key: str = ""
    embedding_provider: Literal["gemini", "local"] = "gemini"
    embedding_model: str = "gemini-embedding-001"
    local_embedding_model: str = "all-MiniLM-L6-v2"
    embedding_dimension: int = 768
    embedding_requests_per_minute: int = 0
    # 0 keeps every embedding for the process lifetime
    embedding_cache_max_entries: int = 0

    # Chunk store
    chunk_store: Literal["memory", "qdrant"] = "memory"
    qdrant_url: str = ""
    qdrant_api_key: str = ""
    qdrant_collection: str = "document_chunks"

    @field_validator("google_api_key", "qdrant_api_key", "qdrant_url", mode="after")
    @classmethod
    def sanitize_secrets(cls, value: str) -> str:
        return _sanitize_secret(value)

    # Search defaults
    search_limit: int = 10
    sparse_weight: float = 0.5
    dense_weight: float = 0.5
    per_retriever_limit: int = 20
    max_query_length: int = 2000

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    def default_search_options(self) -> SearchOptions:
        """Search options built from the configured defaults."""
        return SearchOptions(
            limit=self.search_limit,
            sparse_weight=self.sparse_weight,
            dense_weight=self.dense_weight,
            per_retriever_limit=self.per_retriever_limit,
        )


# Process-wide defaults; tests build their own ``Settings``
settings = Settings()
