"""Embedding provider adapters."""

from .gemini_adapter import GeminiEmbeddingProvider
from .sentence_transformer_adapter import SentenceTransformerEmbeddingProvider

__all__ = ["GeminiEmbeddingProvider", "SentenceTransformerEmbeddingProvider"]
