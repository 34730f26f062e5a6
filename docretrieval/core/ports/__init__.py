"""Ports implemented by outbound adapters."""

from .chunk_store_port import ChunkStorePort
from .embedding_port import EmbeddingPort

__all__ = ["ChunkStorePort", "EmbeddingPort"]
