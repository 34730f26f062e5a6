"""Chunk store adapters."""

from .memory_adapter import InMemoryChunkStore
from .qdrant_adapter import QdrantChunkStore

__all__ = ["InMemoryChunkStore", "QdrantChunkStore"]
