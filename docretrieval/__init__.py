"""Scoped hybrid retrieval over company documents.

Combines BM25 keyword search and embedding similarity, restricted to one
document, a company's documents, or an explicit set of documents.
"""

__version__ = "0.1.0"
