"""Vector database operations for semantic search."""

from .embedding_client import EmbeddingClient
from .vector_store import VectorStore

__all__ = ["EmbeddingClient", "VectorStore"]
