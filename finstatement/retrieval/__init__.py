"""Query formatting and semantic retrieval over indexed filing elements."""

from .query_formatter import SEARCH_QUERY_TEMPLATE, format_query
from .retriever import DEFAULT_TOP_K, SemanticRetriever
from .vector_search import VectorIndex, VectorSearch

__all__ = [
    "SEARCH_QUERY_TEMPLATE",
    "format_query",
    "DEFAULT_TOP_K",
    "SemanticRetriever",
    "VectorIndex",
    "VectorSearch",
]
