"""
Semantic retrieval stage.

Turns the formatted search question into a ranked list of candidate elements.
The index's ranking is authoritative: results are truncated to top_k but never
re-sorted, so ties keep the index's native order.
"""

from __future__ import annotations

import asyncio
import time

from ..core.exceptions import (
    RetrievalFailed,
    RetrievalTimeout,
    RetrievalUnavailable,
    UpstreamTimeout,
    UpstreamUnavailable,
)
from ..core.models import Candidate
from ..infrastructure.logger import get_logger
from .vector_search import VectorIndex

logger = get_logger("finstatement.retrieval.retriever")

DEFAULT_TOP_K = 5


class SemanticRetriever:
    """Query a vector index for the elements most similar to a question."""

    def __init__(self, index: VectorIndex, top_k: int = DEFAULT_TOP_K, timeout: float = 30.0):
        """
        Args:
            index: Vector index client
            top_k: Default number of candidates to return
            timeout: Timeout for one index search, in seconds
        """
        self.index = index
        self.top_k = top_k
        self.timeout = timeout

    async def retrieve(self, query: str, top_k: int | None = None) -> list[Candidate]:
        """
        Retrieve candidate elements for `query`.

        Args:
            query: Natural-language search question
            top_k: Maximum number of candidates (defaults to the retriever's top_k)

        Returns:
            At most top_k candidates, best first

        Raises:
            RetrievalTimeout: If the index call timed out.
            RetrievalUnavailable: If the index could not be reached.
            RetrievalFailed: On any other index error or when nothing was found.
            ValueError: If top_k is less than 1.
        """
        if top_k is None:
            top_k = self.top_k
        if top_k < 1:
            raise ValueError(f"top_k must be at least 1, got {top_k}")
        context = {"top_k": top_k}
        start = time.perf_counter()

        try:
            hits = await asyncio.wait_for(self.index.search(query, top_k), timeout=self.timeout)
        except (asyncio.TimeoutError, UpstreamTimeout) as e:
            raise RetrievalTimeout(
                f"Vector index search timed out after {self.timeout}s", context
            ) from e
        except UpstreamUnavailable as e:
            raise RetrievalUnavailable(f"Vector index unavailable: {e.message}", context) from e
        except RetrievalFailed:
            raise
        except Exception as e:
            raise RetrievalFailed(f"Vector index search failed: {e}", context) from e

        candidates = [Candidate.from_hit(hit) for hit in hits[:top_k]]
        duration_ms = (time.perf_counter() - start) * 1000

        if not candidates:
            raise RetrievalFailed("Vector index returned no candidates", context)

        logger.info(f"Retrieved {len(candidates)} candidates in {duration_ms:.0f}ms")
        for rank, candidate in enumerate(candidates, 1):
            logger.debug(
                f"  {rank}. {candidate.element_id} ({candidate.source_name or 'unknown'}) "
                f"score={candidate.score:.4f}"
            )
        return candidates
