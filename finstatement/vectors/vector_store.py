"""Qdrant vector database client for indexed filing elements."""

from __future__ import annotations

from typing import Any, Optional

import httpx
from qdrant_client import AsyncQdrantClient
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse
from qdrant_client.models import FieldCondition, Filter, MatchValue

from ..core.exceptions import UpstreamTimeout, UpstreamUnavailable
from ..infrastructure.logger import get_logger

logger = get_logger("finstatement.vectors.store")


class VectorStore:
    """Read-only wrapper for Qdrant similarity search."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6333,
        collection_name: str = "filing_elements",
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[AsyncQdrantClient] = None,
    ):
        """
        Initialize Qdrant client.

        Args:
            host: Qdrant server host
            port: Qdrant server port
            collection_name: Collection holding element embeddings
            api_key: Qdrant API key (managed clusters only)
            timeout: Request timeout in seconds
            client: Preconstructed AsyncQdrantClient
        """
        self.client = client or AsyncQdrantClient(
            host=host,
            port=port,
            api_key=api_key,
            timeout=int(timeout),
            prefer_grpc=False,
        )
        self.collection_name = collection_name
        logger.info(f"Qdrant client initialized: {host}:{port}/{collection_name}")

    async def search(
        self,
        query_vector: list[float],
        limit: int = 5,
        score_threshold: float | None = None,
        payload_filter: dict[str, str] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Search for similar elements.

        Args:
            query_vector: Embedding vector to search for
            limit: Number of results to return
            score_threshold: Minimum similarity score
            payload_filter: Optional dict of payload field -> value to filter on
                            (e.g., {"filename": "hood-10Q.pdf"})

        Returns:
            List of search results with id, score and payload, best first
        """
        query_filter = None
        if payload_filter:
            conditions = [
                FieldCondition(key=key, match=MatchValue(value=value))
                for key, value in payload_filter.items()
            ]
            query_filter = Filter(must=conditions)

        try:
            results = await self.client.query_points(
                collection_name=self.collection_name,
                query=query_vector,
                query_filter=query_filter,
                limit=limit,
                score_threshold=score_threshold,
                with_payload=True,
            )
        except (ResponseHandlingException, UnexpectedResponse, httpx.HTTPError) as e:
            # qdrant-client wraps transport errors, read timeouts included
            cause = getattr(e, "source", None) or e.__cause__ or e
            if isinstance(cause, httpx.TimeoutException):
                raise UpstreamTimeout(
                    "Qdrant search timed out", {"collection": self.collection_name}
                ) from e
            raise UpstreamUnavailable(
                f"Qdrant search failed: {e}", {"collection": self.collection_name}
            ) from e

        return [
            {
                "id": result.id,
                "score": result.score,
                "payload": result.payload or {},
            }
            for result in results.points
        ]

    async def close(self) -> None:
        """Close Qdrant client connection."""
        await self.client.close()
        logger.info("Qdrant client closed")
