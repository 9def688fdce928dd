"""Vector search client wrapping Qdrant."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from ..core.models import IndexHit
from ..infrastructure.config import EmbeddingConfig, VectorIndexConfig
from ..infrastructure.logger import get_logger
from ..vectors import EmbeddingClient, VectorStore

logger = get_logger("finstatement.retrieval.vector_search")


@runtime_checkable
class VectorIndex(Protocol):
    """Nearest-neighbour search over indexed elements."""

    async def search(self, query_text: str, top_k: int) -> list[IndexHit]:
        ...


class VectorSearch:
    """
    Vector similarity search using Qdrant.

    Embeds the query text, searches the element collection and maps each
    point payload onto an IndexHit. Payloads follow the ingestion format:
    element_id, filename, text_preview plus any extra metadata.
    """

    def __init__(self, embedding_client: EmbeddingClient, vector_store: VectorStore):
        self.embedding_client = embedding_client
        self.vector_store = vector_store

    @classmethod
    def from_config(
        cls,
        index_config: VectorIndexConfig,
        embedding_config: EmbeddingConfig,
        openai_api_key: Optional[str] = None,
    ) -> VectorSearch:
        """Build a VectorSearch from the `vector_index` and `embeddings` settings sections."""
        embedding_client = EmbeddingClient(
            api_key=openai_api_key,
            model=embedding_config.model,
            timeout=embedding_config.timeout,
        )
        vector_store = VectorStore(
            host=index_config.host,
            port=index_config.port,
            collection_name=index_config.collection_name,
            api_key=index_config.api_key,
            timeout=index_config.timeout,
        )
        logger.info(f"Vector search initialized: {index_config.host}:{index_config.port}")
        return cls(embedding_client, vector_store)

    async def search(
        self, query_text: str, top_k: int = 5, filters: dict[str, str] | None = None
    ) -> list[IndexHit]:
        """
        Search for elements similar to the query.

        Args:
            query_text: Search query text
            top_k: Number of results to return
            filters: Optional payload filters (e.g., {"filename": "hood-10Q.pdf"})

        Returns:
            Hits in descending score order, as returned by Qdrant
        """
        query_vector = await self.embedding_client.embed_single(query_text)

        results = await self.vector_store.search(
            query_vector, limit=top_k, score_threshold=None, payload_filter=filters
        )

        hits = []
        for r in results:
            payload = dict(r["payload"])
            element_id = payload.pop("element_id", None) or str(r["id"])
            hits.append(
                IndexHit(
                    id=element_id,
                    source_name=payload.pop("filename", "") or "",
                    score=r["score"],
                    preview=payload.pop("text_preview", "") or "",
                    metadata=payload,
                )
            )
        return hits

    async def close(self) -> None:
        """Close embedding and vector store connections."""
        await self.embedding_client.close()
        await self.vector_store.close()
