"""OpenAI embedding client for search queries."""

from __future__ import annotations

import asyncio
import os
from typing import Optional

import openai

from ..core.exceptions import MissingConfigError, UpstreamTimeout, UpstreamUnavailable
from ..infrastructure.logger import get_logger

logger = get_logger("finstatement.vectors.embeddings")


class EmbeddingClient:
    """Async wrapper for the OpenAI embeddings API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "text-embedding-3-large",
        timeout: float = 30.0,
        client: Optional[openai.AsyncOpenAI] = None,
    ):
        """
        Initialize OpenAI client.

        Args:
            api_key: OpenAI API key (or None to use env var)
            model: Embedding model (text-embedding-3-large = 3072 dims)
            timeout: Per-call timeout in seconds
            client: Preconstructed AsyncOpenAI client
        """
        if client is None:
            api_key = api_key or os.getenv("OPENAI_API_KEY")
            if not api_key:
                raise MissingConfigError("OPENAI_API_KEY environment variable not set")
            client = openai.AsyncOpenAI(api_key=api_key, timeout=timeout)
        self.client = client
        self.model = model
        self.timeout = timeout
        self.dimension = 3072 if "large" in model else 1536
        logger.info(f"Embedding client initialized: {model} ({self.dimension}D)")

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """
        Generate embeddings for a batch of texts.

        Args:
            texts: List of text strings to embed

        Returns:
            List of embedding vectors

        Raises:
            UpstreamTimeout: If the call exceeds the timeout.
            UpstreamUnavailable: If the embeddings API fails.
        """
        if not texts:
            return []

        try:
            response = await asyncio.wait_for(
                self.client.embeddings.create(input=texts, model=self.model),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, openai.APITimeoutError) as e:
            raise UpstreamTimeout(
                f"Embedding call timed out after {self.timeout}s", {"model": self.model}
            ) from e
        except openai.APIError as e:
            raise UpstreamUnavailable(f"Embedding API error: {e}", {"model": self.model}) from e

        embeddings = [item.embedding for item in response.data]
        logger.debug(f"Generated {len(embeddings)} embeddings")
        return embeddings

    async def embed_single(self, text: str) -> list[float]:
        """
        Generate embedding for single text.

        Args:
            text: Text string to embed

        Returns:
            Embedding vector
        """
        embeddings = await self.embed_texts([text])
        return embeddings[0] if embeddings else []

    async def close(self) -> None:
        await self.client.close()
