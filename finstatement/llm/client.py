"""
Language-model client for the selection and reformatting stages.

Talks to any OpenAI-compatible chat completions API (OpenAI, DeepSeek, Kimi)
and translates SDK failures into the finstatement upstream error types.
"""

from __future__ import annotations

import asyncio
import os
from enum import Enum
from typing import Optional, Protocol, runtime_checkable

import openai

from ..core.exceptions import MissingConfigError, UpstreamError, UpstreamTimeout, UpstreamUnavailable
from ..infrastructure.config import LLMConfig
from ..infrastructure.logger import get_logger

logger = get_logger("finstatement.llm.client")


@runtime_checkable
class LanguageModel(Protocol):
    """Anything that turns one prompt into one raw text response."""

    async def complete(self, prompt: str, *, temperature: float = 0.0) -> str:
        ...


# =============================================================================
# LLM Provider Enum
# =============================================================================


class LLMProvider(str, Enum):
    """Supported LLM providers."""

    OPENAI = "openai"
    DEEPSEEK = "deepseek"
    KIMI = "kimi"


# =============================================================================
# OpenAI-compatible client
# =============================================================================


class OpenAIChatClient:
    """Single-turn chat completion client with JSON-object responses."""

    # Provider configurations
    PROVIDER_CONFIGS = {
        LLMProvider.OPENAI: {
            "base_url": "https://api.openai.com/v1",
            "model": "gpt-4o",
            "env_var": "OPENAI_API_KEY",
        },
        LLMProvider.DEEPSEEK: {
            "base_url": "https://api.deepseek.com/v1",
            "model": "deepseek-chat",
            "env_var": "DEEPSEEK_API_KEY",
        },
        LLMProvider.KIMI: {
            "base_url": "https://api.moonshot.cn/v1",
            "model": "kimi-k2.5",
            "env_var": "KIMI_API_KEY",
        },
    }

    def __init__(
        self,
        provider: LLMProvider = LLMProvider.OPENAI,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 60.0,
        max_tokens: int = 4096,
        max_retries: int = 2,
        json_mode: bool = True,
        client: Optional[openai.AsyncOpenAI] = None,
    ):
        """
        Initialize the chat client.

        Args:
            provider: LLM provider to use
            model: Model name (defaults to the provider's default)
            api_key: API key (defaults to the provider's environment variable)
            timeout: Per-call timeout in seconds
            max_tokens: Maximum tokens for a response
            max_retries: Transport retries performed by the SDK itself
            json_mode: Request a JSON-object response format
            client: Preconstructed AsyncOpenAI client (mainly for tests)

        Raises:
            MissingConfigError: If no API key is available.
        """
        self.provider = LLMProvider(provider)
        config = self.PROVIDER_CONFIGS[self.provider]
        self.model = model or config["model"]
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.json_mode = json_mode

        if client is None:
            api_key = api_key or os.getenv(config["env_var"])
            if not api_key:
                raise MissingConfigError(
                    f"API key not found. Set {config['env_var']} environment variable.",
                    {"provider": self.provider.value},
                )
            client = openai.AsyncOpenAI(
                api_key=api_key,
                base_url=config["base_url"],
                timeout=timeout,
                max_retries=max_retries,
            )
        self.client = client

        logger.info(f"LLM client initialized with provider: {self.provider.value}, model: {self.model}")

    @classmethod
    def from_config(cls, config: LLMConfig, api_key: Optional[str] = None) -> OpenAIChatClient:
        """Build a client from the `llm` settings section."""
        return cls(
            provider=LLMProvider(config.provider),
            model=config.model,
            api_key=api_key,
            timeout=config.timeout,
            max_tokens=config.max_tokens,
            max_retries=config.max_retries,
        )

    async def complete(self, prompt: str, *, temperature: float = 0.0) -> str:
        """
        Send one prompt and return the raw text of the first choice.

        Args:
            prompt: Fully rendered prompt text
            temperature: Sampling temperature (0 for deterministic output)

        Returns:
            Raw response text (empty string if the model returned nothing)

        Raises:
            UpstreamTimeout: If the call exceeds the timeout.
            UpstreamUnavailable: On connection failures, rate limits or 5xx responses.
            UpstreamError: On any other API error response.
        """
        kwargs = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
            "max_tokens": self.max_tokens,
        }
        if self.json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(**kwargs),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, openai.APITimeoutError) as e:
            raise UpstreamTimeout(
                f"LLM call timed out after {self.timeout}s",
                {"provider": self.provider.value, "model": self.model},
            ) from e
        except (openai.APIConnectionError, openai.RateLimitError, openai.InternalServerError) as e:
            raise UpstreamUnavailable(
                f"LLM service unavailable: {e}",
                {"provider": self.provider.value, "model": self.model},
            ) from e
        except openai.APIStatusError as e:
            raise UpstreamError(
                f"LLM request rejected: {e}",
                {"provider": self.provider.value, "status_code": e.status_code},
            ) from e

        if not response.choices:
            logger.warning("LLM response contained no choices")
            return ""

        content = response.choices[0].message.content or ""
        logger.debug(f"LLM returned {len(content)} chars")
        return content

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.close()
