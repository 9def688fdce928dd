"""Language-model access."""

from .client import LanguageModel, LLMProvider, OpenAIChatClient

__all__ = ["LanguageModel", "LLMProvider", "OpenAIChatClient"]
