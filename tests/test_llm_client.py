"""Tests for the OpenAI-compatible chat client."""

import asyncio
from types import SimpleNamespace

import httpx
import openai
import pytest

from finstatement.core.exceptions import MissingConfigError, UpstreamError, UpstreamTimeout, UpstreamUnavailable
from finstatement.llm.client import LanguageModel, LLMProvider, OpenAIChatClient


class FakeCompletions:
    def __init__(self, content="{}", error=None, delay=0.0):
        self.content = content
        self.error = error
        self.delay = delay
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def make_client(completions, **kwargs):
    fake = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return OpenAIChatClient(client=fake, **kwargs)


def request():
    return httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


class TestOpenAIChatClient:
    """Tests for OpenAIChatClient."""

    def test_satisfies_protocol(self):
        assert isinstance(make_client(FakeCompletions()), LanguageModel)

    def test_complete_returns_content(self):
        completions = FakeCompletions('{"element_id": "e1"}')
        client = make_client(completions)

        assert asyncio.run(client.complete("prompt")) == '{"element_id": "e1"}'
        assert completions.kwargs["model"] == "gpt-4o"
        assert completions.kwargs["temperature"] == 0.0
        assert completions.kwargs["response_format"] == {"type": "json_object"}
        assert completions.kwargs["messages"] == [{"role": "user", "content": "prompt"}]

    def test_provider_default_model(self):
        client = make_client(FakeCompletions(), provider=LLMProvider.DEEPSEEK)
        assert client.model == "deepseek-chat"

    def test_none_content_is_empty(self):
        assert asyncio.run(make_client(FakeCompletions(None)).complete("p")) == ""

    def test_timeout(self):
        client = make_client(FakeCompletions(delay=1.0), timeout=0.01)
        with pytest.raises(UpstreamTimeout):
            asyncio.run(client.complete("p"))

    def test_sdk_timeout(self):
        client = make_client(FakeCompletions(error=openai.APITimeoutError(request=request())))
        with pytest.raises(UpstreamTimeout):
            asyncio.run(client.complete("p"))

    def test_connection_error(self):
        client = make_client(FakeCompletions(error=openai.APIConnectionError(request=request())))
        with pytest.raises(UpstreamUnavailable):
            asyncio.run(client.complete("p"))

    def test_status_error(self):
        response = httpx.Response(400, request=request())
        error = openai.BadRequestError("bad request", response=response, body=None)
        client = make_client(FakeCompletions(error=error))
        with pytest.raises(UpstreamError) as exc_info:
            asyncio.run(client.complete("p"))
        assert not isinstance(exc_info.value, (UpstreamTimeout, UpstreamUnavailable))
        assert exc_info.value.context["status_code"] == 400

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("KIMI_API_KEY", raising=False)
        with pytest.raises(MissingConfigError):
            OpenAIChatClient(provider=LLMProvider.KIMI)
