"""Unit tests for the LLM provider adapters: OpenAI and self-hosted Llama."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from examguru.config.settings import Settings
from examguru.interfaces.llm_provider import IImageGenerationProvider
from examguru.main import build_runtime
from examguru.models.llm import (
    CompletionRequest,
    ImageGenerationRequest,
    ImageUrl,
    ImageUrlContent,
    LLMConfig,
    LLMMessage,
    ResponseFormat,
    SystemPrompts,
    TextContent,
)
from examguru.providers.llm.llama_provider import DEFAULT_ENDPOINT, LlamaLLMProvider
from examguru.providers.llm.openai_provider import OpenAILLMProvider
from examguru.utils.errors import ConfigurationError, LLMError

_OPENAI_CLIENT = "examguru.providers.llm.openai_provider.openai.AsyncOpenAI"


def _config(**overrides) -> LLMConfig:
    values = {
        "provider": "openai",
        "api_key": "sk-test",
        "model_name": "gpt-4o",
        "options": {"temperature": 0.7, "max_tokens": 2000},
    }
    values.update(overrides)
    return LLMConfig(**values)


def _chat_response(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    response.usage = MagicMock(total_tokens=42)
    return response


def _user(text: str) -> LLMMessage:
    return LLMMessage(role="user", content=text)


# ======================================================================
# OpenAI LLM Provider
# ======================================================================


class TestOpenAILLMProvider:
    def test_missing_api_key_raises_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError, match="No API key"):
            OpenAILLMProvider(_config(api_key=None))

    def test_provider_name_reflects_endpoint(self) -> None:
        with patch(_OPENAI_CLIENT) as client_cls:
            plain = OpenAILLMProvider(_config())
            compatible = OpenAILLMProvider(_config(api_endpoint="http://proxy.local/v1"))

        assert plain.get_provider_name() == "openai"
        assert compatible.get_provider_name() == "openai-compatible"
        client_cls.assert_called_with(api_key="sk-test", base_url="http://proxy.local/v1")

    def test_supports_image_generation(self) -> None:
        with patch(_OPENAI_CLIENT):
            provider = OpenAILLMProvider(_config())
        assert provider.supports_image_generation() is True
        assert isinstance(provider, IImageGenerationProvider)

    @pytest.mark.asyncio
    async def test_complete_success(self) -> None:
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_chat_response("Hello there"))

        with patch(_OPENAI_CLIENT, return_value=mock_client):
            provider = OpenAILLMProvider(_config())
            result = await provider.complete(CompletionRequest(messages=[_user("hi")]))

        assert result.content == "Hello there"
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["messages"] == [{"role": "user", "content": "hi"}]
        assert kwargs["temperature"] == 0.7
        assert kwargs["max_tokens"] == 2000
        assert "response_format" not in kwargs

    @pytest.mark.asyncio
    async def test_request_values_override_config_and_json_mode_is_passed(self) -> None:
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_chat_response("{}"))
        request = CompletionRequest(
            messages=[_user("give me json")],
            temperature=0.1,
            max_tokens=50,
            response_format=ResponseFormat(type="json_object"),
        )

        with patch(_OPENAI_CLIENT, return_value=mock_client):
            await OpenAILLMProvider(_config()).complete(request)

        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["temperature"] == 0.1
        assert kwargs["max_tokens"] == 50
        assert kwargs["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    async def test_multimodal_blocks_keep_their_order(self) -> None:
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_chat_response("ok"))
        message = LLMMessage(
            role="user",
            content=[
                TextContent(text="Describe this paper"),
                ImageUrlContent(image_url=ImageUrl(url="data:image/png;base64,AAAA")),
            ],
        )

        with patch(_OPENAI_CLIENT, return_value=mock_client):
            await OpenAILLMProvider(_config()).complete(CompletionRequest(messages=[message]))

        sent = mock_client.chat.completions.create.call_args.kwargs["messages"]
        assert sent == [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "Describe this paper"},
                    {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAAA"}},
                ],
            }
        ]

    @pytest.mark.asyncio
    async def test_context_system_prompt_is_prepended(self) -> None:
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_chat_response("ok"))
        config = _config(system_prompts=SystemPrompts(tutoring="You are a tutor."))

        with patch(_OPENAI_CLIENT, return_value=mock_client):
            await OpenAILLMProvider(config).complete(
                CompletionRequest(messages=[_user("explain")], context="tutoring")
            )

        sent = mock_client.chat.completions.create.call_args.kwargs["messages"]
        assert sent[0] == {"role": "system", "content": "You are a tutor."}
        assert sent[1] == {"role": "user", "content": "explain"}

    @pytest.mark.asyncio
    async def test_status_error_is_wrapped(self) -> None:
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(
            side_effect=openai.RateLimitError(
                "Rate limit exceeded",
                response=httpx.Response(429, request=request),
                body=None,
            )
        )

        with patch(_OPENAI_CLIENT, return_value=mock_client):
            provider = OpenAILLMProvider(_config())
            with pytest.raises(LLMError) as exc_info:
                await provider.complete(CompletionRequest(messages=[_user("hi")]))

        assert exc_info.value.message == "OpenAI API error (429): Rate limit exceeded"
        assert exc_info.value.provider_name == "openai"

    @pytest.mark.asyncio
    async def test_connection_error_is_wrapped(self) -> None:
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(
            side_effect=openai.APIError(message="connection reset", request=MagicMock(), body=None)
        )

        with patch(_OPENAI_CLIENT, return_value=mock_client):
            provider = OpenAILLMProvider(_config())
            with pytest.raises(LLMError, match="OpenAI API error"):
                await provider.complete(CompletionRequest(messages=[_user("hi")]))

    @pytest.mark.asyncio
    async def test_no_choices_raises(self) -> None:
        empty = MagicMock(choices=[], usage=None)
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=empty)

        with patch(_OPENAI_CLIENT, return_value=mock_client):
            provider = OpenAILLMProvider(_config())
            with pytest.raises(LLMError, match="no choices"):
                await provider.complete(CompletionRequest(messages=[_user("hi")]))

    @pytest.mark.asyncio
    async def test_null_content_becomes_empty_string(self) -> None:
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_chat_response(None))

        with patch(_OPENAI_CLIENT, return_value=mock_client):
            result = await OpenAILLMProvider(_config()).complete(CompletionRequest(messages=[_user("hi")]))

        assert result.content == ""

    @pytest.mark.asyncio
    async def test_generate_image(self) -> None:
        mock_client = AsyncMock()
        mock_client.images.generate = AsyncMock(
            return_value=MagicMock(data=[MagicMock(url="https://images.test/diagram.png")])
        )

        with patch(_OPENAI_CLIENT, return_value=mock_client):
            provider = OpenAILLMProvider(_config())
            result = await provider.generate_image(
                ImageGenerationRequest(prompt="a lever", size="999x999", quality="ultra")
            )

        assert result.url == "https://images.test/diagram.png"
        kwargs = mock_client.images.generate.call_args.kwargs
        assert kwargs["model"] == "dall-e-3"
        assert kwargs["size"] == "1024x1024"
        assert kwargs["quality"] == "standard"
        assert kwargs["n"] == 1

    @pytest.mark.asyncio
    async def test_generate_image_without_data_raises(self) -> None:
        mock_client = AsyncMock()
        mock_client.images.generate = AsyncMock(return_value=MagicMock(data=[]))

        with patch(_OPENAI_CLIENT, return_value=mock_client):
            provider = OpenAILLMProvider(_config())
            with pytest.raises(LLMError, match="no images"):
                await provider.generate_image(ImageGenerationRequest(prompt="a lever"))

    @pytest.mark.asyncio
    async def test_validate_credentials(self) -> None:
        mock_client = AsyncMock()
        mock_client.models.list = AsyncMock(
            side_effect=openai.APIError(message="invalid key", request=MagicMock(), body=None)
        )

        with patch(_OPENAI_CLIENT, return_value=mock_client):
            provider = OpenAILLMProvider(_config())
            assert await provider.validate_credentials() is False


# ======================================================================
# Llama (self-hosted) LLM Provider
# ======================================================================


class _Recorder:
    """httpx MockTransport handler that records requests and replays a response."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response

    @property
    def last_json(self) -> dict:
        return json.loads(self.requests[-1].content)


def _llama(recorder: _Recorder, **overrides) -> LlamaLLMProvider:
    values = {"provider": "llama", "model_name": "llama-3", "options": {"temperature": 0.5, "max_tokens": 100}}
    values.update(overrides)
    client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    return LlamaLLMProvider(LLMConfig(**values), http_client=client)


def _ok(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


class TestLlamaLLMProvider:
    def test_is_completion_only(self) -> None:
        provider = LlamaLLMProvider(LLMConfig(provider="llama"))
        assert provider.get_provider_name() == "llama"
        assert provider.supports_image_generation() is False

    @pytest.mark.asyncio
    async def test_complete_posts_generic_chat_body(self) -> None:
        recorder = _Recorder(_ok("Bonjour"))
        provider = _llama(recorder)

        result = await provider.complete(CompletionRequest(messages=[_user("hello")]))

        assert result.content == "Bonjour"
        sent = recorder.requests[0]
        assert str(sent.url) == DEFAULT_ENDPOINT
        assert "authorization" not in sent.headers
        assert recorder.last_json == {
            "model": "llama-3",
            "messages": [{"role": "user", "content": "hello"}],
            "temperature": 0.5,
            "max_tokens": 100,
        }

    @pytest.mark.asyncio
    async def test_bearer_token_and_custom_endpoint(self) -> None:
        recorder = _Recorder(_ok("ok"))
        provider = _llama(recorder, api_key="secret", api_endpoint="http://gpu.local:9000/v1/chat/completions")

        await provider.complete(CompletionRequest(messages=[_user("hello")]))

        sent = recorder.requests[0]
        assert str(sent.url) == "http://gpu.local:9000/v1/chat/completions"
        assert sent.headers["authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_non_success_status_raises(self) -> None:
        provider = _llama(_Recorder(httpx.Response(503)))

        with pytest.raises(LLMError) as exc_info:
            await provider.complete(CompletionRequest(messages=[_user("hello")]))

        assert exc_info.value.message == "Llama API error: 503 Service Unavailable"

    @pytest.mark.asyncio
    async def test_unexpected_body_raises(self) -> None:
        provider = _llama(_Recorder(httpx.Response(200, json={"output": "nope"})))

        with pytest.raises(LLMError, match="unexpected body"):
            await provider.complete(CompletionRequest(messages=[_user("hello")]))

    @pytest.mark.asyncio
    async def test_transport_error_is_wrapped(self) -> None:
        def _refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(_refuse))
        provider = LlamaLLMProvider(LLMConfig(provider="llama"), http_client=client)

        with pytest.raises(LLMError, match="request failed"):
            await provider.complete(CompletionRequest(messages=[_user("hello")]))

    @pytest.mark.asyncio
    async def test_validate_credentials(self) -> None:
        assert await _llama(_Recorder(_ok("p"))).validate_credentials() is True
        assert await _llama(_Recorder(httpx.Response(401))).validate_credentials() is False

    @pytest.mark.asyncio
    async def test_configured_timeout_applies_to_shared_client(self) -> None:
        recorder = _Recorder(_ok("ok"))
        shared = httpx.AsyncClient(transport=httpx.MockTransport(recorder), timeout=60.0)
        runtime = build_runtime(Settings(), shared)
        provider = runtime.create_provider(LLMConfig(provider="llama", options={"timeout": 120}))

        await provider.complete(CompletionRequest(messages=[_user("hello")]))

        timeout = recorder.requests[0].extensions["timeout"]
        assert timeout["connect"] == 120.0
        assert timeout["read"] == 120.0

    @pytest.mark.asyncio
    async def test_default_timeout_is_sixty_seconds(self) -> None:
        recorder = _Recorder(_ok("ok"))
        provider = _llama(recorder)

        await provider.complete(CompletionRequest(messages=[_user("hello")]))

        assert recorder.requests[0].extensions["timeout"]["read"] == 60.0
