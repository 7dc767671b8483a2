"""OpenAI LLM provider adapter.

Wraps the ``openai`` async client to implement both :class:`ILLMProvider`
(chat completions, including multimodal text + image content blocks) and
:class:`IImageGenerationProvider` (DALL-E image generation).  When
``api_endpoint`` is configured the client points at that URL, so any
OpenAI-compatible service works too.
"""

from __future__ import annotations

from typing import Any

import openai
import structlog

from examguru.interfaces.llm_provider import IImageGenerationProvider, ILLMProvider
from examguru.models.llm import (
    CompletionRequest,
    CompletionResponse,
    ImageGenerationRequest,
    ImageGenerationResponse,
    LLMConfig,
)
from examguru.providers.llm.base import build_wire_messages, resolve_sampling
from examguru.utils.errors import ConfigurationError, LLMError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MODEL = "gpt-4o"
_IMAGE_MODEL = "dall-e-3"
_VALID_IMAGE_SIZES = frozenset({"256x256", "512x512", "1024x1024", "1792x1024", "1024x1792"})
_VALID_IMAGE_QUALITIES = frozenset({"standard", "hd"})


class OpenAILLMProvider(ILLMProvider, IImageGenerationProvider):
    """LLM provider backed by the OpenAI (or an OpenAI-compatible) API."""

    def __init__(self, config: LLMConfig) -> None:
        if not config.api_key:
            raise ConfigurationError(
                message="No API key configured (set LLM_API_KEY or OPENAI_API_KEY)",
                provider_name="openai",
            )
        self._config = config

        client_kwargs: dict[str, Any] = {"api_key": config.api_key}
        if config.api_endpoint:
            client_kwargs["base_url"] = config.api_endpoint
        timeout = config.options.get("timeout")
        if timeout is not None:
            client_kwargs["timeout"] = float(timeout)

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._model = config.model_name or _DEFAULT_MODEL
        self._provider_label = "openai-compatible" if config.api_endpoint else "openai"

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """Send a chat completion, preserving multimodal content block order."""
        temperature, max_tokens = resolve_sampling(request, self._config)
        params: dict[str, Any] = {
            "model": self._model,
            "messages": build_wire_messages(request, self._config),
        }
        if temperature is not None:
            params["temperature"] = temperature
        if max_tokens is not None:
            params["max_tokens"] = max_tokens
        if request.response_format is not None:
            params["response_format"] = request.response_format.model_dump()

        try:
            response = await self._client.chat.completions.create(**params)
        except openai.APIStatusError as exc:
            raise LLMError(
                message=f"OpenAI API error ({exc.status_code}): {exc.message}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"OpenAI API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.choices:
            raise LLMError(
                message="OpenAI returned no choices",
                provider_name=self.get_provider_name(),
            )
        content = response.choices[0].message.content or ""
        logger.info(
            "llm_completion",
            model=self._model,
            provider=self._provider_label,
            context=request.context,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return CompletionResponse(content=content)

    def is_available(self) -> bool:
        return bool(self._config.api_key)

    async def validate_credentials(self) -> bool:
        """List models to verify the key without paying for inference."""
        try:
            await self._client.models.list()
            return True
        except openai.APIError:
            return False

    def get_provider_name(self) -> str:
        return self._provider_label

    # ------------------------------------------------------------------
    # IImageGenerationProvider implementation
    # ------------------------------------------------------------------

    async def generate_image(self, request: ImageGenerationRequest) -> ImageGenerationResponse:
        """Generate one image; unsupported size/quality fall back to defaults."""
        size = request.size if request.size in _VALID_IMAGE_SIZES else "1024x1024"
        quality = request.quality if request.quality in _VALID_IMAGE_QUALITIES else "standard"

        try:
            response = await self._client.images.generate(
                model=_IMAGE_MODEL,
                prompt=request.prompt,
                n=request.n or 1,
                size=size,
                quality=quality,
            )
        except openai.APIStatusError as exc:
            raise LLMError(
                message=f"OpenAI image API error ({exc.status_code}): {exc.message}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"OpenAI image API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.data:
            raise LLMError(
                message="OpenAI image API returned no images",
                provider_name=self.get_provider_name(),
            )
        logger.info("llm_image_generated", model=_IMAGE_MODEL, size=size, quality=quality)
        return ImageGenerationResponse(url=response.data[0].url or "")
