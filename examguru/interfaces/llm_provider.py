"""Abstract base classes for LLM service providers.

Every backend implements :class:`ILLMProvider` (text/multimodal chat
completion).  Image generation is a separate, narrower capability,
:class:`IImageGenerationProvider`, implemented only by backends that can do
it.  Callers ask :meth:`ILLMProvider.supports_image_generation` once instead
of probing for attributes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from examguru.models.llm import (
    CompletionRequest,
    CompletionResponse,
    ImageGenerationRequest,
    ImageGenerationResponse,
)


# Concrete implementations: OpenAILLMProvider, LlamaLLMProvider
# Located in: examguru/providers/llm/
class ILLMProvider(ABC):
    """Contract for the chat-completion backends used by ExamGuru."""

    @abstractmethod
    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """Generate a completion for *request*.

        Parameters
        ----------
        request:
            Provider-agnostic request.  ``temperature`` / ``max_tokens``
            left as ``None`` fall back to the provider's configured options.

        Returns
        -------
        CompletionResponse
            The model's raw text.  No JSON guarantee is made unless the
            request asked for ``json_object`` and the backend honours it.

        Raises
        ------
        examguru.utils.errors.LLMError
            If the vendor call fails or returns a non-success status.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier such as ``"openai"`` or ``"llama"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (no network call)."""

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """Perform a lightweight API call to confirm the backend accepts us."""

    def supports_image_generation(self) -> bool:
        """Return ``True`` if this instance also implements image generation."""
        return isinstance(self, IImageGenerationProvider)


class IImageGenerationProvider(ABC):
    """Optional capability: generate an image from a text prompt."""

    @abstractmethod
    async def generate_image(self, request: ImageGenerationRequest) -> ImageGenerationResponse:
        """Generate an image and return the URL of the first result.

        Raises
        ------
        examguru.utils.errors.LLMError
            If the vendor call fails.
        """
