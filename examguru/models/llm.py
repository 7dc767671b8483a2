"""Provider-agnostic LLM message, request and response models.

These pydantic v2 models are the stable contract between the orchestration
services and every provider adapter.  A new backend only has to accept a
:class:`CompletionRequest` and return a :class:`CompletionResponse` to be a
drop-in replacement.

Field names are snake_case in Python; camelCase aliases (``maxTokens``,
``responseFormat``, ``image_url``) are accepted on input so that JSON
config files and HTTP bodies can use either spelling.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["system", "user", "assistant"]


# ---------------------------------------------------------------------------
# Message content
# ---------------------------------------------------------------------------


class TextContent(BaseModel):
    """A plain-text block inside a multimodal message."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str


class ImageUrl(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str


class ImageUrlContent(BaseModel):
    """An image block; ``url`` may be an https URL or a ``data:`` URI."""

    model_config = ConfigDict(frozen=True)

    type: Literal["image_url"] = "image_url"
    image_url: ImageUrl


ContentBlock = Annotated[Union[TextContent, ImageUrlContent], Field(discriminator="type")]


class LLMMessage(BaseModel):
    """One turn of a conversation, oldest-first inside a request."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: Union[str, list[ContentBlock]]

    def to_wire(self) -> dict[str, Any]:
        """Return the OpenAI chat-message dict shape, block order preserved."""
        if isinstance(self.content, str):
            return {"role": self.role, "content": self.content}
        return {
            "role": self.role,
            "content": [block.model_dump() for block in self.content],
        }


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------


class ResponseFormat(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["text", "json_object"] = "text"


class CompletionRequest(BaseModel):
    """A provider-agnostic chat completion request.

    ``context`` selects which configured system prompt (if any) frames the
    request, e.g. ``"questionGeneration"`` or ``"tutoring"``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    messages: list[LLMMessage]
    temperature: float | None = None
    max_tokens: int | None = Field(default=None, alias="maxTokens")
    response_format: ResponseFormat | None = Field(default=None, alias="responseFormat")
    context: str | None = None

    @property
    def wants_json(self) -> bool:
        return self.response_format is not None and self.response_format.type == "json_object"


class CompletionResponse(BaseModel):
    """The model's raw text output.  Callers parse any JSON themselves."""

    model_config = ConfigDict(frozen=True)

    content: str


# ---------------------------------------------------------------------------
# Image generation
# ---------------------------------------------------------------------------


class ImageGenerationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt: str
    n: int = 1
    size: str = "1024x1024"
    quality: str = "standard"


class ImageGenerationResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

# camelCase context tag -> SystemPrompts field name
_CONTEXT_ALIASES: dict[str, str] = {
    "default": "default",
    "questionGeneration": "question_generation",
    "evaluation": "evaluation",
    "tutoring": "tutoring",
    "analysis": "analysis",
}


class SystemPrompts(BaseModel):
    """Optional per-context system prompts from configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    default: str | None = None
    question_generation: str | None = Field(default=None, alias="questionGeneration")
    evaluation: str | None = None
    tutoring: str | None = None
    analysis: str | None = None
    custom: dict[str, str] = Field(default_factory=dict)

    def for_context(self, context: str | None) -> str | None:
        """Resolve the prompt for *context*, falling back to ``default``."""
        if context:
            field_name = _CONTEXT_ALIASES.get(context, context)
            if field_name in _CONTEXT_ALIASES.values():
                value = getattr(self, field_name)
                if value:
                    return value
            if context in self.custom:
                return self.custom[context]
        return self.default


class LLMConfig(BaseModel):
    """Process-wide LLM configuration, immutable once built.

    ``options`` is open-ended; ``temperature`` and ``max_tokens`` in it act
    as defaults for requests that leave those knobs unset.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    provider: str = "openai"
    api_key: str | None = Field(default=None, alias="apiKey")
    api_endpoint: str | None = Field(default=None, alias="apiEndpoint")
    model_name: str | None = Field(default=None, alias="modelName")
    system_prompts: SystemPrompts = Field(default_factory=SystemPrompts, alias="systemPrompts")
    options: dict[str, Any] = Field(default_factory=dict)

    @property
    def temperature(self) -> float | None:
        return self.options.get("temperature")

    @property
    def max_tokens(self) -> int | None:
        return self.options.get("max_tokens")
