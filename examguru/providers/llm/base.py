"""Helpers shared by the chat-completion provider adapters."""

from __future__ import annotations

from typing import Any

from examguru.models.llm import CompletionRequest, LLMConfig


def build_wire_messages(request: CompletionRequest, config: LLMConfig) -> list[dict[str, Any]]:
    """Convert *request* messages into the chat-completions message array.

    When the request names a ``context`` and configuration has a system
    prompt for it, that prompt is prepended, unless the caller already
    opened the conversation with its own system message.
    """
    messages = [message.to_wire() for message in request.messages]
    if request.context is None:
        return messages
    if request.messages and request.messages[0].role == "system":
        return messages

    system_prompt = config.system_prompts.for_context(request.context)
    if system_prompt:
        messages.insert(0, {"role": "system", "content": system_prompt})
    return messages


def resolve_sampling(request: CompletionRequest, config: LLMConfig) -> tuple[float | None, int | None]:
    """Return ``(temperature, max_tokens)``, request values winning over config."""
    temperature = request.temperature if request.temperature is not None else config.temperature
    max_tokens = request.max_tokens if request.max_tokens is not None else config.max_tokens
    return temperature, max_tokens
