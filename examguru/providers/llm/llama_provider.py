"""Self-hosted (Llama / OpenAI-compatible) chat provider adapter.

Completion-only: POSTs ``{model, messages, temperature, max_tokens}`` to a
configurable chat-completions URL and reads ``choices[0].message.content``
back.  A bearer token is attached only when an API key is configured.

This adapter is not auto-discovered by the provider registry; the
application registers it explicitly (see :mod:`examguru.main`).
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from examguru.interfaces.llm_provider import ILLMProvider
from examguru.models.llm import CompletionRequest, CompletionResponse, LLMConfig
from examguru.providers.llm.base import build_wire_messages, resolve_sampling
from examguru.utils.errors import LLMError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_ENDPOINT = "http://localhost:8000/v1/chat/completions"


class LlamaLLMProvider(ILLMProvider):
    """LLM provider backed by a self-hosted chat-completions endpoint.

    Parameters
    ----------
    config:
        Resolved LLM configuration; ``api_endpoint`` overrides the local
        default URL.
    http_client:
        Optional shared ``httpx.AsyncClient``.  When omitted, a client is
        opened per request.  Either way every request uses
        ``options.timeout`` (default 60 seconds).
    """

    def __init__(self, config: LLMConfig, http_client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._endpoint = config.api_endpoint or DEFAULT_ENDPOINT
        self._http_client = http_client
        self._timeout = float(config.options.get("timeout", 60.0))

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._config.api_key:
            headers["Authorization"] = f"Bearer {self._config.api_key}"
        return headers

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(
                self._endpoint, json=payload, headers=self._headers(), timeout=self._timeout
            )
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.post(self._endpoint, json=payload, headers=self._headers())

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        temperature, max_tokens = resolve_sampling(request, self._config)
        payload = {
            "model": self._config.model_name,
            "messages": build_wire_messages(request, self._config),
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        try:
            response = await self._post(payload)
        except httpx.HTTPError as exc:
            raise LLMError(
                message=f"Llama API request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.is_success:
            raise LLMError(
                message=f"Llama API error: {response.status_code} {response.reason_phrase}",
                provider_name=self.get_provider_name(),
            )

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise LLMError(
                message=f"Llama API returned an unexpected body: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("llm_completion", provider="llama", endpoint=self._endpoint, context=request.context)
        return CompletionResponse(content=content or "")

    def is_available(self) -> bool:
        return bool(self._endpoint)

    async def validate_credentials(self) -> bool:
        """Send a one-token completion to check the endpoint answers."""
        ping = CompletionRequest(
            messages=[{"role": "user", "content": "ping"}],
            max_tokens=1,
        )
        try:
            await self.complete(ping)
            return True
        except LLMError:
            return False

    def get_provider_name(self) -> str:
        return "llama"
