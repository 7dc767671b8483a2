"""Shared plumbing for services that send one prompt and parse the reply.

Every orchestration service follows the same failure policy: any provider
error, empty reply, or unparseable/invalid JSON is wrapped into the
operation's own :class:`ContentGenerationError` subclass and re-raised.  No
retries are attempted.
"""

from __future__ import annotations

from typing import Any

from examguru.interfaces.llm_provider import ILLMProvider
from examguru.models.llm import CompletionRequest
from examguru.utils.errors import ContentGenerationError, ExamGuruError
from examguru.utils.llm_json import parse_json_object
from examguru.utils.logging import get_logger

ErrorType = type[ContentGenerationError]


class LLMTaskService:
    """Base class holding the injected provider.

    ``error_class`` is the default error for the service; methods covering a
    different operation pass their own via the ``error`` argument.
    """

    error_class: ErrorType = ContentGenerationError

    def __init__(self, llm_provider: ILLMProvider) -> None:
        self._llm = llm_provider
        self._logger = get_logger(type(self).__module__)

    @property
    def provider_name(self) -> str:
        return self._llm.get_provider_name()

    def _fail(
        self,
        reason: str,
        cause: Exception | None = None,
        error: ErrorType | None = None,
    ) -> ContentGenerationError:
        exc = (error or self.error_class)(reason, provider_name=self.provider_name)
        self._logger.error(
            "content_task_failed",
            task=type(exc).__name__,
            error=exc.message,
            cause=type(cause).__name__ if cause else None,
        )
        return exc

    async def _complete_text(self, request: CompletionRequest, error: ErrorType | None = None) -> str:
        """Run *request* and return non-empty text, or raise the task error."""
        try:
            response = await self._llm.complete(request)
        except ExamGuruError as exc:
            raise self._fail(exc.message, exc, error) from exc

        if not response.content or not response.content.strip():
            raise self._fail("No content received from the language model", error=error)
        return response.content

    async def _complete_json(
        self, request: CompletionRequest, error: ErrorType | None = None
    ) -> dict[str, Any]:
        """Run *request* and decode the reply as a JSON object."""
        content = await self._complete_text(request, error)
        try:
            return parse_json_object(content)
        except ValueError as exc:
            raise self._fail(f"Invalid JSON response: {exc}", exc, error) from exc
