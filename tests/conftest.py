"""Shared pytest fixtures for the ExamGuru test suite."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from examguru.interfaces.llm_provider import IImageGenerationProvider, ILLMProvider
from examguru.models.llm import (
    CompletionRequest,
    CompletionResponse,
    ImageGenerationRequest,
    ImageGenerationResponse,
)
from examguru.utils.errors import LLMError


def completion(content: str) -> CompletionResponse:
    return CompletionResponse(content=content)


class FakeImageProvider(ILLMProvider, IImageGenerationProvider):
    """In-memory provider with image support that records every request.

    ``replies`` are returned in order by :meth:`complete`.  Image prompts
    containing any string in ``failing_images`` raise ``image_error``
    (an :class:`LLMError` unless overridden).
    """

    def __init__(self, replies: list[str] | None = None, failing_images: tuple[str, ...] = ()) -> None:
        self.replies = list(replies or [])
        self.failing_images = failing_images
        self.image_error: Exception = LLMError("image backend unavailable", provider_name="fake")
        self.requests: list[CompletionRequest] = []
        self.image_requests: list[ImageGenerationRequest] = []

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        self.requests.append(request)
        return completion(self.replies.pop(0) if self.replies else "")

    async def generate_image(self, request: ImageGenerationRequest) -> ImageGenerationResponse:
        self.image_requests.append(request)
        if any(marker in request.prompt for marker in self.failing_images):
            raise self.image_error
        return ImageGenerationResponse(url=f"https://images.test/{len(self.image_requests)}.png")

    def get_provider_name(self) -> str:
        return "fake"

    def is_available(self) -> bool:
        return True

    async def validate_credentials(self) -> bool:
        return True


@pytest.fixture
def mock_llm_provider() -> ILLMProvider:
    """Mock completion-only ILLMProvider.

    Default complete() returns ``{"result": "ok"}``.  Override with
    ``mock_llm_provider.complete.return_value = completion("...")`` or
    ``mock_llm_provider.complete.side_effect = ...`` for specific tests.
    """
    mock = MagicMock(spec=ILLMProvider)
    mock.get_provider_name.return_value = "mock-llm"
    mock.is_available.return_value = True
    mock.supports_image_generation.return_value = False
    mock.validate_credentials = AsyncMock(return_value=True)
    mock.complete = AsyncMock(return_value=completion('{"result": "ok"}'))
    return mock


@pytest.fixture
def image_llm_provider() -> FakeImageProvider:
    return FakeImageProvider()


@pytest.fixture
def sample_questions() -> list[dict[str, Any]]:
    return [
        {
            "type": "MCQ",
            "text": "What is the SI unit of force?",
            "marks": 1,
            "expectedAnswer": "Newton",
            "rubric": "1 mark for the correct option",
            "choices": ["A) Joule", "B) Newton", "C) Watt", "D) Pascal"],
            "correctAnswer": "B",
        },
        {
            "type": "Short Answer",
            "text": "State Newton's second law of motion.",
            "marks": 2,
            "expectedAnswer": "Force equals the rate of change of momentum.",
            "rubric": "1 mark for statement, 1 mark for formula",
        },
    ]


@pytest.fixture
def sample_attempts() -> list[dict[str, Any]]:
    return [
        {
            "score": 80,
            "startTime": "2026-03-02T10:00:00Z",
            "exam": {"subject": "Physics"},
            "feedback": {
                "perQuestion": [
                    {
                        "keyConceptsCovered": ["Kinematics", "Forces"],
                        "conceptualUnderstanding": {"level": "Excellent"},
                    },
                    {
                        "keyConceptsCovered": ["Forces"],
                        "conceptualUnderstanding": {"level": "Fair"},
                    },
                ]
            },
        },
        {
            "score": 55,
            "startTime": "2026-02-01T09:00:00Z",
            "exam": {"subject": "Chemistry"},
            "feedback": {
                "perQuestion": [
                    {
                        "keyConceptsCovered": ["Stoichiometry"],
                        "conceptualUnderstanding": {"level": "Needs Improvement"},
                    }
                ]
            },
        },
        {
            "score": 71,
            "startTime": "2026-04-10T08:30:00Z",
            "exam": {"subject": "Physics"},
        },
        {"score": None, "startTime": "2026-04-11T08:30:00Z", "exam": {"subject": "Biology"}},
    ]
