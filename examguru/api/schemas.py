"""Pydantic request/response schemas for the ExamGuru API.

Request bodies accept the camelCase field names the web client sends
(``selectedTemplate``, ``newDifficulty``) as well as snake_case.  Question,
evaluation and skills payloads are model-generated JSON and pass through
as plain dicts.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class _CamelRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Exams
# ---------------------------------------------------------------------------


class GenerateExamRequest(_CamelRequest):
    """Parameters for a new exam paper."""

    subject: str = Field(min_length=1)
    curriculum: str = Field(min_length=1)
    grade: str = Field(min_length=1)
    difficulty: str = Field(min_length=1)
    exam_format: dict[str, Any] = Field(default_factory=dict, alias="format")
    templates: list[dict[str, Any]] = Field(default_factory=list)
    selected_template: dict[str, Any] | None = Field(default=None, alias="selectedTemplate")
    chapters: list[str] | None = None


class AdjustDifficultyRequest(_CamelRequest):
    questions: list[dict[str, Any]] = Field(min_length=1)
    new_difficulty: str = Field(min_length=1, alias="newDifficulty")
    subject: str
    grade: str


class QuestionsResponse(BaseModel):
    questions: list[dict[str, Any]]


# ---------------------------------------------------------------------------
# Tutor and command chat
# ---------------------------------------------------------------------------


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class TutorChatRequest(BaseModel):
    """A chat message plus the prior conversation, oldest first."""

    message: str = Field(min_length=1)
    subject: str | None = None
    grade: str | None = None
    history: list[ChatTurn] = Field(default_factory=list)


class ChatMessageResponse(BaseModel):
    role: Literal["assistant"] = "assistant"
    content: str


class CommandRequest(BaseModel):
    message: str = Field(min_length=1)


class CommandResponse(BaseModel):
    """Classified intent, extracted slots and the assistant's reply."""

    intent: str
    extracted_info: dict[str, Any]
    response: str


# ---------------------------------------------------------------------------
# Analysis and sharing
# ---------------------------------------------------------------------------


class AttemptsRequest(BaseModel):
    """Exam attempt records, e.g. ``{score, startTime, exam: {subject}, feedback}``."""

    attempts: list[dict[str, Any]] = Field(default_factory=list)


class ShareResponse(BaseModel):
    token: str
    share_path: str
    expires_in_seconds: int
    insights: dict[str, Any]


class SharedInsightsResponse(BaseModel):
    token: str
    insights: dict[str, Any]


# ---------------------------------------------------------------------------
# Operational
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    llm_initialized: bool
    provider: str | None = None


class ProvidersResponse(BaseModel):
    """Registered provider names and the one serving requests."""

    providers: list[str]
    default: str | None = None


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
