"""FastAPI API routes for ExamGuru.

Service dependencies are resolved from ``app.state`` (populated at startup
in ``main.py``) via FastAPI's ``Depends`` using the ``Annotated`` pattern,
so tests can build an app with stub services on its state.

Endpoint                          Method  Description
/api/v1/health                    GET     Health check + LLM runtime status
/api/v1/providers                 GET     Registered LLM providers
/api/v1/exams/generate            POST    Generate an exam question set
/api/v1/exams/adjust-difficulty   POST    Rewrite questions at a new difficulty
/api/v1/attempts/evaluate         POST    Grade an answer-sheet image (multipart)
/api/v1/templates/analyze         POST    Read a question-paper template image (multipart)
/api/v1/tutor/chat                POST    Tutor / assistant chat reply
/api/v1/analysis/student-skills   POST    Skills profile from attempt history
/api/v1/chat/command              POST    Classify a chat-box command
/api/v1/share/performance         POST    Create a share link for performance insights
/api/v1/share/{token}             GET     Fetch shared performance insights
"""

from __future__ import annotations

import base64
import json
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Form, HTTPException, Request, UploadFile

from examguru import __version__
from examguru.api.schemas import (
    AdjustDifficultyRequest,
    AttemptsRequest,
    ChatMessageResponse,
    CommandRequest,
    CommandResponse,
    ErrorResponse,
    GenerateExamRequest,
    HealthResponse,
    ProvidersResponse,
    QuestionsResponse,
    SharedInsightsResponse,
    ShareResponse,
    TutorChatRequest,
)
from examguru.services.answer_evaluator import AnswerEvaluator
from examguru.services.command_parser import generate_response, parse_command
from examguru.services.question_generator import QuestionGenerator
from examguru.services.share_service import ShareService
from examguru.services.skills_analyzer import SkillsAnalyzer
from examguru.services.tutor_service import TutorService
from examguru.utils.errors import ExamGuruError
from examguru.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_ALLOWED_CONTENT_TYPES = frozenset({"image/jpeg", "image/png", "image/webp", "image/gif"})
_MAX_FILE_SIZE = 5 * 1024 * 1024
_UPLOAD_CHUNK_SIZE = 64 * 1024


# ---------------------------------------------------------------------------
# Dependency injection helpers
# ---------------------------------------------------------------------------


def _get_question_generator(request: Request) -> QuestionGenerator:
    return request.app.state.question_generator


def _get_answer_evaluator(request: Request) -> AnswerEvaluator:
    return request.app.state.answer_evaluator


def _get_tutor_service(request: Request) -> TutorService:
    return request.app.state.tutor_service


def _get_skills_analyzer(request: Request) -> SkillsAnalyzer:
    return request.app.state.skills_analyzer


def _get_share_service(request: Request) -> ShareService:
    return request.app.state.share_service


QuestionGeneratorDep = Annotated[QuestionGenerator, Depends(_get_question_generator)]
AnswerEvaluatorDep = Annotated[AnswerEvaluator, Depends(_get_answer_evaluator)]
TutorServiceDep = Annotated[TutorService, Depends(_get_tutor_service)]
SkillsAnalyzerDep = Annotated[SkillsAnalyzer, Depends(_get_skills_analyzer)]
ShareServiceDep = Annotated[ShareService, Depends(_get_share_service)]


async def _read_image_base64(file: UploadFile) -> str:
    """Validate an uploaded image and return it base64-encoded.

    Raises
    ------
    HTTPException
        415 for a non-image content type, 413 above the 5 MB cap, 400 when empty.
    """
    content_type = file.content_type or ""
    if content_type not in _ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=415,
            detail=(
                f"Unsupported file type: {content_type}. "
                f"Allowed: {', '.join(sorted(_ALLOWED_CONTENT_TYPES))}"
            ),
        )

    # Read in chunks so an oversized upload is rejected before it is buffered whole.
    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = await file.read(_UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > _MAX_FILE_SIZE:
            raise HTTPException(
                status_code=413,
                detail=f"File too large: maximum is {_MAX_FILE_SIZE // (1024 * 1024)} MB.",
            )
        chunks.append(chunk)

    if not total_size:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    return base64.b64encode(b"".join(chunks)).decode("ascii")


# ---------------------------------------------------------------------------
# Exams
# ---------------------------------------------------------------------------


@router.post(
    "/exams/generate",
    response_model=QuestionsResponse,
    responses={502: {"model": ErrorResponse}},
    summary="Generate an exam question set",
)
async def generate_exam(body: GenerateExamRequest, generator: QuestionGeneratorDep) -> QuestionsResponse:
    result = await generator.generate_questions(
        subject=body.subject,
        curriculum=body.curriculum,
        grade=body.grade,
        difficulty=body.difficulty,
        exam_format=body.exam_format,
        templates=body.templates,
        selected_template=body.selected_template,
        chapters=body.chapters,
    )
    return QuestionsResponse(questions=result["questions"])


@router.post(
    "/exams/adjust-difficulty",
    response_model=QuestionsResponse,
    responses={502: {"model": ErrorResponse}},
    summary="Rewrite questions at a new difficulty",
)
async def adjust_difficulty(
    body: AdjustDifficultyRequest, generator: QuestionGeneratorDep
) -> QuestionsResponse:
    questions = await generator.adjust_difficulty(
        body.questions, body.new_difficulty, body.subject, body.grade
    )
    return QuestionsResponse(questions=questions)


# ---------------------------------------------------------------------------
# Image-based evaluation
# ---------------------------------------------------------------------------


@router.post(
    "/attempts/evaluate",
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        415: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Grade a photographed answer sheet",
)
async def evaluate_attempt(
    file: UploadFile,
    questions: Annotated[str, Form()],
    evaluator: AnswerEvaluatorDep,
) -> dict[str, Any]:
    """Grade the uploaded answer sheet against a JSON-encoded question list."""
    try:
        parsed = json.loads(questions)
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=400, detail="questions must be a JSON array") from exc
    if not isinstance(parsed, list) or not parsed:
        raise HTTPException(status_code=400, detail="questions must be a non-empty JSON array")

    image_base64 = await _read_image_base64(file)
    return await evaluator.evaluate_answers(image_base64, parsed)


@router.post(
    "/templates/analyze",
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        415: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Read the structure of a question-paper image",
)
async def analyze_template(file: UploadFile, evaluator: AnswerEvaluatorDep) -> dict[str, Any]:
    image_base64 = await _read_image_base64(file)
    return await evaluator.analyze_question_paper_template(image_base64)


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


@router.post(
    "/tutor/chat",
    response_model=ChatMessageResponse,
    responses={502: {"model": ErrorResponse}},
    summary="Tutor or general assistant reply",
)
async def tutor_chat(body: TutorChatRequest, tutor: TutorServiceDep) -> ChatMessageResponse:
    reply = await tutor.generate_response(
        body.message,
        subject=body.subject,
        grade=body.grade,
        history=[turn.model_dump() for turn in body.history],
    )
    return ChatMessageResponse(content=reply["content"])


@router.post(
    "/chat/command",
    response_model=CommandResponse,
    summary="Classify a chat-box command",
)
async def chat_command(body: CommandRequest) -> CommandResponse:
    """Keyword-classify the message; never calls the language model."""
    command = parse_command(body.message)
    _logger.info("chat_command_parsed", intent=command.type.value)
    return CommandResponse(
        intent=command.type.value,
        extracted_info=command.extracted_info.model_dump(by_alias=True, exclude_none=True),
        response=generate_response(command),
    )


# ---------------------------------------------------------------------------
# Analysis and sharing
# ---------------------------------------------------------------------------


@router.post(
    "/analysis/student-skills",
    responses={502: {"model": ErrorResponse}},
    summary="Build a skills profile from attempt history",
)
async def student_skills(body: AttemptsRequest, analyzer: SkillsAnalyzerDep) -> dict[str, Any]:
    if not body.attempts:
        raise HTTPException(status_code=400, detail="At least one attempt is required")
    return await analyzer.analyze_student_skills(body.attempts)


@router.post(
    "/share/performance",
    response_model=ShareResponse,
    status_code=201,
    summary="Create a share link for performance insights",
)
async def share_performance(
    body: AttemptsRequest, request: Request, shares: ShareServiceDep
) -> ShareResponse:
    token, insights = await shares.share_attempts(body.attempts)
    return ShareResponse(
        token=token,
        share_path=str(request.app.url_path_for("get_shared_performance", token=token)),
        expires_in_seconds=int(request.app.state.settings.share_ttl_seconds),
        insights=insights,
    )


@router.get(
    "/share/{token}",
    response_model=SharedInsightsResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Fetch shared performance insights",
    name="get_shared_performance",
)
async def get_shared_performance(token: str, shares: ShareServiceDep) -> SharedInsightsResponse:
    insights = await shares.get_shared(token)
    if insights is None:
        raise HTTPException(status_code=404, detail="Shared analysis not found or expired")
    return SharedInsightsResponse(token=token, insights=insights)


# ---------------------------------------------------------------------------
# Operational
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, summary="Application health check")
async def health_check(request: Request) -> HealthResponse:
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None or not runtime.is_initialized:
        return HealthResponse(status="unhealthy", version=__version__, llm_initialized=False)

    try:
        provider = runtime.default_provider
    except ExamGuruError:
        return HealthResponse(status="unhealthy", version=__version__, llm_initialized=False)

    return HealthResponse(
        status="healthy" if provider.is_available() else "degraded",
        version=__version__,
        llm_initialized=True,
        provider=provider.get_provider_name(),
    )


@router.get("/providers", response_model=ProvidersResponse, summary="List registered LLM providers")
async def list_providers(request: Request) -> ProvidersResponse:
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        return ProvidersResponse(providers=[])
    default = runtime.config.provider if runtime.is_initialized else None
    return ProvidersResponse(providers=runtime.list_providers(), default=default)
