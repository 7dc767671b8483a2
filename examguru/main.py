"""ExamGuru application entry point.

Builds the LLM runtime and the orchestration services, and wires them into
a FastAPI application.  The self-hosted ``llama`` provider is registered
here explicitly; only ``openai`` is auto-discovered by the runtime.

Run with ``python -m examguru.main`` or ``uvicorn examguru.main:app``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from functools import partial
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from examguru import __version__
from examguru.api.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware, configure_cors
from examguru.api.routes import router as api_router
from examguru.config.settings import Settings
from examguru.providers.cache.memory_cache import MemoryCacheProvider
from examguru.providers.llm.factory import LLMRuntime
from examguru.providers.llm.llama_provider import LlamaLLMProvider
from examguru.services.answer_evaluator import AnswerEvaluator
from examguru.services.question_generator import QuestionGenerator
from examguru.services.share_service import ShareService
from examguru.services.skills_analyzer import SkillsAnalyzer
from examguru.services.tutor_service import TutorService
from examguru.utils.logging import configure_logging, get_logger

_HTTP_TIMEOUT = 60.0

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Component builders
# ---------------------------------------------------------------------------


def build_runtime(app_settings: Settings, http_client: httpx.AsyncClient | None = None) -> LLMRuntime:
    """Create an uninitialised runtime with the self-hosted provider registered."""
    runtime = LLMRuntime(settings=app_settings)
    runtime.registry.register("llama", partial(LlamaLLMProvider, http_client=http_client))
    return runtime


def build_services(runtime: LLMRuntime, app_settings: Settings) -> dict[str, Any]:
    """Build the orchestration services around the runtime's default provider.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    provider = runtime.default_provider
    share_cache = MemoryCacheProvider(
        max_size=app_settings.share_max_entries,
        ttl=app_settings.share_ttl_seconds,
    )
    return {
        "question_generator": QuestionGenerator(provider),
        "answer_evaluator": AnswerEvaluator(provider),
        "tutor_service": TutorService(provider),
        "skills_analyzer": SkillsAnalyzer(provider),
        "share_service": ShareService(share_cache),
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise the LLM runtime and services on startup, clean up on shutdown."""
    app_settings: Settings = application.state.settings
    http_client = httpx.AsyncClient(timeout=_HTTP_TIMEOUT)

    runtime: LLMRuntime | None = getattr(application.state, "runtime", None)
    if runtime is None:
        runtime = build_runtime(app_settings, http_client)
        application.state.runtime = runtime

    try:
        await runtime.initialize()
        for key, value in build_services(runtime, app_settings).items():
            setattr(application.state, key, value)
    except Exception:
        await http_client.aclose()
        raise

    _logger.info(
        "app_startup",
        version=__version__,
        environment=app_settings.app_env,
        provider=runtime.config.provider,
        registered=runtime.list_providers(),
    )

    yield

    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(app_settings: Settings | None = None, runtime: LLMRuntime | None = None) -> FastAPI:
    """Build and configure the FastAPI application.

    Parameters
    ----------
    app_settings:
        Settings for this app; the module-level settings when omitted.
    runtime:
        A pre-built runtime, initialised during startup.  One with the
        ``llama`` provider registered is built when omitted.
    """
    application = FastAPI(
        title="ExamGuru API",
        version=__version__,
        description=(
            "Generate exam papers, grade photographed answer sheets, tutor "
            "students and analyse their progress through a pluggable LLM provider."
        ),
        lifespan=_lifespan,
    )
    application.state.settings = app_settings or settings
    if runtime is not None:
        application.state.runtime = runtime

    # Last added runs first: logging wraps error handling.
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    application.include_router(api_router)
    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "examguru.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
