"""Custom exception hierarchy for ExamGuru.

All application exceptions inherit from :class:`ExamGuruError`, which
carries an optional ``provider_name`` so error handlers can identify which
LLM backend (e.g. "openai", "llama") caused the failure.

    ExamGuruError  (base, catch-all for any ExamGuru error)
    +-- ConfigurationError            (startup / missing config)
    +-- ProviderNotRegisteredError    (unknown provider name)
    +-- ProviderInitializationError   (provider constructor raised)
    +-- LLMNotInitializedError        (runtime used before initialize())
    +-- LLMError                      (any vendor call failure)
    +-- ContentGenerationError        (LLM output failed parsing/validation)
        +-- QuestionGenerationError
        +-- AnswerEvaluationError
        +-- TemplateAnalysisError
        +-- TutorResponseError
        +-- DifficultyAdjustmentError
        +-- SkillsAnalysisError

Every message is written to be shown to an end user as-is.
"""


class ExamGuruError(Exception):
    """Base exception for all ExamGuru errors.

    The ``__str__`` method prefixes the provider name in brackets for
    structured log output, e.g. ``[openai] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Configuration / registry errors
# ---------------------------------------------------------------------------

class ConfigurationError(ExamGuruError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderNotRegisteredError(ExamGuruError):
    """Raised when a provider name has no registered factory."""

    def __init__(self, provider_name: str) -> None:
        super().__init__(
            message=f"LLM provider not registered: {provider_name}",
            provider_name=provider_name,
        )


class ProviderInitializationError(ExamGuruError):
    """Raised when a registered provider factory fails to build an instance."""

    def __init__(self, provider_name: str, reason: str) -> None:
        super().__init__(
            message=f"Provider initialization failed for '{provider_name}': {reason}",
            provider_name=provider_name,
        )


class LLMNotInitializedError(ExamGuruError):
    """Raised when the LLM runtime is used before ``initialize()`` completed."""

    def __init__(
        self,
        message: str = "LLM system not initialized. Call initialize() first.",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LLMError(ExamGuruError):
    """Raised when an LLM API call fails or returns an unusable response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Content orchestration errors
# ---------------------------------------------------------------------------

class ContentGenerationError(ExamGuruError):
    """Base for failures while turning LLM output into exam-domain data."""

    prefix = "Content generation failed"

    def __init__(self, reason: str, provider_name: str | None = None) -> None:
        self._reason = reason
        super().__init__(message=f"{self.prefix}: {reason}", provider_name=provider_name)

    @property
    def reason(self) -> str:
        return self._reason


class QuestionGenerationError(ContentGenerationError):
    prefix = "Failed to generate questions"


class AnswerEvaluationError(ContentGenerationError):
    prefix = "Failed to evaluate answers"


class TemplateAnalysisError(ContentGenerationError):
    prefix = "Failed to analyze question paper template"


class TutorResponseError(ContentGenerationError):
    prefix = "Failed to generate tutor response"


class DifficultyAdjustmentError(ContentGenerationError):
    prefix = "Failed to adjust question difficulty"


class SkillsAnalysisError(ContentGenerationError):
    prefix = "Failed to analyze student skills"
