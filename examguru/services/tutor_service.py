"""Conversational tutor and platform assistant.

With a subject and grade the model plays a patient subject tutor; without
them it acts as the general ExamGuru assistant that explains what the
platform can do.
"""

from __future__ import annotations

from typing import Any

from examguru.models.llm import CompletionRequest, LLMMessage
from examguru.services.llm_task import LLMTaskService
from examguru.utils.errors import TutorResponseError

TUTOR_SYSTEM_PROMPT = (
    "You are an expert {subject} tutor for Grade {grade} students. "
    "Explain concepts step by step in simple language, use examples suited to the "
    "student's grade, and check understanding with short follow-up questions. "
    "Guide the student towards the answer instead of just giving it away, and "
    "format mathematical expressions and code clearly."
)

ASSISTANT_SYSTEM_PROMPT = (
    "You are the ExamGuru assistant. ExamGuru helps students and teachers create "
    "question paper templates, generate exams with AI, take exams, upload answer "
    "sheets for AI grading, and review performance analytics and recommendations. "
    "Answer questions about using the platform, guide users to the right feature, "
    "and keep replies short and friendly."
)

_HISTORY_ROLES = frozenset({"user", "assistant"})


class TutorService(LLMTaskService):
    """Generates tutor / assistant chat replies."""

    error_class = TutorResponseError

    @staticmethod
    def system_prompt_for(subject: str | None, grade: str | None) -> str:
        if subject and grade:
            return TUTOR_SYSTEM_PROMPT.format(subject=subject, grade=grade)
        return ASSISTANT_SYSTEM_PROMPT

    async def generate_response(
        self,
        message: str,
        subject: str | None = None,
        grade: str | None = None,
        history: list[dict[str, Any]] | None = None,
    ) -> dict[str, str]:
        """Reply to *message* given the prior conversation *history*.

        Returns
        -------
        dict
            ``{"role": "assistant", "content": <reply>}``

        Raises
        ------
        TutorResponseError
            If the provider fails or returns empty content.
        """
        messages = [LLMMessage(role="system", content=self.system_prompt_for(subject, grade))]
        for turn in history or []:
            if turn.get("role") in _HISTORY_ROLES and turn.get("content"):
                messages.append(LLMMessage(role=turn["role"], content=str(turn["content"])))
        messages.append(LLMMessage(role="user", content=message))

        request = CompletionRequest(messages=messages, context="tutoring")
        content = await self._complete_text(request)
        self._logger.info(
            "tutor_response",
            mode="tutor" if subject and grade else "assistant",
            history_turns=len(messages) - 2,
        )
        return {"role": "assistant", "content": content}
