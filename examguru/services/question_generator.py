"""LLM-backed exam question generation and difficulty adjustment.

Builds a provider-agnostic prompt from the requested subject, curriculum,
grade, difficulty and paper format, sends it to the injected provider in
JSON mode, and validates the returned question set before handing it back.

The model may answer with either::

    {"questions": [...]}
    {"sections": [{"questions": [...]}, ...]}

The second shape is flattened in section order.  Every question must carry
``type``, ``text``, ``marks``, ``expectedAnswer`` and ``rubric``; MCQs also
need ``choices`` and ``correctAnswer``.  Anything else is rejected as a
whole; partially valid sets are never returned.

Questions that include an ``imageDescription`` get a best-effort diagram
from the provider's image capability.  A failed image never fails the exam.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

from examguru.config.domain_knowledge import DIFFICULTY_ADJUSTMENT_GUIDANCE, guidelines_for
from examguru.models.llm import CompletionRequest, ImageGenerationRequest, LLMMessage, ResponseFormat
from examguru.services.llm_task import LLMTaskService
from examguru.utils.errors import DifficultyAdjustmentError, QuestionGenerationError

REQUIRED_QUESTION_FIELDS: tuple[str, ...] = ("type", "text", "marks", "expectedAnswer", "rubric")
MCQ_FIELDS: tuple[str, ...] = ("choices", "correctAnswer")
MARKS_PER_QUESTION = 10

_IMAGE_PROMPT = "Create a black and white, minimalist educational diagram: {description}"


# ---------------------------------------------------------------------------
# Pure helpers (prompt construction and validation)
# ---------------------------------------------------------------------------


def is_mcq(question: dict[str, Any]) -> bool:
    qtype = str(question.get("type", "")).lower().replace("_", " ").replace("-", " ")
    return "mcq" in qtype or "multiple choice" in qtype


def section_breakdown(exam_format: dict[str, Any]) -> list[dict[str, Any]]:
    """Derive question count and marks per question for each format section.

    One question per 10 marks of section weight, rounded half-up, at least
    one question per section.
    """
    breakdown: list[dict[str, Any]] = []
    for index, section in enumerate(exam_format.get("sections") or [], start=1):
        if not isinstance(section, dict):
            continue
        try:
            marks = float(section.get("marks") or 0)
        except (TypeError, ValueError):
            marks = 0.0
        count = max(1, int(marks / MARKS_PER_QUESTION + 0.5))
        breakdown.append(
            {
                "name": section.get("name") or section.get("title") or f"Section {index}",
                "type": section.get("type") or section.get("questionType") or "mixed",
                "marks": marks,
                "questionCount": count,
                "marksPerQuestion": round(marks / count, 2) if marks else 0,
            }
        )
    return breakdown


def build_generation_prompt(
    subject: str,
    curriculum: str,
    grade: str,
    difficulty: str,
    exam_format: dict[str, Any],
    templates: list[dict[str, Any]],
    selected_template: dict[str, Any] | None = None,
    chapters: list[str] | None = None,
) -> str:
    sections = section_breakdown(exam_format)
    if sections:
        section_lines = "\n".join(
            f"- {s['name']} ({s['type']}): {s['questionCount']} question(s), "
            f"{s['marksPerQuestion']:g} marks each, {s['marks']:g} marks total"
            for s in sections
        )
    else:
        section_lines = "- No explicit sections; choose a balanced mix of question types"

    parts = [
        f"Generate an exam paper for {subject} (Grade {grade}) following the {curriculum} curriculum.",
        f"Difficulty level: {difficulty}",
        f"Difficulty guidelines for {difficulty}:\n{guidelines_for(difficulty)}",
        f"Paper format: {json.dumps(exam_format)}",
        f"Section breakdown:\n{section_lines}",
    ]
    if chapters:
        parts.append("Only set questions from these chapters: " + ", ".join(chapters))
    if selected_template:
        parts.append(
            "Follow this question paper template exactly:\n"
            + json.dumps(selected_template, indent=2)
        )
    if templates:
        parts.append(
            "Use these curriculum-specific templates as guidelines:\n"
            + json.dumps(templates, indent=2)
        )
    parts.append(
        "Return ONLY a JSON object with this structure:\n"
        "{\n"
        '  "questions": [\n'
        "    {\n"
        '      "type": "MCQ | Short Answer | Long Answer | Numerical",\n'
        '      "text": "string",\n'
        '      "marks": number,\n'
        '      "expectedAnswer": "string",\n'
        '      "rubric": "string",\n'
        '      "choices": ["A) ...", "B) ...", "C) ...", "D) ..."],\n'
        '      "correctAnswer": "A | B | C | D",\n'
        '      "imageDescription": "optional description of a helpful diagram"\n'
        "    }\n"
        "  ]\n"
        "}\n\n"
        "Requirements:\n"
        "1. Every question MUST include type, text, marks, expectedAnswer and rubric\n"
        "2. MCQ questions MUST have exactly 4 choices labelled A, B, C and D, "
        "plus a correctAnswer naming one label\n"
        "3. Include choices and correctAnswer only for MCQ questions\n"
        "4. Follow the section breakdown exactly: the number of questions and marks per section\n"
        "5. Questions must follow the curriculum standards and suit the grade\n"
        "6. Add imageDescription only when a diagram genuinely helps answer the question"
    )
    return "\n\n".join(parts)


def extract_questions(data: dict[str, Any]) -> list[dict[str, Any]]:
    """Return the question list from either accepted response shape.

    Raises
    ------
    ValueError
        If neither a ``questions`` array nor ``sections[].questions`` is found.
    """
    questions = data.get("questions")
    if isinstance(questions, list):
        return questions

    sections = data.get("sections")
    if isinstance(sections, list):
        flattened: list[dict[str, Any]] = []
        found = False
        for section in sections:
            if isinstance(section, dict) and isinstance(section.get("questions"), list):
                found = True
                flattened.extend(section["questions"])
        if found:
            return flattened

    raise ValueError("response does not contain a questions array")


def validate_questions(questions: list[Any]) -> None:
    """Raise ``ValueError`` naming the first question that is incomplete."""
    if not questions:
        raise ValueError("response contains no questions")
    for number, question in enumerate(questions, start=1):
        if not isinstance(question, dict):
            raise ValueError(f"question {number} is not an object")
        missing = [f for f in REQUIRED_QUESTION_FIELDS if question.get(f) in (None, "")]
        if is_mcq(question):
            missing += [f for f in MCQ_FIELDS if not question.get(f)]
        if missing:
            raise ValueError(f"question {number} is missing required fields: {', '.join(missing)}")


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class QuestionGenerator(LLMTaskService):
    """Generates exam question sets and rewrites them at a new difficulty."""

    error_class = QuestionGenerationError

    async def generate_questions(
        self,
        subject: str,
        curriculum: str,
        grade: str,
        difficulty: str,
        exam_format: dict[str, Any],
        templates: list[dict[str, Any]] | None = None,
        selected_template: dict[str, Any] | None = None,
        chapters: list[str] | None = None,
    ) -> dict[str, list[dict[str, Any]]]:
        """Generate a validated ``{"questions": [...]}`` set.

        Raises
        ------
        QuestionGenerationError
            If the provider fails, or the reply is not JSON, lacks a
            question array, or contains an incomplete question.
        """
        templates = templates or []
        self._logger.info(
            "question_generation_start",
            subject=subject,
            curriculum=curriculum,
            grade=grade,
            difficulty=difficulty,
            template_count=len(templates),
            chapters=len(chapters or []),
        )
        prompt = build_generation_prompt(
            subject,
            curriculum,
            grade,
            difficulty,
            exam_format,
            templates,
            selected_template,
            chapters,
        )
        request = CompletionRequest(
            messages=[LLMMessage(role="user", content=prompt)],
            response_format=ResponseFormat(type="json_object"),
            context="questionGeneration",
        )

        data = await self._complete_json(request)
        try:
            questions = extract_questions(data)
            validate_questions(questions)
        except ValueError as exc:
            raise self._fail(str(exc), exc) from exc

        await self._attach_images(questions)
        self._logger.info("question_generation_complete", questions=len(questions))
        return {"questions": questions}

    async def _attach_images(self, questions: list[dict[str, Any]]) -> None:
        wanted = [q for q in questions if q.get("imageDescription")]
        if not wanted:
            return
        if not self._llm.supports_image_generation():
            self._logger.info("question_images_skipped", reason="provider has no image capability")
            return
        await asyncio.gather(*(self._attach_image(q) for q in wanted))

    async def _attach_image(self, question: dict[str, Any]) -> None:
        request = ImageGenerationRequest(
            prompt=_IMAGE_PROMPT.format(description=question["imageDescription"]),
            n=1,
            size="1024x1024",
            quality="standard",
        )
        try:
            image = await self._llm.generate_image(request)  # type: ignore[attr-defined]
        except Exception as exc:
            self._logger.warning(
                "question_image_failed",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return
        if image.url:
            question["imageUrl"] = image.url

    async def adjust_difficulty(
        self,
        questions: list[dict[str, Any]],
        new_difficulty: str,
        subject: str,
        grade: str,
    ) -> list[dict[str, Any]]:
        """Rewrite *questions* at *new_difficulty*, keeping count and structure.

        Raises
        ------
        DifficultyAdjustmentError
            If the provider fails or the reply lacks a ``questions`` array.
        """
        guidance = DIFFICULTY_ADJUSTMENT_GUIDANCE.get(new_difficulty, "")
        prompt_parts = [
            f"Adjust the difficulty of these {subject} questions for Grade {grade} "
            f"to {new_difficulty} level.",
        ]
        if guidance:
            prompt_parts.append(guidance)
        prompt_parts.append(f"Questions:\n{json.dumps(questions, indent=2)}")
        prompt_parts.append(
            "Requirements:\n"
            f"1. Return exactly {len(questions)} questions, in the same order\n"
            "2. Keep each question's type, structure and marks unchanged\n"
            "3. MCQ questions must keep exactly 4 choices labelled A-D and a correctAnswer\n"
            "4. Update expectedAnswer and rubric to match the rewritten question\n"
            'Return ONLY a JSON object of the form {"questions": [...]}'
        )
        request = CompletionRequest(
            messages=[LLMMessage(role="user", content="\n\n".join(prompt_parts))],
            response_format=ResponseFormat(type="json_object"),
            context="questionGeneration",
        )

        data = await self._complete_json(request, error=DifficultyAdjustmentError)
        adjusted = data.get("questions")
        if not isinstance(adjusted, list):
            raise self._fail(
                "response does not contain a questions array", error=DifficultyAdjustmentError
            )
        self._logger.info(
            "difficulty_adjusted",
            difficulty=new_difficulty,
            questions=len(adjusted),
            had_guidance=bool(guidance),
        )
        return adjusted

