"""Keyword-based intent classification for the main chat box.

Messages are lowercased and checked against ordered keyword lists; the
first intent with a matching keyword wins (template creation, exam
creation, performance view, help, otherwise unknown).  Slot values are pulled
out by literal membership tests against the known subjects, grades,
curricula and difficulties.  No model call is involved.
"""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from examguru.config.domain_knowledge import CURRICULA, DIFFICULTIES, GRADES, SUBJECTS


class Intent(str, Enum):
    CREATE_TEMPLATE = "create_template"
    CREATE_EXAM = "create_exam"
    VIEW_PERFORMANCE = "view_performance"
    HELP = "help"
    UNKNOWN = "unknown"


class ExtractedInfo(BaseModel):
    """Slot values found in a chat message; absent slots stay ``None``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    subject: str | None = None
    grade: str | None = None
    curriculum: str | None = None
    difficulty: str | None = None
    question_count: int | None = Field(default=None, alias="questionCount")
    timeframe: str | None = None
    exam_type: str | None = Field(default=None, alias="examType")


class ParsedCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Intent
    extracted_info: ExtractedInfo = Field(default_factory=ExtractedInfo)


# Checked in this order; the first list with a hit decides the intent.
_INTENT_KEYWORDS: tuple[tuple[Intent, tuple[str, ...]], ...] = (
    (Intent.CREATE_TEMPLATE, ("create template", "new template", "make template")),
    (Intent.CREATE_EXAM, ("create exam", "generate exam", "new exam", "make exam", "create a new exam")),
    (
        Intent.VIEW_PERFORMANCE,
        ("show performance", "view results", "check score", "how did", "performance"),
    ),
    (Intent.HELP, ("help", "what can you do", "how to")),
)

_TIMEFRAME_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("today", ("today",)),
    ("week", ("this week", "last week", "week")),
    ("month", ("this month", "last month", "month")),
    ("year", ("this year", "last year", "year")),
)

_EXAM_TYPE_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("practice", ("practice",)),
    ("mock", ("mock",)),
    ("final", ("final",)),
)

_QUANTITY_RE = re.compile(r"\b(\d+)\s*(?:questions?|marks?|q)\b", re.IGNORECASE)


def _contains_word(haystack: str, needle: str) -> bool:
    return re.search(rf"(?<![\w]){re.escape(needle)}(?![\w])", haystack) is not None


def _find_known(lowered: str, candidates: tuple[str, ...]) -> str | None:
    # Longest first, so "JEE (Advanced)" wins over shorter overlapping names.
    for candidate in sorted(candidates, key=len, reverse=True):
        if _contains_word(lowered, candidate.lower()):
            return candidate
    return None


def _first_keyword(lowered: str, table: tuple[tuple[str, tuple[str, ...]], ...], default: str) -> str:
    for label, keywords in table:
        if any(keyword in lowered for keyword in keywords):
            return label
    return default


def extract_template_info(message: str) -> ExtractedInfo:
    lowered = message.lower()
    return ExtractedInfo(
        subject=_find_known(lowered, SUBJECTS),
        grade=_find_known(lowered, GRADES),
        curriculum=_find_known(lowered, CURRICULA),
        difficulty=_find_known(lowered, DIFFICULTIES),
    )


def extract_exam_info(message: str) -> ExtractedInfo:
    base = extract_template_info(message)
    match = _QUANTITY_RE.search(message)
    # A grade like "10" must not be read as a quantity unless a unit follows it.
    count = int(match.group(1)) if match else None
    return base.model_copy(update={"question_count": count})


def extract_performance_info(message: str) -> ExtractedInfo:
    lowered = message.lower()
    return ExtractedInfo(
        subject=_find_known(lowered, SUBJECTS),
        timeframe=_first_keyword(lowered, _TIMEFRAME_KEYWORDS, "all"),
        exam_type=_first_keyword(lowered, _EXAM_TYPE_KEYWORDS, "all"),
    )


def parse_command(message: str) -> ParsedCommand:
    """Classify *message* into an :class:`Intent` plus extracted slots."""
    lowered = message.lower()
    for intent, keywords in _INTENT_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            break
    else:
        return ParsedCommand(type=Intent.UNKNOWN)

    if intent is Intent.CREATE_TEMPLATE:
        return ParsedCommand(type=intent, extracted_info=extract_template_info(message))
    if intent is Intent.CREATE_EXAM:
        return ParsedCommand(type=intent, extracted_info=extract_exam_info(message))
    if intent is Intent.VIEW_PERFORMANCE:
        return ParsedCommand(type=intent, extracted_info=extract_performance_info(message))
    return ParsedCommand(type=intent)


def generate_response(command: ParsedCommand) -> str:
    """Map a parsed command to the assistant's reply text."""
    info = command.extracted_info

    if command.type is Intent.CREATE_TEMPLATE:
        if not info.subject or not info.grade:
            return (
                "I can help you create a template. Could you please specify:\n"
                "- Subject (e.g., Mathematics, Physics)\n"
                "- Grade level (8-12)\n"
                "- Any specific format preferences?"
            )
        curriculum = f" following {info.curriculum}" if info.curriculum else ""
        return (
            f"I'll help you create a template for {info.subject} (Grade {info.grade}){curriculum}. "
            "What type of questions would you like to include?"
        )

    if command.type is Intent.CREATE_EXAM:
        if not info.subject or not info.grade:
            return (
                "I can help you generate an exam. Please provide:\n"
                "- Subject\n"
                "- Grade level\n"
                "- Difficulty level (Beginner to Olympiad)\n"
                "- Number of questions or total marks"
            )
        details = [f"{info.subject} (Grade {info.grade})"]
        if info.difficulty:
            details.append(f"at {info.difficulty} difficulty")
        if info.curriculum:
            details.append(f"following {info.curriculum}")
        if info.question_count:
            details.append(f"with {info.question_count} questions")
        return f"Great! I'll generate an exam for {' '.join(details)}. Shall I go ahead?"

    if command.type is Intent.VIEW_PERFORMANCE:
        scope = []
        if info.subject:
            scope.append(info.subject)
        if info.exam_type and info.exam_type != "all":
            scope.append(f"{info.exam_type} exams")
        if info.timeframe and info.timeframe != "all":
            scope.append("today" if info.timeframe == "today" else f"this {info.timeframe}")
        if scope:
            return f"Here is your performance summary for {', '.join(scope)}."
        return (
            "I'll help you check performance analytics. Would you like to see:\n"
            "- Overall performance summary\n"
            "- Subject-wise analysis\n"
            "- Recent exam results\n"
            "- Improvement trends"
        )

    if command.type is Intent.HELP:
        return (
            "I can help you with:\n"
            "- Creating question templates\n"
            "- Generating exams from templates\n"
            "- Viewing performance analytics\n"
            "- Getting personalized learning assistance\n\n"
            "Just tell me what you'd like to do in natural language, and I'll guide you "
            "through the process."
        )

    return (
        "I'm not sure what you'd like to do. You can ask me to create templates, "
        "generate exams, or view performance analytics. What would you like to do?"
    )
