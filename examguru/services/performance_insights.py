"""Aggregate exam attempts into a shareable performance-insights payload."""

from __future__ import annotations

from datetime import datetime
from typing import Any

# Conceptual-understanding level -> mastery points; anything else scores 25.
_MASTERY_POINTS = {"Excellent": 100, "Good": 75, "Fair": 50}
_DEFAULT_MASTERY = 25
_TOP_CONCEPTS = 6


def _attempt_subject(attempt: dict[str, Any]) -> str:
    exam = attempt.get("exam") or {}
    return exam.get("subject") or attempt.get("subject") or "Unknown"


def _attempt_date(attempt: dict[str, Any]) -> datetime | None:
    raw = attempt.get("startTime") or attempt.get("date")
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, str) and raw:
        try:
            return datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def score_progression(attempts: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Scored attempts as ``{date, score, subject}``, oldest first."""
    points = []
    for attempt in attempts:
        if attempt.get("score") is None:
            continue
        when = _attempt_date(attempt)
        points.append((when, attempt))
    # Undated attempts sort first, keeping their input order.
    points.sort(key=lambda item: (item[0] is not None, item[0].timestamp() if item[0] else 0))
    return [
        {
            "date": when.date().isoformat() if when else None,
            "score": attempt["score"],
            "subject": _attempt_subject(attempt),
        }
        for when, attempt in points
    ]


def subject_performance(attempts: list[dict[str, Any]]) -> list[dict[str, Any]]:
    totals: dict[str, list[float]] = {}
    for attempt in attempts:
        score = attempt.get("score")
        if score is None:
            continue
        totals.setdefault(_attempt_subject(attempt), []).append(float(score))
    return [
        {
            "subject": subject,
            "averageScore": _round_half_up(sum(scores) / len(scores)),
            "attempts": len(scores),
        }
        for subject, scores in totals.items()
    ]


def concept_mastery(attempts: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Top concepts by mastery, from per-question evaluation feedback."""
    totals: dict[str, list[int]] = {}
    for attempt in attempts:
        feedback = attempt.get("feedback") or {}
        for question in feedback.get("perQuestion") or []:
            level = (question.get("conceptualUnderstanding") or {}).get("level")
            points = _MASTERY_POINTS.get(level, _DEFAULT_MASTERY)
            for concept in question.get("keyConceptsCovered") or []:
                totals.setdefault(concept, []).append(points)

    mastery = [
        {"concept": concept, "mastery": _round_half_up(sum(values) / len(values))}
        for concept, values in totals.items()
    ]
    mastery.sort(key=lambda item: item["mastery"], reverse=True)
    return mastery[:_TOP_CONCEPTS]


def build_performance_insights(attempts: list[dict[str, Any]]) -> dict[str, Any]:
    """Summarise *attempts*; attempts without a score are left out of score stats."""
    scores = [float(a["score"]) for a in attempts if a.get("score") is not None]
    subjects = subject_performance(attempts)
    ranked = sorted(subjects, key=lambda s: s["averageScore"], reverse=True)
    return {
        "attemptCount": len(attempts),
        "scoredAttemptCount": len(scores),
        "averageScore": round(sum(scores) / len(scores), 1) if scores else None,
        "bestSubject": ranked[0]["subject"] if ranked else None,
        "weakestSubject": ranked[-1]["subject"] if ranked else None,
        "scoreProgression": score_progression(attempts),
        "subjectPerformance": subjects,
        "conceptMastery": concept_mastery(attempts),
    }
