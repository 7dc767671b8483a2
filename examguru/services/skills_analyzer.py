"""Skills analysis across a student's exam attempts."""

from __future__ import annotations

import json
from typing import Any

from examguru.models.llm import CompletionRequest, LLMMessage, ResponseFormat
from examguru.services.llm_task import LLMTaskService
from examguru.utils.errors import SkillsAnalysisError

SKILLS_SCHEMA = """{
  "strengths": ["string"],
  "weaknesses": ["string"],
  "cognitiveSkills": {
    "criticalThinking": {"level": number, "evidence": ["string"]},
    "problemSolving": {"level": number, "evidence": ["string"]},
    "conceptualUnderstanding": {"level": number, "evidence": ["string"]},
    "application": {"level": number, "evidence": ["string"]}
  },
  "subjectSkills": [
    {
      "subject": "string",
      "proficiency": number,
      "masteredTopics": ["string"],
      "topicsToImprove": ["string"]
    }
  ],
  "learningStyle": {
    "primary": "string",
    "characteristics": ["string"],
    "recommendations": ["string"]
  },
  "progressAnalysis": {
    "trend": "improving | stable | declining",
    "consistency": "string",
    "notableChanges": ["string"]
  },
  "personalizedRecommendations": [
    {
      "area": "string",
      "recommendation": "string",
      "resources": ["string"],
      "priority": "high | medium | low"
    }
  ]
}"""


def summarize_attempts(attempts: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Keep only the parts of each attempt the model needs."""
    summary = []
    for attempt in attempts:
        exam = attempt.get("exam") or {}
        summary.append(
            {
                "subject": exam.get("subject") or attempt.get("subject"),
                "difficulty": exam.get("difficulty") or attempt.get("difficulty"),
                "score": attempt.get("score"),
                "date": attempt.get("startTime") or attempt.get("date"),
                "feedback": attempt.get("feedback"),
            }
        )
    return summary


class SkillsAnalyzer(LLMTaskService):
    """Turns attempt history into a structured skills profile."""

    error_class = SkillsAnalysisError

    async def analyze_student_skills(self, attempts: list[dict[str, Any]]) -> dict[str, Any]:
        """Analyse *attempts* and return the skills profile JSON.

        Raises
        ------
        SkillsAnalysisError
            If the provider fails, returns nothing, or returns invalid JSON.
        """
        prompt = (
            "Analyze this student's exam attempts and build a detailed skills profile. "
            "Levels and proficiency are percentages from 0 to 100. Base every claim on "
            "evidence from the attempts.\n\n"
            f"Attempts:\n{json.dumps(summarize_attempts(attempts), indent=2, default=str)}\n\n"
            f"Return ONLY a JSON object with this structure:\n{SKILLS_SCHEMA}"
        )
        request = CompletionRequest(
            messages=[LLMMessage(role="user", content=prompt)],
            response_format=ResponseFormat(type="json_object"),
            context="analysis",
        )
        result = await self._complete_json(request)
        self._logger.info("skills_analysis_complete", attempts=len(attempts))
        return result
