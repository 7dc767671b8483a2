"""AI grading of uploaded answer sheets and question-paper template analysis.

``evaluate_answers`` sends one user message carrying the questions, the
grading instructions, the required JSON schema and the answer-sheet image as
inline base64 text.  ``analyze_question_paper_template`` sends a true
multimodal message (instructions + ``image_url`` block) and asks for the
paper's structure.

Both methods return the decoded JSON as-is; the evaluation result is never
rewritten on the way back.
"""

from __future__ import annotations

import json
from typing import Any

from examguru.models.llm import (
    CompletionRequest,
    ImageUrl,
    ImageUrlContent,
    LLMMessage,
    ResponseFormat,
    TextContent,
)
from examguru.services.llm_task import LLMTaskService
from examguru.utils.errors import AnswerEvaluationError, TemplateAnalysisError
from examguru.utils.images import to_data_uri

EVALUATION_SCHEMA = """{
  "score": number,
  "totalMarks": number,
  "feedback": {
    "overall": "string",
    "strengths": ["string"],
    "improvements": ["string"],
    "perQuestion": [
      {
        "questionNumber": number,
        "score": number,
        "maxMarks": number,
        "feedback": "string",
        "conceptualUnderstanding": {
          "level": "Excellent | Good | Fair | Needs Improvement",
          "explanation": "string"
        },
        "technicalAccuracy": {
          "score": number,
          "details": "string"
        },
        "keyConceptsCovered": ["string"],
        "misconceptions": ["string"],
        "improvementAreas": ["string"],
        "exemplarAnswer": "string"
      }
    ]
  }
}"""

TEMPLATE_SCHEMA = """{
  "sections": [
    {
      "name": "string",
      "type": "string",
      "questionCount": number,
      "marks": number,
      "instructions": "string"
    }
  ],
  "totalMarks": number,
  "duration": "string",
  "specialInstructions": ["string"]
}"""


def build_evaluation_prompt(image_base64: str, questions: list[dict[str, Any]]) -> str:
    return (
        "You are an experienced examiner. Evaluate the student's handwritten answers "
        "in the attached answer-sheet image against the questions below.\n\n"
        f"Questions:\n{json.dumps(questions, indent=2)}\n\n"
        "Grading rules:\n"
        "1. MCQ questions: award full marks only for an exact match with correctAnswer, otherwise zero\n"
        "2. Theory and numerical questions: award partial credit using each question's rubric, "
        "crediting correct method and reasoning even when the final answer is wrong\n"
        "3. Never award more than a question's marks\n"
        "4. Assess conceptual understanding and technical accuracy separately for each question\n"
        "5. List the key concepts the answer covers and any misconceptions it shows\n"
        "6. Give an exemplar answer for every question\n\n"
        f"Return ONLY a JSON object with exactly this structure:\n{EVALUATION_SCHEMA}\n\n"
        f"Answer sheet image (base64 encoded): {image_base64}"
    )


class AnswerEvaluator(LLMTaskService):
    """Grades answer sheets and reads the structure of question-paper templates."""

    error_class = AnswerEvaluationError

    async def evaluate_answers(self, image_base64: str, questions: list[dict[str, Any]]) -> dict[str, Any]:
        """Score an answer sheet against *questions*.

        Raises
        ------
        AnswerEvaluationError
            If the provider fails or the reply is missing or not JSON.
        """
        self._logger.info("answer_evaluation_start", questions=len(questions), image_chars=len(image_base64))
        request = CompletionRequest(
            messages=[LLMMessage(role="user", content=build_evaluation_prompt(image_base64, questions))],
            response_format=ResponseFormat(type="json_object"),
            context="evaluation",
        )
        result = await self._complete_json(request)
        self._logger.info("answer_evaluation_complete", score=result.get("score"))
        return result

    async def analyze_question_paper_template(self, image_base64: str) -> dict[str, Any]:
        """Describe the structure of a photographed question paper.

        Raises
        ------
        TemplateAnalysisError
            If the provider fails, returns nothing, or returns invalid JSON.
        """
        instructions = (
            "Analyze this question paper image and describe its structure: every section "
            "with its name, question type, number of questions, marks and instructions, "
            "the total marks, the duration, and any special instructions.\n\n"
            f"Return ONLY a JSON object with this structure:\n{TEMPLATE_SCHEMA}"
        )
        request = CompletionRequest(
            messages=[
                LLMMessage(
                    role="user",
                    content=[
                        TextContent(text=instructions),
                        ImageUrlContent(image_url=ImageUrl(url=to_data_uri(image_base64))),
                    ],
                )
            ],
            response_format=ResponseFormat(type="json_object"),
            context="analysis",
        )
        data = await self._complete_json(request, error=TemplateAnalysisError)
        result = {
            "sections": data.get("sections") or [],
            "totalMarks": data.get("totalMarks"),
            "duration": data.get("duration"),
            "specialInstructions": data.get("specialInstructions") or [],
        }
        self._logger.info("template_analysis_complete", sections=len(result["sections"]))
        return result
