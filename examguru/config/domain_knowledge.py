"""Static exam-domain knowledge shared by the services and the command parser.

Holds the supported curricula, grades, subjects and difficulty tiers, plus
the five-point instructional rubric for each difficulty tier that is pasted
verbatim into question-generation prompts.  Kept as plain tuples and dicts
so the values can be imported anywhere without side effects.
"""

from __future__ import annotations

CURRICULA: tuple[str, ...] = (
    "ICSE",
    "CBSE",
    "Karnataka State Board",
    "JEE (Main)",
    "JEE (Advanced)",
    "NEET",
    "KVPY",
    "BITSAT",
)

DIFFICULTIES: tuple[str, ...] = (
    "Beginner",
    "Foundation",
    "Easy",
    "Medium",
    "Advanced",
    "Hard",
    "Expert",
    "Olympiad",
)

GRADES: tuple[str, ...] = ("8", "9", "10", "11", "12", "Competitive")

SUBJECTS: tuple[str, ...] = (
    "Mathematics",
    "Physics",
    "Chemistry",
    "Biology",
    "History & Civics",
    "Geography",
    "English Literature",
    "English Language",
    "Economics",
    "Computer Science",
)

FALLBACK_DIFFICULTY = "Medium"

# ---------------------------------------------------------------------------
# Difficulty rubrics: exactly five guideline points per tier.
# ---------------------------------------------------------------------------

DIFFICULTY_GUIDELINES: dict[str, str] = {
    "Beginner": (
        "1. Test recall of basic definitions, terms and facts only\n"
        "2. Use simple, direct language with no trick wording\n"
        "3. Each question should involve a single concept and a single step\n"
        "4. Provide familiar, everyday examples as context\n"
        "5. Numerical questions should use small whole numbers"
    ),
    "Foundation": (
        "1. Test understanding of core concepts, not just recall\n"
        "2. Allow at most two steps of reasoning per question\n"
        "3. Include straightforward applications of standard formulas\n"
        "4. Use textbook-style contexts the student has seen before\n"
        "5. Avoid combining topics from different chapters"
    ),
    "Easy": (
        "1. Focus on direct application of a single concept or formula\n"
        "2. Keep calculations short and free of unit conversions\n"
        "3. Phrase questions clearly with all required data given\n"
        "4. Include some questions that check common definitions\n"
        "5. Expected answers should be brief and unambiguous"
    ),
    "Medium": (
        "1. Combine two related concepts within a question where appropriate\n"
        "2. Require multi-step reasoning of two to three steps\n"
        "3. Include a mix of conceptual and numerical questions\n"
        "4. Use moderately unfamiliar contexts that still follow the syllabus\n"
        "5. Expect students to justify answers with short explanations"
    ),
    "Advanced": (
        "1. Require analysis and application across multiple concepts\n"
        "2. Include multi-step problems with intermediate results\n"
        "3. Introduce data interpretation from tables or graphs\n"
        "4. Expect derivations or proofs for selected questions\n"
        "5. Use contexts that require choosing the right method"
    ),
    "Hard": (
        "1. Integrate concepts from several chapters in one problem\n"
        "2. Require non-obvious insight or an unusual approach\n"
        "3. Include lengthy multi-step calculations with unit handling\n"
        "4. Use unfamiliar real-world scenarios that must be modelled\n"
        "5. Expect rigorous justification for every step"
    ),
    "Expert": (
        "1. Set problems at the level of competitive entrance examinations\n"
        "2. Demand deep conceptual understanding beyond the textbook\n"
        "3. Combine qualitative reasoning with quantitative analysis\n"
        "4. Include questions with subtle traps and edge cases\n"
        "5. Expect elegant, efficient solution methods"
    ),
    "Olympiad": (
        "1. Pose original problems in the style of national and international olympiads\n"
        "2. Require creative problem solving and proof-based reasoning\n"
        "3. Draw on advanced topics that extend beyond the curriculum\n"
        "4. Reward insight over routine computation\n"
        "5. Expect complete, rigorous and well-structured solutions"
    ),
}

# Only these tiers get explicit rewrite guidance when adjusting difficulty;
# every other tier is left to the model's default behaviour.
DIFFICULTY_ADJUSTMENT_GUIDANCE: dict[str, str] = {
    "Hard": (
        "To make the questions harder:\n"
        "- Increase the number of reasoning steps required\n"
        "- Combine multiple concepts within a single question\n"
        "- Replace routine contexts with unfamiliar, application-based scenarios\n"
        "- Require justification, derivation or analysis rather than recall\n"
        "- Make MCQ distractors closer to the correct answer"
    ),
    "Easy": (
        "To make the questions easier:\n"
        "- Reduce each question to a single concept and fewer steps\n"
        "- Use simpler language and familiar contexts\n"
        "- Provide all required data explicitly\n"
        "- Favour recall and direct application over analysis\n"
        "- Make MCQ distractors clearly distinguishable from the correct answer"
    ),
}


def guidelines_for(difficulty: str) -> str:
    """Return the rubric for *difficulty*, falling back to the Medium tier."""
    return DIFFICULTY_GUIDELINES.get(difficulty, DIFFICULTY_GUIDELINES[FALLBACK_DIFFICULTY])
