"""ExamGuru: LLM-backed exam generation, grading and tutoring."""

__version__ = "0.1.0"
