"""
Answer Engine Core Package

Shared data models, import-document validation and serialization used by
the classification engine.

**DESIGN NOTES:**

1. **Closed enums at the boundary**
   - Import data uses loose strings for formats and requirements
   - Past hydration, only `AnswerFormat` / `AnswerRequirement` members exist

2. **One validity rule**
   - `valid_answers()` is the only place answer validity is decided

3. **Immutable trees**
   - `QuestionNode` is frozen; annotation returns a new tree
"""

from .models import (
    AnswerFormat,
    AnswerRequirement,
    Confidence,
    CorrectAnswer,
    NodeLevel,
    QuestionNode,
    valid_answers,
)

__all__ = [
    "AnswerFormat",
    "AnswerRequirement",
    "Confidence",
    "CorrectAnswer",
    "NodeLevel",
    "QuestionNode",
    "valid_answers",
]
