"""
Core Models Package

Immutable, validated data models that serve as the single source of truth
for imported question trees.

All models in this package are frozen dataclasses. This ensures:
1. No accidental mutation while a tree is being annotated
2. Safe to pass between worker threads
3. Re-running the engine on the same input gives the same output
"""

from .answers import AnswerOption, CorrectAnswer, valid_answers
from .enums import AnswerFormat, AnswerRequirement, Confidence, NodeLevel, parse_enum
from .nodes import QuestionNode

__all__ = [
    "AnswerFormat",
    "AnswerOption",
    "AnswerRequirement",
    "Confidence",
    "CorrectAnswer",
    "NodeLevel",
    "QuestionNode",
    "parse_enum",
    "valid_answers",
]
