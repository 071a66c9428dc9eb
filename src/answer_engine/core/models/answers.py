"""
Module: answers

Purpose:
    Provides the CorrectAnswer and AnswerOption dataclasses and the single
    valid_answers() filter. Every derivation stage works from the filtered
    list; nothing downstream re-implements the validity rule.

Key Functions:
    - CorrectAnswer.is_valid: Non-empty text after trimming
    - valid_answers(answers): Filter to valid entries, order preserved
    - CorrectAnswer.from_import() / to_dict()

Dependencies:
    - dataclasses (std)
    - typing (std)

Used By:
    - core.models.nodes.QuestionNode
    - engine.expectation, engine.formats, engine.requirements
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple


@dataclass(frozen=True, slots=True)
class CorrectAnswer:
    """
    One acceptable answer entry from the mark scheme.

    Attributes:
        text: Answer text as imported
        marks: Marks awarded for this answer point
        alternative_id: Alternative group this answer belongs to
        alternative_type: How alternatives combine ("standalone",
            "one_required", "any_from", "all_required",
            "structure_function_pair")
        linked_alternatives: Alternative ids that must be given together
        acceptable_variations: Alternative phrasings accepted for this answer
        context_type: Structural context ("mark_point", "table_cell", ...)
        context_label: Label for the context (e.g. a table column or line)

    Example:
        >>> CorrectAnswer("  ").is_valid
        False
        >>> CorrectAnswer("mitochondria", marks=1).is_valid
        True
    """

    text: str
    marks: float = 1
    alternative_id: Optional[int] = None
    alternative_type: Optional[str] = None
    linked_alternatives: Tuple[int, ...] = ()
    acceptable_variations: Tuple[str, ...] = ()
    context_type: Optional[str] = None
    context_label: Optional[str] = None

    def __post_init__(self) -> None:
        if self.marks < 0:
            raise ValueError(f"Answer marks cannot be negative: {self.marks}")

    @property
    def is_valid(self) -> bool:
        """Check if the answer text is non-empty after trimming."""
        return bool(self.text and self.text.strip())

    @classmethod
    def from_import(cls, data: dict) -> CorrectAnswer:
        """
        Build from an imported `correct_answers[]` entry.

        Reads the answer body from `answer`, falling back to `text` when
        `answer` is missing or blank. Accepts either
        a nested `context: {type, label}` object or flat `context_type` /
        `context_label` keys.
        """
        raw = data.get("answer")
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            raw = data.get("text", raw)
        context = data.get("context") or {}
        if not isinstance(context, dict):
            context = {}
        marks = data.get("marks")
        return cls(
            text="" if raw is None else str(raw),
            marks=1 if marks is None else marks,
            alternative_id=data.get("alternative_id"),
            alternative_type=data.get("alternative_type"),
            linked_alternatives=tuple(data.get("linked_alternatives") or ()),
            acceptable_variations=tuple(data.get("acceptable_variations") or ()),
            context_type=data.get("context_type") or context.get("type"),
            context_label=data.get("context_label") or context.get("label"),
        )

    def to_dict(self) -> dict:
        d: dict[str, Any] = {"answer": self.text, "marks": self.marks}
        if self.alternative_id is not None:
            d["alternative_id"] = self.alternative_id
        if self.alternative_type:
            d["alternative_type"] = self.alternative_type
        if self.linked_alternatives:
            d["linked_alternatives"] = list(self.linked_alternatives)
        if self.acceptable_variations:
            d["acceptable_variations"] = list(self.acceptable_variations)
        if self.context_type:
            d["context_type"] = self.context_type
        if self.context_label:
            d["context_label"] = self.context_label
        return d

    @classmethod
    def from_dict(cls, data: dict) -> CorrectAnswer:
        return cls.from_import(data)


@dataclass(frozen=True, slots=True)
class AnswerOption:
    """A multiple-choice option."""

    label: str
    text: str = ""
    is_correct: bool = False

    def to_dict(self) -> dict:
        return {"label": self.label, "text": self.text, "is_correct": self.is_correct}

    @classmethod
    def from_dict(cls, data: dict) -> AnswerOption:
        return cls(
            label=str(data.get("label", "")),
            text=str(data.get("text") or ""),
            is_correct=bool(data.get("is_correct", False)),
        )


def valid_answers(answers: Iterable[CorrectAnswer]) -> Tuple[CorrectAnswer, ...]:
    """
    Filter answers to those with non-empty trimmed text.

    This is the only definition of answer validity in the engine.
    The classifier, both derivers and the safeguard all consume its output.

    Args:
        answers: Answers in import order

    Returns:
        Valid answers, order preserved
    """
    return tuple(a for a in answers if a.is_valid)
