"""
Serialization Utilities

Converts between imported question JSON and QuestionNode trees.

**DESIGN NOTES:**

- `node_from_import()` is the construction boundary: loose import strings
  become enums here, ids are assigned, and structural problems raise
  `ValidationError`. Unknown enum strings are dropped and recorded in
  `QuestionNode.import_issues` instead of failing the import.
- `apply_annotations()` writes the four derived fields back onto a copy of
  the raw import document, leaving every other field untouched, so the
  output has the same shape as the input.
"""

from __future__ import annotations

import copy
import json
import logging
from collections import Counter
from pathlib import Path
from typing import Any, Optional, Tuple, Type

from ..models.answers import AnswerOption, CorrectAnswer
from ..models.enums import AnswerFormat, AnswerRequirement, NodeLevel, parse_enum
from ..models.nodes import QuestionNode
from ..schemas.validator import (
    ValidationError,
    iter_document_questions,
    validate_import_question,
)

logger = logging.getLogger(__name__)

# Import strings that mean "not set"
_ABSENT_VALUES = {"", "none", "null"}

# Legacy spellings seen in older import files
FORMAT_ALIASES = {
    "two_items_connected": AnswerFormat.TWO_ITEMS,
    "mcq": AnswerFormat.SELECTION,
    "multiple_choice": AnswerFormat.SELECTION,
}
REQUIREMENT_ALIASES = {
    "any_1_from": AnswerRequirement.ANY_ONE_FROM,
    "any_one": AnswerRequirement.ANY_ONE_FROM,
    "any_two_from": AnswerRequirement.ANY_2_FROM,
    "any_three_from": AnswerRequirement.ANY_3_FROM,
}

_ROMANS = ("i", "ii", "iii", "iv", "v", "vi", "vii", "viii", "ix", "x", "xi", "xii")


# ─────────────────────────────────────────────────────────────────────────────
# Import -> QuestionNode
# ─────────────────────────────────────────────────────────────────────────────

def node_from_import(data: dict[str, Any], *, validate: bool = True) -> QuestionNode:
    """
    Hydrate a QuestionNode tree from one imported question.

    Args:
        data: Imported question (question -> parts[] -> subparts[])
        validate: Whether to run basic validation first

    Returns:
        Question-level QuestionNode with Part/Subpart children

    Raises:
        ValidationError: If data is structurally invalid or ids collide
    """
    if validate:
        validate_import_question(data, strict=False)

    number = data.get("question_number", "")
    question_id = str(data.get("id") or f"Q{number}")
    root = _build_node(data, NodeLevel.QUESTION, question_id, str(number))

    duplicates = [i for i, n in Counter(n.id for n in root.iter_all()).items() if n > 1]
    if duplicates:
        raise ValidationError(
            f"Duplicate node ids in question {question_id}: {sorted(duplicates)}",
            path="",
            errors=[f"Duplicate id: {d}" for d in sorted(duplicates)],
        )
    return root


def _build_node(data: dict[str, Any], level: NodeLevel, node_id: str, label: str) -> QuestionNode:
    issues: list[str] = []

    if level is NodeLevel.QUESTION:
        raw_children, child_level = data.get("parts") or [], NodeLevel.PART
    elif level is NodeLevel.PART:
        raw_children, child_level = data.get("subparts") or [], NodeLevel.SUBPART
    else:
        raw_children, child_level = [], None

    children = []
    for index, child in enumerate(raw_children):
        child_label = _child_label(child, child_level, index)
        child_id = str(child.get("id") or f"{node_id}({child_label})")
        children.append(_build_node(child, child_level, child_id, f"{label}({child_label})"))

    text = data.get("question_text") or data.get("question_description") or ""
    marking_note = data.get("marking_note")
    if marking_note is None and isinstance(data.get("marking_criteria"), str):
        marking_note = data["marking_criteria"]

    marks = data.get("marks")
    if marks is None:
        marks = data.get("total_marks") or 0

    return QuestionNode(
        id=node_id,
        level=level,
        text=str(text),
        children=tuple(children),
        correct_answers=tuple(
            CorrectAnswer.from_import(a) for a in data.get("correct_answers") or []
        ),
        label=label,
        marks=marks,
        question_type=data.get("type"),
        options=tuple(AnswerOption.from_dict(o) for o in data.get("options") or []),
        marking_note=marking_note,
        total_alternatives=data.get("total_alternatives"),
        explicit_has_direct_answer=data.get("has_direct_answer"),
        explicit_is_contextual_only=data.get("is_contextual_only"),
        explicit_answer_format=_parse_explicit(
            AnswerFormat, FORMAT_ALIASES, data.get("answer_format"), "answer_format", issues
        ),
        explicit_answer_requirement=_parse_explicit(
            AnswerRequirement,
            REQUIREMENT_ALIASES,
            data.get("answer_requirement"),
            "answer_requirement",
            issues,
        ),
        import_issues=tuple(issues),
    )


def _child_label(child: dict[str, Any], level: NodeLevel, index: int) -> str:
    key = "part" if level is NodeLevel.PART else "subpart"
    raw = child.get(key)
    if raw is not None and str(raw).strip():
        return str(raw).strip().strip("()")
    if level is NodeLevel.PART:
        return chr(ord("a") + index) if index < 26 else str(index + 1)
    return _ROMANS[index] if index < len(_ROMANS) else str(index + 1)


def _parse_explicit(
    enum_cls: Type,
    aliases: dict,
    raw: Any,
    field_name: str,
    issues: list[str],
) -> Optional[Any]:
    """Parse an explicit enum value; unknown strings become an import issue."""
    if raw is None:
        return None
    key = str(raw).strip().lower().replace("-", "_").replace(" ", "_")
    if key in _ABSENT_VALUES:
        return None
    if key in aliases:
        return aliases[key]
    value = parse_enum(enum_cls, key)
    if value is None:
        issues.append(f"Unknown {field_name} {raw!r} ignored")
        logger.warning(f"Unknown {field_name} {raw!r} in import data; treating as absent")
    return value


# ─────────────────────────────────────────────────────────────────────────────
# Annotated tree -> import document
# ─────────────────────────────────────────────────────────────────────────────

def annotation_fields(node: QuestionNode) -> dict[str, Any]:
    """Return the four derived fields of an annotated node as plain values."""
    if not node.is_annotated:
        raise ValueError(f"Node {node.id} has not been annotated")
    return {
        "has_direct_answer": node.has_direct_answer,
        "is_contextual_only": node.is_contextual_only,
        "answer_format": str(node.answer_format),
        "answer_requirement": str(node.answer_requirement),
    }


def apply_annotations(data: dict[str, Any], node: QuestionNode) -> dict[str, Any]:
    """
    Write derived fields from an annotated tree onto a copy of the import data.

    The import data must be the same document `node` was hydrated from;
    children are matched by position.

    Args:
        data: Raw imported question
        node: Annotated QuestionNode tree built from `data`

    Returns:
        Deep copy of `data` with the derived fields set at every level
    """
    result = copy.deepcopy(data)
    _apply(result, node)
    return result


def _apply(data: dict[str, Any], node: QuestionNode) -> None:
    data.update(annotation_fields(node))
    if node.level is NodeLevel.QUESTION:
        raw_children = data.get("parts") or []
    elif node.level is NodeLevel.PART:
        raw_children = data.get("subparts") or []
    else:
        raw_children = []
    if len(raw_children) != len(node.children):
        raise ValueError(
            f"Import data for {node.id} has {len(raw_children)} children, "
            f"tree has {len(node.children)}"
        )
    for raw_child, child in zip(raw_children, node.children):
        _apply(raw_child, child)


# ─────────────────────────────────────────────────────────────────────────────
# File Utilities
# ─────────────────────────────────────────────────────────────────────────────

def load_import_document(path: Path) -> Tuple[Any, list[dict[str, Any]]]:
    """
    Load an import document from a JSON file.

    Args:
        path: Path to the JSON file

    Returns:
        (document, questions) where questions is the list of question
        objects inside the document

    Raises:
        FileNotFoundError: If file doesn't exist
        ValidationError: If the file is not valid JSON or has no question list
    """
    if not path.exists():
        raise FileNotFoundError(f"Import file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            document = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(
                f"Invalid JSON in {path.name}: {e}",
                path=str(path),
                errors=[str(e)],
            )

    return document, iter_document_questions(document)


def save_json(path: Path, data: Any) -> None:
    """Write data as pretty-printed UTF-8 JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write("\n")
