"""
Import Document Validation

Validates imported question JSON before it is hydrated into QuestionNode
trees.

**DESIGN NOTES:**

- Basic structural checks always run and fail fast with a path to the
  offending field (`parts[1].subparts[0].correct_answers`).
- `strict=True` additionally validates against
  `import_question.schema.json` with jsonschema.
- Only contract violations fail here (null answer lists, children under a
  subpart, wrong container types). Inconsistent *content* such as flags that
  contradict the answers is left for the engine to resolve.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema

# Schema version of the import document format
IMPORT_SCHEMA_VERSION = 1

_SCHEMAS: dict[str, dict] = {}

_FLAG_FIELDS = ("has_direct_answer", "is_contextual_only")
_ENUM_FIELDS = ("answer_format", "answer_requirement")
# Node fields the engine reads as text (null allowed)
_TEXT_FIELDS = ("type", "marking_note", "question_text", "question_description")
# Answer fields the engine reads as text (null allowed)
_ANSWER_TEXT_FIELDS = ("alternative_type", "context_type", "context_label")
_ANSWER_LIST_FIELDS = ("linked_alternatives", "acceptable_variations")


def _load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    if name not in _SCHEMAS:
        schema_path = Path(__file__).parent / f"{name}.schema.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")
        with open(schema_path, "r", encoding="utf-8") as f:
            _SCHEMAS[name] = json.load(f)
    return _SCHEMAS[name]


class ValidationError(Exception):
    """Raised when import data fails validation."""

    def __init__(self, message: str, path: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.path = path
        self.errors = errors or []


def validate_import_question(data: dict[str, Any], *, strict: bool = False) -> None:
    """
    Validate one imported question (question -> parts -> subparts).

    Args:
        data: Question dictionary from the import document
        strict: If True, also validate against the JSON schema

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError(
            f"Question must be an object, got {type(data).__name__}",
            path="",
        )

    if "question_number" not in data and "id" not in data:
        raise ValidationError(
            "Missing required fields: ['question_number']",
            path="",
            errors=["Missing field: question_number"],
        )

    _validate_node(data, path="", level="question")

    if strict:
        schema = _load_schema("import_question")
        try:
            jsonschema.validate(data, schema)
        except jsonschema.ValidationError as e:
            raise ValidationError(
                f"Schema validation failed: {e.message}",
                path=".".join(str(p) for p in e.absolute_path),
                errors=[e.message],
            )


def validate_import_document(data: Any, *, strict: bool = False) -> None:
    """
    Validate a whole import document.

    Accepts a single question object, a list of questions, or an object
    with a `questions` list.

    Raises:
        ValidationError: If any question is invalid (path is prefixed
            with `questions[i]`)
    """
    for index, question in enumerate(iter_document_questions(data)):
        try:
            validate_import_question(question, strict=strict)
        except ValidationError as e:
            prefix = f"questions[{index}]"
            path = f"{prefix}.{e.path}" if e.path else prefix
            raise ValidationError(f"{prefix}: {e}", path=path, errors=e.errors)


def iter_document_questions(data: Any) -> list[dict[str, Any]]:
    """Return the list of question objects in an import document."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        if "questions" in data:
            questions = data["questions"]
            if not isinstance(questions, list):
                raise ValidationError("questions must be a list", path="questions")
            return questions
        return [data]
    raise ValidationError(
        f"Import document must be an object or list, got {type(data).__name__}"
    )


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _validate_node(data: dict[str, Any], path: str, level: str) -> None:
    """Validate one node and recurse into its children."""
    if not isinstance(data, dict):
        raise ValidationError(f"{level} must be an object", path=path)

    # correct_answers: absent is fine, null is a contract violation
    if "correct_answers" in data:
        answers = data["correct_answers"]
        answers_path = _join(path, "correct_answers")
        if answers is None:
            raise ValidationError(
                "correct_answers must be a list (use [] for no answers), got null",
                path=answers_path,
            )
        if not isinstance(answers, list):
            raise ValidationError("correct_answers must be a list", path=answers_path)
        for i, answer in enumerate(answers):
            if not isinstance(answer, dict):
                raise ValidationError(
                    "correct_answers entries must be objects",
                    path=f"{answers_path}[{i}]",
                )
            marks = answer.get("marks")
            if marks is not None and (not isinstance(marks, (int, float)) or marks < 0):
                raise ValidationError(
                    f"Invalid marks: {marks!r} (must be non-negative number)",
                    path=f"{answers_path}[{i}].marks",
                )
            _validate_answer_fields(answer, f"{answers_path}[{i}]")

    for field_name in ("marks", "total_marks"):
        marks = data.get(field_name)
        if marks is not None and (
            isinstance(marks, bool) or not isinstance(marks, (int, float)) or marks < 0
        ):
            raise ValidationError(
                f"Invalid {field_name}: {marks!r} (must be non-negative number)",
                path=_join(path, field_name),
            )

    for field_name in _TEXT_FIELDS:
        _require_text(data, field_name, path)

    options = data.get("options")
    if options is not None:
        options_path = _join(path, "options")
        if not isinstance(options, list):
            raise ValidationError("options must be a list", path=options_path)
        for i, option in enumerate(options):
            if not isinstance(option, dict):
                raise ValidationError(
                    f"options entries must be objects, got {option!r}",
                    path=f"{options_path}[{i}]",
                )

    for flag in _FLAG_FIELDS:
        value = data.get(flag)
        if value is not None and not isinstance(value, bool):
            raise ValidationError(
                f"{flag} must be a boolean, got {value!r}",
                path=_join(path, flag),
            )

    for field_name in _ENUM_FIELDS:
        value = data.get(field_name)
        if value is not None and not isinstance(value, str):
            raise ValidationError(
                f"{field_name} must be a string, got {value!r}",
                path=_join(path, field_name),
            )

    # Children
    if level == "question":
        child_key, child_level = "parts", "part"
    elif level == "part":
        child_key, child_level = "subparts", "subpart"
    else:
        for key in ("parts", "subparts"):
            if data.get(key):
                raise ValidationError(
                    "Subparts cannot have children",
                    path=_join(path, key),
                )
        return

    children = data.get(child_key, [])
    if children is None:
        children = []
    if not isinstance(children, list):
        raise ValidationError(f"{child_key} must be a list", path=_join(path, child_key))
    for i, child in enumerate(children):
        _validate_node(child, f"{_join(path, child_key)}[{i}]", child_level)


def _require_text(data: dict[str, Any], field_name: str, path: str) -> None:
    value = data.get(field_name)
    if value is not None and not isinstance(value, str):
        raise ValidationError(
            f"{field_name} must be a string, got {value!r}",
            path=_join(path, field_name),
        )


def _validate_answer_fields(answer: dict[str, Any], path: str) -> None:
    """Type-check the answer fields the engine reads."""
    for field_name in _ANSWER_TEXT_FIELDS:
        _require_text(answer, field_name, path)
    for field_name in _ANSWER_LIST_FIELDS:
        value = answer.get(field_name)
        if value is not None and not isinstance(value, list):
            raise ValidationError(
                f"{field_name} must be a list, got {value!r}",
                path=_join(path, field_name),
            )

    context = answer.get("context")
    if isinstance(context, dict):
        for key in ("type", "label"):
            _require_text(context, key, _join(path, "context"))
