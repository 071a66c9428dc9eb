"""
Module: enums

Purpose:
    Closed vocabularies for the answer expectation engine. Import data
    arrives as loose strings; everything past the construction boundary
    uses these enums instead.

Key Types:
    - NodeLevel: question / part / subpart
    - AnswerFormat: structural shape of a student's response
    - AnswerRequirement: how many alternatives count as correct
    - Confidence: strength of an expectation decision

Dependencies:
    - enum (std)

Used By:
    - core.models.nodes.QuestionNode
    - engine.* (all derivation stages)
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Type, TypeVar

E = TypeVar("E", bound=Enum)


class NodeLevel(str, Enum):
    """Level of a node in the question hierarchy."""
    QUESTION = "question"  # Top-level question (e.g., "1")
    PART = "part"          # Part (e.g., "(a)")
    SUBPART = "subpart"    # Subpart (e.g., "(ii)"), always a leaf

    def __str__(self) -> str:
        return self.value

    @property
    def depth(self) -> int:
        """Depth in the tree (question=0, part=1, subpart=2)."""
        if self is NodeLevel.QUESTION:
            return 0
        elif self is NodeLevel.PART:
            return 1
        else:
            return 2


class AnswerFormat(str, Enum):
    """How a student's answer is structured and rendered."""
    SINGLE_WORD = "single_word"
    SINGLE_LINE = "single_line"
    TWO_ITEMS = "two_items"
    MULTI_LINE = "multi_line"
    MULTI_LINE_LABELED = "multi_line_labeled"
    CALCULATION = "calculation"
    EQUATION = "equation"
    CHEMICAL_STRUCTURE = "chemical_structure"
    STRUCTURAL_DIAGRAM = "structural_diagram"
    DIAGRAM = "diagram"
    TABLE = "table"
    TABLE_COMPLETION = "table_completion"
    GRAPH = "graph"
    CODE = "code"
    AUDIO = "audio"
    FILE_UPLOAD = "file_upload"
    SELECTION = "selection"
    NOT_APPLICABLE = "not_applicable"

    def __str__(self) -> str:
        return self.value


class AnswerRequirement(str, Enum):
    """How many / which of the acceptable alternatives must be given."""
    SINGLE_CHOICE = "single_choice"
    BOTH_REQUIRED = "both_required"
    ANY_ONE_FROM = "any_one_from"
    ANY_2_FROM = "any_2_from"
    ANY_3_FROM = "any_3_from"
    ALL_REQUIRED = "all_required"
    ALTERNATIVE_METHODS = "alternative_methods"
    ACCEPTABLE_VARIATIONS = "acceptable_variations"
    NOT_APPLICABLE = "not_applicable"

    def __str__(self) -> str:
        return self.value


class Confidence(str, Enum):
    """Confidence attached to an expectation decision."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    def __str__(self) -> str:
        return self.value


def parse_enum(enum_cls: Type[E], value: object) -> Optional[E]:
    """
    Parse a loose import string into an enum member.

    Matching is case-insensitive and tolerates surrounding whitespace.
    Hyphens and spaces are treated as underscores ("multi-line" ->
    "multi_line").

    Args:
        enum_cls: Target enum class
        value: Raw value from import data

    Returns:
        Enum member, or None if value is empty or not a known member

    Example:
        >>> parse_enum(AnswerFormat, "Multi-Line")
        <AnswerFormat.MULTI_LINE: 'multi_line'>
        >>> parse_enum(AnswerFormat, "none") is None
        True
    """
    if value is None:
        return None
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return None
    key = value.strip().lower().replace("-", "_").replace(" ", "_")
    if not key:
        return None
    try:
        return enum_cls(key)
    except ValueError:
        return None
