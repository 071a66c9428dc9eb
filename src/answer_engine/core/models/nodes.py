"""
Module: nodes

Purpose:
    Provides the QuestionNode dataclass - an immutable tree node for one
    level of an imported exam question (question, part or subpart). Nodes
    carry the imported fields the engine reads and the four derived fields
    the engine writes.

Key Functions:
    - QuestionNode.iter_all(): Iterate over all nodes in tree (pre-order)
    - QuestionNode.find(node_id): Find a node by id
    - QuestionNode.valid_answers: Filtered correct answers
    - QuestionNode.with_annotation(): Copy with derived fields written
    - QuestionNode.to_dict() / QuestionNode.from_dict(): Serialization

Dependencies:
    - dataclasses (std)
    - typing (std)
    - .answers.CorrectAnswer, .answers.AnswerOption
    - .enums

Used By:
    - core.utils.serialization
    - engine.walker and every derivation stage

Invariants enforced on construction:
    - Subparts never have children
    - Children are strictly deeper than their parent
    - correct_answers is a tuple, never None
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterator, Optional, Tuple

from .answers import AnswerOption, CorrectAnswer, valid_answers
from .enums import AnswerFormat, AnswerRequirement, NodeLevel


@dataclass(frozen=True, slots=True)
class QuestionNode:
    """
    Question hierarchy node (immutable tree structure).

    The tree structure is:
        Question ("1")
        ├── Part ("1(a)")
        │   ├── Subpart ("1(a)(i)") [leaf]
        │   └── Subpart ("1(a)(ii)") [leaf]
        └── Part ("1(b)") [leaf if no subparts]

    Attributes:
        id: Identifier, unique within the tree
        level: QUESTION, PART or SUBPART (fixed at creation)
        text: Stem/prompt text (may be empty for pure containers)
        children: Child nodes in order
        correct_answers: Imported answers (possibly empty, possibly invalid)
        label: Display label like "1(a)"
        marks: Marks shown for this node
        question_type: Imported type ("mcq", "tf", "descriptive", ...)
        options: MCQ options
        marking_note: Free-text marking guidance ("any 3 from ...")
        total_alternatives: Imported alternative count
        explicit_*: Flags/enums from the import source (may be wrong)
        import_issues: Non-fatal hydration problems (unknown enum strings)
        has_direct_answer, is_contextual_only, answer_format,
        answer_requirement: Derived fields, None until annotated

    Example:
        >>> leaf = QuestionNode("1(a)(i)", NodeLevel.SUBPART, "Name the organism.",
        ...                     correct_answers=(CorrectAnswer("amoeba"),))
        >>> part = QuestionNode("1(a)", NodeLevel.PART, "", children=(leaf,))
        >>> part.is_leaf
        False
        >>> len(leaf.valid_answers)
        1
    """

    id: str
    level: NodeLevel
    text: str = ""
    children: Tuple[QuestionNode, ...] = ()
    correct_answers: Tuple[CorrectAnswer, ...] = ()
    label: str = ""
    marks: float = 0
    question_type: Optional[str] = None
    options: Tuple[AnswerOption, ...] = ()
    marking_note: Optional[str] = None
    total_alternatives: Optional[int] = None
    explicit_has_direct_answer: Optional[bool] = None
    explicit_is_contextual_only: Optional[bool] = None
    explicit_answer_format: Optional[AnswerFormat] = None
    explicit_answer_requirement: Optional[AnswerRequirement] = None
    import_issues: Tuple[str, ...] = ()  # Non-fatal problems found during hydration
    # Derived fields (written by engine.walker)
    has_direct_answer: Optional[bool] = None
    is_contextual_only: Optional[bool] = None
    answer_format: Optional[AnswerFormat] = None
    answer_requirement: Optional[AnswerRequirement] = None

    def __post_init__(self) -> None:
        """Validate node on construction."""
        if not self.id:
            raise ValueError("QuestionNode id must be non-empty")
        if not isinstance(self.level, NodeLevel):
            raise ValueError(f"Invalid node level: {self.level!r}")
        if self.correct_answers is None or not isinstance(self.correct_answers, tuple):
            raise ValueError(
                f"correct_answers of {self.id} must be a tuple (use () for no answers)"
            )
        if self.marks < 0:
            raise ValueError(f"Marks cannot be negative: {self.marks}")
        if self.level is NodeLevel.SUBPART and self.children:
            raise ValueError(f"Subpart {self.id} cannot have children")
        for child in self.children:
            if child.level.depth <= self.level.depth:
                raise ValueError(
                    f"Child {child.id} ({child.level}) must be deeper than "
                    f"parent {self.id} ({self.level})"
                )

    # ─────────────────────────────────────────────────────────────────────────
    # Properties
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def is_leaf(self) -> bool:
        """Check if this node has no children."""
        return len(self.children) == 0

    @property
    def has_children(self) -> bool:
        return not self.is_leaf

    @property
    def valid_answers(self) -> Tuple[CorrectAnswer, ...]:
        """Correct answers with non-empty text."""
        return valid_answers(self.correct_answers)

    @property
    def is_annotated(self) -> bool:
        """Check if all four derived fields are populated."""
        return None not in (
            self.has_direct_answer,
            self.is_contextual_only,
            self.answer_format,
            self.answer_requirement,
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Iteration & Query
    # ─────────────────────────────────────────────────────────────────────────

    def iter_all(self) -> Iterator[QuestionNode]:
        """
        Iterate over this node and all descendants (pre-order).

        Yields:
            This node, then all descendants in tree order
        """
        yield self
        for child in self.children:
            yield from child.iter_all()

    def find(self, node_id: str) -> Optional[QuestionNode]:
        """
        Find a node by id in this subtree.

        Returns:
            Matching node or None if not found
        """
        if self.id == node_id:
            return self
        for child in self.children:
            found = child.find(node_id)
            if found is not None:
                return found
        return None

    # ─────────────────────────────────────────────────────────────────────────
    # Annotation
    # ─────────────────────────────────────────────────────────────────────────

    def with_annotation(
        self,
        *,
        has_direct_answer: bool,
        is_contextual_only: bool,
        answer_format: AnswerFormat,
        answer_requirement: AnswerRequirement,
        children: Optional[Tuple[QuestionNode, ...]] = None,
    ) -> QuestionNode:
        """Return a copy with the derived fields (and optionally children) replaced."""
        return replace(
            self,
            has_direct_answer=has_direct_answer,
            is_contextual_only=is_contextual_only,
            answer_format=answer_format,
            answer_requirement=answer_requirement,
            children=self.children if children is None else children,
        )

    def clear_annotation(self) -> QuestionNode:
        """Return a copy of the tree with all derived fields reset to None."""
        return replace(
            self,
            has_direct_answer=None,
            is_contextual_only=None,
            answer_format=None,
            answer_requirement=None,
            children=tuple(child.clear_annotation() for child in self.children),
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        """
        Serialize to dictionary for JSON storage.

        Returns:
            Dict representation of this node and children
        """
        d: dict = {
            "id": self.id,
            "level": str(self.level),
            "text": self.text,
            "correct_answers": [a.to_dict() for a in self.correct_answers],
        }
        if self.label:
            d["label"] = self.label
        if self.marks:
            d["marks"] = self.marks
        if self.question_type:
            d["question_type"] = self.question_type
        if self.options:
            d["options"] = [o.to_dict() for o in self.options]
        if self.marking_note:
            d["marking_note"] = self.marking_note
        if self.total_alternatives is not None:
            d["total_alternatives"] = self.total_alternatives
        if self.explicit_has_direct_answer is not None:
            d["explicit_has_direct_answer"] = self.explicit_has_direct_answer
        if self.explicit_is_contextual_only is not None:
            d["explicit_is_contextual_only"] = self.explicit_is_contextual_only
        if self.explicit_answer_format is not None:
            d["explicit_answer_format"] = str(self.explicit_answer_format)
        if self.explicit_answer_requirement is not None:
            d["explicit_answer_requirement"] = str(self.explicit_answer_requirement)
        if self.import_issues:
            d["import_issues"] = list(self.import_issues)
        if self.is_annotated:
            d["has_direct_answer"] = self.has_direct_answer
            d["is_contextual_only"] = self.is_contextual_only
            d["answer_format"] = str(self.answer_format)
            d["answer_requirement"] = str(self.answer_requirement)
        if self.children:
            d["children"] = [child.to_dict() for child in self.children]
        return d

    @classmethod
    def from_dict(cls, data: dict) -> QuestionNode:
        """
        Deserialize from dictionary produced by to_dict().

        Args:
            data: Dict representation

        Returns:
            QuestionNode instance
        """
        children = tuple(cls.from_dict(child) for child in data.get("children", []))

        def _opt_enum(enum_cls, key):
            value = data.get(key)
            return enum_cls(value) if value is not None else None

        return cls(
            id=data["id"],
            level=NodeLevel(data["level"]),
            text=data.get("text", ""),
            children=children,
            correct_answers=tuple(
                CorrectAnswer.from_dict(a) for a in data.get("correct_answers", [])
            ),
            label=data.get("label", ""),
            marks=data.get("marks", 0),
            question_type=data.get("question_type"),
            options=tuple(AnswerOption.from_dict(o) for o in data.get("options", [])),
            marking_note=data.get("marking_note"),
            total_alternatives=data.get("total_alternatives"),
            explicit_has_direct_answer=data.get("explicit_has_direct_answer"),
            explicit_is_contextual_only=data.get("explicit_is_contextual_only"),
            explicit_answer_format=_opt_enum(AnswerFormat, "explicit_answer_format"),
            explicit_answer_requirement=_opt_enum(
                AnswerRequirement, "explicit_answer_requirement"
            ),
            import_issues=tuple(data.get("import_issues", [])),
            has_direct_answer=data.get("has_direct_answer"),
            is_contextual_only=data.get("is_contextual_only"),
            answer_format=_opt_enum(AnswerFormat, "answer_format"),
            answer_requirement=_opt_enum(AnswerRequirement, "answer_requirement"),
        )

    def __repr__(self) -> str:
        """Concise representation for debugging."""
        child_str = f", children={len(self.children)}" if self.children else ""
        return f"QuestionNode({self.id!r}, {self.level.value}{child_str})"
