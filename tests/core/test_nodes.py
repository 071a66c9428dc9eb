"""
Unit Tests for QuestionNode Model

Tests for the QuestionNode dataclass.
"""

import pytest

from answer_engine.core.models.answers import CorrectAnswer
from answer_engine.core.models.enums import AnswerFormat, AnswerRequirement, NodeLevel
from answer_engine.core.models.nodes import QuestionNode


def _leaf(node_id="1(a)(i)", text="Name the organism.", answers=("amoeba",)) -> QuestionNode:
    return QuestionNode(
        node_id,
        NodeLevel.SUBPART,
        text,
        correct_answers=tuple(CorrectAnswer(a) for a in answers),
    )


class TestQuestionNodeCreation:
    """Tests for QuestionNode creation and validation."""

    def test_create_when_valid_then_succeeds(self):
        """Valid node should create successfully."""
        node = _leaf()

        assert node.id == "1(a)(i)"
        assert node.is_leaf
        assert not node.is_annotated

    def test_create_when_empty_id_then_raises_error(self):
        with pytest.raises(ValueError, match="id must be non-empty"):
            QuestionNode("", NodeLevel.PART)

    def test_create_when_level_is_string_then_raises_error(self):
        """Levels must be NodeLevel members, not loose strings."""
        with pytest.raises(ValueError, match="Invalid node level"):
            QuestionNode("1", "question")

    def test_create_when_answers_none_then_raises_error(self):
        """None is not an empty answer list."""
        with pytest.raises(ValueError, match="must be a tuple"):
            QuestionNode("1", NodeLevel.PART, correct_answers=None)

    def test_create_when_answers_list_then_raises_error(self):
        with pytest.raises(ValueError, match="must be a tuple"):
            QuestionNode("1", NodeLevel.PART, correct_answers=[CorrectAnswer("x")])

    def test_create_when_negative_marks_then_raises_error(self):
        with pytest.raises(ValueError, match="Marks cannot be negative"):
            QuestionNode("1", NodeLevel.PART, marks=-1)

    def test_create_when_subpart_has_children_then_raises_error(self):
        """Subparts are always leaves."""
        with pytest.raises(ValueError, match="cannot have children"):
            QuestionNode("1(a)(i)", NodeLevel.SUBPART, children=(_leaf("x"),))

    def test_create_when_child_not_deeper_then_raises_error(self):
        """A part cannot contain another part."""
        inner = QuestionNode("1(b)", NodeLevel.PART)
        with pytest.raises(ValueError, match="must be deeper"):
            QuestionNode("1(a)", NodeLevel.PART, children=(inner,))

    def test_create_when_question_contains_subpart_then_succeeds(self):
        """Skipping a level is allowed as long as depth increases."""
        node = QuestionNode("1", NodeLevel.QUESTION, children=(_leaf(),))

        assert node.has_children

    def test_node_when_frozen_then_cannot_assign(self):
        node = _leaf()
        with pytest.raises(AttributeError):
            node.text = "changed"


class TestQuestionNodeQueries:
    """Tests for traversal and filtered answers."""

    @pytest.fixture
    def tree(self) -> QuestionNode:
        i = _leaf("1(a)(i)")
        ii = _leaf("1(a)(ii)", answers=("  ", ""))
        part_a = QuestionNode("1(a)", NodeLevel.PART, children=(i, ii))
        part_b = QuestionNode("1(b)", NodeLevel.PART, "State one use.")
        return QuestionNode("1", NodeLevel.QUESTION, "Stem.", children=(part_a, part_b))

    def test_iter_all_when_tree_then_pre_order(self, tree):
        assert [n.id for n in tree.iter_all()] == ["1", "1(a)", "1(a)(i)", "1(a)(ii)", "1(b)"]

    def test_find_when_present_then_returns_node(self, tree):
        assert tree.find("1(a)(ii)").level is NodeLevel.SUBPART

    def test_find_when_absent_then_returns_none(self, tree):
        assert tree.find("9") is None

    def test_valid_answers_when_blank_entries_then_filtered(self, tree):
        """Whitespace-only answers are not valid."""
        assert tree.find("1(a)(ii)").valid_answers == ()
        assert len(tree.find("1(a)(ii)").correct_answers) == 2


class TestQuestionNodeAnnotation:
    """Tests for with_annotation / clear_annotation."""

    def test_with_annotation_when_called_then_original_unchanged(self):
        node = _leaf()

        annotated = node.with_annotation(
            has_direct_answer=True,
            is_contextual_only=False,
            answer_format=AnswerFormat.SINGLE_WORD,
            answer_requirement=AnswerRequirement.ALL_REQUIRED,
        )

        assert annotated.is_annotated
        assert not node.is_annotated
        assert annotated.correct_answers == node.correct_answers

    def test_clear_annotation_when_tree_then_clears_every_level(self):
        leaf = _leaf().with_annotation(
            has_direct_answer=True,
            is_contextual_only=False,
            answer_format=AnswerFormat.SINGLE_WORD,
            answer_requirement=AnswerRequirement.ALL_REQUIRED,
        )
        part = QuestionNode("1(a)", NodeLevel.PART, children=(leaf,)).with_annotation(
            has_direct_answer=True,
            is_contextual_only=False,
            answer_format=AnswerFormat.MULTI_LINE,
            answer_requirement=AnswerRequirement.ALL_REQUIRED,
        )

        cleared = part.clear_annotation()

        assert not cleared.is_annotated
        assert not cleared.children[0].is_annotated


class TestQuestionNodeSerialization:
    """Tests for to_dict / from_dict."""

    def test_round_trip_when_annotated_tree_then_equal(self):
        leaf = _leaf().with_annotation(
            has_direct_answer=True,
            is_contextual_only=False,
            answer_format=AnswerFormat.SINGLE_WORD,
            answer_requirement=AnswerRequirement.ALL_REQUIRED,
        )
        part = QuestionNode(
            "1(a)",
            NodeLevel.PART,
            "Stem.",
            children=(leaf,),
            marking_note="any 2 from",
            explicit_answer_format=AnswerFormat.MULTI_LINE,
            import_issues=("Unknown answer_requirement 'x' ignored",),
        )

        restored = QuestionNode.from_dict(part.to_dict())

        assert restored == part

    def test_to_dict_when_not_annotated_then_no_derived_fields(self):
        d = _leaf().to_dict()

        assert "answer_format" not in d
        assert d["level"] == "subpart"
