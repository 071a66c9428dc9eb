"""
Unit tests for the expectation classifier.

Each rule is tested on its own, then against the rules it outranks.
"""

import pytest

from answer_engine.core.models.answers import CorrectAnswer
from answer_engine.core.models.enums import Confidence, NodeLevel
from answer_engine.core.models.nodes import QuestionNode
from answer_engine.engine.config import ContextualThresholds, EngineConfig
from answer_engine.engine.diagnostics import DiagnosticsCollector, IssueType, Severity
from answer_engine.engine.expectation import (
    ExpectationRule,
    classify_expectation,
    explain_expectation,
)

CONTEXT_STEM = "Penicillin is an antibiotic."
DESCRIBE_STEM = "Describe the variation in body length shown."


def _children(parent_id="1"):
    return (
        QuestionNode(f"{parent_id}(a)", NodeLevel.PART, "Name one.", correct_answers=(CorrectAnswer("x"),)),
        QuestionNode(f"{parent_id}(b)", NodeLevel.PART, "Name two.", correct_answers=(CorrectAnswer("y"),)),
    )


def _answers(*texts):
    return tuple(CorrectAnswer(t) for t in texts)


@pytest.fixture
def collector() -> DiagnosticsCollector:
    return DiagnosticsCollector()


class TestDataRule:
    """Rule 1: valid answers override everything."""

    def test_classify_when_valid_answers_then_direct_high(self, collector):
        node = QuestionNode("1(a)", NodeLevel.PART, "State one use.", correct_answers=_answers("fuel"))

        result = classify_expectation(node, collector=collector)

        assert result.has_direct_answer is True
        assert result.is_contextual_only is False
        assert result.confidence is Confidence.HIGH
        assert result.rule is ExpectationRule.DATA
        assert result.data_conflict is False
        assert collector.issue_count == 0

    def test_classify_when_answers_contradict_flags_then_data_wins_with_diagnostic(self, collector):
        """Import flags saying "contextual" are overridden and reported."""
        node = QuestionNode(
            "1(a)",
            NodeLevel.PART,
            DESCRIBE_STEM,
            correct_answers=_answers(*[f"p{i}" for i in range(9)]),
            explicit_is_contextual_only=True,
            explicit_has_direct_answer=False,
        )

        result = classify_expectation(node, collector=collector)

        assert result.has_direct_answer is True
        assert result.data_conflict is True
        issues = collector.issues
        assert [d.issue_type for d in issues] == [IssueType.CONFLICTING_FLAGS]
        assert issues[0].node_id == "1(a)"
        assert issues[0].severity is Severity.WARNING

    def test_classify_when_answers_and_contextual_text_with_children_then_direct(self):
        """Data outranks strong contextual text."""
        node = QuestionNode(
            "1", NodeLevel.QUESTION, CONTEXT_STEM, children=_children(), correct_answers=_answers("x")
        )

        assert classify_expectation(node).rule is ExpectationRule.DATA

    def test_classify_when_only_blank_answers_then_not_data_rule(self):
        """Blank entries are filtered before any decision."""
        node = QuestionNode(
            "1", NodeLevel.QUESTION, CONTEXT_STEM, children=_children(), correct_answers=_answers(" ", "")
        )

        result = classify_expectation(node)

        assert result.rule is ExpectationRule.CONTEXTUAL_TEXT


class TestLeafOverride:
    """Rule 2: subparts always expect an answer."""

    def test_classify_when_subpart_without_answers_then_direct(self, collector):
        node = QuestionNode("1(a)(i)", NodeLevel.SUBPART, CONTEXT_STEM)

        result = classify_expectation(node, collector=collector)

        assert result.has_direct_answer is True
        assert result.is_contextual_only is False
        assert result.rule is ExpectationRule.LEAF_OVERRIDE
        assert collector.issue_count == 0

    def test_classify_when_subpart_flagged_contextual_then_override_reported(self, collector):
        node = QuestionNode("1(a)(i)", NodeLevel.SUBPART, "", explicit_is_contextual_only=True)

        result = classify_expectation(node, collector=collector)

        assert result.is_contextual_only is False
        assert [d.issue_type for d in collector.issues] == [IssueType.LEAF_OVERRIDE]


class TestNoChildrenRule:
    """Rule 3: childless nodes without answers default to direct."""

    def test_classify_when_no_children_no_answers_then_direct_low(self, collector):
        node = QuestionNode("1(b)", NodeLevel.PART, "")

        result = classify_expectation(node, collector=collector)

        assert result.has_direct_answer is True
        assert result.confidence is Confidence.LOW
        assert result.rule is ExpectationRule.NO_CHILDREN
        issues = collector.issues
        assert [d.issue_type for d in issues] == [IssueType.UNDERSPECIFIED_NODE]
        assert issues[0].severity is Severity.INFO

    def test_classify_when_contextual_text_but_no_children_then_still_direct(self):
        """A leaf-only node can never be contextual."""
        node = QuestionNode("1", NodeLevel.QUESTION, CONTEXT_STEM)

        result = classify_expectation(node)

        assert result.is_contextual_only is False
        assert result.rule is ExpectationRule.NO_CHILDREN

    def test_classify_when_review_flag_disabled_then_no_diagnostic(self, collector):
        config = EngineConfig(flag_underspecified_nodes=False)
        node = QuestionNode("1(b)", NodeLevel.PART, "")

        classify_expectation(node, config=config, collector=collector)

        assert collector.issue_count == 0

    def test_classify_when_childless_node_flagged_contextual_then_disagreement(self, collector):
        node = QuestionNode("1(b)", NodeLevel.PART, "", explicit_is_contextual_only=True)

        classify_expectation(node, collector=collector)

        types = [d.issue_type for d in collector.issues]
        assert IssueType.FLAG_DISAGREEMENT in types


class TestContextualTextRule:
    """Rule 4: strong contextual text on a parent without answers."""

    def test_classify_when_strong_contextual_stem_then_contextual_high(self):
        node = QuestionNode("1", NodeLevel.QUESTION, CONTEXT_STEM, children=_children())

        result = classify_expectation(node)

        assert result.is_contextual_only is True
        assert result.has_direct_answer is False
        assert result.confidence is Confidence.HIGH
        assert result.rule is ExpectationRule.CONTEXTUAL_TEXT
        assert result.score.as_tuple() == (0, 4)

    def test_classify_when_floor_raised_then_falls_back(self):
        """Thresholds are configurable."""
        config = EngineConfig(thresholds=ContextualThresholds(ratio=1.5, floor=5))
        node = QuestionNode("1", NodeLevel.QUESTION, CONTEXT_STEM, children=_children())

        result = classify_expectation(node, config=config)

        assert result.rule is ExpectationRule.FALLBACK

    def test_classify_when_has_children_argument_given_then_used(self):
        node = QuestionNode("1", NodeLevel.QUESTION, CONTEXT_STEM)

        assert classify_expectation(node, has_children=True).is_contextual_only is True
        assert classify_expectation(node, has_children=False).is_contextual_only is False

    def test_classify_when_contextual_but_flagged_direct_then_info_disagreement(self, collector):
        node = QuestionNode(
            "1", NodeLevel.QUESTION, CONTEXT_STEM, children=_children(), explicit_has_direct_answer=True
        )

        result = classify_expectation(node, collector=collector)

        assert result.is_contextual_only is True
        issues = collector.issues
        assert [d.issue_type for d in issues] == [IssueType.FLAG_DISAGREEMENT]
        assert issues[0].severity is Severity.INFO


class TestFallbackRule:
    """Rule 5: anything ambiguous is a direct answer."""

    def test_classify_when_describe_stem_with_children_then_direct_medium(self):
        """A command stem that mentions shown data is not contextual."""
        node = QuestionNode("1(a)", NodeLevel.PART, DESCRIBE_STEM, children=(
            QuestionNode("1(a)(i)", NodeLevel.SUBPART, "Name it.", correct_answers=_answers("x")),
        ))

        result = classify_expectation(node)

        assert result.has_direct_answer is True
        assert result.confidence is Confidence.MEDIUM
        assert result.rule is ExpectationRule.FALLBACK

    def test_classify_when_empty_stem_with_children_then_direct(self):
        node = QuestionNode("1", NodeLevel.QUESTION, "", children=_children())

        assert classify_expectation(node).rule is ExpectationRule.FALLBACK

    def test_classify_when_question_text_flagged_contextual_then_disagreement(self, collector):
        node = QuestionNode(
            "1",
            NodeLevel.QUESTION,
            "What is an enzyme?",
            children=_children(),
            explicit_is_contextual_only=True,
        )

        result = classify_expectation(node, collector=collector)

        assert result.is_contextual_only is False
        assert [d.issue_type for d in collector.issues] == [IssueType.FLAG_DISAGREEMENT]

    def test_classify_when_repeated_then_identical(self):
        node = QuestionNode("1", NodeLevel.QUESTION, DESCRIBE_STEM, children=_children())

        assert classify_expectation(node) == classify_expectation(node)


class TestExplainExpectation:
    def test_explain_when_data_conflict_then_mentions_override(self):
        node = QuestionNode(
            "1(a)", NodeLevel.PART, "", correct_answers=_answers("x"), explicit_is_contextual_only=True
        )

        text = explain_expectation(classify_expectation(node))

        assert text.startswith("direct answer [high, rule=data")
        assert "overrode import flags" in text

    def test_explain_when_contextual_then_says_so(self):
        node = QuestionNode("1", NodeLevel.QUESTION, CONTEXT_STEM, children=_children())

        assert explain_expectation(classify_expectation(node)).startswith("contextual only")
