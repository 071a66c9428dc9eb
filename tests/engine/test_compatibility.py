"""
Unit tests for the format/requirement compatibility matrix.
"""

import pytest

from answer_engine.core.models.answers import CorrectAnswer
from answer_engine.core.models.enums import AnswerFormat, AnswerRequirement, NodeLevel
from answer_engine.core.models.nodes import QuestionNode
from answer_engine.engine.compatibility import (
    COMPATIBILITY_MATRIX,
    Compatibility,
    check_compatibility,
    compatible_requirements,
    record_compatibility,
)
from answer_engine.engine.diagnostics import DiagnosticsCollector, IssueType, Severity
from answer_engine.engine.patterns import FORMAT_DEFAULT_REQUIREMENTS

F = AnswerFormat
R = AnswerRequirement


class TestCheckCompatibility:
    def test_matrix_when_built_then_covers_every_format(self):
        assert set(COMPATIBILITY_MATRIX) == set(AnswerFormat)

    def test_matrix_when_built_then_sets_disjoint(self):
        for compatible, suboptimal in COMPATIBILITY_MATRIX.values():
            assert not compatible & suboptimal

    @pytest.mark.parametrize("answer_format,requirement,expected", [
        (F.TWO_ITEMS, R.BOTH_REQUIRED, Compatibility.COMPATIBLE),
        (F.MULTI_LINE, R.ANY_3_FROM, Compatibility.COMPATIBLE),
        (F.SELECTION, R.SINGLE_CHOICE, Compatibility.COMPATIBLE),
        (F.SINGLE_WORD, R.ALTERNATIVE_METHODS, Compatibility.SUBOPTIMAL),
        (F.MULTI_LINE, R.BOTH_REQUIRED, Compatibility.SUBOPTIMAL),
        (F.SINGLE_WORD, R.ANY_3_FROM, Compatibility.INCOMPATIBLE),
        (F.NOT_APPLICABLE, R.ALL_REQUIRED, Compatibility.INCOMPATIBLE),
    ])
    def test_check_when_pair_then_level(self, answer_format, requirement, expected):
        assert check_compatibility(answer_format, requirement).level is expected

    def test_check_when_not_compatible_then_message_lists_expected(self):
        result = check_compatibility(F.TWO_ITEMS, R.ANY_3_FROM)

        assert not result.is_compatible
        assert "both_required" in result.message

    def test_defaults_when_format_default_requirement_then_compatible(self):
        """Every format's default requirement is a good fit."""
        for answer_format, requirement in FORMAT_DEFAULT_REQUIREMENTS.items():
            assert check_compatibility(answer_format, requirement).is_compatible, answer_format

    def test_compatible_requirements_when_selection_then_includes_any_one(self):
        assert R.ANY_ONE_FROM in compatible_requirements(F.SELECTION)


class TestRecordCompatibility:
    @staticmethod
    def _annotated(answer_format, requirement) -> QuestionNode:
        node = QuestionNode("2(a)", NodeLevel.PART, "", correct_answers=(CorrectAnswer("x"),))
        return node.with_annotation(
            has_direct_answer=True,
            is_contextual_only=False,
            answer_format=answer_format,
            answer_requirement=requirement,
        )

    def test_record_when_compatible_then_nothing(self):
        collector = DiagnosticsCollector()

        assert record_compatibility(self._annotated(F.SINGLE_WORD, R.ALL_REQUIRED), collector) is None
        assert collector.issue_count == 0

    def test_record_when_suboptimal_then_info(self):
        collector = DiagnosticsCollector()

        diagnostic = record_compatibility(self._annotated(F.MULTI_LINE, R.BOTH_REQUIRED), collector)

        assert diagnostic.issue_type is IssueType.SUBOPTIMAL_COMBINATION
        assert diagnostic.severity is Severity.INFO
        assert collector.issue_count == 1

    def test_record_when_incompatible_then_warning(self):
        diagnostic = record_compatibility(self._annotated(F.SINGLE_WORD, R.ANY_3_FROM))

        assert diagnostic.issue_type is IssueType.INCOMPATIBLE_COMBINATION
        assert diagnostic.severity is Severity.WARNING

    def test_record_when_not_annotated_then_none(self):
        node = QuestionNode("2(a)", NodeLevel.PART)

        assert record_compatibility(node) is None
