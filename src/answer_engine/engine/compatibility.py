"""
Module: engine.compatibility

Purpose:
    Format/requirement compatibility matrix used by QA review. For each
    answer format, lists the requirements that fit it and the ones that
    work but are unusual. Anything else is incompatible.

    The check is advisory: it records diagnostics and never changes a
    derived value.

Key Functions:
    - check_compatibility(format, requirement): CompatibilityResult
    - record_compatibility(node, collector): Diagnostic for poor pairings
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional, Tuple

from ..core.models.enums import AnswerFormat, AnswerRequirement
from ..core.models.nodes import QuestionNode
from .diagnostics import Diagnostic, DiagnosticsCollector, IssueType, Severity

logger = logging.getLogger(__name__)

F = AnswerFormat
R = AnswerRequirement


def _rule(compatible, suboptimal=()) -> Tuple[FrozenSet[R], FrozenSet[R]]:
    return frozenset(compatible), frozenset(suboptimal)


_DIAGRAM_RULE = _rule(
    [R.ALL_REQUIRED, R.NOT_APPLICABLE],
    [R.ACCEPTABLE_VARIATIONS],
)

COMPATIBILITY_MATRIX: Mapping[F, Tuple[FrozenSet[R], FrozenSet[R]]] = MappingProxyType({
    F.SINGLE_WORD: _rule(
        [R.SINGLE_CHOICE, R.ALL_REQUIRED, R.ANY_ONE_FROM, R.ACCEPTABLE_VARIATIONS],
        [R.ALTERNATIVE_METHODS],
    ),
    F.SINGLE_LINE: _rule(
        [R.SINGLE_CHOICE, R.ALL_REQUIRED, R.ANY_ONE_FROM, R.ACCEPTABLE_VARIATIONS,
         R.ALTERNATIVE_METHODS],
        [R.BOTH_REQUIRED],
    ),
    F.TWO_ITEMS: _rule(
        [R.BOTH_REQUIRED, R.ANY_2_FROM, R.ALL_REQUIRED],
        [R.ACCEPTABLE_VARIATIONS, R.ANY_ONE_FROM],
    ),
    F.MULTI_LINE: _rule(
        [R.ANY_ONE_FROM, R.ANY_2_FROM, R.ANY_3_FROM, R.ALL_REQUIRED,
         R.ALTERNATIVE_METHODS, R.ACCEPTABLE_VARIATIONS],
        [R.BOTH_REQUIRED],
    ),
    F.MULTI_LINE_LABELED: _rule(
        [R.ALL_REQUIRED, R.ANY_2_FROM, R.ANY_3_FROM],
        [R.ANY_ONE_FROM, R.ACCEPTABLE_VARIATIONS, R.BOTH_REQUIRED],
    ),
    F.CALCULATION: _rule(
        [R.SINGLE_CHOICE, R.ALL_REQUIRED, R.ALTERNATIVE_METHODS, R.ACCEPTABLE_VARIATIONS],
        [R.ANY_ONE_FROM],
    ),
    F.EQUATION: _rule(
        [R.SINGLE_CHOICE, R.ALL_REQUIRED, R.ALTERNATIVE_METHODS, R.ACCEPTABLE_VARIATIONS],
        [R.ANY_ONE_FROM],
    ),
    F.CHEMICAL_STRUCTURE: _rule(
        [R.SINGLE_CHOICE, R.ALL_REQUIRED, R.ACCEPTABLE_VARIATIONS],
        [R.ALTERNATIVE_METHODS],
    ),
    F.STRUCTURAL_DIAGRAM: _DIAGRAM_RULE,
    F.DIAGRAM: _DIAGRAM_RULE,
    F.GRAPH: _DIAGRAM_RULE,
    F.TABLE: _DIAGRAM_RULE,
    F.TABLE_COMPLETION: _DIAGRAM_RULE,
    F.CODE: _rule(
        [R.SINGLE_CHOICE, R.ALL_REQUIRED, R.ALTERNATIVE_METHODS],
        [R.ACCEPTABLE_VARIATIONS],
    ),
    F.AUDIO: _rule([R.NOT_APPLICABLE, R.ALL_REQUIRED]),
    F.FILE_UPLOAD: _rule([R.NOT_APPLICABLE, R.ALL_REQUIRED]),
    F.SELECTION: _rule(
        [R.SINGLE_CHOICE, R.ANY_ONE_FROM, R.ALL_REQUIRED],
        [R.ANY_2_FROM, R.ANY_3_FROM],
    ),
    F.NOT_APPLICABLE: _rule([R.NOT_APPLICABLE]),
})


class Compatibility(str, Enum):
    COMPATIBLE = "compatible"
    SUBOPTIMAL = "suboptimal"
    INCOMPATIBLE = "incompatible"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class CompatibilityResult:
    """Outcome of checking one format/requirement pair."""
    answer_format: AnswerFormat
    answer_requirement: AnswerRequirement
    level: Compatibility
    message: str = ""

    @property
    def is_compatible(self) -> bool:
        return self.level is Compatibility.COMPATIBLE


def check_compatibility(
    answer_format: AnswerFormat,
    answer_requirement: AnswerRequirement,
) -> CompatibilityResult:
    """
    Check how well a requirement fits a format.

    Example:
        >>> check_compatibility(AnswerFormat.TWO_ITEMS, AnswerRequirement.BOTH_REQUIRED).level
        <Compatibility.COMPATIBLE: 'compatible'>
    """
    compatible, suboptimal = COMPATIBILITY_MATRIX[answer_format]
    if answer_requirement in compatible:
        return CompatibilityResult(answer_format, answer_requirement, Compatibility.COMPATIBLE)
    if answer_requirement in suboptimal:
        return CompatibilityResult(
            answer_format,
            answer_requirement,
            Compatibility.SUBOPTIMAL,
            f"{answer_requirement} works with {answer_format} but is unusual; "
            f"expected one of {_names(compatible)}",
        )
    return CompatibilityResult(
        answer_format,
        answer_requirement,
        Compatibility.INCOMPATIBLE,
        f"{answer_requirement} does not fit {answer_format}; "
        f"expected one of {_names(compatible)}",
    )


def compatible_requirements(answer_format: AnswerFormat) -> FrozenSet[AnswerRequirement]:
    """Requirements that fit a format without any diagnostic."""
    return COMPATIBILITY_MATRIX[answer_format][0]


def record_compatibility(
    node: QuestionNode,
    collector: Optional[DiagnosticsCollector] = None,
) -> Optional[Diagnostic]:
    """
    Record a diagnostic if an annotated node's format/requirement pair is poor.

    Returns:
        The recorded diagnostic, or None for compatible or unannotated nodes
    """
    if node.answer_format is None or node.answer_requirement is None:
        return None
    result = check_compatibility(node.answer_format, node.answer_requirement)
    if result.is_compatible:
        return None

    if result.level is Compatibility.SUBOPTIMAL:
        issue, severity = IssueType.SUBOPTIMAL_COMBINATION, Severity.INFO
    else:
        issue, severity = IssueType.INCOMPATIBLE_COMBINATION, Severity.WARNING
    if collector is None:
        logger.debug(f"{node.id}: {result.message}")
        return Diagnostic(node.id, issue, result.message, severity)
    return collector.add(node.id, issue, result.message, severity)


def _names(requirements: FrozenSet[AnswerRequirement]) -> str:
    return ", ".join(sorted(str(r) for r in requirements))
