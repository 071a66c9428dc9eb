"""
Module: engine.requirements

Purpose:
    Requirement Deriver. Decides the `answer_requirement` of a classified
    node from its valid answer count, import hints, marking notes and the
    derived format.

    When signals conflict the answer count wins: an explicit hint that
    asks for more answers than exist is treated as stale (it is usually
    left over from a manual re-edit) and reported as a diagnostic.

Key Functions:
    - derive_requirement(node, answer_format, expectation): AnswerRequirement

Used By:
    - engine.walker
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..core.models.answers import CorrectAnswer
from ..core.models.enums import AnswerFormat, AnswerRequirement
from ..core.models.nodes import QuestionNode
from .config import DEFAULT_CONFIG, EngineConfig
from .diagnostics import DiagnosticsCollector, IssueType, Severity
from .expectation import Expectation, classify_expectation
from .patterns import (
    ALTERNATIVE_ALL_TYPES,
    ALTERNATIVE_ANY_TYPES,
    DEFAULT_PATTERNS,
    PatternLibrary,
)
from .safeguards import ensure_applicable

logger = logging.getLogger(__name__)

# "any K" requirement for each K with an enum member
_ANY_K = {
    1: AnswerRequirement.ANY_ONE_FROM,
    2: AnswerRequirement.ANY_2_FROM,
    3: AnswerRequirement.ANY_3_FROM,
}

# Requirements that make sense for a single valid answer
_SINGLE_ANSWER_REQUIREMENTS = {AnswerRequirement.ALL_REQUIRED, AnswerRequirement.SINGLE_CHOICE}


def derive_requirement(
    node: QuestionNode,
    answer_format: AnswerFormat,
    expectation: Optional[Expectation] = None,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
    patterns: PatternLibrary = DEFAULT_PATTERNS,
    collector: Optional[DiagnosticsCollector] = None,
) -> AnswerRequirement:
    """
    Derive the answer requirement for one node.

    Args:
        node: Node to derive for
        answer_format: Format already derived for the node
        expectation: Classifier result for the node (computed if omitted)
        config: Engine configuration
        patterns: Pattern library (marking-note regex, format defaults)
        collector: Receives advisory diagnostics, if given

    Returns:
        AnswerRequirement; never not_applicable when the node has valid
        answers or is a leaf, and never an "any K" variant for exactly
        one valid answer

    Example:
        >>> node = QuestionNode("1", NodeLevel.SUBPART, "Name it.",
        ...                     correct_answers=(CorrectAnswer("amoeba"),))
        >>> derive_requirement(node, AnswerFormat.SINGLE_WORD)
        <AnswerRequirement.ALL_REQUIRED: 'all_required'>
    """
    if expectation is None:
        expectation = classify_expectation(node, config=config, patterns=patterns)

    if expectation.is_contextual_only:
        return AnswerRequirement.NOT_APPLICABLE

    answers = node.valid_answers
    hint = node.explicit_answer_requirement

    if not answers:
        value = hint if hint is not None else patterns.default_requirement(answer_format)
        return ensure_applicable(
            value,
            node=node,
            fallback=AnswerRequirement.ALL_REQUIRED,
            collector=collector,
            source="explicit" if hint is not None else "derived",
        )

    if len(answers) == 1:
        value = (
            AnswerRequirement.SINGLE_CHOICE
            if answer_format is AnswerFormat.SELECTION
            else AnswerRequirement.ALL_REQUIRED
        )
        if hint is not None and hint not in _SINGLE_ANSWER_REQUIREMENTS:
            _stale_hint(node, hint, value, "only 1 valid answer", collector)
        return value

    value = _derive_multi(node, answers, answer_format, hint, patterns, collector)
    return ensure_applicable(
        value,
        node=node,
        fallback=AnswerRequirement.ALL_REQUIRED,
        collector=collector,
    )


def _derive_multi(
    node: QuestionNode,
    answers: Sequence[CorrectAnswer],
    answer_format: AnswerFormat,
    hint: Optional[AnswerRequirement],
    patterns: PatternLibrary,
    collector: Optional[DiagnosticsCollector],
) -> AnswerRequirement:
    n = len(answers)

    # 1. Explicit hint, if the answer count supports it
    if hint is not None:
        if hint is AnswerRequirement.NOT_APPLICABLE:
            return ensure_applicable(
                hint,
                node=node,
                fallback=_derive_from_answers(node, answers, answer_format, patterns, collector),
                collector=collector,
                source="explicit",
            )
        if _hint_fits_count(hint, n):
            return hint
        fallback = _derive_from_answers(node, answers, answer_format, patterns, collector)
        _stale_hint(node, hint, fallback, f"{n} valid answers", collector)
        return fallback

    return _derive_from_answers(node, answers, answer_format, patterns, collector)


def _derive_from_answers(
    node: QuestionNode,
    answers: Sequence[CorrectAnswer],
    answer_format: AnswerFormat,
    patterns: PatternLibrary,
    collector: Optional[DiagnosticsCollector],
) -> AnswerRequirement:
    n = len(answers)

    # 2. "Accept any K of N" marking note
    parsed = patterns.parse_any_k(node.marking_note)
    if parsed is not None:
        k, total = parsed
        if total is not None and total != n:
            logger.debug(f"{node.id}: marking note says {total} answers, found {n}")
        if k >= n:
            if collector is not None:
                collector.add(
                    node.id,
                    IssueType.STALE_REQUIREMENT_HINT,
                    f"Marking note asks for any {k} but only {n} valid answers exist; "
                    f"all required",
                    Severity.INFO,
                )
            return AnswerRequirement.ALL_REQUIRED
        if k in _ANY_K:
            return _ANY_K[k]
        logger.debug(f"{node.id}: no requirement for any {k} of {n}; using all_required")
        return AnswerRequirement.ALL_REQUIRED

    # 3. Alternative grouping from the mark scheme
    types = {(a.alternative_type or "").strip().lower() for a in answers} - {"", "standalone"}
    if types and types <= ALTERNATIVE_ANY_TYPES:
        return AnswerRequirement.ANY_ONE_FROM
    if types & ALTERNATIVE_ALL_TYPES or any(a.linked_alternatives for a in answers):
        return AnswerRequirement.ALL_REQUIRED

    # 4. Formats that are inherently alternative-based
    if answer_format is AnswerFormat.SELECTION:
        return AnswerRequirement.ANY_ONE_FROM
    if answer_format in (AnswerFormat.CALCULATION, AnswerFormat.EQUATION):
        return AnswerRequirement.ALTERNATIVE_METHODS
    if answer_format is AnswerFormat.TWO_ITEMS:
        return AnswerRequirement.BOTH_REQUIRED if n == 2 else AnswerRequirement.ANY_2_FROM

    return AnswerRequirement.ALL_REQUIRED


def _hint_fits_count(hint: AnswerRequirement, n: int) -> bool:
    if hint is AnswerRequirement.BOTH_REQUIRED:
        return n == 2
    if hint is AnswerRequirement.ANY_3_FROM:
        return n >= 3
    if hint is AnswerRequirement.ANY_2_FROM:
        return n >= 2
    return True


def _stale_hint(
    node: QuestionNode,
    hint: AnswerRequirement,
    used: AnswerRequirement,
    why: str,
    collector: Optional[DiagnosticsCollector],
) -> None:
    reason = f"Explicit answer_requirement {hint} ignored ({why}); using {used}"
    if collector is not None:
        collector.add(node.id, IssueType.STALE_REQUIREMENT_HINT, reason)
    else:
        logger.debug(f"{node.id}: {reason}")
