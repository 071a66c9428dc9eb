"""
Module: engine.formats

Purpose:
    Format Deriver. Decides the `answer_format` of a classified node.

Decision order:
    1. Contextual-only node -> not_applicable.
    2. Explicit import format, unless rule 1 of the classifier overrode
       the import flags (the import metadata is then untrusted).
    3. Structure: MCQ/true-false with options -> selection; answers whose
       context type names a table cell, diagram label or plot point ->
       the matching structural format.
    4. Question wording ("complete the table", "calculate", ...).
    5. Answer shape: count, length and labelling of the valid answers.
    Every result passes the shared not_applicable safeguard.

Key Functions:
    - derive_format(node, expectation): AnswerFormat
    - shape_format(answers, config): Format from answer shape alone

Used By:
    - engine.walker
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..core.models.answers import CorrectAnswer
from ..core.models.enums import AnswerFormat, NodeLevel
from ..core.models.nodes import QuestionNode
from .config import DEFAULT_CONFIG, EngineConfig
from .diagnostics import DiagnosticsCollector, IssueType
from .expectation import Expectation, classify_expectation
from .patterns import DEFAULT_PATTERNS, ONE_REQUIRED, PatternLibrary
from .safeguards import answer_is_required, ensure_applicable

logger = logging.getLogger(__name__)


def derive_format(
    node: QuestionNode,
    expectation: Optional[Expectation] = None,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
    patterns: PatternLibrary = DEFAULT_PATTERNS,
    collector: Optional[DiagnosticsCollector] = None,
) -> AnswerFormat:
    """
    Derive the answer format for one node.

    Args:
        node: Node to derive for
        expectation: Classifier result for the node (computed if omitted)
        config: Engine configuration
        patterns: Pattern library
        collector: Receives advisory diagnostics, if given

    Returns:
        AnswerFormat; never not_applicable when the node has valid
        answers or is a leaf
    """
    if expectation is None:
        expectation = classify_expectation(node, config=config, patterns=patterns)

    if expectation.is_contextual_only:
        return AnswerFormat.NOT_APPLICABLE

    answers = node.valid_answers
    explicit = node.explicit_answer_format

    if explicit is not None:
        if expectation.data_conflict:
            logger.debug(f"{node.id}: ignoring explicit format {explicit} (import flags overridden)")
        elif explicit is AnswerFormat.NOT_APPLICABLE and answer_is_required(node):
            return ensure_applicable(
                explicit,
                node=node,
                fallback=_derive(node, answers, config, patterns),
                collector=collector,
                source="explicit",
            )
        else:
            return explicit

    if node.level is NodeLevel.SUBPART and not answers and explicit is None and collector is not None:
        collector.add(
            node.id,
            IssueType.MALFORMED_LEAF,
            "Subpart has no valid answers and no explicit answer_format; "
            "needs manual review",
        )

    derived = _derive(node, answers, config, patterns)
    return ensure_applicable(
        derived,
        node=node,
        fallback=config.default_format,
        collector=collector,
    )


def _derive(
    node: QuestionNode,
    answers: Sequence[CorrectAnswer],
    config: EngineConfig,
    patterns: PatternLibrary,
) -> AnswerFormat:
    question_type = (node.question_type or "").strip().lower()
    if question_type in patterns.selection_types and node.options:
        return AnswerFormat.SELECTION

    for answer in answers:
        context_type = (answer.context_type or "").strip().lower()
        if context_type in patterns.structural_contexts:
            return patterns.structural_contexts[context_type]

    text = node.text.strip()
    if text:
        for cue in patterns.format_cues:
            if cue.matches(text):
                logger.debug(f"{node.id}: format cue -> {cue.answer_format}")
                return cue.answer_format

    return shape_format(answers, config, patterns)


def shape_format(
    answers: Sequence[CorrectAnswer],
    config: EngineConfig = DEFAULT_CONFIG,
    patterns: PatternLibrary = DEFAULT_PATTERNS,
) -> AnswerFormat:
    """
    Derive a format from the shape of the valid answers alone.

    - no answers: config.default_format
    - one answer: single_word / single_line / multi_line by length
    - alternatives of one answer: shape of the first alternative
    - mark points: multi_line
    - every answer labelled: multi_line_labeled
    - exactly two answers: two_items
    - otherwise: multi_line

    Example:
        >>> shape_format([CorrectAnswer("amoeba")])
        <AnswerFormat.SINGLE_WORD: 'single_word'>
    """
    if not answers:
        return config.default_format

    if len(answers) == 1 or _are_alternatives(answers):
        return _single_answer_format(answers[0].text, config)

    context_types = {(a.context_type or "").strip().lower() for a in answers}
    if context_types & patterns.mark_point_contexts:
        return AnswerFormat.MULTI_LINE
    if all(a.context_label for a in answers):
        return AnswerFormat.MULTI_LINE_LABELED
    if len(answers) == 2:
        return AnswerFormat.TWO_ITEMS
    return AnswerFormat.MULTI_LINE


def _are_alternatives(answers: Sequence[CorrectAnswer]) -> bool:
    """True if every answer is an alternative for one and the same response."""
    types = {(a.alternative_type or "").strip().lower() for a in answers}
    return types == {ONE_REQUIRED}


def _single_answer_format(text: str, config: EngineConfig) -> AnswerFormat:
    stripped = text.strip()
    if "\n" in stripped:
        return AnswerFormat.MULTI_LINE
    if len(stripped.split()) <= config.single_word_max_words:
        return AnswerFormat.SINGLE_WORD
    return AnswerFormat.SINGLE_LINE
