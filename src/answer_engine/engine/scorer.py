"""
Module: engine.scorer

Purpose:
    Node Scorer. Counts weighted question-indicator and contextual-indicator
    matches in a node's text. Pure: no side effects, no state.

Key Functions:
    - score_text(text, patterns): (question_score, contextual_score)
    - score_node(node, patterns): Same, for a QuestionNode

Dependencies:
    - engine.patterns: PatternLibrary

Used By:
    - engine.expectation: Rule 4 (strong contextual text)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Tuple

from ..core.models.nodes import QuestionNode
from .patterns import DEFAULT_PATTERNS, IndicatorPattern, PatternLibrary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeScore:
    """
    Scores for one node's text.

    Attributes:
        question_score: Weighted count of question-indicator matches
        contextual_score: Weighted count of contextual-indicator matches
        question_matches: Names of the question indicators that matched
        contextual_matches: Names of the contextual indicators that matched
    """
    question_score: int = 0
    contextual_score: int = 0
    question_matches: Tuple[str, ...] = field(default=(), compare=False)
    contextual_matches: Tuple[str, ...] = field(default=(), compare=False)

    def as_tuple(self) -> Tuple[int, int]:
        return self.question_score, self.contextual_score


def _match(text: str, indicators: Tuple[IndicatorPattern, ...]) -> Tuple[int, Tuple[str, ...]]:
    hits = [p for p in indicators if p.matches(text)]
    return sum(p.weight for p in hits), tuple(p.name for p in hits)


def score_text(text: str, patterns: PatternLibrary = DEFAULT_PATTERNS) -> NodeScore:
    """
    Score text against the question and contextual indicator sets.

    Each indicator contributes its weight once if it matches anywhere in
    the trimmed text. Matching is case-insensitive.

    Args:
        text: Node stem text (may be empty)
        patterns: Pattern library to score against

    Returns:
        NodeScore; empty or whitespace-only text scores (0, 0)

    Example:
        >>> score_text("Penicillin is an antibiotic.").as_tuple()
        (0, 4)
        >>> score_text("   ").as_tuple()
        (0, 0)
    """
    stripped = (text or "").strip()
    if not stripped:
        return NodeScore()

    question_score, question_matches = _match(stripped, patterns.question_indicators)
    contextual_score, contextual_matches = _match(stripped, patterns.contextual_indicators)

    logger.debug(
        f"Scored {stripped[:40]!r}: question={question_score} {list(question_matches)}, "
        f"contextual={contextual_score} {list(contextual_matches)}"
    )
    return NodeScore(question_score, contextual_score, question_matches, contextual_matches)


def score_node(node: QuestionNode, patterns: PatternLibrary = DEFAULT_PATTERNS) -> NodeScore:
    """Score a node's own text (children are not considered)."""
    return score_text(node.text, patterns)
