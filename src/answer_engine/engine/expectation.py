"""
Module: engine.expectation

Purpose:
    Expectation Classifier. Decides whether a node expects a gradable
    student answer or is contextual stem text only.

    Rules are evaluated in strict priority order; the first match wins:

    1. Data: at least one valid answer -> direct (HIGH), whatever the
       explicit import flags say. Disagreeing flags become a diagnostic.
    2. Leaf override: subparts are always direct.
    3. No children, no answers: direct (LOW), flagged for review.
    4. Strong contextual text: contextual (HIGH) when the contextual score
       clears both the ratio and the floor thresholds.
    5. Fallback: direct (MEDIUM).

    A wrong "contextual" decision hides a gradable answer, a wrong "direct"
    decision only shows an empty answer box, so every ambiguous case falls
    through to direct.

Key Functions:
    - classify_expectation(node, has_children): Expectation
    - explain_expectation(expectation): One-line summary for reviewers

Dependencies:
    - engine.scorer: Node scores for rule 4
    - engine.config: ContextualThresholds

Used By:
    - engine.walker
    - engine.formats / engine.requirements (contextual + data_conflict)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..core.models.enums import Confidence, NodeLevel
from ..core.models.nodes import QuestionNode
from .config import DEFAULT_CONFIG, EngineConfig
from .diagnostics import DiagnosticsCollector, IssueType, Severity
from .patterns import DEFAULT_PATTERNS, PatternLibrary
from .scorer import NodeScore, score_node

logger = logging.getLogger(__name__)


class ExpectationRule(str, Enum):
    """Which classifier rule produced a decision."""
    DATA = "data"
    LEAF_OVERRIDE = "leaf_override"
    NO_CHILDREN = "no_children"
    CONTEXTUAL_TEXT = "contextual_text"
    FALLBACK = "fallback"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Expectation:
    """
    Result of classifying one node.

    Attributes:
        has_direct_answer: Node expects a gradable answer
        is_contextual_only: Node is stem text; answers live in children
        confidence: Strength of the decision
        reason: Human-readable explanation
        rule: Rule that fired
        data_conflict: Rule 1 overrode explicit import flags
        score: Text scores, when rule 4 was evaluated
    """
    has_direct_answer: bool
    is_contextual_only: bool
    confidence: Confidence
    reason: str
    rule: ExpectationRule
    data_conflict: bool = False
    score: Optional[NodeScore] = field(default=None, compare=False)


def _direct(confidence: Confidence, reason: str, rule: ExpectationRule, **kwargs) -> Expectation:
    return Expectation(True, False, confidence, reason, rule, **kwargs)


def _explicit_says_contextual(node: QuestionNode) -> bool:
    return node.explicit_is_contextual_only is True or node.explicit_has_direct_answer is False


def _explicit_says_direct(node: QuestionNode) -> bool:
    return node.explicit_has_direct_answer is True or node.explicit_is_contextual_only is False


def _flags_str(node: QuestionNode) -> str:
    return (
        f"has_direct_answer={node.explicit_has_direct_answer}, "
        f"is_contextual_only={node.explicit_is_contextual_only}"
    )


def classify_expectation(
    node: QuestionNode,
    has_children: Optional[bool] = None,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
    patterns: PatternLibrary = DEFAULT_PATTERNS,
    collector: Optional[DiagnosticsCollector] = None,
) -> Expectation:
    """
    Classify a node as expecting a direct answer or contextual only.

    Args:
        node: Node to classify (its derived fields are ignored)
        has_children: Whether the node has children; defaults to
            `node.has_children`
        config: Thresholds and policy switches
        patterns: Pattern library for text scoring
        collector: Receives advisory diagnostics, if given

    Returns:
        Expectation (never raises for inconsistent data)

    Example:
        >>> leaf = QuestionNode("1(a)(i)", NodeLevel.SUBPART, "Name the organism.")
        >>> classify_expectation(leaf).rule
        <ExpectationRule.LEAF_OVERRIDE: 'leaf_override'>
    """
    if has_children is None:
        has_children = node.has_children
    answers = node.valid_answers

    # Rule 1: data overrides everything
    if answers:
        conflict = _explicit_says_contextual(node)
        if conflict and collector is not None:
            collector.add(
                node.id,
                IssueType.CONFLICTING_FLAGS,
                f"Import flags ({_flags_str(node)}) overridden: "
                f"{len(answers)} valid answer(s) present",
            )
        return _direct(
            Confidence.HIGH,
            f"{len(answers)} valid answer(s) in import data",
            ExpectationRule.DATA,
            data_conflict=conflict,
        )

    # Rule 2: subparts are leaves and always expect an answer
    if node.level is NodeLevel.SUBPART:
        if _explicit_says_contextual(node) and collector is not None:
            collector.add(
                node.id,
                IssueType.LEAF_OVERRIDE,
                f"Import flags ({_flags_str(node)}) ignored: subparts always expect an answer",
            )
        return _direct(
            Confidence.HIGH,
            "Subpart is a leaf and always expects an answer",
            ExpectationRule.LEAF_OVERRIDE,
        )

    # Rule 3: nothing to delegate to, nothing to grade against
    if not has_children:
        if collector is not None:
            if config.flag_underspecified_nodes:
                collector.add(
                    node.id,
                    IssueType.UNDERSPECIFIED_NODE,
                    f"{node.level} has no children and no valid answers; "
                    f"defaulting to a direct answer",
                    Severity.INFO,
                )
            if _explicit_says_contextual(node):
                collector.add(
                    node.id,
                    IssueType.FLAG_DISAGREEMENT,
                    f"Import flags ({_flags_str(node)}) ignored: "
                    f"a node without children cannot be contextual only",
                )
        return _direct(
            Confidence.LOW,
            "No children and no valid answers; safe default is a direct answer",
            ExpectationRule.NO_CHILDREN,
        )

    # Rule 4: strong contextual text
    score = score_node(node, patterns)
    thresholds = config.thresholds
    if (
        score.contextual_score >= score.question_score * thresholds.ratio
        and score.contextual_score >= thresholds.floor
    ):
        if _explicit_says_direct(node) and collector is not None:
            collector.add(
                node.id,
                IssueType.FLAG_DISAGREEMENT,
                f"Import flags ({_flags_str(node)}) disagree with contextual text "
                f"(contextual={score.contextual_score}, question={score.question_score})",
                Severity.INFO,
            )
        logger.debug(f"{node.id}: contextual (scores {score.as_tuple()})")
        return Expectation(
            has_direct_answer=False,
            is_contextual_only=True,
            confidence=Confidence.HIGH,
            reason=(
                f"Contextual text (contextual={score.contextual_score} >= "
                f"{thresholds.ratio} x question={score.question_score}, "
                f"floor {thresholds.floor})"
            ),
            rule=ExpectationRule.CONTEXTUAL_TEXT,
            score=score,
        )

    # Rule 5: fallback favours a direct answer
    if _explicit_says_contextual(node) and collector is not None:
        collector.add(
            node.id,
            IssueType.FLAG_DISAGREEMENT,
            f"Import flags ({_flags_str(node)}) disagree with text scores "
            f"(contextual={score.contextual_score}, question={score.question_score}); "
            f"keeping a direct answer",
            Severity.INFO,
        )
    return _direct(
        Confidence.MEDIUM,
        f"Text is not strongly contextual (contextual={score.contextual_score}, "
        f"question={score.question_score})",
        ExpectationRule.FALLBACK,
        score=score,
    )


def explain_expectation(expectation: Expectation) -> str:
    """
    Render an expectation as a one-line summary.

    Example:
        "direct answer [high, rule=data]: 2 valid answer(s) in import data"
    """
    kind = "contextual only" if expectation.is_contextual_only else "direct answer"
    conflict = ", overrode import flags" if expectation.data_conflict else ""
    return (
        f"{kind} [{expectation.confidence}, rule={expectation.rule}{conflict}]: "
        f"{expectation.reason}"
    )
