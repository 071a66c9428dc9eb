"""
Module: engine.safeguards

Purpose:
    The one "never not_applicable" guard shared by the Format Deriver and
    the Requirement Deriver. Whenever a node has valid answers, or is a
    leaf, a not_applicable result is replaced with a fallback and the
    substitution is recorded as a diagnostic.

Key Functions:
    - answer_is_required(node): Whether the guard applies to a node
    - ensure_applicable(value, ...): Apply the guard to a derived value

Used By:
    - engine.formats
    - engine.requirements
"""

from __future__ import annotations

import logging
from typing import Optional, TypeVar, Union

from ..core.models.enums import AnswerFormat, AnswerRequirement
from ..core.models.nodes import QuestionNode
from .diagnostics import DiagnosticsCollector, IssueType

logger = logging.getLogger(__name__)

T = TypeVar("T", AnswerFormat, AnswerRequirement)


def answer_is_required(node: QuestionNode) -> bool:
    """True if the node has valid answers or is a leaf."""
    return bool(node.valid_answers) or node.is_leaf


def is_not_applicable(value: Union[AnswerFormat, AnswerRequirement]) -> bool:
    return value is type(value).NOT_APPLICABLE


def ensure_applicable(
    value: T,
    *,
    node: QuestionNode,
    fallback: T,
    collector: Optional[DiagnosticsCollector] = None,
    source: str = "derived",
) -> T:
    """
    Replace a not_applicable value when the node must accept an answer.

    Args:
        value: Candidate format or requirement
        node: Node the value is for
        fallback: Replacement (must not itself be not_applicable)
        collector: Receives a format_safeguard / requirement_safeguard
            diagnostic when the guard fires
        source: Where the value came from ("explicit", "derived", ...)

    Returns:
        `value`, or `fallback` if the guard fired

    Raises:
        ValueError: If `fallback` is not_applicable
    """
    if is_not_applicable(fallback):
        raise ValueError(f"Safeguard fallback cannot be not_applicable ({type(fallback).__name__})")
    if not is_not_applicable(value) or not answer_is_required(node):
        return value

    is_format = isinstance(value, AnswerFormat)
    field_name = "answer_format" if is_format else "answer_requirement"
    why = f"{len(node.valid_answers)} valid answer(s)" if node.valid_answers else "node is a leaf"
    reason = f"{source} {field_name} not_applicable replaced with {fallback} ({why})"
    if collector is not None:
        collector.add(
            node.id,
            IssueType.FORMAT_SAFEGUARD if is_format else IssueType.REQUIREMENT_SAFEGUARD,
            reason,
        )
    else:
        logger.debug(f"{node.id}: {reason}")
    return fallback
