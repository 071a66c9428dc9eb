"""
Module: engine.walker

Purpose:
    Tree Walker. Annotates every node of a question tree with
    has_direct_answer, is_contextual_only, answer_format and
    answer_requirement, returning a new tree. Input trees are never
    mutated and prior derived fields are ignored, so re-running the walker
    on its own output yields the same tree.

    Each node is classified from its own fields and whether it has
    children, never from its children's derived values, so trees (and
    nodes) are independent and can be processed on worker threads without
    locking.

Key Functions:
    - annotate(tree): Annotated tree
    - annotate_with_diagnostics(tree): AnnotationResult (tree + diagnostics)
    - annotate_node(node): NodeAnnotation for a single node
    - annotate_many(trees, max_workers): One tree per worker, order kept
    - annotate_document(document): Annotate a raw import document

Used By:
    - engine.batch
    - cli
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from ..core.models.enums import AnswerFormat, AnswerRequirement
from ..core.models.nodes import QuestionNode
from ..core.schemas.validator import iter_document_questions, validate_import_document
from ..core.utils.serialization import apply_annotations, node_from_import
from .compatibility import record_compatibility
from .config import DEFAULT_CONFIG, EngineConfig
from .diagnostics import Diagnostic, DiagnosticsCollector, IssueType
from .expectation import Expectation, classify_expectation, explain_expectation
from .formats import derive_format
from .patterns import DEFAULT_PATTERNS, PatternLibrary
from .requirements import derive_requirement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeAnnotation:
    """Derived fields for one node, with the expectation that produced them."""
    expectation: Expectation
    answer_format: AnswerFormat
    answer_requirement: AnswerRequirement

    def explain(self) -> str:
        return (
            f"{explain_expectation(self.expectation)}; "
            f"format={self.answer_format}, requirement={self.answer_requirement}"
        )


@dataclass(frozen=True)
class AnnotationResult:
    """An annotated tree and the diagnostics raised while annotating it."""
    tree: QuestionNode
    diagnostics: Tuple[Diagnostic, ...] = ()

    def diagnostics_for(self, node_id: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.node_id == node_id]


@dataclass(frozen=True)
class DocumentAnnotation:
    """An annotated import document (same shape as the input)."""
    document: Any
    results: Tuple[AnnotationResult, ...] = ()

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return [d for result in self.results for d in result.diagnostics]


# ─────────────────────────────────────────────────────────────────────────────
# Single Node
# ─────────────────────────────────────────────────────────────────────────────

def annotate_node(
    node: QuestionNode,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
    patterns: PatternLibrary = DEFAULT_PATTERNS,
    collector: Optional[DiagnosticsCollector] = None,
) -> NodeAnnotation:
    """
    Run scorer, classifier and both derivers for one node.

    Only the node's own fields and whether it has children are read.
    """
    expectation = classify_expectation(
        node, node.has_children, config=config, patterns=patterns, collector=collector
    )
    answer_format = derive_format(
        node, expectation, config=config, patterns=patterns, collector=collector
    )
    answer_requirement = derive_requirement(
        node, answer_format, expectation, config=config, patterns=patterns, collector=collector
    )
    logger.debug(
        f"{node.id}: {explain_expectation(expectation)} -> "
        f"{answer_format}/{answer_requirement}"
    )
    return NodeAnnotation(expectation, answer_format, answer_requirement)


# ─────────────────────────────────────────────────────────────────────────────
# Trees
# ─────────────────────────────────────────────────────────────────────────────

def annotate(
    tree: QuestionNode,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
    patterns: PatternLibrary = DEFAULT_PATTERNS,
    collector: Optional[DiagnosticsCollector] = None,
) -> QuestionNode:
    """
    Annotate every node of a tree.

    Args:
        tree: Root node (any level)
        config: Engine configuration
        patterns: Pattern library
        collector: Receives diagnostics, if given

    Returns:
        New tree with all four derived fields populated on every node
    """
    return annotate_with_diagnostics(
        tree, config=config, patterns=patterns, collector=collector
    ).tree


def annotate_with_diagnostics(
    tree: QuestionNode,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
    patterns: PatternLibrary = DEFAULT_PATTERNS,
    collector: Optional[DiagnosticsCollector] = None,
) -> AnnotationResult:
    """
    Annotate a tree and return it with the diagnostics it produced.

    Diagnostics are gathered in a collector local to this call, then
    copied into `collector` if one is given. Report sources are left to
    callers that know which file the tree came from.
    """
    local = DiagnosticsCollector()
    annotated = _annotate_subtree(tree, config, patterns, local)
    diagnostics = tuple(local.issues)
    if collector is not None:
        collector.extend(diagnostics)
    if diagnostics:
        logger.info(f"{tree.id}: annotated with {len(diagnostics)} diagnostic(s)")
    return AnnotationResult(annotated, diagnostics)


def _annotate_subtree(
    node: QuestionNode,
    config: EngineConfig,
    patterns: PatternLibrary,
    collector: DiagnosticsCollector,
) -> QuestionNode:
    # Children first, then rebuild this node around them
    children = tuple(_annotate_subtree(c, config, patterns, collector) for c in node.children)

    for issue in node.import_issues:
        collector.add(node.id, IssueType.UNKNOWN_ENUM_VALUE, issue)

    result = annotate_node(node, config=config, patterns=patterns, collector=collector)
    annotated = node.with_annotation(
        has_direct_answer=result.expectation.has_direct_answer,
        is_contextual_only=result.expectation.is_contextual_only,
        answer_format=result.answer_format,
        answer_requirement=result.answer_requirement,
        children=children,
    )
    if config.check_compatibility:
        record_compatibility(annotated, collector)
    return annotated


def annotate_many(
    trees: Sequence[QuestionNode],
    *,
    max_workers: Optional[int] = None,
    config: EngineConfig = DEFAULT_CONFIG,
    patterns: PatternLibrary = DEFAULT_PATTERNS,
    collector: Optional[DiagnosticsCollector] = None,
) -> List[AnnotationResult]:
    """
    Annotate many trees, one tree per worker thread.

    Args:
        trees: Trees to annotate
        max_workers: Thread count (default: min(4, len(trees)));
            1 runs inline
        config: Engine configuration
        patterns: Pattern library
        collector: Receives every tree's diagnostics, if given

    Returns:
        Results in the same order as `trees`
    """
    if not trees:
        return []
    workers = max_workers if max_workers is not None else min(4, len(trees))
    if workers < 1:
        raise ValueError(f"max_workers must be >= 1: {workers}")

    def _run(tree: QuestionNode) -> AnnotationResult:
        return annotate_with_diagnostics(tree, config=config, patterns=patterns)

    if workers == 1 or len(trees) == 1:
        results = [_run(tree) for tree in trees]
    else:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(_run, trees))

    if collector is not None:
        for result in results:
            collector.extend(result.diagnostics)
    logger.info(f"Annotated {len(results)} tree(s) with {workers} worker(s)")
    return results


# ─────────────────────────────────────────────────────────────────────────────
# Import Documents
# ─────────────────────────────────────────────────────────────────────────────

def annotate_document(
    document: Any,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
    patterns: PatternLibrary = DEFAULT_PATTERNS,
    strict: bool = False,
    max_workers: Optional[int] = 1,
    collector: Optional[DiagnosticsCollector] = None,
) -> DocumentAnnotation:
    """
    Annotate a raw import document.

    Accepts a single question object, a list of questions, or an object
    with a `questions` list, and returns a copy of the same shape with the
    four derived fields written onto every question, part and subpart.
    All other fields are preserved.

    Raises:
        ValidationError: If the document is structurally invalid
    """
    validate_import_document(document, strict=strict)
    questions = iter_document_questions(document)
    trees = [node_from_import(q, validate=False) for q in questions]
    results = annotate_many(
        trees, max_workers=max_workers, config=config, patterns=patterns, collector=collector
    )
    annotated = [apply_annotations(q, r.tree) for q, r in zip(questions, results)]

    if isinstance(document, list):
        output: Any = annotated
    elif isinstance(document, dict) and "questions" in document:
        output = {**document, "questions": annotated}
    else:
        output = annotated[0]
    return DocumentAnnotation(output, tuple(results))
