"""
Classification Engine Package

Per-node pipeline: Node Scorer -> Expectation Classifier -> Format
Deriver -> Requirement Deriver, driven by the Tree Walker.

Every stage is a pure function of the node's own fields and whether it
has children. The pattern library and configuration are immutable values
injected into each stage; anomalies become diagnostics, never exceptions.
"""

from .batch import BatchResult, revalidate_files
from .compatibility import Compatibility, check_compatibility
from .config import DEFAULT_CONFIG, ContextualThresholds, EngineConfig, load_config
from .diagnostics import Diagnostic, DiagnosticsCollector, DiagnosticsReport, IssueType, Severity
from .expectation import Expectation, ExpectationRule, classify_expectation, explain_expectation
from .formats import derive_format
from .patterns import DEFAULT_PATTERNS, IndicatorPattern, PatternLibrary
from .requirements import derive_requirement
from .safeguards import ensure_applicable
from .scorer import NodeScore, score_node, score_text
from .walker import (
    AnnotationResult,
    DocumentAnnotation,
    NodeAnnotation,
    annotate,
    annotate_document,
    annotate_many,
    annotate_node,
    annotate_with_diagnostics,
)

__all__ = [
    "AnnotationResult",
    "BatchResult",
    "Compatibility",
    "ContextualThresholds",
    "DEFAULT_CONFIG",
    "DEFAULT_PATTERNS",
    "Diagnostic",
    "DiagnosticsCollector",
    "DiagnosticsReport",
    "DocumentAnnotation",
    "EngineConfig",
    "Expectation",
    "ExpectationRule",
    "IndicatorPattern",
    "IssueType",
    "NodeAnnotation",
    "NodeScore",
    "PatternLibrary",
    "Severity",
    "annotate",
    "annotate_document",
    "annotate_many",
    "annotate_node",
    "annotate_with_diagnostics",
    "check_compatibility",
    "classify_expectation",
    "derive_format",
    "derive_requirement",
    "ensure_applicable",
    "explain_expectation",
    "load_config",
    "revalidate_files",
    "score_node",
    "score_text",
]
