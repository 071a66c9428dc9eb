"""
Module: engine.diagnostics

Captures advisory anomalies found while annotating question trees and
generates diagnostic reports for QA review. Diagnostics never block
processing; the engine always produces fully populated derived fields.

Issue types:
- conflicting_flags: explicit flags contradicted by valid answer data
- leaf_override: explicit flags on a subpart contradicted by the leaf rule
- flag_disagreement: explicit flags disagree with a text/structure decision
- underspecified_node: childless node with no valid answers
- malformed_leaf: subpart with no valid answers and no explicit format
- format_safeguard / requirement_safeguard: not_applicable replaced
- stale_requirement_hint: explicit requirement inconsistent with answer count
- unknown_enum_value: unrecognised enum string dropped at import
- incompatible_combination / suboptimal_combination: format/requirement pair
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Set

logger = logging.getLogger(__name__)


class IssueType(str, Enum):
    """Kinds of advisory diagnostics."""
    CONFLICTING_FLAGS = "conflicting_flags"
    LEAF_OVERRIDE = "leaf_override"
    FLAG_DISAGREEMENT = "flag_disagreement"
    UNDERSPECIFIED_NODE = "underspecified_node"
    MALFORMED_LEAF = "malformed_leaf"
    FORMAT_SAFEGUARD = "format_safeguard"
    REQUIREMENT_SAFEGUARD = "requirement_safeguard"
    STALE_REQUIREMENT_HINT = "stale_requirement_hint"
    UNKNOWN_ENUM_VALUE = "unknown_enum_value"
    INCOMPATIBLE_COMBINATION = "incompatible_combination"
    SUBOPTIMAL_COMBINATION = "suboptimal_combination"

    def __str__(self) -> str:
        return self.value


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Diagnostic:
    """
    A single advisory issue attached to one node.

    Fields:
    - node_id: Id of the node the issue was found on
    - issue_type: What kind of anomaly this is
    - reason: Human-readable explanation for reviewers
    - severity: warning for overridden import data, info otherwise
    """
    node_id: str
    issue_type: IssueType
    reason: str
    severity: Severity = Severity.WARNING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_id": self.node_id,
            "issue_type": str(self.issue_type),
            "reason": self.reason,
            "severity": str(self.severity),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Diagnostic:
        return cls(
            node_id=data["node_id"],
            issue_type=IssueType(data["issue_type"]),
            reason=data["reason"],
            severity=Severity(data.get("severity", "warning")),
        )

    def __str__(self) -> str:
        return f"[{self.severity}] {self.node_id}: {self.issue_type}: {self.reason}"


class DiagnosticsCollector:
    """
    Thread-safe collector for diagnostics.

    One collector may be shared by every worker of a batch run; each
    `add` takes the lock once.
    """

    def __init__(self):
        self._issues: List[Diagnostic] = []
        self._lock = threading.Lock()
        self._sources: Set[str] = set()

    def add(
        self,
        node_id: str,
        issue_type: IssueType,
        reason: str,
        severity: Severity = Severity.WARNING,
    ) -> Diagnostic:
        """Record one issue and return it."""
        diagnostic = Diagnostic(node_id, issue_type, reason, severity)
        if severity is Severity.WARNING:
            logger.warning(f"{node_id}: {reason}")
        else:
            logger.debug(f"{node_id}: {reason}")
        with self._lock:
            self._issues.append(diagnostic)
        return diagnostic

    def extend(self, diagnostics: Iterable[Diagnostic], source: str = "") -> None:
        """Record diagnostics produced elsewhere (e.g. by a worker)."""
        items = list(diagnostics)
        with self._lock:
            self._issues.extend(items)
            if source:
                self._sources.add(source)

    def add_source(self, source: str) -> None:
        with self._lock:
            self._sources.add(source)

    @property
    def issues(self) -> List[Diagnostic]:
        with self._lock:
            return list(self._issues)

    @property
    def issue_count(self) -> int:
        with self._lock:
            return len(self._issues)

    def for_node(self, node_id: str) -> List[Diagnostic]:
        with self._lock:
            return [d for d in self._issues if d.node_id == node_id]

    def generate_report(self) -> DiagnosticsReport:
        with self._lock:
            return DiagnosticsReport.from_issues(list(self._issues), set(self._sources))


@dataclass
class DiagnosticsReport:
    """Complete diagnostics report."""
    generated_at: str
    sources: List[str]
    total_issues: int
    summary_by_type: Dict[str, int]
    issues: List[Diagnostic]

    @classmethod
    def from_issues(cls, issues: List[Diagnostic], sources: Set[str]) -> DiagnosticsReport:
        summary_by_type: Dict[str, int] = {}
        for issue in issues:
            key = str(issue.issue_type)
            summary_by_type[key] = summary_by_type.get(key, 0) + 1

        return cls(
            generated_at=datetime.now(timezone.utc).isoformat(),
            sources=sorted(sources),
            total_issues=len(issues),
            summary_by_type=summary_by_type,
            issues=issues,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generated_at": self.generated_at,
            "sources": self.sources,
            "total_issues": self.total_issues,
            "summary_by_type": self.summary_by_type,
            "issues": [issue.to_dict() for issue in self.issues],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(), encoding="utf-8")
        logger.info(f"Diagnostics report saved: {path}")
