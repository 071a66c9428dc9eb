"""
Module: engine.batch

Purpose:
    Batch re-validation. Re-annotates many import documents (one document
    per worker thread) and appends one JSONL record per question to a
    shared results file. Documents that fail to load or validate are
    recorded as error lines; the rest of the batch carries on.

Key Functions:
    - revalidate_files(paths, output_jsonl): BatchResult

Dependencies:
    - engine.file_locking (portalocker): results file and run summary
      are shared between concurrent runs

Used By:
    - cli (revalidate command)
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..core.schemas.validator import ValidationError
from ..core.utils.serialization import annotation_fields, load_import_document
from .config import DEFAULT_CONFIG, EngineConfig
from .diagnostics import DiagnosticsCollector
from .file_locking import locked_append_jsonl, locked_update_json
from .patterns import DEFAULT_PATTERNS, PatternLibrary
from .walker import AnnotationResult, annotate_document

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Outcome of one re-validation run."""
    files_processed: int = 0
    questions_annotated: int = 0
    diagnostics_by_type: Dict[str, int] = field(default_factory=dict)
    errors: List[Dict[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files_processed": self.files_processed,
            "questions_annotated": self.questions_annotated,
            "diagnostics_by_type": dict(self.diagnostics_by_type),
            "errors": list(self.errors),
        }


def question_record(source: Path, result: AnnotationResult) -> Dict[str, Any]:
    """JSONL record for one annotated question."""
    return {
        "source": str(source),
        "question_id": result.tree.id,
        "status": "ok",
        "annotations": {
            node.id: annotation_fields(node) for node in result.tree.iter_all()
        },
        "diagnostics": [d.to_dict() for d in result.diagnostics],
    }


def _process_file(
    path: Path,
    output_jsonl: Path,
    config: EngineConfig,
    patterns: PatternLibrary,
    strict: bool,
) -> Dict[str, Any]:
    try:
        document, _ = load_import_document(path)
        annotated = annotate_document(
            document, config=config, patterns=patterns, strict=strict
        )
    except (OSError, ValidationError, ValueError) as e:
        logger.error(f"Failed to revalidate {path}: {e}")
        locked_append_jsonl(
            output_jsonl, {"source": str(path), "status": "error", "error": str(e)}
        )
        return {"error": str(e)}

    for result in annotated.results:
        locked_append_jsonl(output_jsonl, question_record(path, result))
    logger.info(f"Revalidated {path.name}: {len(annotated.results)} question(s)")
    return {"results": annotated.results}


def revalidate_files(
    paths: Sequence[Path],
    output_jsonl: Path,
    *,
    summary_path: Optional[Path] = None,
    max_workers: Optional[int] = None,
    config: EngineConfig = DEFAULT_CONFIG,
    patterns: PatternLibrary = DEFAULT_PATTERNS,
    strict: bool = False,
    collector: Optional[DiagnosticsCollector] = None,
) -> BatchResult:
    """
    Re-annotate import documents and append the results as JSONL.

    Args:
        paths: Import documents to process
        output_jsonl: Results file (appended to, never truncated)
        summary_path: Optional JSON file accumulating totals across runs
        max_workers: Worker threads (default: min(4, len(paths)))
        config: Engine configuration
        patterns: Pattern library
        strict: Validate documents against the JSON schema
        collector: Receives every diagnostic, if given

    Returns:
        BatchResult with per-file errors (errors never abort the batch)
    """
    batch = BatchResult()
    if not paths:
        return batch
    workers = max_workers if max_workers is not None else min(4, len(paths))
    if workers < 1:
        raise ValueError(f"max_workers must be >= 1: {workers}")

    def _run(path: Path) -> Dict[str, Any]:
        return _process_file(path, output_jsonl, config, patterns, strict)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        outcomes = list(pool.map(_run, paths))

    for path, outcome in zip(paths, outcomes):
        batch.files_processed += 1
        if "error" in outcome:
            batch.errors.append({"source": str(path), "error": outcome["error"]})
            continue
        for result in outcome["results"]:
            batch.questions_annotated += 1
            for diagnostic in result.diagnostics:
                key = str(diagnostic.issue_type)
                batch.diagnostics_by_type[key] = batch.diagnostics_by_type.get(key, 0) + 1
            if collector is not None:
                collector.extend(result.diagnostics, source=str(path))

    if summary_path is not None:
        _merge_summary(summary_path, batch)

    logger.info(
        f"Batch complete: {batch.files_processed} file(s), "
        f"{batch.questions_annotated} question(s), {len(batch.errors)} error(s)"
    )
    return batch


def _merge_summary(summary_path: Path, batch: BatchResult) -> None:
    def _merge(existing: Dict[str, Any]) -> Dict[str, Any]:
        existing["runs"] = existing.get("runs", 0) + 1
        existing["files_processed"] = existing.get("files_processed", 0) + batch.files_processed
        existing["questions_annotated"] = (
            existing.get("questions_annotated", 0) + batch.questions_annotated
        )
        by_type = existing.setdefault("diagnostics_by_type", {})
        for key, count in batch.diagnostics_by_type.items():
            by_type[key] = by_type.get(key, 0) + count
        existing["errors"] = existing.get("errors", 0) + len(batch.errors)
        existing["last_run"] = datetime.now(timezone.utc).isoformat()
        return existing

    locked_update_json(summary_path, _merge)
