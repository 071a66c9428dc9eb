"""
Command-line interface.

    answer-engine annotate INPUT [-o OUT] [--diagnostics FILE] [--config FILE] [--strict] [-v]
    answer-engine revalidate INPUT... --output OUT.jsonl [--summary FILE] [--workers N] [-v]

Exit codes: 0 on success, 1 on validation or I/O errors.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from . import __version__
from .core.schemas.validator import ValidationError
from .core.utils.serialization import load_import_document, save_json
from .engine.batch import revalidate_files
from .engine.config import DEFAULT_CONFIG, EngineConfig, load_config
from .engine.diagnostics import DiagnosticsCollector
from .engine.walker import annotate_document

logger = logging.getLogger("answer_engine")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="answer-engine",
        description="Classify answer expectation, format and requirement for imported exam questions",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    annotate_cmd = sub.add_parser("annotate", help="Annotate one import document")
    annotate_cmd.add_argument("input", type=Path, help="Import JSON document")
    annotate_cmd.add_argument("--output", "-o", type=Path, help="Write annotated JSON here (default: stdout)")
    annotate_cmd.add_argument("--diagnostics", type=Path, help="Write a diagnostics report here")
    annotate_cmd.add_argument("--config", type=Path, help="Engine config JSON")
    annotate_cmd.add_argument("--strict", action="store_true", help="Validate against the JSON schema")
    annotate_cmd.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    revalidate_cmd = sub.add_parser("revalidate", help="Re-annotate many documents into a JSONL file")
    revalidate_cmd.add_argument("inputs", type=Path, nargs="+", help="Import JSON documents")
    revalidate_cmd.add_argument("--output", "-o", type=Path, required=True, help="Results JSONL (appended)")
    revalidate_cmd.add_argument("--summary", type=Path, help="Run summary JSON (merged across runs)")
    revalidate_cmd.add_argument("--workers", "-w", type=int, default=None, help="Worker threads")
    revalidate_cmd.add_argument("--config", type=Path, help="Engine config JSON")
    revalidate_cmd.add_argument("--strict", action="store_true", help="Validate against the JSON schema")
    revalidate_cmd.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def _load_config(path: Optional[Path]) -> EngineConfig:
    return load_config(path) if path is not None else DEFAULT_CONFIG


def _cmd_annotate(args: argparse.Namespace) -> int:
    config = _load_config(args.config)
    document, _ = load_import_document(args.input)
    collector = DiagnosticsCollector()
    collector.add_source(str(args.input))

    result = annotate_document(document, config=config, strict=args.strict, collector=collector)

    if args.output is not None:
        save_json(args.output, result.document)
        logger.info(f"Annotated document saved: {args.output}")
    else:
        json.dump(result.document, sys.stdout, indent=2, ensure_ascii=False)
        sys.stdout.write("\n")

    if args.diagnostics is not None:
        collector.generate_report().save(args.diagnostics)
    logger.info(f"{len(result.results)} question(s) annotated, {collector.issue_count} diagnostic(s)")
    return 0


def _cmd_revalidate(args: argparse.Namespace) -> int:
    config = _load_config(args.config)
    batch = revalidate_files(
        args.inputs,
        args.output,
        summary_path=args.summary,
        max_workers=args.workers,
        config=config,
        strict=args.strict,
    )
    for error in batch.errors:
        logger.error(f"{error['source']}: {error['error']}")
    return 0 if batch.ok else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        if args.command == "annotate":
            return _cmd_annotate(args)
        return _cmd_revalidate(args)
    except ValidationError as e:
        where = f" at {e.path}" if e.path else ""
        logger.error(f"Validation failed{where}: {e}")
        return 1
    except (OSError, ValueError) as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
