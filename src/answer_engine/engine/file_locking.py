"""
Module: engine.file_locking

Purpose:
    Locked access to the files a re-validation batch shares with other
    runs: the results JSONL (append-only) and the run summary JSON
    (read-modify-write). Several processes or worker threads may touch
    them at once, so every access holds a portalocker lock.

Key Functions:
    - locked_file: Open a file with a lock held for the block
    - locked_append_jsonl: Append one result record
    - locked_read_jsonl: Read result records back
    - locked_update_json: Merge into the run summary

Dependencies:
    - portalocker: Cross-platform file locking

Used By:
    - engine.batch
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Any, Callable, Dict, Iterator, List

import portalocker

logger = logging.getLogger(__name__)

JsonObject = Dict[str, Any]


@contextmanager
def locked_file(
    path: Path,
    mode: str = "r",
    lock_type: int = portalocker.LOCK_EX,
) -> Iterator[IO[str]]:
    """
    Open `path` and hold a portalocker lock until the block exits.

    Parent directories are created. Files opened for reading ("r", "r+")
    are created empty if missing, so a first run and a later run take the
    same path through the code.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    if mode.startswith("r"):
        path.touch(exist_ok=True)

    with open(path, mode, encoding="utf-8") as f:
        portalocker.lock(f, lock_type)
        try:
            yield f
        finally:
            portalocker.unlock(f)


def locked_append_jsonl(path: Path, record: JsonObject) -> None:
    """Append `record` to a JSONL results file as a single line."""
    line = json.dumps(record, ensure_ascii=False)
    with locked_file(path, "a") as f:
        f.write(line + "\n")
    logger.debug(f"{path.name}: appended {record.get('status', 'record')} line")


def locked_read_jsonl(path: Path) -> List[JsonObject]:
    """
    Read every record of a JSONL results file under a shared lock.

    Blank lines are skipped. A missing file reads as no records.

    Raises:
        ValueError: If a line is not valid JSON
    """
    if not path.exists():
        return []
    records = []
    with locked_file(path, "r", portalocker.LOCK_SH) as f:
        for line_no, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON on line {line_no} of {path}: {e}") from e
    return records


def locked_update_json(
    path: Path,
    modifier: Callable[[JsonObject], JsonObject],
    default: Callable[[], JsonObject] = dict,
) -> JsonObject:
    """
    Merge into a JSON object file while holding an exclusive lock.

    An empty or missing file starts from `default()`. The lock spans the
    read, `modifier` and the write, so concurrent runs never lose an update.

    Returns:
        The object that was written

    Raises:
        ValueError: If the file holds invalid JSON or a non-object
    """
    with locked_file(path, "r+") as f:
        content = f.read()
        try:
            current = json.loads(content) if content.strip() else default()
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e
        if not isinstance(current, dict):
            raise ValueError(f"{path} must hold a JSON object, got {type(current).__name__}")

        updated = modifier(current)

        f.seek(0)
        f.truncate()
        json.dump(updated, f, indent=2, ensure_ascii=False)
    return updated
