"""Utility helpers for import documents."""

from .serialization import (
    annotation_fields,
    apply_annotations,
    load_import_document,
    node_from_import,
    save_json,
)

__all__ = [
    "annotation_fields",
    "apply_annotations",
    "load_import_document",
    "node_from_import",
    "save_json",
]
