"""
Schemas Package

JSON schema definitions and validation utilities for import documents.
"""

from .validator import (
    IMPORT_SCHEMA_VERSION,
    ValidationError,
    iter_document_questions,
    validate_import_document,
    validate_import_question,
)

__all__ = [
    "IMPORT_SCHEMA_VERSION",
    "ValidationError",
    "iter_document_questions",
    "validate_import_document",
    "validate_import_question",
]
