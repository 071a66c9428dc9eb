"""Answer expectation and format/requirement classification engine.

Annotates imported exam question trees (question -> part -> subpart) with
whether each node expects a gradable answer, its answer format and its
answer requirement.

Provides subpackages:
- answer_engine.core – node models, import validation, serialization
- answer_engine.engine – scorer, classifier, derivers, tree walker, batch
"""

from .core import (
    AnswerFormat,
    AnswerRequirement,
    Confidence,
    CorrectAnswer,
    NodeLevel,
    QuestionNode,
)
from .core.schemas import ValidationError
from .core.utils import node_from_import
from .engine import (
    DEFAULT_CONFIG,
    DEFAULT_PATTERNS,
    DiagnosticsCollector,
    EngineConfig,
    annotate,
    annotate_document,
    annotate_many,
    annotate_with_diagnostics,
    revalidate_files,
)


def _get_version() -> str:
    """Get version from pyproject.toml (dev) or importlib.metadata (installed)."""
    from importlib.metadata import PackageNotFoundError, version as pkg_version
    from pathlib import Path

    # In dev mode, read directly from pyproject.toml
    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"
    if pyproject.exists():
        for line in pyproject.read_text(encoding="utf-8").splitlines():
            if line.strip().startswith("version"):
                # Parse: version = "0.3.0"
                return line.split("=")[1].strip().strip('"').strip("'")

    try:
        return pkg_version("answer-engine")
    except PackageNotFoundError:
        return "0.0.0"


__version__ = _get_version()
__all__: list[str] = [
    "__version__",
    "AnswerFormat",
    "AnswerRequirement",
    "Confidence",
    "CorrectAnswer",
    "DEFAULT_CONFIG",
    "DEFAULT_PATTERNS",
    "DiagnosticsCollector",
    "EngineConfig",
    "NodeLevel",
    "QuestionNode",
    "ValidationError",
    "annotate",
    "annotate_document",
    "annotate_many",
    "annotate_with_diagnostics",
    "node_from_import",
    "revalidate_files",
]
