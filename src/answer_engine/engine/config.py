"""
Module: engine.config

Purpose:
    Configuration dataclasses for the classification engine. Holds the
    tunable thresholds for contextual detection and the policy switches
    operators may want to recalibrate per subject.

Key Classes:
    - ContextualThresholds: Ratio/floor for the strong-contextual rule
    - EngineConfig: Main configuration for a classification pass

Key Functions:
    - load_config(path): Read an EngineConfig from a JSON file

Dependencies:
    - dataclasses: For frozen dataclass support

Used By:
    - engine.expectation: Uses ContextualThresholds
    - engine.formats: Uses single_word_max_words, default_format
    - engine.walker: Passes EngineConfig through the pipeline
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from ..core.models.enums import AnswerFormat


@dataclass(frozen=True)
class ContextualThresholds:
    """
    Thresholds for classifying a stem as contextual-only.

    A node with children and no valid answers is contextual when
    contextual_score >= question_score * ratio AND contextual_score >= floor.

    Attributes:
        ratio: Contextual score must be at least this multiple of the
            question score. Defaults to 1.5.
        floor: Minimum absolute contextual score. Defaults to 4.
    """
    ratio: float = 1.5  # Lower ratios misread "Describe..." stems as context
    floor: int = 4      # Lower floors misread stems mentioning figures/tables

    def __post_init__(self) -> None:
        if self.ratio < 0:
            raise ValueError(f"ratio must be non-negative: {self.ratio}")
        if self.floor < 0:
            raise ValueError(f"floor must be non-negative: {self.floor}")


@dataclass(frozen=True)
class EngineConfig:
    """
    Configuration for one classification pass.

    Attributes:
        thresholds: Contextual detection thresholds
        flag_underspecified_nodes: Emit a review diagnostic when a childless
            node has no valid answers (it is still classified as expecting
            a direct answer)
        single_word_max_words: Max words in a lone answer for `single_word`
        default_format: Format used when a direct-answer node has nothing
            else to derive from
        check_compatibility: Record advisory diagnostics for poor
            format/requirement pairings
    """
    thresholds: ContextualThresholds = field(default_factory=ContextualThresholds)
    flag_underspecified_nodes: bool = True
    single_word_max_words: int = 1
    default_format: AnswerFormat = AnswerFormat.MULTI_LINE
    check_compatibility: bool = True

    def __post_init__(self) -> None:
        if self.single_word_max_words < 1:
            raise ValueError(
                f"single_word_max_words must be >= 1: {self.single_word_max_words}"
            )
        if self.default_format is AnswerFormat.NOT_APPLICABLE:
            raise ValueError("default_format cannot be not_applicable")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EngineConfig:
        """
        Build a config from a plain dict (e.g. parsed JSON).

        Raises:
            ValueError: On unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {sorted(unknown)}")

        kwargs = dict(data)
        if "thresholds" in kwargs:
            raw = kwargs["thresholds"]
            if not isinstance(raw, dict):
                raise ValueError(f"thresholds must be an object, got {raw!r}")
            threshold_keys = {f.name for f in fields(ContextualThresholds)}
            bad = set(raw) - threshold_keys
            if bad:
                raise ValueError(f"Unknown threshold keys: {sorted(bad)}")
            kwargs["thresholds"] = _build(ContextualThresholds, raw)
        if "default_format" in kwargs:
            kwargs["default_format"] = AnswerFormat(kwargs["default_format"])
        return _build(cls, kwargs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "thresholds": {
                "ratio": self.thresholds.ratio,
                "floor": self.thresholds.floor,
            },
            "flag_underspecified_nodes": self.flag_underspecified_nodes,
            "single_word_max_words": self.single_word_max_words,
            "default_format": str(self.default_format),
            "check_compatibility": self.check_compatibility,
        }


_FIELD_TYPES = {
    "ratio": (int, float),
    "floor": int,
    "flag_underspecified_nodes": bool,
    "single_word_max_words": int,
    "check_compatibility": bool,
}


def _build(cls, values: dict[str, Any]):
    """Construct a config dataclass, rejecting wrongly typed JSON values."""
    for name, value in values.items():
        expected = _FIELD_TYPES.get(name)
        if expected is None:
            continue
        # bool is an int subclass; only the bool fields accept it
        if (isinstance(value, bool) and expected is not bool) or not isinstance(value, expected):
            raise ValueError(f"Config field {name} has the wrong type: {value!r}")
    return cls(**values)


def load_config(path: Path) -> EngineConfig:
    """
    Load an EngineConfig from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the JSON is invalid or has unknown keys
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid config JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Config in {path} must be a JSON object")
    return EngineConfig.from_dict(data)


DEFAULT_CONFIG = EngineConfig()
