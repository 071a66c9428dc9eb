"""
Unit tests for engine configuration.
"""

import json

import pytest

from answer_engine.core.models.enums import AnswerFormat
from answer_engine.engine.config import (
    DEFAULT_CONFIG,
    ContextualThresholds,
    EngineConfig,
    load_config,
)


class TestEngineConfig:
    def test_defaults(self):
        assert DEFAULT_CONFIG.thresholds == ContextualThresholds(ratio=1.5, floor=4)
        assert DEFAULT_CONFIG.default_format is AnswerFormat.MULTI_LINE
        assert DEFAULT_CONFIG.flag_underspecified_nodes is True

    def test_thresholds_when_negative_then_error(self):
        with pytest.raises(ValueError, match="floor"):
            ContextualThresholds(floor=-1)

    def test_config_when_default_format_not_applicable_then_error(self):
        with pytest.raises(ValueError, match="default_format"):
            EngineConfig(default_format=AnswerFormat.NOT_APPLICABLE)

    def test_config_when_zero_max_words_then_error(self):
        with pytest.raises(ValueError):
            EngineConfig(single_word_max_words=0)

    def test_from_dict_when_partial_then_defaults_fill_in(self):
        config = EngineConfig.from_dict({
            "thresholds": {"floor": 6},
            "default_format": "single_line",
        })

        assert config.thresholds == ContextualThresholds(ratio=1.5, floor=6)
        assert config.default_format is AnswerFormat.SINGLE_LINE
        assert config.check_compatibility is True

    def test_from_dict_when_unknown_key_then_error(self):
        with pytest.raises(ValueError, match="Unknown config keys"):
            EngineConfig.from_dict({"treshold": 2})

    def test_from_dict_when_unknown_threshold_key_then_error(self):
        with pytest.raises(ValueError, match="Unknown threshold keys"):
            EngineConfig.from_dict({"thresholds": {"minimum": 2}})

    def test_from_dict_when_thresholds_not_object_then_value_error(self):
        with pytest.raises(ValueError, match="thresholds must be an object"):
            EngineConfig.from_dict({"thresholds": 4})

    @pytest.mark.parametrize("data", [
        {"single_word_max_words": "2"},
        {"flag_underspecified_nodes": "yes"},
        {"check_compatibility": 1},
        {"single_word_max_words": True},
        {"thresholds": {"floor": "4"}},
        {"thresholds": {"ratio": None}},
    ])
    def test_from_dict_when_field_wrong_type_then_value_error(self, data):
        """JSON values of the wrong type never surface as TypeError."""
        with pytest.raises(ValueError, match="wrong type"):
            EngineConfig.from_dict(data)

    def test_from_dict_when_unknown_default_format_then_value_error(self):
        with pytest.raises(ValueError):
            EngineConfig.from_dict({"default_format": "essay"})

    def test_from_dict_when_integer_ratio_then_accepted(self):
        assert EngineConfig.from_dict({"thresholds": {"ratio": 2}}).thresholds.ratio == 2

    def test_to_dict_when_round_tripped_then_equal(self):
        config = EngineConfig(flag_underspecified_nodes=False, single_word_max_words=2)

        assert EngineConfig.from_dict(config.to_dict()) == config


class TestLoadConfig:
    def test_load_when_valid_file_then_config(self, tmp_path):
        path = tmp_path / "engine.json"
        path.write_text(json.dumps({"check_compatibility": False}), encoding="utf-8")

        assert load_config(path).check_compatibility is False

    def test_load_when_missing_then_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.json")

    def test_load_when_bad_json_then_value_error(self, tmp_path):
        path = tmp_path / "engine.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid config JSON"):
            load_config(path)

    def test_load_when_not_object_then_value_error(self, tmp_path):
        path = tmp_path / "engine.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(ValueError, match="JSON object"):
            load_config(path)
