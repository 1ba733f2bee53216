"""
Tests for run configuration loading and boundary validation.

Tests cover:
- Valid YAML / dict configurations
- Rejection of non-positive and non-finite values
- Field paths in validation details
- Typed loader errors (file_not_found, yaml_parse, validation)
"""

import math
import os
import sys

import pytest
from pydantic import ValidationError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from hold_loader.config import (
    BarSpec,
    ConfigError,
    GeneratorSettings,
    HoldSettings,
    load_config,
    load_config_from_dict,
)


VALID_YAML = """\
hold:
  hold_volume: 1000
  window_width: 10
  window_height: 10
bars:
  - {width: 5, length: 5, height: 5}
  - {width: 20, length: 5, height: 5}
strict: true
"""


@pytest.fixture
def valid_data():
    return {
        "hold": {"hold_volume": 1000, "window_width": 10, "window_height": 5},
        "bars": [{"width": 3, "length": 4, "height": 6}],
    }


class TestModels:
    def test_hold_settings_accepts_numeric_strings(self):
        hold = HoldSettings(hold_volume="1000", window_width="10.5", window_height=4)
        assert hold.window_width == 10.5

    @pytest.mark.parametrize("value", [0, -1, math.inf, math.nan])
    def test_hold_settings_rejects_bad_values(self, value):
        with pytest.raises(ValidationError):
            HoldSettings(hold_volume=value, window_width=10, window_height=10)

    @pytest.mark.parametrize("field", ["width", "length", "height"])
    def test_bar_spec_rejects_non_positive(self, field):
        data = {"width": 1, "length": 1, "height": 1, field: 0}
        with pytest.raises(ValidationError):
            BarSpec(**data)

    def test_bar_spec_dims_and_volume(self):
        bar = BarSpec(width=2, length=3, height=4)
        assert bar.dims == (2, 3, 4)
        assert bar.volume == 24

    def test_generator_range_checked(self):
        with pytest.raises(ValidationError):
            GeneratorSettings(min_dim=10, max_dim=5)
        assert GeneratorSettings().count == 15


class TestLoadConfig:
    def test_load_from_dict(self, valid_data):
        config = load_config_from_dict(valid_data)
        assert config.hold.window_height == 5
        assert config.bars[0].dims == (3, 4, 6)
        assert config.strict is False
        assert config.generator is None

    def test_load_yaml_file(self, tmp_path):
        path = tmp_path / "run.yaml"
        path.write_text(VALID_YAML, encoding="utf-8")
        config = load_config(path)
        assert config.hold.hold_volume == 1000
        assert len(config.bars) == 2
        assert config.strict is True

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError) as excinfo:
            load_config(tmp_path / "missing.yaml")
        assert excinfo.value.error_type == "file_not_found"

    def test_yaml_parse_error(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("hold: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError) as excinfo:
            load_config(path)
        assert excinfo.value.error_type == "yaml_parse"
        assert excinfo.value.path == path

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(ConfigError) as excinfo:
            load_config(path)
        assert excinfo.value.error_type == "validation"

    def test_validation_details_use_field_paths(self, valid_data):
        valid_data["bars"].append({"width": -1, "length": 1, "height": 1})
        with pytest.raises(ConfigError) as excinfo:
            load_config_from_dict(valid_data)
        paths = [d["path"] for d in excinfo.value.details]
        assert "bars[1].width" in paths

    def test_infinite_yaml_value_rejected(self, tmp_path):
        path = tmp_path / "inf.yaml"
        path.write_text(VALID_YAML.replace("hold_volume: 1000", "hold_volume: .inf"),
                        encoding="utf-8")
        with pytest.raises(ConfigError) as excinfo:
            load_config(path)
        assert any(d["path"] == "hold.hold_volume" for d in excinfo.value.details)

    def test_unknown_keys_rejected(self, valid_data):
        valid_data["hold"]["door_depth"] = 3
        with pytest.raises(ConfigError):
            load_config_from_dict(valid_data)
