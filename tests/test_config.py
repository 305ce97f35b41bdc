"""
Tests for configuration loading
===============================
"""

import pytest

from handorbit.utils.config import (
    Config, ConfigError, _deep_merge, default_section, validate_control_settings,
)


def write_yaml(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text)
    return str(path)


class TestLoad:

    def test_defaults_without_file(self, fresh_config, tmp_path):
        fresh_config.load(str(tmp_path / "missing.yaml"))
        assert fresh_config.get("recognition.pinch_threshold") == 0.05
        assert fresh_config.motion["zoom_rate"] == 0.01

    def test_file_overrides_merge_with_defaults(self, fresh_config, tmp_path):
        path = write_yaml(tmp_path, "recognition:\n  pinch_threshold: 0.04\n")
        fresh_config.load(path)

        assert fresh_config.get("recognition.pinch_threshold") == 0.04
        # Untouched keys of the same section survive the merge
        assert fresh_config.get("recognition.contact_enter_threshold") == 0.12

    def test_empty_file(self, fresh_config, tmp_path):
        fresh_config.load(write_yaml(tmp_path, ""))
        assert fresh_config.get("viewer.target_fps") == 60

    def test_top_level_must_be_mapping(self, fresh_config, tmp_path):
        with pytest.raises(ConfigError):
            fresh_config.load(write_yaml(tmp_path, "- just\n- a list\n"))

    def test_invalid_control_value_rejected(self, fresh_config, tmp_path):
        path = write_yaml(tmp_path, "smoothing:\n  fixed_factor: 1.5\n")
        with pytest.raises(ConfigError):
            fresh_config.load(path)

    def test_wrong_type_only_warns(self, fresh_config, tmp_path, caplog):
        path = write_yaml(tmp_path, "camera:\n  width: wide\n")
        fresh_config.load(path)
        assert "camera.width" in caplog.text

    def test_quoted_control_number_rejected(self, fresh_config, tmp_path):
        path = write_yaml(tmp_path, 'recognition:\n  pinch_threshold: "0.05"\n')
        with pytest.raises(ConfigError, match="pinch_threshold"):
            fresh_config.load(path)

    def test_control_section_must_be_mapping(self, fresh_config, tmp_path):
        with pytest.raises(ConfigError):
            fresh_config.load(write_yaml(tmp_path, "motion: fast\n"))

    def test_bool_is_not_a_number(self, fresh_config, tmp_path, caplog):
        fresh_config.load(write_yaml(tmp_path, "viewer:\n  min_scale: true\n"))
        assert "viewer.min_scale" in caplog.text

    def test_shipped_config_loads(self, fresh_config):
        fresh_config.load()
        assert fresh_config.path.endswith("config.yaml")
        assert fresh_config.get("recognition.contact_exit_multiplier") == pytest.approx(1.3)


class TestAccess:

    def test_singleton(self, fresh_config):
        assert Config() is fresh_config

    def test_get_missing_returns_default(self, fresh_config):
        assert fresh_config.get("no.such.key", "fallback") == "fallback"

    def test_set_creates_path(self, fresh_config):
        fresh_config.set("camera.device_id", 2)
        fresh_config.set("extra.nested.value", True)
        assert fresh_config.camera["device_id"] == 2
        assert fresh_config.get("extra.nested.value") is True

    def test_default_section_is_a_copy(self):
        section = default_section("motion", zoom_rate=0.5)
        assert section["zoom_rate"] == 0.5
        assert default_section("motion")["zoom_rate"] == 0.01

    def test_deep_merge(self):
        merged = _deep_merge({"a": {"b": 1, "c": 2}}, {"a": {"c": 3}, "d": 4})
        assert merged == {"a": {"b": 1, "c": 3}, "d": 4}


class TestControlSettings:

    def _sections(self, **changes):
        sections = {
            "recognition": default_section("recognition"),
            "smoothing": default_section("smoothing"),
            "motion": default_section("motion"),
        }
        for dotted, value in changes.items():
            section, key = dotted.split("__")
            sections[section][key] = value
        return sections

    def test_defaults_valid(self):
        validate_control_settings(**self._sections())

    @pytest.mark.parametrize("change", [
        {"recognition__contact_enter_threshold": -0.1},
        {"recognition__contact_exit_multiplier": 0.9},
        {"smoothing__adaptive_min_factor": 0.0},
        {"smoothing__adaptive_max_factor": 0.05},
        {"smoothing__adaptive_gain": -1.0},
        {"motion__rotation_deadzone": -0.001},
        {"motion__zoom_rate": -0.01},
        {"recognition__pinch_threshold": "0.05"},
        {"smoothing__fixed_factor": None},
        {"motion__pan_scale_x": True},
    ])
    def test_violations(self, change):
        with pytest.raises(ConfigError):
            validate_control_settings(**self._sections(**change))
