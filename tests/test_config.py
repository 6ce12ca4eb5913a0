# tests/test_config.py
"""
Tests for configuration presets, merging and settings files.
"""

import pytest

from gridauto.config import Configuration, available_presets, load_settings
from gridauto.exceptions import ConfigError
from gridauto.timings import build_preset_values


class TestPresets:
    """Tests for speed presets."""

    @pytest.mark.parametrize("preset,action,cycle", [
        ("fast", 0.1, 0.4),
        ("normal", 0.2, 0.8),
        ("slow", 0.5, 1.5),
        ("default", 0.2, 0.8),
    ])
    def test_preset_delays(self, preset, action, cycle):
        """Should apply the preset's action and cycle delays."""
        config = Configuration.from_preset(preset)
        assert config.delay_between_actions == action
        assert config.delay_between_cycles == cycle

    def test_unknown_preset(self):
        """Should raise ConfigError for unknown presets."""
        with pytest.raises(ConfigError):
            Configuration.from_preset("turbo")

    def test_preset_values_are_copies(self):
        """Should not share state between calls."""
        values = build_preset_values("fast")
        values["delay_between_actions"] = 99
        assert build_preset_values("fast")["delay_between_actions"] == 0.1

    def test_available_presets(self):
        """Should list every preset."""
        assert sorted(available_presets()) == ["fast", "normal", "slow"]


class TestMerge:
    """Tests for Configuration.merge."""

    def test_defaults(self):
        """Should expose the documented defaults."""
        config = Configuration()
        assert config.initial_key == "r"
        assert config.advance_count == 2
        assert config.scroll_increment == 300
        assert config.stop_key == "Escape"
        assert config.max_rows_per_scan is None

    def test_legacy_keys_in_milliseconds(self):
        """Should accept the extension's camelCase keys."""
        config = Configuration().merge({
            "initialKey": "c",
            "downArrowCount": "3",
            "delayBetweenActions": 300,
            "delayBetweenCycles": 1200,
        })
        assert config.initial_key == "c"
        assert config.advance_count == 3
        assert config.delay_between_actions == pytest.approx(0.3)
        assert config.delay_between_cycles == pytest.approx(1.2)

    def test_merge_returns_new_instance(self):
        """Should leave the original configuration untouched."""
        base = Configuration()
        merged = base.merge({"target_label": "French"})
        assert base.target_label == "Commune"
        assert merged.target_label == "French"

    def test_unknown_key(self):
        """Should reject unknown keys."""
        with pytest.raises(ConfigError) as exc_info:
            Configuration().merge({"speed": 3})
        assert "speed" in str(exc_info.value)

    @pytest.mark.parametrize("overrides", [
        {"advance_count": -1},
        {"delay_between_actions": -0.1},
        {"initial_key": ""},
        {"max_rows_per_scan": 0},
        {"advance_count": "many"},
        {"modes": "commune"},
    ])
    def test_invalid_values(self, overrides):
        """Should reject invalid values."""
        with pytest.raises(ConfigError):
            Configuration().merge(overrides)

    def test_label_for_mode(self):
        """Should map modes to labels and fall back to target_label."""
        config = Configuration().merge({"modes": {"commune": "Commune", "math": "Mathematics"}})
        assert config.label_for_mode("math") == "Mathematics"
        assert config.label_for_mode("unknown") == "Commune"
        assert config.label_for_mode(None) == "Commune"


class TestLoadSettings:
    """Tests for settings YAML files."""

    def test_valid_file(self, tmp_path):
        """Should apply the preset and then the file's values."""
        path = tmp_path / "settings.yaml"
        path.write_text(
            "preset: slow\n"
            "automation:\n"
            "  delay_between_cycles: 2.0\n"
            "  modes:\n"
            "    commune: Commune\n"
            "    french: French\n",
            encoding="utf-8",
        )
        config = load_settings(str(path))
        assert config.delay_between_actions == 0.5
        assert config.delay_between_cycles == 2.0
        assert config.label_for_mode("french") == "French"

    def test_preset_argument_overrides_file_preset(self, tmp_path):
        """Should use the caller's preset instead of the file's."""
        path = tmp_path / "settings.yaml"
        path.write_text("preset: slow\n", encoding="utf-8")
        config = load_settings(str(path), preset="fast")
        assert config.delay_between_actions == 0.1

    def test_empty_file(self, tmp_path):
        """Should treat an empty file as defaults."""
        path = tmp_path / "settings.yaml"
        path.write_text("", encoding="utf-8")
        assert load_settings(str(path)) == Configuration()

    def test_missing_file(self, tmp_path):
        """Should raise ConfigError for a missing file."""
        with pytest.raises(ConfigError):
            load_settings(str(tmp_path / "nope.yaml"))

    def test_schema_violation(self, tmp_path):
        """Should report the offending path."""
        path = tmp_path / "settings.yaml"
        path.write_text("automation:\n  advance_count: -2\n", encoding="utf-8")
        with pytest.raises(ConfigError) as exc_info:
            load_settings(str(path))
        assert "automation.advance_count" in str(exc_info.value)

    def test_reports_every_violation(self, tmp_path):
        """Should list all schema errors, not just the first."""
        path = tmp_path / "settings.yaml"
        path.write_text("preset: warp\nautomation:\n  advance_count: -2\n", encoding="utf-8")
        with pytest.raises(ConfigError) as exc_info:
            load_settings(str(path))
        message = str(exc_info.value)
        assert "automation.advance_count" in message
        assert "preset" in message

    def test_unknown_key_in_file(self, tmp_path):
        """Should reject keys the schema does not know."""
        path = tmp_path / "settings.yaml"
        path.write_text("automation:\n  speed: 3\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_settings(str(path))

    def test_invalid_yaml(self, tmp_path):
        """Should wrap YAML parse errors."""
        path = tmp_path / "settings.yaml"
        path.write_text("automation: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_settings(str(path))

    def test_root_must_be_mapping(self, tmp_path):
        """Should reject a list at the root."""
        path = tmp_path / "settings.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_settings(str(path))
