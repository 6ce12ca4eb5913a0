# gridauto/config.py
"""
@file config.py
@brief Per-session automation configuration, presets and settings files.

Precedence is applied deterministically:
  base defaults -> preset -> settings file -> runtime overrides
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional

import yaml
from jsonschema import Draft202012Validator

from .exceptions import ConfigError
from .timings import DEFAULT_PRESET, build_preset_values, list_presets

SCHEMA_PATH = os.path.join(os.path.dirname(__file__), "schemas", "settings.schema.json")

# Keys persisted by the browser extension settings page. Delays are in ms there.
_LEGACY_KEYS: Dict[str, str] = {
    "initialKey": "initial_key",
    "downArrowCount": "advance_count",
    "delayBetweenActions": "delay_between_actions",
    "delayBetweenCycles": "delay_between_cycles",
}
_LEGACY_MS_KEYS = {"delayBetweenActions", "delayBetweenCycles"}


@dataclass(frozen=True)
class Configuration:
    """Immutable automation settings captured for a session."""
    initial_key: str = "r"
    advance_count: int = 2
    delay_between_actions: float = 0.2
    delay_between_cycles: float = 0.8
    scroll_increment: int = 300
    scroll_settle_delay: float = 1.0
    stop_key: str = "Escape"
    target_label: str = "Commune"
    modes: Dict[str, str] = field(default_factory=lambda: {"commune": "Commune"})
    subject_column: str = "subject"
    marker_class: str = "selectSubject"
    rescue_offset: float = 10.0
    panel_dismiss_completed: float = 2.0
    panel_dismiss_stopped: float = 5.0
    toast_duration: float = 3.0
    max_rows_per_scan: Optional[int] = None

    @classmethod
    def from_preset(cls, preset: str = DEFAULT_PRESET) -> Configuration:
        """Build defaults with a speed preset applied."""
        try:
            values = build_preset_values(preset)
        except ValueError as e:
            raise ConfigError(str(e)) from e
        return cls().merge(values)

    def merge(self, overrides: Optional[Mapping[str, Any]]) -> Configuration:
        """
        Return a new configuration with a partial mapping merged in.

        Accepts snake_case field names and the extension's camelCase keys.
        Unknown keys raise ConfigError.
        """
        if not overrides:
            return self
        known = {f.name: f for f in fields(self)}
        changes: Dict[str, Any] = {}
        for key, value in overrides.items():
            name = key
            if key in _LEGACY_KEYS:
                name = _LEGACY_KEYS[key]
                if key in _LEGACY_MS_KEYS and value is not None:
                    value = float(value) / 1000.0
            if name not in known:
                raise ConfigError(f"Unknown configuration key: {key}")
            changes[name] = _coerce(name, value)
        merged = replace(self, **changes)
        merged.validate()
        return merged

    def validate(self) -> None:
        if not self.initial_key:
            raise ConfigError("initial_key must not be empty")
        if self.advance_count < 0:
            raise ConfigError("advance_count must be >= 0")
        for name in ("delay_between_actions", "delay_between_cycles", "scroll_settle_delay"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must be >= 0")
        if self.max_rows_per_scan is not None and self.max_rows_per_scan < 1:
            raise ConfigError("max_rows_per_scan must be >= 1")

    def label_for_mode(self, mode: Optional[str]) -> str:
        """Target option label for a start mode; unknown modes use target_label."""
        if mode and mode in self.modes:
            return self.modes[mode]
        return self.target_label

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _coerce(name: str, value: Any) -> Any:
    try:
        if name in {"advance_count", "scroll_increment"}:
            return int(value)
        if name == "max_rows_per_scan":
            return None if value is None else int(value)
        if name == "modes":
            if not isinstance(value, Mapping):
                raise ConfigError("modes must be a mapping of mode name to label")
            return {str(k): str(v) for k, v in value.items()}
        if name in {"initial_key", "stop_key", "target_label", "subject_column", "marker_class"}:
            return str(value)
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value for {name}: {value!r}") from e


def _load_schema(schema_path: str) -> Dict[str, Any]:
    with open(schema_path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_settings(path: str, schema_path: str = SCHEMA_PATH, preset: Optional[str] = None) -> Configuration:
    """
    Load a settings YAML file and build a Configuration.

    @param path Path to settings.yaml
    @param schema_path JSON schema the file is validated against
    @param preset Speed preset used instead of the file's own preset key
    @return Configuration with preset and file values applied
    @throws ConfigError if the file is missing or invalid
    """
    path = os.path.abspath(path)
    if not os.path.exists(path):
        raise ConfigError(f"Settings YAML not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("Settings YAML must be a mapping at root.")

    validator = Draft202012Validator(_load_schema(schema_path))
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path])
    if errors:
        lines = [
            f"{'.'.join(str(p) for p in e.absolute_path) or '<root>'}: {e.message}"
            for e in errors
        ]
        raise ConfigError("; ".join(lines))

    config = Configuration.from_preset(preset or data.get("preset", DEFAULT_PRESET))
    return config.merge(data.get("automation") or {})


def available_presets() -> Dict[str, Dict[str, Any]]:
    return list_presets()
