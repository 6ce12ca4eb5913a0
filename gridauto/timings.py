# gridauto/timings.py
"""
@file timings.py
@brief Speed presets and default delays for grid automation.
"""

from __future__ import annotations
from copy import deepcopy
from typing import Any, Dict


# Seconds. Action delay follows each simulated action, cycle delay follows a
# completed row, settle delay follows a scroll advance.
DELAY_FIELDS: Dict[str, float] = {
    "delay_between_actions": 0.2,
    "delay_between_cycles": 0.8,
    "scroll_settle_delay": 1.0,
}

NOTIFICATION_FIELDS: Dict[str, float] = {
    "panel_dismiss_completed": 2.0,
    "panel_dismiss_stopped": 5.0,
    "toast_duration": 3.0,
}

DEFAULT_PRESET = "normal"

PRESET_OVERRIDES: Dict[str, Dict[str, Any]] = {
    "fast": {
        "delay_between_actions": 0.1,
        "delay_between_cycles": 0.4,
    },
    "normal": {},
    "slow": {
        "delay_between_actions": 0.5,
        "delay_between_cycles": 1.5,
    },
}


def list_presets() -> Dict[str, Dict[str, Any]]:
    return {name: build_preset_values(name) for name in PRESET_OVERRIDES}


def build_preset_values(preset: str) -> Dict[str, Any]:
    preset_key = (preset or DEFAULT_PRESET).lower()
    if preset_key == "default":
        preset_key = DEFAULT_PRESET

    overrides = PRESET_OVERRIDES.get(preset_key)
    if overrides is None:
        raise ValueError(f"Unknown speed preset: {preset}")

    values: Dict[str, Any] = {}
    values.update(deepcopy(DELAY_FIELDS))
    values.update(deepcopy(NOTIFICATION_FIELDS))
    values.update(deepcopy(overrides))
    return values
