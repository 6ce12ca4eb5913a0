# gridauto/messages.py
"""
@file messages.py
@brief Host message protocol in front of a CycleController.

Messages are plain dicts with an "action" key; every message receives a
synchronous dict response. Automation started by a message keeps running on
the controller's scheduler after the response is returned.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping

from .controller import CycleController
from .exceptions import ConfigError
from .models import ElementHint

log = logging.getLogger("gridauto.messages")

Response = Dict[str, Any]


class MessageHandler:
    """
    Dispatch host messages to controller operations.

    Supported actions: startAutomation, startPatternFill, stopAutomation,
    configure, status.
    """

    def __init__(self, controller: CycleController):
        self.controller = controller
        self._handlers: Dict[str, Callable[[Mapping[str, Any]], Response]] = {
            "startAutomation": self._start_automation,
            "startPatternFill": self._start_pattern_fill,
            "stopAutomation": self._stop_automation,
            "configure": self._configure,
            "status": self._status,
        }

    def handle(self, message: Mapping[str, Any]) -> Response:
        if not isinstance(message, Mapping):
            return {"success": False, "error": "Message must be an object"}

        action = message.get("action")
        handler = self._handlers.get(action) if isinstance(action, str) else None
        if handler is None:
            log.warning("Unknown action: %r", action)
            return {"success": False, "error": f"Unknown action: {action!r}"}

        log.debug("Message received: %s", action)
        try:
            return handler(message)
        except Exception as e:
            # The host only ever sees a response.
            log.exception("Message %s failed", action)
            return {"success": False, "error": f"{type(e).__name__}: {e}"}

    def _start_automation(self, message: Mapping[str, Any]) -> Response:
        hint = ElementHint.from_dict(message.get("element"))
        mode = message.get("mode")
        if not isinstance(mode, str) or not mode:
            mode = "commune"
        # Resolution failures are reported through the notifier, not the response.
        self.controller.start(hint, mode=mode)
        return {"success": True}

    def _start_pattern_fill(self, message: Mapping[str, Any]) -> Response:
        hint = ElementHint.from_dict(message.get("element"))
        self.controller.start_pattern_fill(hint)
        return {"success": True}

    def _stop_automation(self, message: Mapping[str, Any]) -> Response:
        self.controller.stop()
        return {"success": True}

    def _configure(self, message: Mapping[str, Any]) -> Response:
        overrides = message.get("config") or {}
        if not isinstance(overrides, Mapping):
            return {"success": False, "error": "config must be an object"}
        try:
            self.controller.configure(overrides)
        except ConfigError as e:
            return {"success": False, "error": str(e)}
        return {"success": True}

    def _status(self, message: Mapping[str, Any]) -> Response:
        return {"success": True, "status": self.controller.snapshot()}
