# gridauto/notify.py
"""
@file notify.py
@brief Outbound progress channel: diagnostic log, debug panel and toasts.

Every message goes to the stdlib logging channel. Messages flagged as
important also reach the debug panel, which a host renders for the
operator. Toasts are short-lived one-line notifications.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from .scheduler import SerialScheduler, TimerHandle

INFO = "info"
SUCCESS = "success"
ERROR = "error"
SEVERITIES = (INFO, SUCCESS, ERROR)


@dataclass(frozen=True)
class PanelEntry:
    message: str
    severity: str
    timestamp: datetime


@dataclass(frozen=True)
class Toast:
    message: str
    severity: str


class DebugPanel:
    """In-memory debug panel holding the important lines of a session."""

    def __init__(self, max_entries: int = 200):
        self.max_entries = max_entries
        self.entries: List[PanelEntry] = []
        self.is_open = False

    def open(self) -> None:
        self.entries = []
        self.is_open = True

    def close(self) -> None:
        self.is_open = False

    def add(self, message: str, severity: str) -> None:
        if not self.is_open:
            return
        self.entries.append(PanelEntry(message=message, severity=severity, timestamp=datetime.now()))
        if len(self.entries) > self.max_entries:
            del self.entries[: len(self.entries) - self.max_entries]

    def messages(self) -> List[str]:
        return [e.message for e in self.entries]


class Notifier:
    """
    Structured progress notifications for the automation host.

    @param scheduler Scheduler used for toast expiry and panel dismissal
    @param logger Diagnostic channel (defaults to the 'gridauto' logger)
    @param toast_duration Seconds a toast stays visible
    @param max_toasts Number of past toasts kept in toast_history
    """

    def __init__(
        self,
        scheduler: Optional[SerialScheduler] = None,
        logger: Optional[logging.Logger] = None,
        panel: Optional[DebugPanel] = None,
        toast_duration: float = 3.0,
        max_toasts: int = 50,
    ):
        self.scheduler = scheduler
        self.log_channel = logger or logging.getLogger("gridauto")
        self.panel = panel or DebugPanel()
        self.toast_duration = toast_duration
        self.max_toasts = max_toasts
        self.current_toast: Optional[Toast] = None
        self.toast_history: List[Toast] = []
        self._toast_timer: Optional[TimerHandle] = None
        self._dismiss_timer: Optional[TimerHandle] = None

    def log(self, message: str, severity: str = INFO, important: bool = False) -> None:
        if severity not in SEVERITIES:
            severity = INFO
        if severity == ERROR:
            level = logging.ERROR
        else:
            level = logging.INFO if important else logging.DEBUG
        self.log_channel.log(level, "[%s] %s", severity, message)
        if important:
            self.panel.add(message, severity)

    def important(self, message: str, severity: str = INFO) -> None:
        self.log(message, severity, important=True)

    def toast(self, message: str, severity: str = INFO) -> None:
        """Show a toast, replacing any toast still visible."""
        self._cancel(self._toast_timer)
        toast = Toast(message=message, severity=severity)
        self.current_toast = toast
        self.toast_history.append(toast)
        if len(self.toast_history) > self.max_toasts:
            del self.toast_history[: len(self.toast_history) - self.max_toasts]
        self.log_channel.info("Notification: %s", message)
        if self.scheduler is not None:
            self._toast_timer = self.scheduler.call_later(self.toast_duration, self._expire_toast, toast)

    def open_panel(self) -> None:
        self._cancel(self._dismiss_timer)
        self.panel.open()

    def close_panel(self) -> None:
        self._cancel(self._dismiss_timer)
        self.panel.close()

    @property
    def panel_open(self) -> bool:
        return self.panel.is_open

    def dismiss_panel_after(self, delay: float) -> None:
        """Close the panel after delay seconds (immediately without a scheduler)."""
        self._cancel(self._dismiss_timer)
        if self.scheduler is None:
            self.panel.close()
            return
        self._dismiss_timer = self.scheduler.call_later(delay, self.panel.close)

    def _expire_toast(self, toast: Toast) -> None:
        if self.current_toast is toast:
            self.current_toast = None

    @staticmethod
    def _cancel(handle: Optional[TimerHandle]) -> None:
        if handle is not None:
            handle.cancel()
