# gridauto/controller.py
"""
@file controller.py
@brief Cancellable, self-rescheduling row automation loop.

States: IDLE -> RESOLVING -> RUNNING -> STOPPING -> IDLE.

Each RUNNING step is a continuation scheduled on a SerialScheduler after a
fixed delay; cancellation is checked at every resumption point, so a stop
request prevents the next continuation but never interrupts an action
already dispatched to the page.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional
from uuid import uuid4

from .actionlogger import ACTION_LOGGER
from .actions import ActionExecutor
from .config import Configuration
from .element import ControlRef
from .interfaces import GridAccessor
from .models import ActionOutcome, ElementHint, NextKind, NextRow, RowState, ScrollOutcome, StopReason
from .navigator import RowNavigator
from .notify import ERROR, INFO, SUCCESS, Notifier
from .pattern import PatternFillRun, collect_subject_controls
from .resolver import ElementResolver
from .scheduler import CancellationToken, SerialScheduler
from .scroll import ScrollRecoveryStrategy

log = logging.getLogger("gridauto.controller")

PATTERN_MODE = "pattern"


class ControllerState(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    RUNNING = "running"
    STOPPING = "stopping"


@dataclass
class AutomationSession:
    """
    State of the single active automation.

    Mutated only by CycleController. Invariant: running implies
    current_target is not None.
    """
    mode: str
    target_label: str
    session_id: str = field(default_factory=lambda: str(uuid4())[:8])
    token: CancellationToken = field(default_factory=CancellationToken)
    running: bool = False
    cycle_count: int = 0
    current_target: Optional[ControlRef] = None
    start_row_index: int = -1
    actions_applied: int = 0
    stop_reason: Optional[StopReason] = None
    stop_message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "mode": self.mode,
            "target_label": self.target_label,
            "running": self.running,
            "cycle_count": self.cycle_count,
            "actions_applied": self.actions_applied,
            "start_row_index": self.start_row_index,
            "current_row": self.current_target.row_index() if self.current_target else -1,
            "stop_reason": self.stop_reason.value if self.stop_reason else None,
            "stop_message": self.stop_message,
        }


class CycleController:
    """
    Orchestrates resolution, action, navigation and scroll recovery.

    Starting a session first tears down any running one. Outcomes are
    reported through the Notifier; the internal teardown is identical for
    normal completion, manual stop and fatal stop.
    """

    def __init__(
        self,
        accessor: GridAccessor,
        scheduler: Optional[SerialScheduler] = None,
        config: Optional[Configuration] = None,
        notifier: Optional[Notifier] = None,
    ):
        """
        @param accessor Page capability interface
        @param scheduler Continuation scheduler (a real-time one by default)
        @param config Automation configuration
        @param notifier Progress channel (a logging-backed one by default)
        """
        self.accessor = accessor
        self.scheduler = scheduler or SerialScheduler()
        self.config = config or Configuration()
        self.notifier = notifier or Notifier(self.scheduler, toast_duration=self.config.toast_duration)
        self.resolver = ElementResolver(accessor, self.config)
        self.navigator = RowNavigator(accessor, self.config)
        self.executor = ActionExecutor(accessor, self.config, pause=self.scheduler.pause)
        self.scroll = ScrollRecoveryStrategy(accessor, self.config)
        self.state = ControllerState.IDLE
        self.session: Optional[AutomationSession] = None
        self.last_session: Optional[AutomationSession] = None
        self._stop_listeners: List[Callable[[AutomationSession], None]] = []

    # --- Host API ---

    @property
    def running(self) -> bool:
        return self.session is not None and self.session.running

    def add_stop_listener(self, callback: Callable[[AutomationSession], None]) -> None:
        """Register a callback invoked with the session once it stops."""
        self._stop_listeners.append(callback)

    def configure(self, overrides: Mapping[str, Any]) -> Configuration:
        """
        Merge a partial configuration; takes effect on the next resolution/action.

        @throws ConfigError on unknown keys or invalid values
        """
        self.config = self.config.merge(overrides)
        for component in (self.resolver, self.navigator, self.executor, self.scroll):
            component.config = self.config
        self.notifier.toast_duration = self.config.toast_duration
        self.notifier.log(f"Configuration updated: {dict(overrides)}")
        return self.config

    def start(self, hint: ElementHint, mode: str = "commune") -> bool:
        """
        Start a session from the control described by hint.

        Resolution happens immediately; the first cycle is scheduled.

        @return False when no control could be resolved (fatal stop)
        """
        session = self._begin_session(mode, self.config.label_for_mode(mode))
        self.notifier.log(f"Starting automation (mode: {mode})")

        self.state = ControllerState.RESOLVING
        self.notifier.log("Looking for the target element...")
        target = self.resolver.resolve(hint, target_label=session.target_label)
        if target is None:
            self._finish(session, StopReason.FATAL, "Unable to find the element to automate")
            return False

        session.start_row_index = target.row_index()
        if session.start_row_index == -1:
            self.notifier.important("Unable to determine the starting row", ERROR)
        else:
            self.notifier.important(f"Starting at row {session.start_row_index} ({mode})", SUCCESS)

        session.current_target = target
        session.running = True
        self.state = ControllerState.RUNNING
        self.notifier.toast(f"Automation started - press {self.config.stop_key} to stop", SUCCESS)
        self._schedule(session, 0, self._cycle)
        return True

    def start_pattern_fill(self, hint: Optional[ElementHint] = None) -> bool:
        """
        Start a pattern fill session over every subject control on the page.

        The hint is accepted for protocol symmetry; the pass always covers
        all rendered subject rows in order.
        """
        session = self._begin_session(PATTERN_MODE, "")
        self.notifier.log("Starting pattern fill")

        self.state = ControllerState.RESOLVING
        controls = collect_subject_controls(self.accessor, self.config)
        if not controls:
            self._finish(session, StopReason.FATAL, "No element to fill found")
            return False

        run = PatternFillRun(controls, self.executor, self.notifier)
        self.notifier.important(f"Starting pattern fill ({len(controls)} rows)", SUCCESS)
        session.start_row_index = controls[0].row_index()
        session.current_target = controls[0]
        session.running = True
        self.state = ControllerState.RUNNING
        self.notifier.toast(f"Pattern fill started - press {self.config.stop_key} to stop", SUCCESS)
        self._schedule(session, 0, self._pattern_step, run)
        return True

    def stop(self) -> bool:
        """
        Cancel the active session; idempotent.

        @return True if a session was stopped
        """
        session = self.session
        if session is None:
            return False
        self._finish(session, StopReason.MANUAL, "Automation stopped")
        return True

    def handle_key(self, key: str) -> bool:
        """
        React to a key press from the page.

        The stop key cancels a running session, or closes a leftover panel.
        """
        if key != self.config.stop_key:
            return False
        if self.session is not None:
            return self.stop()
        if self.notifier.panel_open:
            self.notifier.close_panel()
            return True
        return False

    def snapshot(self) -> Dict[str, Any]:
        session = self.session or self.last_session
        return {
            "state": self.state.value,
            "running": self.running,
            "session": session.to_dict() if session else None,
        }

    # --- Scheduling ---

    def _begin_session(self, mode: str, target_label: str) -> AutomationSession:
        if self.session is not None:
            self.notifier.log("Stopping previous automation")
            self._finish(self.session, StopReason.MANUAL, "Automation replaced by a new session", announce=False)

        session = AutomationSession(mode=mode, target_label=target_label)
        self.session = session
        ACTION_LOGGER.set_session_id(session.session_id)
        self.notifier.open_panel()
        return session

    def _schedule(self, session: AutomationSession, delay: float, step: Callable[..., None], *args: Any) -> None:
        handle = self.scheduler.call_later(delay, self._resume, session, step, args)
        session.token.bind(handle)

    def _resume(self, session: AutomationSession, step: Callable[..., None], args: tuple) -> None:
        if session.token.cancelled or self.session is not session or not session.running:
            log.debug("Continuation discarded for session %s", session.session_id)
            return
        try:
            step(session, *args)
        except Exception as e:
            log.exception("Unexpected error in automation cycle")
            self._finish(session, StopReason.FATAL, f"Error in cycle #{session.cycle_count}: {e}")

    @staticmethod
    def _retarget(session: AutomationSession, control: Optional[ControlRef]) -> None:
        """Point the session at a new control; the previous reference becomes invalid."""
        previous = session.current_target
        session.current_target = control
        if previous is not None and previous is not control:
            previous.revoke()

    # --- Row automation ---

    def _cycle(self, session: AutomationSession) -> None:
        session.cycle_count += 1
        self.notifier.log(f"Cycle #{session.cycle_count} - checking element")

        target = session.current_target
        if target is None or not target.is_attached():
            self.notifier.log("Target element lost, looking for a similar element...")
            similar = self.resolver.find_similar()
            if similar is None:
                self._finish(session, StopReason.FATAL, "Target element lost - automation stopped")
                return
            self.notifier.log("New element found")
            self._retarget(session, similar)
            target = similar

        # Only the start row is checked here; find_next skips done rows after it.
        first = session.cycle_count == 1
        if first and self.navigator.classify(target, session.target_label) is RowState.TARGET_ALREADY_SET:
            self.notifier.log(f"Row {target.row_index()} already holds '{session.target_label}', skipping")
            nxt = self.navigator.find_next(target, target_label=session.target_label)
            self._handle_next(session, nxt, allow_scroll=True)
            return

        outcome = self.executor.apply(target, target_label=session.target_label)
        if outcome is ActionOutcome.FAILED:
            self._finish(session, StopReason.FATAL, "Error in the automation")
            return
        self._schedule(session, self.config.delay_between_actions, self._after_action, outcome)

    def _after_action(self, session: AutomationSession, outcome: ActionOutcome) -> None:
        session.actions_applied += 1
        target = session.current_target
        row = target.row_index() if target else -1
        how = "selected" if outcome is ActionOutcome.SELECTED else "entered by keyboard"
        self.notifier.important(f"Row {row}: '{session.target_label}' {how}")

        self.notifier.log("Looking for the next row...")
        nxt = self.navigator.find_next(target, target_label=session.target_label)
        self._handle_next(session, nxt, allow_scroll=True)

    def _after_scroll(self, session: AutomationSession, after_index: int) -> None:
        nxt = self.navigator.find_next_after(after_index, target_label=session.target_label)
        if nxt.found:
            self.notifier.log("New row found after scrolling", SUCCESS)
        self._handle_next(session, nxt, allow_scroll=False)

    def _handle_next(self, session: AutomationSession, nxt: NextRow, allow_scroll: bool) -> None:
        if nxt.kind is NextKind.FOUND:
            self.notifier.log(f"Next row found (row-index: {nxt.row_index})", SUCCESS)
            self._retarget(session, nxt.control)
            self._schedule(session, self.config.delay_between_cycles, self._cycle)
            return

        if nxt.kind is NextKind.END_OF_WORK:
            self.notifier.important(f"Stop: {nxt.reason}; all target rows processed", INFO)
            self._finish(session, StopReason.COMPLETED)
            return

        if nxt.kind is NextKind.NOT_FOUND:
            self._finish(session, StopReason.FATAL, f"Next row lookup failed: {nxt.reason}")
            return

        if not allow_scroll:
            self._finish(session, StopReason.COMPLETED)
            return

        self.notifier.log("No next row rendered - trying to scroll...")
        if self.scroll.attempt() is ScrollOutcome.UNAVAILABLE:
            self._finish(session, StopReason.COMPLETED)
            return
        self._schedule(session, self.config.scroll_settle_delay, self._after_scroll, nxt.after_index)

    # --- Pattern fill ---

    def _pattern_step(self, session: AutomationSession, run: PatternFillRun) -> None:
        session.cycle_count += 1
        run.process_next()
        session.actions_applied = run.processed
        if run.done:
            self.notifier.important(f"Pattern fill finished - {run.processed} rows processed", SUCCESS)
            self._finish(session, StopReason.COMPLETED)
            return
        self._retarget(session, run.current())
        self._schedule(session, self.config.delay_between_cycles, self._pattern_step, run)

    # --- Teardown ---

    def _finish(
        self,
        session: AutomationSession,
        reason: StopReason,
        message: str = "",
        announce: bool = True,
    ) -> None:
        if self.session is not session:
            return
        self.state = ControllerState.STOPPING
        session.token.cancel()
        session.running = False
        self._retarget(session, None)
        session.stop_reason = reason
        session.stop_message = message
        self.session = None
        self.last_session = session
        self.state = ControllerState.IDLE

        ACTION_LOGGER.record_session(
            mode=session.mode,
            reason=reason.value,
            actions=session.actions_applied,
            cycles=session.cycle_count,
            message=message or None,
        )

        if announce:
            self._announce(session, reason, message)

        for callback in list(self._stop_listeners):
            try:
                callback(session)
            except Exception:
                log.exception("Stop listener failed")

    def _announce(self, session: AutomationSession, reason: StopReason, message: str) -> None:
        if reason is StopReason.COMPLETED:
            text = f"Automation finished - {session.actions_applied} rows processed"
            self.notifier.important(text, SUCCESS)
            self.notifier.toast(text, SUCCESS)
            self.notifier.dismiss_panel_after(self.config.panel_dismiss_completed)
        elif reason is StopReason.MANUAL:
            self.notifier.log(message or "Automation stopped")
            self.notifier.toast(message or "Automation stopped")
            self.notifier.dismiss_panel_after(self.config.panel_dismiss_stopped)
        else:
            self.notifier.important(message, ERROR)
            self.notifier.toast(message, ERROR)
            self.notifier.dismiss_panel_after(self.config.panel_dismiss_stopped)
