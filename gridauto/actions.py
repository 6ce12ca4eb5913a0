# gridauto/actions.py
"""
@file actions.py
@brief Applies the automation's selection to a resolved control.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from .actionlogger import ACTION_LOGGER
from .config import Configuration
from .element import ControlRef
from .exceptions import ActionError
from .interfaces import GridAccessor
from .models import ActionOutcome, OptionInfo, normalize_label

log = logging.getLogger("gridauto.actions")

ARROW_DOWN = "ArrowDown"
ENTER = "Enter"


def _no_pause(seconds: float) -> None:
    return None


class ActionExecutor:
    """
    Selects the target option on a control.

    Direct selection is tried first; keyboard emulation is the fallback
    when the control has no option with the target label. Errors never
    propagate: they are reported as ActionOutcome.FAILED so the
    controller decides how to recover.
    """

    def __init__(
        self,
        accessor: GridAccessor,
        config: Optional[Configuration] = None,
        pause: Optional[Callable[[float], None]] = None,
    ):
        """
        @param accessor Page capability interface
        @param config Automation configuration
        @param pause Called with the inter-action delay after each simulated key
        """
        self.accessor = accessor
        self.config = config or Configuration()
        self.pause = pause or _no_pause

    def apply(self, control: ControlRef, target_label: Optional[str] = None) -> ActionOutcome:
        """
        Apply the selection to a control.

        @param control Target control, revalidated before use
        @param target_label Label to select (config default)
        @return SELECTED, FALLBACK_USED or FAILED; never raises
        """
        label = target_label or self.config.target_label
        start_time = time.time()
        try:
            control.ensure_attached()
            self._click(control)

            option = self._find_option(control.options(), label)
            if option is not None:
                log.debug("Direct selection of '%s' (position %d)", option.label.strip(), option.index)
                self._commit(control, option)
                outcome = ActionOutcome.SELECTED
            else:
                log.info("Option '%s' not found, using keyboard emulation", label)
                self.send_key(control, self.config.initial_key, label)
                self.pause(self.config.delay_between_actions)
                for i in range(self.config.advance_count):
                    log.debug("Arrow down (%d/%d)", i + 1, self.config.advance_count)
                    self.send_key(control, ARROW_DOWN, label)
                    self.pause(self.config.delay_between_actions)
                self.send_key(control, ENTER, label)
                outcome = ActionOutcome.FALLBACK_USED
        except Exception as e:
            log.error("Action sequence failed on %s: %s: %s", control.describe(), type(e).__name__, e)
            self._log_action(control, ActionOutcome.FAILED, start_time, label, exception=e)
            return ActionOutcome.FAILED

        self._log_action(control, outcome, start_time, label)
        return outcome

    def select_label(self, control: ControlRef, label: str) -> None:
        """
        Select the option whose trimmed label equals label exactly.

        @throws ActionError if the option does not exist or the control is stale
        """
        try:
            control.ensure_attached()
            option = next((o for o in control.options() if o.label.strip() == label), None)
            if option is None:
                raise ActionError("select_label", element_name=control.describe(),
                                  details=f"option '{label}' not found")
            self._click(control)
            self.pause(self.config.delay_between_actions / 2)
            self._commit(control, option)
        except ActionError:
            raise
        except Exception as e:
            raise ActionError("select_label", element_name=control.describe(), cause=e) from e

    def send_key(self, control: ControlRef, key: str, target_label: Optional[str] = None) -> None:
        """
        Emulate one key press on a control.

        On a selectable list the key is interpreted: the initial key searches
        for the target option, ArrowDown moves one option forward, Enter
        commits the current option and blurs. Other controls receive raw
        key events.
        """
        label = target_label or self.config.target_label
        handle = control.handle
        self.accessor.focus(handle)

        if not self.accessor.is_selectable(handle):
            self.accessor.dispatch_key(handle, key)
            return

        options = control.options()
        if key.lower() == self.config.initial_key.lower():
            option = self._search_fallback(options, label)
            if option is None:
                log.warning("No suitable option found; available options: %s",
                            [o.label.strip() for o in options[:10]])
                return
            log.debug("Selecting option '%s' (value: %s)", option.label.strip(), option.value)
            self._commit(control, option)
        elif key == ARROW_DOWN:
            current = self.accessor.selected_index(handle)
            if current < len(options) - 1:
                self.accessor.set_selected_index(handle, current + 1)
                self.accessor.notify_changed(handle, ("change",))
            else:
                log.debug("Already at the last option")
        elif key == ENTER:
            self.accessor.notify_changed(handle, ("change",))
            self.accessor.blur(handle)
        else:
            self.accessor.dispatch_key(handle, key)

    # --- Helpers ---

    def _click(self, control: ControlRef) -> None:
        # Focus problems must not abort the selection itself.
        try:
            self.accessor.focus(control.handle)
            self.accessor.click(control.handle)
        except Exception as e:
            log.debug("Click on %s failed: %s", control.describe(), e)

    def _commit(self, control: ControlRef, option: OptionInfo) -> None:
        self.accessor.set_selected_index(control.handle, option.index)
        self.accessor.notify_changed(control.handle, ("input", "change"))

    @staticmethod
    def _find_option(options: List[OptionInfo], label: str) -> Optional[OptionInfo]:
        wanted = normalize_label(label)
        return next((o for o in options if normalize_label(o.label) == wanted), None)

    def _search_fallback(self, options: List[OptionInfo], label: str) -> Optional[OptionInfo]:
        exact = self._find_option(options, label)
        if exact is not None:
            return exact
        wanted = normalize_label(label)
        containing = next((o for o in options if wanted in o.label.casefold()), None)
        if containing is not None:
            return containing
        initial = self.config.initial_key.casefold()
        return next((o for o in options if o.label.casefold().startswith(initial)), None)

    def _log_action(
        self,
        control: ControlRef,
        outcome: ActionOutcome,
        start_time: float,
        label: str,
        exception: Optional[BaseException] = None,
    ) -> None:
        ACTION_LOGGER.record_row(
            row=control.row_index(),
            label=label,
            outcome=outcome.value,
            element=control.describe(),
            duration_ms=int((time.time() - start_time) * 1000),
            exception=exception,
        )
