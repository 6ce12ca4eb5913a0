# gridauto/pattern.py
"""
@file pattern.py
@brief Pattern fill: carry each row's subject forward into following empty rows.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from .actions import ActionExecutor
from .config import Configuration
from .element import ControlMeta, ControlRef
from .exceptions import ActionError
from .interfaces import GridAccessor
from .notify import ERROR, SUCCESS, Notifier

log = logging.getLogger("gridauto.pattern")

# Column ids used by French-language grids for the subject column.
COLUMN_ALIASES = ("matière", "matiere")


def _column_matches(col_id: Optional[str], keywords: List[str]) -> bool:
    if not col_id:
        return False
    col = col_id.casefold()
    return any(k in col for k in keywords)


def collect_subject_controls(accessor: GridAccessor, config: Configuration) -> List[ControlRef]:
    """
    All subject controls in row order.

    Lookup order: marker-class controls, selectables whose column id
    contains the subject column name or a French alias, the first
    selectable of every rendered row, every selectable.
    """
    def wrap(handles: List[Any], strategy: str) -> List[ControlRef]:
        refs = [ControlRef(accessor, h, ControlMeta(strategy=strategy)) for h in handles]
        refs.sort(key=lambda r: (r.row_index() < 0, r.row_index()))
        return refs

    marked = [h for h in accessor.find_by_class(config.marker_class) if accessor.is_selectable(h)]
    if marked:
        log.debug("%d subject controls found via marker class", len(marked))
        return wrap(marked, "marker_class")

    selectables = accessor.find_all_selectables()
    keywords = [k.casefold() for k in (config.subject_column,) + COLUMN_ALIASES]
    in_column = [h for h in selectables if _column_matches(accessor.column_of(h), keywords)]
    if in_column:
        log.debug("%d subject controls found via column id", len(in_column))
        return wrap(in_column, "column")

    first_per_row = {}
    for handle in selectables:
        row = accessor.row_index_of(handle)
        if row >= 0 and row not in first_per_row:
            first_per_row[row] = handle
    if first_per_row:
        log.debug("%d subject controls found via grid rows", len(first_per_row))
        return wrap([first_per_row[r] for r in sorted(first_per_row)], "grid_rows")

    log.debug("Fallback: using every selectable (%d)", len(selectables))
    return wrap(selectables, "all_selectables")


class PatternFillRun:
    """
    State of one pattern fill pass.

    A row with a selected label becomes the reference subject; empty rows
    after it receive that label. Empty rows before any reference are left
    untouched.
    """

    def __init__(
        self,
        controls: List[ControlRef],
        executor: ActionExecutor,
        notifier: Notifier,
    ):
        self.controls = controls
        self.executor = executor
        self.notifier = notifier
        self.position = 0
        self.current_subject = ""
        self.processed = 0

    @property
    def done(self) -> bool:
        return self.position >= len(self.controls)

    def current(self) -> Optional[ControlRef]:
        return None if self.done else self.controls[self.position]

    def process_next(self) -> None:
        """Handle the control at the current position and advance."""
        control = self.controls[self.position]
        self.position += 1
        row = control.row_index()
        if row < 0:
            row = self.position - 1

        if not control.is_attached():
            self.notifier.log(f"Row {row}: element removed from the page, skipping")
            return

        value = control.value().strip()
        selected = self._selected_label(control)
        self.notifier.log(f"Row {row}: current value = '{selected or value}'")

        if value and selected and selected != self.current_subject:
            self.current_subject = selected
            self.notifier.important(f"Row {row}: new subject detected: '{selected}'")
            self.processed += 1
        elif not value and self.current_subject:
            try:
                self.executor.select_label(control, self.current_subject)
            except ActionError as e:
                self.notifier.log(f"Row {row}: error - {e}", ERROR)
                return
            self.notifier.important(f"Row {row}: '{self.current_subject}' applied", SUCCESS)
            self.processed += 1
            self.executor.pause(self.executor.config.delay_between_actions)
        elif not value:
            self.notifier.log(f"Row {row}: empty, waiting for a reference subject")

    @staticmethod
    def _selected_label(control: ControlRef) -> str:
        try:
            return control.selected_label()
        except Exception:
            return ""
