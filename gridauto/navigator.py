# gridauto/navigator.py
"""
@file navigator.py
@brief Row-by-row traversal of a virtualized grid.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .config import Configuration
from .element import ControlMeta, ControlRef
from .interfaces import GridAccessor
from .models import NextKind, NextRow, RowState

log = logging.getLogger("gridauto.navigator")


class RowNavigator:
    """
    Locates the logically next row's subject control and classifies rows.

    Only rows rendered at the time of the call are visible to the
    navigator; an ABSENT result asks the caller to scroll before
    concluding that no work remains.
    """

    def __init__(self, accessor: GridAccessor, config: Optional[Configuration] = None):
        self.accessor = accessor
        self.config = config or Configuration()

    def row_index(self, control: Optional[ControlRef]) -> int:
        if control is None:
            return -1
        return control.row_index()

    def classify_value(self, value: Optional[str], target_label: str) -> RowState:
        text = (value or "").strip()
        if not text:
            return RowState.EMPTY
        if text == target_label.strip():
            return RowState.TARGET_ALREADY_SET
        return RowState.OTHER_VALUE_SET

    def classify(self, control: Optional[ControlRef], target_label: Optional[str] = None) -> RowState:
        """Current state of the row owning the control, computed fresh."""
        if control is None or not control.is_attached():
            return RowState.ABSENT
        return self.classify_value(control.value(), target_label or self.config.target_label)

    def find_next(self, current: ControlRef, target_label: Optional[str] = None) -> NextRow:
        """
        Find the next eligible row after the current control's row.

        @param current Control of the row just processed
        @param target_label Label whose rows are skipped as already done
        @return NextRow describing FOUND / END_OF_WORK / ABSENT / NOT_FOUND
        """
        current_index = self.row_index(current)
        log.debug("Current row: %d", current_index)
        if current_index == -1:
            return NextRow(NextKind.NOT_FOUND, reason="current row index unknown")
        return self.find_next_after(current_index, target_label=target_label)

    def find_next_after(self, current_index: int, target_label: Optional[str] = None) -> NextRow:
        """
        Same as find_next, starting from a row index.

        Rows already carrying the target label are skipped. The walk is
        bounded by the number of rendered rows (or max_rows_per_scan); an
        exhausted bound is reported as NOT_FOUND.
        """
        label = target_label or self.config.target_label
        if current_index < 0:
            return NextRow(NextKind.NOT_FOUND, reason="current row index unknown")

        limit = self.config.max_rows_per_scan
        if limit is None:
            limit = max(len(self.accessor.all_rendered_row_indices()), 1) + 1
        index = current_index

        for _ in range(limit):
            row = self._next_rendered_row(index)
            if row is None:
                log.debug("No row after %d is rendered", index)
                return NextRow(NextKind.ABSENT, after_index=index, reason=f"no rendered row after {index}")

            handle = self.accessor.subject_control(row, self.config.subject_column, self.config.marker_class)
            if handle is None:
                log.warning("Subject control missing in row %d", row)
                return NextRow(NextKind.NOT_FOUND, row_index=row, after_index=index,
                               reason=f"subject control missing in row {row}")

            state = self.classify_value(self.accessor.value(handle), label)
            if state is RowState.TARGET_ALREADY_SET:
                log.debug("Row %d already has '%s', skipping", row, label)
                index = row
                continue
            if state is RowState.OTHER_VALUE_SET:
                log.info("Row %d already holds another value, end of work", row)
                return NextRow(NextKind.END_OF_WORK, row_index=row, after_index=index,
                               reason=f"row {row} holds '{self.accessor.value(handle).strip()}'")

            ref = ControlRef(self.accessor, handle, ControlMeta(strategy="next_row", used_locator={"row_index": row}))
            return NextRow(NextKind.FOUND, control=ref, row_index=row, after_index=index)

        return NextRow(NextKind.NOT_FOUND, after_index=index,
                       reason=f"skipped more than {limit} rows without reaching an eligible row")

    def _next_rendered_row(self, current_index: int) -> Optional[int]:
        direct = current_index + 1
        if self.accessor.row_exists(direct):
            return direct
        log.debug("Row %d not found directly, scanning rendered rows", direct)
        for index in sorted(self.accessor.all_rendered_row_indices()):
            if index > current_index:
                return index
        return None


def diagnose(accessor: GridAccessor, config: Optional[Configuration] = None) -> Dict[str, Any]:
    """
    Summarize what the engine can see on the page.

    @return Counts of selects, subject selects and rendered rows, plus the
            value and state of every rendered row's subject control
    """
    config = config or Configuration()
    navigator = RowNavigator(accessor, config)
    rows = []
    for index in sorted(accessor.all_rendered_row_indices()):
        handle = accessor.subject_control(index, config.subject_column, config.marker_class)
        if handle is None:
            rows.append({"row_index": index, "value": None, "state": RowState.ABSENT.value})
            continue
        value = accessor.value(handle)
        state = navigator.classify_value(value, config.target_label)
        rows.append({"row_index": index, "value": value, "state": state.value})
    return {
        "selects": len(accessor.find_all_selectables()),
        "subject_selects": len(accessor.find_by_class(config.marker_class)),
        "rows": len(rows),
        "target_label": config.target_label,
        "row_details": rows,
    }
