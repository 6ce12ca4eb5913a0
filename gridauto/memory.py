# gridauto/memory.py
"""
@file memory.py
@brief In-memory virtualized grid implementing GridAccessor.

Models the parts of an AG-Grid page the engine relies on: a scrollable
viewport that renders only a window of rows, row containers carrying a row
index, a subject cell per row holding a select with a marker class, and
free-standing controls outside the grid. Scrolling detaches the controls of
rows leaving the window and creates fresh ones for rows entering it, the
way the real grid recycles DOM nodes.

Every side effect is appended to InMemoryGrid.events so runs can be
inspected afterwards.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .interfaces import GridAccessor
from .models import OptionInfo, Rect

PLACEHOLDER = "-- Select --"
DEFAULT_LABELS = ("Commune", "Mathematics", "French", "History", "Physics")

_ids = itertools.count(1)


@dataclass(eq=False)
class MemoryElement:
    """One node of the in-memory page."""
    tag: str
    rect: Rect
    element_id: Optional[str] = None
    classes: Tuple[str, ...] = ()
    parent: Optional[MemoryElement] = None
    row_index: Optional[int] = None
    col_id: Optional[str] = None
    options: List[OptionInfo] = field(default_factory=list)
    selected_index: int = 0
    attached: bool = True
    visible: bool = True
    serial: int = field(default_factory=lambda: next(_ids))

    @property
    def selectable(self) -> bool:
        return self.tag == "select"

    def contains(self, x: float, y: float) -> bool:
        r = self.rect
        return r.x <= x <= r.x + r.width and r.y <= y <= r.y + r.height

    def __repr__(self) -> str:
        where = f" row={self.row_index}" if self.row_index is not None else ""
        ident = f"#{self.element_id}" if self.element_id else ""
        return f"<{self.tag}{ident}{where} serial={self.serial}>"


def make_options(labels: Iterable[str], placeholder: str = PLACEHOLDER) -> List[OptionInfo]:
    """Option list with an empty-valued placeholder first."""
    options = [OptionInfo(label=placeholder, value="", index=0)]
    for i, label in enumerate(labels, start=1):
        options.append(OptionInfo(label=label, value=label, index=i))
    return options


class InMemoryGrid(GridAccessor):
    """
    Deterministic GridAccessor used by tests and dry runs.

    @param values Subject label per data row ('' for empty, None for a row
                  whose subject cell holds no control)
    @param labels Option labels offered by each subject select
    @param rendered Number of rows rendered at once (all rows by default)
    @param row_height Pixel height of a row; scrolling moves by pixels
    @param has_viewport False simulates a page without a scrollable grid body
    """

    def __init__(
        self,
        values: Sequence[Optional[str]],
        labels: Sequence[str] = DEFAULT_LABELS,
        rendered: Optional[int] = None,
        row_height: int = 30,
        col_id: str = "subject",
        marker_class: str = "selectSubject",
        has_viewport: bool = True,
    ):
        self.values: List[Optional[str]] = list(values)
        self.labels = list(labels)
        self.window = len(self.values) if rendered is None else rendered
        self.row_height = row_height
        self.col_id = col_id
        self.marker_class = marker_class
        self.has_viewport = has_viewport
        self.scroll_top = 0
        self.scroll_calls: List[int] = []
        self.events: List[Tuple[Any, str]] = []
        self.focused: Optional[MemoryElement] = None
        self.failures: Dict[str, Exception] = {}

        self._top = 100.0
        self._rows: Dict[int, Tuple[MemoryElement, Optional[MemoryElement]]] = {}
        self._extras: List[MemoryElement] = []
        self._render()

    # --- Test helpers ---

    def fail(self, method: str, error: Optional[Exception] = None) -> None:
        """Make an accessor method raise until cleared."""
        self.failures[method] = error or RuntimeError(f"{method} failed")

    def add_control(
        self,
        tag: str = "select",
        element_id: Optional[str] = None,
        classes: Sequence[str] = (),
        labels: Optional[Sequence[str]] = None,
        rect: Optional[Rect] = None,
        visible: bool = True,
    ) -> MemoryElement:
        """Add a control outside the grid, after it in document order."""
        el = MemoryElement(
            tag=tag,
            rect=rect or Rect(0.0, 0.0, 0.0, 0.0),
            element_id=element_id,
            classes=tuple(classes),
            options=make_options(labels) if labels is not None else [],
            visible=visible,
        )
        self._extras.append(el)
        return el

    def subject(self, row_index: int) -> Optional[MemoryElement]:
        """Currently rendered subject select of a row."""
        entry = self._rows.get(row_index)
        return entry[1] if entry else None

    def rerender_row(self, row_index: int) -> Optional[MemoryElement]:
        """Replace a row's nodes with fresh ones, detaching the old ones."""
        if row_index not in self._rows:
            return None
        self._detach_row(row_index)
        self._build_row(row_index)
        return self.subject(row_index)

    def events_for(self, element: Any) -> List[str]:
        return [name for el, name in self.events if el is element]

    # --- Rendering ---

    @property
    def first_rendered(self) -> int:
        return min(self.scroll_top // self.row_height, max(len(self.values) - self.window, 0))

    def _render(self) -> None:
        first = self.first_rendered
        wanted = set(range(first, min(first + self.window, len(self.values))))
        for index in list(self._rows):
            if index not in wanted:
                self._detach_row(index)
        for index in sorted(wanted):
            if index not in self._rows:
                self._build_row(index)
        for index in self._rows:
            self._render_geometry(index)

    def _build_row(self, index: int) -> None:
        cell = MemoryElement(
            tag="div",
            rect=Rect(0.0, 0.0, 0.0, 0.0),
            classes=("ag-cell",),
            row_index=index,
            col_id=self.col_id,
        )
        select = None
        value = self.values[index]
        if value is not None:
            options = make_options(self.labels)
            selected = next((o.index for o in options if o.value and o.value == value), 0)
            select = MemoryElement(
                tag="select",
                rect=Rect(0.0, 0.0, 0.0, 0.0),
                classes=(self.marker_class,),
                parent=cell,
                row_index=index,
                col_id=self.col_id,
                options=options,
                selected_index=selected,
            )
        self._rows[index] = (cell, select)
        self._render_geometry(index)

    def _render_geometry(self, index: int) -> None:
        first = self.first_rendered
        cell, select = self._rows[index]
        y = self._top + (index - first) * self.row_height
        cell.rect = Rect(10.0, y, 200.0, float(self.row_height))
        if select is not None:
            select.rect = Rect(15.0, y + 4, 180.0, float(self.row_height - 8))

    def _detach_row(self, index: int) -> None:
        for el in self._rows.pop(index):
            if el is not None:
                el.attached = False

    def _elements(self) -> List[MemoryElement]:
        out: List[MemoryElement] = []
        for index in sorted(self._rows):
            out.extend(el for el in self._rows[index] if el is not None)
        out.extend(el for el in self._extras if el.attached)
        return out

    def _check(self, method: str) -> None:
        if method in self.failures:
            raise self.failures[method]

    # --- Lookup ---

    def find_control_at(self, row_index: int, col_id: str) -> Optional[MemoryElement]:
        self._check("find_control_at")
        entry = self._rows.get(row_index)
        if entry is None or col_id != self.col_id:
            return None
        return entry[1]

    def find_by_id(self, element_id: str) -> Optional[MemoryElement]:
        self._check("find_by_id")
        return next((el for el in self._elements() if el.element_id == element_id), None)

    def find_by_class(self, class_name: str) -> List[MemoryElement]:
        self._check("find_by_class")
        return [el for el in self._elements() if class_name in el.classes]

    def find_all_by_tag(self, tag_name: str) -> List[MemoryElement]:
        tag = tag_name.lower()
        return [el for el in self._elements() if el.tag == tag]

    def find_all_selectables(self) -> List[MemoryElement]:
        return [el for el in self._elements() if el.selectable]

    def hit_test(self, x: float, y: float) -> Optional[MemoryElement]:
        self._check("hit_test")
        hit = None
        for el in self._elements():
            if el.visible and el.contains(x, y):
                # Children are listed after their parents, so the last hit is topmost.
                hit = el
        return hit

    def enclosing_selectable(self, handle: MemoryElement) -> Optional[MemoryElement]:
        node = handle
        while node is not None:
            if node.selectable:
                return node
            node = node.parent
        return None

    # --- Grid structure ---

    def row_index_of(self, handle: MemoryElement) -> int:
        node = handle
        while node is not None:
            if node.row_index is not None:
                return node.row_index
            node = node.parent
        return -1

    def column_of(self, handle: MemoryElement) -> Optional[str]:
        node = handle
        while node is not None:
            if node.col_id is not None:
                return node.col_id
            node = node.parent
        return None

    def all_rendered_row_indices(self) -> List[int]:
        return sorted(self._rows)

    def row_exists(self, row_index: int) -> bool:
        return row_index in self._rows

    def subject_control(self, row_index: int, col_id: str, marker_class: str) -> Optional[MemoryElement]:
        self._check("subject_control")
        select = self.find_control_at(row_index, col_id)
        if select is None or marker_class not in select.classes:
            return None
        return select

    def scroll_viewport(self, delta: int) -> bool:
        self._check("scroll_viewport")
        if not self.has_viewport:
            return False
        self.scroll_calls.append(delta)
        max_top = max(len(self.values) - self.window, 0) * self.row_height
        self.scroll_top = max(0, min(self.scroll_top + delta, max_top))
        self._render()
        return True

    # --- Control state ---

    def is_attached(self, handle: MemoryElement) -> bool:
        return handle.attached

    def is_visible(self, handle: MemoryElement) -> bool:
        return handle.attached and handle.visible and handle.rect.width > 0 and handle.rect.height > 0

    def is_selectable(self, handle: MemoryElement) -> bool:
        return handle.selectable

    def describe(self, handle: MemoryElement) -> str:
        return repr(handle)

    def options(self, handle: MemoryElement) -> List[OptionInfo]:
        return list(handle.options)

    def value(self, handle: MemoryElement) -> str:
        if not handle.options or not 0 <= handle.selected_index < len(handle.options):
            return ""
        return handle.options[handle.selected_index].value

    def selected_index(self, handle: MemoryElement) -> int:
        return handle.selected_index if handle.options else -1

    def set_selected_index(self, handle: MemoryElement, index: int) -> None:
        self._check("set_selected_index")
        if not handle.attached:
            raise RuntimeError(f"{handle!r} is detached")
        handle.selected_index = index
        if handle.row_index is not None and handle.row_index in self._rows:
            self.values[handle.row_index] = self.value(handle)

    # --- Side effects ---

    def notify_changed(self, handle: MemoryElement, events: Sequence[str] = ("input", "change")) -> None:
        for name in events:
            self.events.append((handle, name))

    def focus(self, handle: MemoryElement) -> None:
        self.focused = handle
        self.events.append((handle, "focus"))

    def click(self, handle: MemoryElement) -> None:
        self._check("click")
        self.events.append((handle, "click"))

    def blur(self, handle: MemoryElement) -> None:
        if self.focused is handle:
            self.focused = None
        self.events.append((handle, "blur"))

    def dispatch_key(self, handle: MemoryElement, key: str) -> None:
        for phase in ("keydown", "keypress", "keyup"):
            self.events.append((handle, f"{phase}:{key}"))
