"""
@file interfaces.py
@brief Abstract capability interface over the automated page.

The resolution, navigation and action algorithms depend only on this
interface. Concrete implementations exist for an in-memory grid (tests,
dry runs) and for a Playwright-driven browser page.

Control handles are opaque to the engine: whatever the accessor returns
from a lookup is passed back to it unchanged.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence

from .models import OptionInfo


class GridAccessor(ABC):
    """
    Capability interface for a page hosting a virtualized data grid.

    Grid convention: row containers expose a row-index attribute, cell
    containers expose a column-id attribute, subject controls carry a
    marker class, and options expose label text and an ordinal position.
    """

    # --- Lookup ---

    @abstractmethod
    def find_control_at(self, row_index: int, col_id: str) -> Optional[Any]:
        """
        Find the selectable control in the cell at (row, column).

        Args:
            row_index: Value of the row container's index attribute
            col_id: Value of the cell container's column-id attribute

        Returns:
            Control handle or None
        """
        pass

    @abstractmethod
    def find_by_id(self, element_id: str) -> Optional[Any]:
        pass

    @abstractmethod
    def find_by_class(self, class_name: str) -> List[Any]:
        """All elements carrying the class, in document order."""
        pass

    @abstractmethod
    def find_all_by_tag(self, tag_name: str) -> List[Any]:
        """All elements with the tag name (case-insensitive), in document order."""
        pass

    @abstractmethod
    def find_all_selectables(self) -> List[Any]:
        """All selectable option-list controls on the page, in document order."""
        pass

    @abstractmethod
    def hit_test(self, x: float, y: float) -> Optional[Any]:
        """Topmost element at the given viewport point."""
        pass

    @abstractmethod
    def enclosing_selectable(self, handle: Any) -> Optional[Any]:
        """The handle itself if selectable, else its nearest selectable ancestor."""
        pass

    # --- Grid structure ---

    @abstractmethod
    def row_index_of(self, handle: Any) -> int:
        """
        Index attribute of the nearest enclosing row container.

        Returns:
            Row index, or -1 when the control is not inside a row
        """
        pass

    @abstractmethod
    def column_of(self, handle: Any) -> Optional[str]:
        """
        Column id of the nearest enclosing grid cell.

        Returns:
            Column id, or None when the control is not inside a cell
        """
        pass

    @abstractmethod
    def all_rendered_row_indices(self) -> List[int]:
        """Indices of every row container currently rendered, in document order."""
        pass

    @abstractmethod
    def row_exists(self, row_index: int) -> bool:
        pass

    @abstractmethod
    def subject_control(self, row_index: int, col_id: str, marker_class: str) -> Optional[Any]:
        """
        The designated control of a row: a selectable carrying the marker
        class inside the given column.
        """
        pass

    @abstractmethod
    def scroll_viewport(self, delta: int) -> bool:
        """
        Advance the grid viewport's vertical scroll position.

        Returns:
            False when no scrollable viewport exists
        """
        pass

    # --- Control state ---

    @abstractmethod
    def is_attached(self, handle: Any) -> bool:
        """True while the control is still part of the document."""
        pass

    @abstractmethod
    def is_visible(self, handle: Any) -> bool:
        """True when the control has non-zero rendered width and height."""
        pass

    @abstractmethod
    def is_selectable(self, handle: Any) -> bool:
        """True when the control's effective kind is a selectable option list."""
        pass

    @abstractmethod
    def describe(self, handle: Any) -> str:
        """Short human-readable description (tag and id) for logs."""
        pass

    @abstractmethod
    def options(self, handle: Any) -> List[OptionInfo]:
        pass

    @abstractmethod
    def value(self, handle: Any) -> str:
        """Current value of the control ('' when nothing is selected)."""
        pass

    @abstractmethod
    def selected_index(self, handle: Any) -> int:
        pass

    @abstractmethod
    def set_selected_index(self, handle: Any, index: int) -> None:
        """Set the selected option without raising notifications."""
        pass

    # --- Side effects ---

    @abstractmethod
    def notify_changed(self, handle: Any, events: Sequence[str] = ("input", "change")) -> None:
        """
        Raise synthetic notification events on the control so the host
        page's reactive logic observes the change.
        """
        pass

    @abstractmethod
    def focus(self, handle: Any) -> None:
        pass

    @abstractmethod
    def click(self, handle: Any) -> None:
        """Native click followed by synthetic mousedown/click/mouseup events."""
        pass

    @abstractmethod
    def blur(self, handle: Any) -> None:
        pass

    @abstractmethod
    def dispatch_key(self, handle: Any, key: str) -> None:
        """Raw keydown/keypress/keyup events for non-selectable controls."""
        pass
