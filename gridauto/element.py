# gridauto/element.py
"""
@file element.py
@brief Revocable reference to a live page control.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .exceptions import StaleElementError
from .models import OptionInfo

if TYPE_CHECKING:
    from .interfaces import GridAccessor


@dataclass(frozen=True)
class ControlMeta:
    """
    Metadata describing how a control was resolved.

    Used for debugging and error reporting.
    """
    strategy: str = "unknown"
    used_locator: Dict[str, Any] = field(default_factory=dict)
    attempt_index: int = 0


class ControlRef:
    """
    Ownership-free reference to a control owned by the page.

    The grid destroys and recreates DOM nodes while scrolling, so validity
    is re-checked on every use. A revoked reference never becomes valid
    again.
    """

    def __init__(self, accessor: GridAccessor, handle: Any, meta: Optional[ControlMeta] = None):
        """
        @param accessor Accessor the handle belongs to
        @param handle Opaque backend handle
        @param meta Resolution metadata for debugging
        """
        self._accessor = accessor
        self._handle = handle
        self._meta = meta or ControlMeta()
        self._revoked = False

    @property
    def handle(self) -> Any:
        """Get the underlying backend handle."""
        return self._handle

    @property
    def meta(self) -> ControlMeta:
        return self._meta

    @property
    def revoked(self) -> bool:
        return self._revoked

    def revoke(self) -> None:
        self._revoked = True

    # --- State Queries ---

    def is_attached(self) -> bool:
        """Check if the control is still part of the document."""
        if self._revoked:
            return False
        try:
            return bool(self._accessor.is_attached(self._handle))
        except Exception:
            return False

    def is_visible(self) -> bool:
        try:
            return self.is_attached() and bool(self._accessor.is_visible(self._handle))
        except Exception:
            return False

    def ensure_attached(self) -> ControlRef:
        """
        @return self for chaining
        @throws StaleElementError if the control was detached or revoked
        """
        if not self.is_attached():
            raise StaleElementError(self.describe())
        return self

    def row_index(self) -> int:
        try:
            return int(self._accessor.row_index_of(self._handle))
        except Exception:
            return -1

    def value(self) -> str:
        return self._accessor.value(self._handle) or ""

    def options(self) -> List[OptionInfo]:
        return list(self._accessor.options(self._handle))

    def selected_label(self) -> str:
        """Trimmed label of the selected option, '' when none."""
        index = self._accessor.selected_index(self._handle)
        options = self.options()
        if 0 <= index < len(options):
            return options[index].label.strip()
        return ""

    def describe(self) -> str:
        try:
            return self._accessor.describe(self._handle)
        except Exception:
            return f"<control via {self._meta.strategy}>"

    def __repr__(self) -> str:
        state = "revoked" if self._revoked else "live"
        return f"ControlRef({self.describe()}, strategy={self._meta.strategy}, {state})"
