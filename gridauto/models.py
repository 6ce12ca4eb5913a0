# gridauto/models.py
"""
@file models.py
@brief Value types shared by the resolver, navigator, executor and controller.
"""

from __future__ import annotations
from dataclasses import asdict, dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

if TYPE_CHECKING:
    from .element import ControlRef


@dataclass(frozen=True)
class Rect:
    """Screen-space bounding rectangle."""
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> Rect:
        return cls(
            x=float(d.get("x", d.get("left", 0.0))),
            y=float(d.get("y", d.get("top", 0.0))),
            width=float(d.get("width", 0.0)),
            height=float(d.get("height", 0.0)),
        )


def normalize_label(text: Optional[str]) -> str:
    """Trimmed, case-folded option label used for literal matching."""
    return (text or "").strip().casefold()


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _parse_row_index(value: Any) -> Optional[int]:
    value = _blank_to_none(value)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class ElementHint:
    """
    Best-effort description of a control captured when the user designated it.

    No field is guaranteed present.
    """
    row_index: Optional[int] = None
    col_id: Optional[str] = None
    id: Optional[str] = None
    class_name: Optional[str] = None
    tag_name: Optional[str] = None
    rect: Optional[Rect] = None

    @classmethod
    def from_dict(cls, d: Optional[Mapping[str, Any]]) -> ElementHint:
        """
        Build a hint from a context-menu payload.

        Accepts both the extension's camelCase keys and snake_case.
        """
        if not isinstance(d, Mapping) or not d:
            return cls()

        def pick(*keys: str) -> Any:
            for k in keys:
                if k in d:
                    return _blank_to_none(d[k])
            return None

        rect_raw = d.get("rect")
        rect = None
        if isinstance(rect_raw, Rect):
            rect = rect_raw
        elif isinstance(rect_raw, Mapping):
            try:
                rect = Rect.from_dict(rect_raw)
            except (TypeError, ValueError):
                rect = None

        return cls(
            row_index=_parse_row_index(pick("row_index", "rowIndex")),
            col_id=pick("col_id", "colId"),
            id=pick("id"),
            class_name=pick("class_name", "className"),
            tag_name=pick("tag_name", "tagName"),
            rect=rect,
        )

    def is_empty(self) -> bool:
        return all(getattr(self, f) is None for f in ("row_index", "col_id", "id", "class_name", "tag_name", "rect"))

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass(frozen=True)
class OptionInfo:
    """One entry of a selectable option list."""
    label: str
    value: str
    index: int


class RowState(str, Enum):
    EMPTY = "empty"
    TARGET_ALREADY_SET = "target_already_set"
    OTHER_VALUE_SET = "other_value_set"
    ABSENT = "absent"


class ActionOutcome(str, Enum):
    SELECTED = "selected"
    FALLBACK_USED = "fallback_used"
    FAILED = "failed"


class ScrollOutcome(str, Enum):
    ADVANCED = "advanced"
    UNAVAILABLE = "unavailable"


class StopReason(str, Enum):
    COMPLETED = "completed"
    MANUAL = "manual"
    FATAL = "fatal"


class NextKind(str, Enum):
    FOUND = "found"
    END_OF_WORK = "end_of_work"
    ABSENT = "absent"
    NOT_FOUND = "not_found"


@dataclass
class NextRow:
    """Result of a next-row lookup."""
    kind: NextKind
    control: Optional["ControlRef"] = None
    row_index: int = -1
    after_index: int = -1
    reason: str = ""

    @property
    def found(self) -> bool:
        return self.kind is NextKind.FOUND
