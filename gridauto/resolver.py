# gridauto/resolver.py
"""
@file resolver.py
@brief Resolves a designated grid control from a loosely-specified hint.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Tuple

from .config import Configuration
from .element import ControlMeta, ControlRef
from .exceptions import ElementNotFoundError, LocatorAttempt
from .interfaces import GridAccessor
from .models import ElementHint, normalize_label

log = logging.getLogger("gridauto.resolver")


class ElementResolver:
    """
    Resolves controls using a prioritized cascade of strategies.

    Strategies run in strict order from exact structural identity to
    "any visible plausible control"; the first success is returned and
    strategies are never combined.
    """

    def __init__(self, accessor: GridAccessor, config: Optional[Configuration] = None):
        """
        @param accessor Page capability interface
        @param config Automation configuration (target label, marker class)
        """
        self.accessor = accessor
        self.config = config or Configuration()
        self.last_attempts: List[LocatorAttempt] = []

    def _strategies(self, label: str) -> List[Tuple[str, Callable[[ElementHint], Optional[Any]]]]:
        return [
            ("grid", self._by_grid_position),
            ("id", self._by_id),
            ("class", self._by_class),
            ("tag", self._by_tag),
            ("point", self._by_point),
            ("rescue", self._by_rescue),
            ("global", lambda hint: self._by_global_scan(label)),
        ]

    def resolve(self, hint: ElementHint, target_label: Optional[str] = None) -> Optional[ControlRef]:
        """
        Resolve a hint to a live control.

        @param hint Element hint captured when the user designated the control
        @param target_label Label preferred by the global fallback (config default)
        @return ControlRef, or None when every strategy failed
        """
        label = target_label or self.config.target_label
        self.last_attempts = []
        if hint.is_empty():
            log.info("Empty element hint, nothing to resolve")
            return None

        locator = hint.to_dict()
        for attempt_index, (name, strategy) in enumerate(self._strategies(label)):
            try:
                handle = strategy(hint)
            except Exception as e:
                err = f"{type(e).__name__}: {e}"
                log.debug("Strategy %s raised %s", name, err)
                self.last_attempts.append(LocatorAttempt(strategy=name, locator=locator, error=err))
                continue
            if handle is None:
                self.last_attempts.append(LocatorAttempt(strategy=name, locator=locator, error="no match"))
                continue
            ref = ControlRef(
                self.accessor,
                handle,
                ControlMeta(strategy=name, used_locator=locator, attempt_index=attempt_index),
            )
            log.info("Resolved %s via %s strategy", ref.describe(), name)
            return ref

        log.warning("No element found for hint %s", locator)
        return None

    def require(self, hint: ElementHint, target_label: Optional[str] = None) -> ControlRef:
        """
        Resolve a hint or raise.

        @throws ElementNotFoundError carrying every strategy attempt
        """
        ref = self.resolve(hint, target_label=target_label)
        if ref is None:
            errors = [a.error for a in self.last_attempts if a.error and a.error != "no match"]
            raise ElementNotFoundError(
                hint=hint.to_dict(),
                attempts=list(self.last_attempts),
                last_error=errors[-1] if errors else None,
            )
        return ref

    def find_similar(self) -> Optional[ControlRef]:
        """First visible selectable control on the page, used when the target was lost."""
        for handle in self.accessor.find_all_selectables():
            if self._visible(handle):
                return ControlRef(self.accessor, handle, ControlMeta(strategy="similar"))
        return None

    # --- Strategies ---

    def _by_grid_position(self, hint: ElementHint) -> Optional[Any]:
        if hint.row_index is None or not hint.col_id:
            return None
        return self.accessor.find_control_at(hint.row_index, hint.col_id)

    def _by_id(self, hint: ElementHint) -> Optional[Any]:
        if not hint.id:
            return None
        return self.accessor.find_by_id(hint.id)

    def _by_class(self, hint: ElementHint) -> Optional[Any]:
        if not hint.class_name:
            return None
        matches = self.accessor.find_by_class(hint.class_name)
        return matches[0] if matches else None

    def _by_tag(self, hint: ElementHint) -> Optional[Any]:
        if not hint.tag_name:
            return None
        elements = self.accessor.find_all_by_tag(hint.tag_name)
        log.debug("%d '%s' elements found", len(elements), hint.tag_name)
        for el in elements:
            if self.accessor.is_selectable(el):
                return el
        return None

    def _by_point(self, hint: ElementHint) -> Optional[Any]:
        if hint.rect is None:
            return None
        return self.accessor.hit_test(hint.rect.x, hint.rect.y)

    def _by_rescue(self, hint: ElementHint) -> Optional[Any]:
        if hint.rect is not None and hint.rect.x and hint.rect.y:
            offset = self.config.rescue_offset
            clicked = self.accessor.hit_test(hint.rect.x + offset, hint.rect.y + offset)
            if clicked is not None:
                select = self.accessor.enclosing_selectable(clicked)
                if select is not None:
                    return select

        subject_selects = self.accessor.find_by_class(self.config.marker_class)
        log.debug("%d subject selects found", len(subject_selects))
        for handle in subject_selects:
            if self._visible(handle):
                return handle
        return None

    def _by_global_scan(self, label: str) -> Optional[Any]:
        selects = self.accessor.find_all_selectables()
        log.debug("%d selects found on the page", len(selects))
        wanted = normalize_label(label)
        visible = [h for h in selects if self._visible(h)]
        for handle in visible:
            if any(normalize_label(o.label) == wanted for o in self.accessor.options(handle)):
                return handle
        return visible[0] if visible else None

    def _visible(self, handle: Any) -> bool:
        try:
            return bool(self.accessor.is_visible(handle))
        except Exception:
            return False
