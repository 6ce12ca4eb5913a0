# gridauto/web.py
"""
@file web.py
@brief GridAccessor over a live browser page driven by Playwright's sync API.

DOM conventions follow AG-Grid: row containers are `.ag-row[row-index]`,
cells carry `col-id`, the scrollable body is `.ag-body-viewport`.
Handles are Playwright ElementHandles; every query runs in the page through
`evaluate`, so a handle whose node was recycled by the grid simply reports
`isConnected === false`.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence

from playwright.sync_api import ElementHandle, Error as PlaywrightError, Page

from .interfaces import GridAccessor
from .models import OptionInfo
from .waits import wait_until

log = logging.getLogger("gridauto.web")

ROW_SELECTOR = ".ag-row[row-index]"
VIEWPORT_SELECTOR = ".ag-body-viewport"
KEY_BINDING = "__gridautoKey"

_ROW_INDEX_JS = """el => {
    const row = el.closest('[row-index]');
    if (!row) return -1;
    const n = parseInt(row.getAttribute('row-index'), 10);
    return Number.isNaN(n) ? -1 : n;
}"""

_COLUMN_JS = """el => {
    const cell = el.closest('[col-id]');
    return cell ? cell.getAttribute('col-id') : null;
}"""

_OPTIONS_JS = """el => el.options
    ? Array.from(el.options).map((o, i) => ({label: o.text, value: o.value, index: i}))
    : []"""

_NOTIFY_JS = """(el, names) => {
    for (const name of names) {
        el.dispatchEvent(new Event(name, {bubbles: true}));
    }
}"""

_CLICK_JS = """el => {
    el.focus();
    for (const type of ['mousedown', 'click', 'mouseup']) {
        el.dispatchEvent(new MouseEvent(type, {view: window, bubbles: true, cancelable: true}));
    }
}"""

_KEY_JS = """(el, key) => {
    for (const type of ['keydown', 'keypress', 'keyup']) {
        el.dispatchEvent(new KeyboardEvent(type, {key: key, bubbles: true, cancelable: true}));
    }
}"""

_ROW_INDICES_JS = """sel => Array.from(document.querySelectorAll(sel))
    .map(r => parseInt(r.getAttribute('row-index'), 10))
    .filter(n => !Number.isNaN(n))"""

_SCROLL_JS = """([sel, delta]) => {
    const viewport = document.querySelector(sel);
    if (!viewport) return false;
    viewport.scrollTop += delta;
    return true;
}"""

_KEY_LISTENER_JS = """key => {
    if (window.__gridautoListening) return;
    window.__gridautoListening = true;
    document.addEventListener('keydown', e => {
        if (e.key === key) window.%s(e.key);
    });
}""" % KEY_BINDING


def _css_string(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


class PlaywrightGrid(GridAccessor):
    """
    GridAccessor for an AG-Grid page open in a Playwright Page.

    @param page Playwright sync Page
    """

    def __init__(self, page: Page):
        self.page = page
        self._key_listener_installed = False

    # --- Browser integration ---

    def sleep(self, seconds: float) -> None:
        """Scheduler sleep that keeps servicing page bindings."""
        self.page.wait_for_timeout(max(0.0, seconds) * 1000)

    def install_key_listener(self, key: str, callback: Callable[[str], Any]) -> None:
        """
        Forward presses of key in the page to callback.

        The binding survives navigations; the listener is re-added on load.
        """
        if not self._key_listener_installed:
            self.page.expose_binding(KEY_BINDING, lambda source, pressed: callback(pressed))
            self._key_listener_installed = True
        script = f"({_KEY_LISTENER_JS})({_css_string(key)})"
        self.page.add_init_script(script)
        self.page.evaluate(_KEY_LISTENER_JS, key)
        log.debug("Key listener installed for %s", key)

    def wait_for_rows(self, timeout: float = 10.0) -> List[int]:
        """
        Wait until the grid has rendered at least one row.

        @throws TimeoutError if no row appears in time
        """
        wait_until(
            lambda: bool(self.all_rendered_row_indices()),
            timeout=timeout,
            interval=0.25,
            description="grid rows to render",
            sleep=self.sleep,
        )
        return self.all_rendered_row_indices()

    # --- Lookup ---

    def find_control_at(self, row_index: int, col_id: str) -> Optional[ElementHandle]:
        selector = f'.ag-row[row-index="{int(row_index)}"] [col-id={_css_string(col_id)}] select'
        return self.page.query_selector(selector)

    def find_by_id(self, element_id: str) -> Optional[ElementHandle]:
        return self.page.query_selector(f"[id={_css_string(element_id)}]")

    def find_by_class(self, class_name: str) -> List[ElementHandle]:
        classes = [c for c in class_name.split() if c]
        if not classes:
            return []
        selector = "".join(f"[class~={_css_string(c)}]" for c in classes)
        return self.page.query_selector_all(selector)

    def find_all_by_tag(self, tag_name: str) -> List[ElementHandle]:
        return self.page.query_selector_all(tag_name.lower())

    def find_all_selectables(self) -> List[ElementHandle]:
        return self.page.query_selector_all("select")

    def hit_test(self, x: float, y: float) -> Optional[ElementHandle]:
        return self.page.evaluate_handle("([x, y]) => document.elementFromPoint(x, y)", [x, y]).as_element()

    def enclosing_selectable(self, handle: ElementHandle) -> Optional[ElementHandle]:
        return handle.evaluate_handle(
            "el => el.tagName === 'SELECT' ? el : el.closest('select')"
        ).as_element()

    # --- Grid structure ---

    def row_index_of(self, handle: ElementHandle) -> int:
        return int(handle.evaluate(_ROW_INDEX_JS))

    def column_of(self, handle: ElementHandle) -> Optional[str]:
        return handle.evaluate(_COLUMN_JS)

    def all_rendered_row_indices(self) -> List[int]:
        return list(self.page.evaluate(_ROW_INDICES_JS, ROW_SELECTOR))

    def row_exists(self, row_index: int) -> bool:
        return self.page.query_selector(f'.ag-row[row-index="{int(row_index)}"]') is not None

    def subject_control(self, row_index: int, col_id: str, marker_class: str) -> Optional[ElementHandle]:
        selector = (
            f'.ag-row[row-index="{int(row_index)}"] '
            f"[col-id={_css_string(col_id)}] select[class~={_css_string(marker_class)}]"
        )
        return self.page.query_selector(selector)

    def scroll_viewport(self, delta: int) -> bool:
        return bool(self.page.evaluate(_SCROLL_JS, [VIEWPORT_SELECTOR, delta]))

    # --- Control state ---

    def is_attached(self, handle: ElementHandle) -> bool:
        try:
            return bool(handle.evaluate("el => el.isConnected"))
        except PlaywrightError:
            return False

    def is_visible(self, handle: ElementHandle) -> bool:
        return bool(handle.evaluate("el => el.isConnected && el.offsetWidth > 0 && el.offsetHeight > 0"))

    def is_selectable(self, handle: ElementHandle) -> bool:
        return bool(handle.evaluate("el => el.tagName === 'SELECT'"))

    def describe(self, handle: ElementHandle) -> str:
        return str(handle.evaluate(
            "el => el.tagName.toLowerCase() + (el.id ? '#' + el.id : '')"
            " + (el.className && typeof el.className === 'string' ? '.' + el.className.trim().split(/\\s+/).join('.') : '')"
        ))

    def options(self, handle: ElementHandle) -> List[OptionInfo]:
        return [OptionInfo(label=o["label"], value=o["value"], index=int(o["index"]))
                for o in handle.evaluate(_OPTIONS_JS)]

    def value(self, handle: ElementHandle) -> str:
        return str(handle.evaluate("el => el.value == null ? '' : String(el.value)"))

    def selected_index(self, handle: ElementHandle) -> int:
        return int(handle.evaluate("el => typeof el.selectedIndex === 'number' ? el.selectedIndex : -1"))

    def set_selected_index(self, handle: ElementHandle, index: int) -> None:
        handle.evaluate("(el, i) => { el.selectedIndex = i; }", int(index))

    # --- Side effects ---

    def notify_changed(self, handle: ElementHandle, events: Sequence[str] = ("input", "change")) -> None:
        handle.evaluate(_NOTIFY_JS, list(events))

    def focus(self, handle: ElementHandle) -> None:
        handle.evaluate("el => el.focus()")

    def click(self, handle: ElementHandle) -> None:
        handle.evaluate(_CLICK_JS)

    def blur(self, handle: ElementHandle) -> None:
        handle.evaluate("el => el.blur()")

    def dispatch_key(self, handle: ElementHandle, key: str) -> None:
        handle.evaluate(_KEY_JS, key)
