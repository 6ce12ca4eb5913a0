# gridauto/scroll.py
"""
@file scroll.py
@brief Scroll advance used when the next row is not rendered yet.
"""

from __future__ import annotations

import logging
from typing import Optional

from .config import Configuration
from .interfaces import GridAccessor
from .models import ScrollOutcome

log = logging.getLogger("gridauto.scroll")


class ScrollRecoveryStrategy:
    """Advances the grid viewport so virtualization renders more rows."""

    def __init__(self, accessor: GridAccessor, config: Optional[Configuration] = None):
        self.accessor = accessor
        self.config = config or Configuration()
        self.attempts = 0

    def attempt(self) -> ScrollOutcome:
        """
        Scroll the viewport by the configured increment.

        The caller retries its lookup once after scroll_settle_delay.
        UNAVAILABLE means there is nothing to scroll and must be treated
        as end of work.
        """
        self.attempts += 1
        try:
            advanced = self.accessor.scroll_viewport(self.config.scroll_increment)
        except Exception as e:
            log.warning("Scroll failed: %s: %s", type(e).__name__, e)
            return ScrollOutcome.UNAVAILABLE
        if not advanced:
            log.info("No scrollable grid viewport")
            return ScrollOutcome.UNAVAILABLE
        log.debug("Scrolled grid viewport by %dpx", self.config.scroll_increment)
        return ScrollOutcome.ADVANCED
