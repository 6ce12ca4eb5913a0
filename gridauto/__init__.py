# gridauto/__init__.py
"""
gridauto - row automation for virtualized web data grids.

The engine depends only on the GridAccessor interface; use InMemoryGrid for
deterministic runs and gridauto.web.PlaywrightGrid for a live browser page.
"""

from .config import Configuration, load_settings
from .controller import AutomationSession, CycleController
from .exceptions import ConfigError, ElementNotFoundError, GridAutoError
from .interfaces import GridAccessor
from .memory import InMemoryGrid
from .messages import MessageHandler
from .models import ElementHint, StopReason
from .notify import Notifier
from .scheduler import ManualClock, SerialScheduler

__version__ = "1.0.0"

__all__ = [
    "AutomationSession",
    "ConfigError",
    "Configuration",
    "CycleController",
    "ElementHint",
    "ElementNotFoundError",
    "GridAccessor",
    "GridAutoError",
    "InMemoryGrid",
    "ManualClock",
    "MessageHandler",
    "Notifier",
    "SerialScheduler",
    "StopReason",
    "load_settings",
]
