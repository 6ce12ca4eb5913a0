# tests/conftest.py
"""
Shared fixtures: a virtual clock scheduler and controller factory.
"""

import pytest

from gridauto.actionlogger import ACTION_LOGGER
from gridauto.config import Configuration
from gridauto.controller import CycleController
from gridauto.memory import InMemoryGrid
from gridauto.notify import Notifier
from gridauto.scheduler import ManualClock, SerialScheduler


@pytest.fixture(autouse=True)
def quiet_action_logger():
    ACTION_LOGGER.disable()
    yield
    ACTION_LOGGER.disable()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def scheduler(clock):
    return SerialScheduler(clock=clock.time, sleep=clock.sleep)


@pytest.fixture
def make_controller(scheduler):
    """Build a controller over an InMemoryGrid driven by the virtual clock."""
    def factory(grid: InMemoryGrid, **overrides) -> CycleController:
        config = Configuration().merge(overrides)
        notifier = Notifier(scheduler, toast_duration=config.toast_duration)
        return CycleController(grid, scheduler=scheduler, config=config, notifier=notifier)
    return factory
