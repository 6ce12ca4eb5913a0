# tests/test_actions.py
"""
Tests for direct selection and keyboard emulation.
"""

import pytest

from gridauto.actions import ActionExecutor
from gridauto.config import Configuration
from gridauto.element import ControlRef
from gridauto.exceptions import ActionError
from gridauto.memory import InMemoryGrid
from gridauto.models import ActionOutcome


def make_executor(grid, pauses=None, **overrides):
    config = Configuration().merge(overrides)
    pause = pauses.append if pauses is not None else None
    return ActionExecutor(grid, config, pause=pause)


class TestApply:
    """Tests for ActionExecutor.apply."""

    def test_direct_selection(self):
        """Should select the matching option and raise input and change."""
        grid = InMemoryGrid([""])
        select = grid.subject(0)
        outcome = make_executor(grid).apply(ControlRef(grid, select))

        assert outcome is ActionOutcome.SELECTED
        assert grid.values[0] == "Commune"
        events = grid.events_for(select)
        assert events[:2] == ["focus", "click"]
        assert events[-2:] == ["input", "change"]

    def test_label_match_ignores_case_and_spaces(self):
        """Should match option labels trimmed and case-insensitively."""
        grid = InMemoryGrid([""], labels=["  COMMUNE  ", "French"])
        outcome = make_executor(grid).apply(ControlRef(grid, grid.subject(0)))
        assert outcome is ActionOutcome.SELECTED
        assert grid.subject(0).selected_index == 1

    def test_keyboard_fallback(self):
        """Should emulate initial key, arrow downs and enter without the option."""
        grid = InMemoryGrid([""], labels=["Math", "Reading", "Rome"])
        select = grid.subject(0)
        pauses = []
        outcome = make_executor(grid, pauses).apply(ControlRef(grid, select))

        assert outcome is ActionOutcome.FALLBACK_USED
        # 'r' picks Reading, two arrow downs stop at the last option
        assert grid.values[0] == "Rome"
        assert pauses == [0.2, 0.2, 0.2]
        assert grid.events_for(select)[-1] == "blur"

    def test_fallback_pause_follows_configuration(self):
        """Should pause the configured action delay after each key."""
        grid = InMemoryGrid([""], labels=["Math"])
        pauses = []
        make_executor(grid, pauses, advance_count=1, delay_between_actions=0.5).apply(
            ControlRef(grid, grid.subject(0))
        )
        assert pauses == [0.5, 0.5]

    def test_stale_control_fails(self):
        """Should report FAILED for a detached control."""
        grid = InMemoryGrid([""])
        control = ControlRef(grid, grid.subject(0))
        grid.rerender_row(0)
        assert make_executor(grid).apply(control) is ActionOutcome.FAILED

    def test_error_is_not_propagated(self):
        """Should turn accessor errors into FAILED."""
        grid = InMemoryGrid([""])
        grid.fail("set_selected_index")
        assert make_executor(grid).apply(ControlRef(grid, grid.subject(0))) is ActionOutcome.FAILED

    def test_click_errors_are_ignored(self):
        """Should continue when focusing the control fails."""
        grid = InMemoryGrid([""])
        grid.fail("click")
        outcome = make_executor(grid).apply(ControlRef(grid, grid.subject(0)))
        assert outcome is ActionOutcome.SELECTED


class TestSendKey:
    """Tests for single key emulation."""

    def test_initial_key_prefers_containing_label(self):
        """Should prefer a label containing the target over the initial letter."""
        grid = InMemoryGrid([""], labels=["Reading", "Commune (A)"])
        executor = make_executor(grid)
        executor.send_key(ControlRef(grid, grid.subject(0)), "r")
        assert grid.values[0] == "Commune (A)"

    def test_initial_key_without_match(self):
        """Should leave the control unchanged when nothing matches."""
        grid = InMemoryGrid([""], labels=["Math"])
        make_executor(grid).send_key(ControlRef(grid, grid.subject(0)), "r")
        assert grid.subject(0).selected_index == 0

    def test_arrow_down(self):
        """Should move one option forward and raise change."""
        grid = InMemoryGrid([""])
        select = grid.subject(0)
        make_executor(grid).send_key(ControlRef(grid, select), "ArrowDown")
        assert select.selected_index == 1
        assert grid.events_for(select)[-1] == "change"

    def test_raw_keys_on_other_controls(self):
        """Should dispatch key events to non-selectable controls."""
        grid = InMemoryGrid([])
        field = grid.add_control(tag="input")
        make_executor(grid).send_key(ControlRef(grid, field), "Enter")
        assert grid.events_for(field)[-3:] == ["keydown:Enter", "keypress:Enter", "keyup:Enter"]


class TestSelectLabel:
    """Tests for exact label selection."""

    def test_selects_exact_label(self):
        """Should select the option with the exact trimmed label."""
        grid = InMemoryGrid([""])
        make_executor(grid).select_label(ControlRef(grid, grid.subject(0)), "History")
        assert grid.values[0] == "History"

    def test_missing_label_raises(self):
        """Should raise ActionError when the option does not exist."""
        grid = InMemoryGrid([""])
        with pytest.raises(ActionError) as exc_info:
            make_executor(grid).select_label(ControlRef(grid, grid.subject(0)), "history")
        assert "not found" in str(exc_info.value)

    def test_stale_control_raises(self):
        """Should wrap stale control errors in ActionError."""
        grid = InMemoryGrid([""])
        control = ControlRef(grid, grid.subject(0))
        grid.rerender_row(0)
        with pytest.raises(ActionError):
            make_executor(grid).select_label(control, "History")
