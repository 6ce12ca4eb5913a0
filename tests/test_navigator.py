# tests/test_navigator.py
"""
Tests for next-row lookup and row classification.
"""

import pytest

from gridauto.config import Configuration
from gridauto.element import ControlRef
from gridauto.memory import InMemoryGrid
from gridauto.models import NextKind, RowState
from gridauto.navigator import RowNavigator, diagnose


def ref(grid, row):
    return ControlRef(grid, grid.subject(row))


class TestClassify:
    """Tests for row state classification."""

    @pytest.mark.parametrize("value,expected", [
        ("", RowState.EMPTY),
        ("   ", RowState.EMPTY),
        (None, RowState.EMPTY),
        ("Commune", RowState.TARGET_ALREADY_SET),
        (" Commune ", RowState.TARGET_ALREADY_SET),
        ("commune", RowState.OTHER_VALUE_SET),
        ("French", RowState.OTHER_VALUE_SET),
    ])
    def test_classify_value(self, value, expected):
        """Should compare trimmed values against the target label."""
        navigator = RowNavigator(InMemoryGrid([]), Configuration())
        assert navigator.classify_value(value, "Commune") is expected

    def test_detached_control_is_absent(self):
        """Should classify a detached control as ABSENT."""
        grid = InMemoryGrid(["French"])
        control = ref(grid, 0)
        grid.rerender_row(0)
        navigator = RowNavigator(grid, Configuration())
        assert navigator.classify(control) is RowState.ABSENT
        assert navigator.classify(None) is RowState.ABSENT


class TestFindNext:
    """Tests for find_next."""

    def test_next_empty_row(self):
        """Should return the next rendered row when it is empty."""
        grid = InMemoryGrid(["Commune", ""])
        nxt = RowNavigator(grid, Configuration()).find_next(ref(grid, 0))
        assert nxt.kind is NextKind.FOUND
        assert nxt.row_index == 1
        assert nxt.control.handle is grid.subject(1)

    def test_skips_target_rows(self):
        """Should skip rows already holding the target label."""
        grid = InMemoryGrid(["", "Commune", "Commune", ""])
        nxt = RowNavigator(grid, Configuration()).find_next(ref(grid, 0))
        assert nxt.kind is NextKind.FOUND
        assert nxt.row_index == 3
        assert nxt.after_index == 2

    def test_other_value_ends_work(self):
        """Should report END_OF_WORK on a row with another value."""
        grid = InMemoryGrid(["", "French", ""])
        nxt = RowNavigator(grid, Configuration()).find_next(ref(grid, 0))
        assert nxt.kind is NextKind.END_OF_WORK
        assert nxt.row_index == 1

    def test_absent_after_last_rendered(self):
        """Should report ABSENT with the last skipped row."""
        grid = InMemoryGrid(["", "Commune"])
        nxt = RowNavigator(grid, Configuration()).find_next(ref(grid, 0))
        assert nxt.kind is NextKind.ABSENT
        assert nxt.after_index == 1

    def test_gap_in_rendered_rows(self):
        """Should scan rendered rows when the direct successor is missing."""
        grid = InMemoryGrid([""] * 6, rendered=3, row_height=100)
        grid.scroll_viewport(300)
        navigator = RowNavigator(grid, Configuration())
        nxt = navigator.find_next_after(1)
        assert nxt.kind is NextKind.FOUND
        assert nxt.row_index == 3

    def test_unknown_row_index(self):
        """Should report NOT_FOUND for a control outside any row."""
        grid = InMemoryGrid([""])
        outside = grid.add_control(labels=["Commune"])
        nxt = RowNavigator(grid, Configuration()).find_next(ControlRef(grid, outside))
        assert nxt.kind is NextKind.NOT_FOUND

    def test_missing_subject_control(self):
        """Should report NOT_FOUND when a row has no subject control."""
        grid = InMemoryGrid(["", None])
        nxt = RowNavigator(grid, Configuration()).find_next(ref(grid, 0))
        assert nxt.kind is NextKind.NOT_FOUND
        assert nxt.row_index == 1

    def test_skip_bound(self):
        """Should stop skipping after max_rows_per_scan rows."""
        grid = InMemoryGrid(["", "Commune", "Commune", ""])
        config = Configuration(max_rows_per_scan=2)
        nxt = RowNavigator(grid, config).find_next(ref(grid, 0))
        assert nxt.kind is NextKind.NOT_FOUND

    def test_custom_target_label(self):
        """Should skip rows holding the label passed by the caller."""
        grid = InMemoryGrid(["", "French", ""])
        nxt = RowNavigator(grid, Configuration()).find_next(ref(grid, 0), target_label="French")
        assert nxt.kind is NextKind.FOUND
        assert nxt.row_index == 2


class TestDiagnose:
    """Tests for the page summary."""

    def test_reports_rows(self):
        """Should count selects and classify each rendered row."""
        grid = InMemoryGrid(["", "Commune", "French", None])
        report = diagnose(grid, Configuration())
        assert report["selects"] == 3
        assert report["subject_selects"] == 3
        assert report["rows"] == 4
        states = [r["state"] for r in report["row_details"]]
        assert states == ["empty", "target_already_set", "other_value_set", "absent"]
