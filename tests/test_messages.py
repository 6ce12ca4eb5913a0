# tests/test_messages.py
"""
Tests for the host message protocol.
"""

import pytest

from gridauto.memory import InMemoryGrid
from gridauto.messages import MessageHandler
from gridauto.models import StopReason


@pytest.fixture
def grid():
    return InMemoryGrid(["", "", "French"])


@pytest.fixture
def handler(grid, make_controller):
    return MessageHandler(make_controller(grid))


class TestMessageHandler:
    """Tests for MessageHandler.handle."""

    def test_start_automation(self, handler, grid, scheduler):
        """Should acknowledge synchronously and run on the scheduler."""
        response = handler.handle({
            "action": "startAutomation",
            "element": {"rowIndex": "0", "colId": "subject", "tagName": "SELECT"},
            "mode": "commune",
        })
        assert response == {"success": True}
        assert handler.controller.running is True
        assert grid.values[0] == ""

        scheduler.run()
        assert grid.values == ["Commune", "Commune", "French"]

    def test_start_with_unresolvable_element(self, make_controller, scheduler):
        """Should acknowledge and report the failure through notifications."""
        handler = MessageHandler(make_controller(InMemoryGrid([])))
        response = handler.handle({"action": "startAutomation", "element": {}})
        assert response == {"success": True}
        assert handler.controller.last_session.stop_reason is StopReason.FATAL

    def test_stop_automation(self, handler):
        """Should stop the running session."""
        handler.handle({"action": "startAutomation", "element": {"rowIndex": 0, "colId": "subject"}})
        assert handler.handle({"action": "stopAutomation"}) == {"success": True}
        assert handler.controller.last_session.stop_reason is StopReason.MANUAL

    def test_stop_without_session(self, handler):
        """Should acknowledge a stop with nothing running."""
        assert handler.handle({"action": "stopAutomation"}) == {"success": True}

    def test_configure(self, handler):
        """Should merge legacy settings into the controller configuration."""
        response = handler.handle({"action": "configure", "config": {"delayBetweenActions": 500}})
        assert response == {"success": True}
        assert handler.controller.config.delay_between_actions == 0.5

    def test_configure_rejects_unknown_key(self, handler):
        """Should report invalid configuration in the response."""
        response = handler.handle({"action": "configure", "config": {"nope": 1}})
        assert response["success"] is False
        assert "nope" in response["error"]

    def test_status(self, handler):
        """Should return the controller snapshot."""
        response = handler.handle({"action": "status"})
        assert response["success"] is True
        assert response["status"]["running"] is False
        assert response["status"]["session"] is None

    def test_pattern_fill(self, scheduler, make_controller):
        """Should start a pattern fill pass."""
        grid = InMemoryGrid(["French", ""])
        handler = MessageHandler(make_controller(grid))
        assert handler.handle({"action": "startPatternFill", "element": {}}) == {"success": True}
        scheduler.run()
        assert grid.values == ["French", "French"]

    @pytest.mark.parametrize("message", [
        {"action": "launch"},
        {},
        "startAutomation",
    ])
    def test_unknown_message(self, handler, message):
        """Should reject unknown actions."""
        response = handler.handle(message)
        assert response["success"] is False
        assert "error" in response


class TestMalformedMessages:
    """Tests for messages the host sends with broken fields."""

    @pytest.mark.parametrize("rect", [
        {"x": "abc", "y": 1},
        {"x": None, "y": 1},
    ])
    def test_unparsable_rect_is_dropped(self, handler, grid, scheduler, rect):
        """Should ignore a broken rect and still start from the row hint."""
        response = handler.handle({
            "action": "startAutomation",
            "element": {"rowIndex": 0, "colId": "subject", "rect": rect},
        })
        assert response == {"success": True}
        scheduler.run()
        assert grid.values == ["Commune", "Commune", "French"]

    @pytest.mark.parametrize("action", [["startAutomation"], {"a": 1}, 7])
    def test_non_string_action(self, handler, action):
        """Should answer with an error for unhashable or non-text actions."""
        response = handler.handle({"action": action})
        assert response["success"] is False
        assert "Unknown action" in response["error"]

    def test_element_not_an_object(self, handler):
        """Should treat a non-object element as an empty hint."""
        response = handler.handle({"action": "startAutomation", "element": ["x"], "mode": ["a"]})
        assert response == {"success": True}
        assert handler.controller.running is False

    def test_handler_error_becomes_response(self, handler, monkeypatch):
        """Should report an operation failure instead of raising to the host."""
        def broken(*args, **kwargs):
            raise RuntimeError("page gone")

        monkeypatch.setattr(handler.controller, "stop", broken)
        response = handler.handle({"action": "stopAutomation"})
        assert response == {"success": False, "error": "RuntimeError: page gone"}
