"""Tests for logging, settings, event bus and task helpers."""

import asyncio
import json

from utils.async_utils import TaskTracker
from utils.event_bus import EventBus
from utils.log_utils import _format_message, tprint
from utils.settings_store import (
    SETTINGS_ENV_VAR,
    deep_log,
    get_settings,
    is_deep_logging,
    load_settings_file,
    refresh_settings,
    update_settings,
)


class TestLogUtils:
    """Test suite for tag normalization."""

    def test_level_first_is_reordered(self):
        """Test that [DEEP][SYSTEM] becomes [SYSTEM][DEEP]."""
        assert _format_message("[DEEP][PROBER] hello") == ("[PROBER][DEEP] hello", "DEEP")

    def test_system_first_kept(self):
        """Test that [SYSTEM][LEVEL] is already normalized."""
        assert _format_message("[CLI][ERROR] bad") == ("[CLI][ERROR] bad", "ERROR")

    def test_untagged_gets_default_system(self):
        """Test that plain messages get the default system tag."""
        assert _format_message("plain") == ("[RESOLVER] plain", None)

    def test_warnings_go_to_stderr(self, capsys):
        """Test that WARN lines are written to stderr."""
        tprint("[RESOLVER][WARN] careful")
        captured = capsys.readouterr()
        assert "[RESOLVER][WARN] careful" in captured.err
        assert captured.out == ""


class TestSettingsStore:
    """Test suite for settings loading and deep logging."""

    def test_load_settings_file(self, tmp_path):
        """Test that a JSON file replaces the cached settings."""
        path = tmp_path / "s.json"
        path.write_text(json.dumps({"max_attempts": 7}))
        load_settings_file(path)
        assert get_settings() == {"max_attempts": 7}

    def test_unreadable_file_is_empty(self, tmp_path):
        """Test that malformed JSON falls back to empty settings."""
        path = tmp_path / "s.json"
        path.write_text("{not json")
        assert load_settings_file(path) == {}

    def test_env_override(self, tmp_path, monkeypatch):
        """Test that refresh_settings() honours the environment path."""
        path = tmp_path / "env.json"
        path.write_text(json.dumps({"log_level": "info"}))
        monkeypatch.setenv(SETTINGS_ENV_VAR, str(path))
        assert refresh_settings() == {"log_level": "info"}

    def test_update_settings_overlays(self, tmp_path):
        """Test that overrides are layered on top of loaded values."""
        path = tmp_path / "s.json"
        path.write_text(json.dumps({"max_attempts": 7, "log_level": "info"}))
        load_settings_file(path)
        assert update_settings(log_level="DEEP") == {"max_attempts": 7, "log_level": "DEEP"}

    def test_deep_log_gated(self, capsys):
        """Test that deep_log prints only at DEEP level."""
        deep_log("[DEEP][RESOLVER] hidden")
        assert capsys.readouterr().out == ""

        update_settings(log_level="deep")
        assert is_deep_logging() is True
        deep_log("[DEEP][RESOLVER] shown")
        assert "[RESOLVER][DEEP] shown" in capsys.readouterr().out


class TestEventBus:
    """Test suite for EventBus."""

    def test_publish_and_unsubscribe(self):
        """Test delivery to subscribers and removal."""
        bus = EventBus()
        seen = []
        bus.subscribe("topic", seen.append)
        bus.publish("topic", {"n": 1})
        bus.unsubscribe("topic", seen.append)
        bus.publish("topic", {"n": 2})
        assert seen == [{"n": 1}]

    def test_failing_handler_does_not_block_others(self, capsys):
        """Test that one broken subscriber does not stop delivery."""
        bus = EventBus()
        seen = []

        def _boom(payload):
            raise RuntimeError("boom")

        bus.subscribe("topic", _boom)
        bus.subscribe("topic", seen.append)
        bus.publish("topic")

        assert seen == [{}]
        assert "boom" in capsys.readouterr().err


class TestTaskTracker:
    """Test suite for TaskTracker."""

    def test_run_later_and_join(self):
        """Test that delayed work runs and join waits for it."""
        tracker = TaskTracker()
        done = []

        async def _work():
            done.append(True)

        async def _run():
            tracker.run_later(0.01, _work)
            assert tracker.pending() == 1
            await tracker.join()

        asyncio.run(_run())
        assert done == [True]
        assert tracker.pending() == 0

    def test_cancel_all(self):
        """Test that pending work can be cancelled."""
        tracker = TaskTracker()
        done = []

        async def _work():
            done.append(True)

        async def _run():
            tracker.run_later(10, _work)
            await tracker.cancel_all()

        asyncio.run(_run())
        assert done == []
