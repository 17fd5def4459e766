"""Tests for the player-facing game log."""

import logging

import pytest
from celtic_realm.state.game_log import GameLog, LogCategory


class TestGameLog:
    """Test the append-only log."""

    def test_log_returns_entry(self, log):
        """Entries carry their message, category and turn."""
        log.turn = 3
        entry = log.log("The mist rises.", category=LogCategory.THREAT)
        assert entry.message == "The mist rises."
        assert entry.category == LogCategory.THREAT
        assert entry.turn == 3
        assert entry.highlight is False
        assert len(log) == 1

    def test_str_marks_highlight(self, log):
        """Highlighted entries stand out."""
        entry = log.log("Danger!", highlight=True)
        assert str(entry) == "![T0] Danger!"

    def test_limit_drops_oldest(self):
        """The log keeps only the newest entries."""
        log = GameLog(limit=3)
        for i in range(5):
            log.log(f"entry {i}")
        assert [e.message for e in log.entries] == ["entry 2", "entry 3", "entry 4"]

    def test_recent(self, log):
        """recent() returns the tail."""
        for i in range(4):
            log.log(f"entry {i}")
        assert [e.message for e in log.recent(2)] == ["entry 2", "entry 3"]
        assert log.recent(0) == []

    def test_by_category(self, log):
        """Entries can be filtered by category."""
        log.log("a", category=LogCategory.SEASON)
        log.log("b", category=LogCategory.THREAT)
        assert [e.message for e in log.by_category(LogCategory.SEASON)] == ["a"]

    def test_clear(self, log):
        """clear() empties the log."""
        log.log("a")
        log.clear()
        assert len(log) == 0

    def test_mirrored_to_logger(self, log, caplog):
        """Highlighted entries reach the developer log as warnings."""
        with caplog.at_level(logging.INFO, logger="celtic_realm.state.game_log"):
            log.log("quiet")
            log.log("loud", highlight=True)
        levels = {r.getMessage(): r.levelno for r in caplog.records}
        assert levels["[system] quiet"] == logging.INFO
        assert levels["[system] loud"] == logging.WARNING
