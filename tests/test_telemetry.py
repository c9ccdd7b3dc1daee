"""
Parallax Discord Bot - Telemetry Tests
======================================

Scoped reporting handles, error categorization and the tree logger.
"""

import sqlite3

import discord
import pytest

from parallax.core.logger import TreeLogger
from parallax.core.telemetry import Telemetry
from parallax.utils.error_handler import ErrorHandler


class TestScopes:
    """Child handles extend the scope path."""

    def test_child_paths(self, telemetry):
        handle = telemetry.child("InteractionDispatcher").child("interaction", id=7)

        assert handle.path == "Parallax::InteractionDispatcher::interaction(7)"
        assert handle.identifier == "interaction(7)"
        assert handle.origin == "Parallax::InteractionDispatcher"

    def test_children_are_independent(self, telemetry):
        first = telemetry.child("A")
        telemetry.child("B")

        assert first.scope == ("Parallax", "A")
        assert telemetry.scope == ("Parallax",)

    def test_default_scope(self, sink):
        assert Telemetry(sink=sink).path == "Parallax"


class TestReporting:
    """log() and error() go to the sink."""

    def test_log_writes_info(self, telemetry, sink):
        telemetry.child("Reconciler").log("Global chat_input command ping created.")

        assert sink.infos == ["[Parallax::Reconciler] Global chat_input command ping created."]
        assert sink.notifications == []

    def test_broadcast_notifies(self, sink):
        handle = Telemetry("Parallax", broadcast=True, sink=sink).child("Gateway")

        handle.log("Member approved")

        assert sink.notifications == [("Gateway", [("Origin", "Parallax"), ("Message", "Member approved")])]

    def test_broadcast_override(self, telemetry, sink):
        telemetry.log("loud", broadcast=True)
        assert len(sink.notifications) == 1

    def test_error_with_exception(self, telemetry, sink):
        try:
            raise ConnectionError("reset by peer")
        except ConnectionError as e:
            telemetry.child("refresh", id="global").error(e)

        message, details = sink.errors[0]
        assert message == "[Parallax::refresh(global)] Failed"
        assert ("Category", "network") in details
        assert ("Error Type", "ConnectionError") in details
        assert ("Error", "reset by peer") in details
        assert "Traceback" in sink.debugs[0]

    def test_error_with_message(self, telemetry, sink):
        telemetry.error("something odd")

        assert sink.errors == [("[Parallax] Failed", [("Origin", "-"), ("Error", "something odd")])]


class TestErrorHandler:
    """Error categorization."""

    @pytest.mark.parametrize("error,category", [
        (discord.DiscordException("x"), "discord"),
        (ConnectionError("x"), "network"),
        (TimeoutError(), "network"),
        (sqlite3.OperationalError("locked"), "database"),
        (KeyError("k"), "interaction"),
        (ValueError("v"), "interaction"),
        (RuntimeError("r"), "general"),
    ])
    def test_categories(self, error, category):
        assert ErrorHandler.categorize_error(error) == category

    def test_unknown_category_falls_back(self):
        assert ErrorHandler.get_recovery_suggestion("nope") == ErrorHandler.RECOVERY_SUGGESTIONS["general"]


class TestTreeLogger:
    """File output of the tree logger."""

    def test_tree_written_to_file(self, tmp_path):
        tree_logger = TreeLogger(logs_dir=tmp_path, bot_name="Test")

        tree_logger.tree("Bot Started", [("Guilds", "2"), ("Commands", "4")])

        content = tree_logger.log_file.read_text(encoding="utf-8")
        assert "Bot Started" in content
        assert "├─ Guilds: 2" in content
        assert "└─ Commands: 4" in content
        assert tree_logger.run_id in content

    def test_errors_go_to_error_file(self, tmp_path):
        tree_logger = TreeLogger(logs_dir=tmp_path, bot_name="Test")

        tree_logger.error("Handler Failed", [("Error", "boom")])

        assert "Handler Failed" in tree_logger.error_file.read_text(encoding="utf-8")

    def test_notify_without_webhook_is_noop(self, tmp_path):
        tree_logger = TreeLogger(logs_dir=tmp_path, bot_name="Test")

        tree_logger.notify("Title", [("Key", "Value")])

    def test_old_log_directories_removed(self, tmp_path):
        old = tmp_path / "2000-01-01"
        old.mkdir()
        (old / "Test-2000-01-01.log").write_text("old", encoding="utf-8")

        TreeLogger(logs_dir=tmp_path, bot_name="Test")

        assert not old.exists()
