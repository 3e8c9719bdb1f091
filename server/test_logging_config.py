"""
Test suite for log formatting and context propagation.

Run with: pytest test_logging_config.py -v
"""

import json
import logging

import pytest

from logging_config import (
    ContextLogger,
    DevelopmentFormatter,
    JSONFormatter,
    get_logger,
    player_id_var,
    room_code_var,
    setup_logging,
)


def make_record(msg: str = "hello", level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord("room", level, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


class TestJSONFormatter:

    def test_record_extras_are_top_level(self):
        line = JSONFormatter().format(make_record(room_code="K7Q2ZD", player_id="abc"))
        data = json.loads(line)
        assert data["message"] == "hello"
        assert data["room_code"] == "K7Q2ZD"
        assert data["player_id"] == "abc"
        assert "source" not in data

    def test_context_vars_fill_missing_fields(self):
        token = room_code_var.set("VAR001")
        try:
            data = json.loads(JSONFormatter().format(make_record()))
        finally:
            room_code_var.reset(token)
        assert data["room_code"] == "VAR001"

    def test_record_extra_beats_context_var(self):
        token = room_code_var.set("VAR001")
        try:
            data = json.loads(JSONFormatter().format(make_record(room_code="REC001")))
        finally:
            room_code_var.reset(token)
        assert data["room_code"] == "REC001"

    def test_errors_carry_source(self):
        data = json.loads(JSONFormatter().format(make_record(level=logging.ERROR)))
        assert data["source"].startswith(__file__)


class TestDevelopmentFormatter:

    def test_context_shortened(self):
        token = player_id_var.set("0123456789abcdef")
        try:
            line = DevelopmentFormatter().format(make_record(room_code="K7Q2ZD"))
        finally:
            player_id_var.reset(token)
        assert "[room=K7Q2ZD player=01234567]" in line
        assert line.endswith("hello")

    def test_no_context(self):
        line = DevelopmentFormatter().format(make_record())
        assert "room=" not in line
        assert "player=" not in line


class TestSetupLogging:

    def test_production_uses_json(self, restore_root_logger):
        setup_logging("WARNING", environment="production")
        root = logging.getLogger()
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
        assert root.level == logging.WARNING

    def test_unknown_level_falls_back(self, restore_root_logger):
        setup_logging("LOUD")
        root = logging.getLogger()
        assert isinstance(root.handlers[0].formatter, DevelopmentFormatter)
        assert root.level == logging.INFO


class TestContextLogger:

    def test_with_context_accumulates(self, caplog):
        logger = get_logger("rooms.test").with_context(room_code="K7Q2ZD")

        with caplog.at_level(logging.INFO, logger="rooms.test"):
            logger.with_context(player_id="p1").info("joined")

        record = caplog.records[-1]
        assert record.room_code == "K7Q2ZD"
        assert record.player_id == "p1"

    def test_with_context_returns_new_logger(self):
        base = get_logger("rooms.test")
        child = base.with_context(room_code="A")
        assert isinstance(child, ContextLogger)
        assert base.extra == {}
