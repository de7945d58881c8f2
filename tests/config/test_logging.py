"""Tests for structlog configuration."""

from __future__ import annotations

import io
import json
import logging
from collections.abc import Generator

import pytest
import structlog

from notegraph.config.logging import bind_invocation, configure_logging


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Restore root logger state after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    pkg = logging.getLogger("notegraph")
    pkg_level = pkg.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    pkg.setLevel(pkg_level)
    structlog.contextvars.clear_contextvars()


def _lines(stream: io.StringIO) -> list[dict[str, object]]:
    return [json.loads(line) for line in stream.getvalue().splitlines()]


class TestConfigureLogging:
    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True)
        assert logging.getLogger("notegraph").level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_non_verbose_sets_warning(self) -> None:
        configure_logging(verbose=False)
        assert logging.getLogger("notegraph").level == logging.WARNING

    def test_json_mode_output(self) -> None:
        stream = io.StringIO()
        configure_logging(verbose=True, log_json=True, stream=stream)
        structlog.get_logger("notegraph.test").warning("json test", answer=42)

        (parsed,) = _lines(stream)
        assert parsed["event"] == "json test"
        assert parsed["answer"] == 42
        assert parsed["level"] == "warning"
        assert parsed["logger"] == "notegraph.test"
        assert "timestamp" in parsed

    def test_stdlib_logger_gets_structured_fields(self) -> None:
        stream = io.StringIO()
        configure_logging(verbose=True, log_json=True, stream=stream)
        logging.getLogger("notegraph.plugins.manager").debug("Registered plugin: probe")

        (parsed,) = _lines(stream)
        assert parsed["event"] == "Registered plugin: probe"
        assert parsed["level"] == "debug"
        assert parsed["logger"] == "notegraph.plugins.manager"

    def test_human_mode_is_plain_text(self) -> None:
        stream = io.StringIO()
        configure_logging(verbose=True, stream=stream)
        structlog.get_logger("notegraph.test").warning("hello world", key="val")
        output = stream.getvalue()
        assert "hello world" in output
        assert "key=val" in output
        assert "\x1b[" not in output

    def test_third_party_debug_is_suppressed(self) -> None:
        stream = io.StringIO()
        configure_logging(verbose=True, log_json=True, stream=stream)
        logging.getLogger("sqlalchemy.engine").debug("SELECT 1")
        logging.getLogger("pluggy").debug("hook noise")
        assert stream.getvalue() == ""

    def test_idempotent_calls(self) -> None:
        """Multiple configure_logging calls don't stack handlers."""
        configure_logging(verbose=True)
        configure_logging(verbose=True, log_json=True)
        assert len(logging.getLogger().handlers) == 1


class TestBindInvocation:
    def test_user_and_command_on_every_line(self) -> None:
        stream = io.StringIO()
        configure_logging(verbose=True, log_json=True, stream=stream)
        bind_invocation(user="alice", command="add")
        logging.getLogger("notegraph.services").warning("saved")

        (parsed,) = _lines(stream)
        assert parsed["user"] == "alice"
        assert parsed["command"] == "add"

    def test_rebinding_clears_previous_command(self) -> None:
        stream = io.StringIO()
        configure_logging(verbose=True, log_json=True, stream=stream)
        bind_invocation(user="alice", command="add")
        bind_invocation(user="bob")
        structlog.get_logger("notegraph.test").warning("next")

        (parsed,) = _lines(stream)
        assert parsed["user"] == "bob"
        assert "command" not in parsed
