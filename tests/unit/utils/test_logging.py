"""Tests for logging utilities module."""

import io
import logging
from pathlib import Path

from photoconv.utils.logging import (
    SafeStreamHandler,
    _add_separator,
    _mask_binary_payloads,
    create_task_log_path,
    get_logger,
    setup_logging,
    setup_task_logging,
)


def make_record(msg):
    return logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=None,
    )


class AsciiStream(io.StringIO):
    """Stream that rejects non-ASCII text like a legacy console."""

    encoding = "ascii"

    def write(self, s):
        s.encode("ascii")
        return super().write(s)


class TestSafeStreamHandler:
    """Tests for SafeStreamHandler class."""

    def test_emit_normal_message(self):
        """Test emitting a normal message."""
        stream = io.StringIO()
        handler = SafeStreamHandler(stream)
        handler.setFormatter(logging.Formatter("%(message)s"))

        handler.emit(make_record("Converted IMG_0001.HEIC"))

        assert "Converted IMG_0001.HEIC" in stream.getvalue()

    def test_emit_unencodable_message(self):
        """Characters the stream cannot encode are replaced."""
        stream = AsciiStream()
        handler = SafeStreamHandler(stream)
        handler.setFormatter(logging.Formatter("%(message)s"))

        handler.emit(make_record("Converted café_📷.heic"))

        assert "Converted caf?_?.heic" in stream.getvalue()


class TestMaskBinaryPayloads:
    """Tests for _mask_binary_payloads processor."""

    def test_masks_bytes(self):
        """Raw image bytes are replaced with their length."""
        result = _mask_binary_payloads(None, "info", {"event": "x", "data": b"\xff\xd8" * 10})
        assert result["data"] == "[BINARY DATA: 20 bytes]"

    def test_masks_bytearray(self):
        """Test handling bytearray."""
        result = _mask_binary_payloads(None, "info", {"event": "x", "data": bytearray(5)})
        assert result["data"] == "[BINARY DATA: 5 bytes]"

    def test_truncates_long_string(self):
        """Overlong strings are truncated with the original length."""
        result = _mask_binary_payloads(None, "info", {"event": "x", "error": "e" * 600})

        assert result["error"].startswith("e" * 500)
        assert result["error"].endswith("[600 chars total]")

    def test_leaves_short_values(self):
        """Short strings and numbers pass through."""
        event_dict = {"event": "x", "file": "a.jpg", "size": 12}
        assert _mask_binary_payloads(None, "info", dict(event_dict)) == event_dict


class TestAddSeparator:
    """Tests for _add_separator processor."""

    def test_adds_separator_when_context_present(self):
        """Test adding separator when context keys present."""
        result = _add_separator(None, "info", {"event": "Converting file", "file": "a.heic"})
        assert result["event"] == "Converting file |"

    def test_no_separator_without_context(self):
        """Test no separator when no context keys."""
        event_dict = {"event": "Batch complete", "level": "info", "timestamp": "2026-01-01"}
        assert _add_separator(None, "info", event_dict)["event"] == "Batch complete"

    def test_handles_missing_event(self):
        """Test handling event dict without event key."""
        event_dict = {"file": "a.heic"}
        assert _add_separator(None, "info", event_dict) == event_dict


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_configures_root_logger(self):
        """Test that root logger is configured."""
        setup_logging(level="DEBUG")
        assert logging.getLogger().level == logging.DEBUG

    def test_supports_json_format(self, tmp_path):
        """JSON output renders structured context."""
        log_file = tmp_path / "test.log"
        setup_logging(level="INFO", log_file=str(log_file), json_format=True)

        get_logger("test").info("Converted", file="a.heic")
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = log_file.read_text(encoding="utf-8")
        assert '"file": "a.heic"' in content

    def test_file_logging(self, tmp_path):
        """Messages reach the log file, creating its directory."""
        log_file = tmp_path / "subdir" / "test.log"

        setup_logging(level="INFO", log_file=str(log_file))
        logging.getLogger("test").info("Test message")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "Test message" in log_file.read_text(encoding="utf-8")

    def test_console_level_override(self):
        """Console handler can be quieter than the root logger."""
        setup_logging(level="DEBUG", console_level="WARNING")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert root.handlers[0].level == logging.WARNING

    def test_suppresses_noisy_loggers(self):
        """Test that noisy third-party loggers are suppressed."""
        setup_logging(level="INFO")
        assert logging.getLogger("PIL").level >= logging.WARNING


class TestGetLogger:
    """Tests for get_logger function."""

    def test_returns_logger_with_methods(self):
        """Test that get_logger returns a logger with expected methods."""
        setup_logging(level="INFO")
        logger = get_logger("test")
        for method in ("debug", "info", "warning", "error"):
            assert hasattr(logger, method)


class TestCreateTaskLogPath:
    """Tests for create_task_log_path function."""

    def test_creates_log_directory(self, tmp_path):
        """Test that log directory is created."""
        log_dir = tmp_path / "logs"
        create_task_log_path(log_dir, "test")
        assert log_dir.exists()

    def test_path_format(self, tmp_path):
        """Task ids are 8 characters and paths carry the prefix."""
        task_id, log_path = create_task_log_path(tmp_path, "convert")

        assert len(task_id) == 8
        assert isinstance(log_path, Path)
        assert log_path.name.startswith("convert_")
        assert log_path.suffix == ".log"


class TestSetupTaskLogging:
    """Tests for setup_task_logging function."""

    def test_creates_log_file(self, tmp_path):
        """Test that log file is created."""
        task_id, log_path = setup_task_logging(tmp_path, "convert")

        get_logger("test").debug("Debug reaches the file")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert len(task_id) == 8
        assert "Debug reaches the file" in log_path.read_text(encoding="utf-8")

    def test_console_levels(self, tmp_path):
        """Console shows warnings unless verbose."""
        setup_task_logging(tmp_path, "convert", verbose=False)
        assert logging.getLogger().handlers[0].level == logging.WARNING

        setup_task_logging(tmp_path, "convert", verbose=True)
        assert logging.getLogger().handlers[0].level == logging.DEBUG

    def test_file_level(self, tmp_path):
        """The task log file honors the configured level."""
        _, log_path = setup_task_logging(tmp_path, "convert", level="WARNING")

        get_logger("test").info("Info stays out")
        get_logger("test").warning("Warning goes in")
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = log_path.read_text(encoding="utf-8")
        assert "Warning goes in" in content
        assert "Info stays out" not in content
