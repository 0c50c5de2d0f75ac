"""Logging configuration using structlog."""

import logging
import sys
import uuid
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from structlog.typing import EventDict, WrappedLogger

import structlog


class SafeStreamHandler(logging.StreamHandler):
    """A StreamHandler that survives consoles unable to encode the message.

    File names from phones routinely carry characters a CP1252 console
    cannot print; those are replaced instead of raising.
    """

    def emit(self, record: logging.LogRecord) -> None:
        """Emit a record, replacing characters the stream cannot encode."""
        try:
            msg = self.format(record)
            stream = self.stream
            try:
                stream.write(msg + self.terminator)
            except UnicodeEncodeError:
                encoding = stream.encoding or "utf-8"
                safe_msg = msg.encode(encoding, errors="replace").decode(encoding, errors="replace")
                stream.write(safe_msg + self.terminator)
            self.flush()
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)


# Third-party loggers kept at WARNING unless running at DEBUG
_NOISY_LOGGERS = [
    "PIL",
    "pillow_heif",
    "asyncio",
    "concurrent.futures",
]

# Keys that are handled specially by ConsoleRenderer (not user context)
_INTERNAL_KEYS = {"event", "level", "timestamp", "_record", "_from_structlog"}

_MAX_VALUE_LENGTH = 500


def _mask_binary_payloads(
    _logger: "WrappedLogger", _method_name: str, event_dict: "EventDict"
) -> "EventDict":
    """Replace raw image bytes and overlong strings with a short marker."""
    for key, value in list(event_dict.items()):
        if isinstance(value, (bytes, bytearray, memoryview)):
            event_dict[key] = f"[BINARY DATA: {len(value)} bytes]"
        elif isinstance(value, str) and len(value) > _MAX_VALUE_LENGTH:
            event_dict[key] = value[:_MAX_VALUE_LENGTH] + f"... [{len(value)} chars total]"
    return event_dict


def _add_separator(
    _logger: "WrappedLogger", _method_name: str, event_dict: "EventDict"
) -> "EventDict":
    """Add a visual separator between event message and context variables."""
    has_context = any(k not in _INTERNAL_KEYS for k in event_dict)

    if has_context and "event" in event_dict:
        event_dict["event"] = f"{event_dict['event']} |"

    return event_dict


def _build_formatter(
    shared_processors: list[structlog.types.Processor], json_format: bool, colors: bool
) -> structlog.stdlib.ProcessorFormatter:
    """Create a stdlib formatter that renders through structlog."""
    if json_format:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=colors,
            exception_formatter=structlog.dev.plain_traceback,
            pad_event_to=0,
            pad_level=False,
        )

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    json_format: bool = False,
    console_level: str | None = None,
    file_level: str | None = None,
) -> None:
    """Configure structlog for the application.

    Args:
        level: Root log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path; logs go to both console and file, rotated
                  daily with 7 days of retention
        json_format: If True, output JSON format
        console_level: Optional override for console handler level
        file_level: Optional override for file handler level
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level)

    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(max(log_level, logging.WARNING))

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _mask_binary_payloads,
        _add_separator,
    ]

    console_handler = SafeStreamHandler(sys.stderr)
    c_level = getattr(logging, console_level.upper(), log_level) if console_level else log_level
    console_handler.setLevel(c_level)
    console_handler.setFormatter(_build_formatter(shared_processors, json_format, colors=True))
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = TimedRotatingFileHandler(
            log_file,
            when="midnight",
            interval=1,
            backupCount=7,
            encoding="utf-8",
        )
        file_handler.suffix = "%Y-%m-%d"

        f_level = getattr(logging, file_level.upper(), log_level) if file_level else log_level
        file_handler.setLevel(f_level)
        file_handler.setFormatter(_build_formatter(shared_processors, json_format, colors=False))
        root_logger.addHandler(file_handler)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,  # Allow reconfiguration
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a logger instance.

    Args:
        name: Optional logger name

    Returns:
        A structlog bound logger
    """
    return structlog.get_logger(name)


def create_task_log_path(log_dir: str | Path, prefix: str = "task") -> tuple[str, Path]:
    """Create a unique task log file path with timestamp and UUID.

    Args:
        log_dir: Directory to store log files
        prefix: Prefix for the log file name (e.g., "convert", "info")

    Returns:
        Tuple of (task_id, log_file_path)

    Example:
        >>> task_id, log_path = create_task_log_path(".logs", "convert")
        >>> print(log_path)  # .logs/convert_20260109_143052_a1b2c3d4.log
    """
    log_dir_path = Path(log_dir)
    log_dir_path.mkdir(parents=True, exist_ok=True)

    task_id = str(uuid.uuid4())[:8]
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir_path / f"{prefix}_{timestamp}_{task_id}.log"

    return task_id, log_file


def setup_task_logging(
    log_dir: str | Path,
    prefix: str = "task",
    verbose: bool = False,
    level: str = "DEBUG",
) -> tuple[str, Path]:
    """Setup logging for a CLI task.

    The console shows WARNING and above (DEBUG with ``verbose``) so progress
    bars stay readable; the task log file receives ``level`` and above.

    Args:
        log_dir: Directory to store log files
        prefix: Prefix for the log file name
        verbose: Enable verbose console output
        level: Task log file level

    Returns:
        Tuple of (task_id, log_file_path)
    """
    task_id, log_path = create_task_log_path(log_dir, prefix)

    setup_logging(
        level="DEBUG" if verbose else level,
        log_file=str(log_path),
        console_level="DEBUG" if verbose else "WARNING",
        file_level=level,
    )

    return task_id, log_path
