"""Utility module for photoconv."""

from photoconv.utils.executor import create_isolated_executor, shutdown_executor
from photoconv.utils.fs import (
    discover_images,
    ensure_directory,
    format_size,
    get_unique_path,
    output_name_for,
    safe_filename,
    write_output,
)

__all__ = [
    # Executor
    "create_isolated_executor",
    "shutdown_executor",
    # File system
    "ensure_directory",
    "safe_filename",
    "output_name_for",
    "get_unique_path",
    "discover_images",
    "format_size",
    "write_output",
]
