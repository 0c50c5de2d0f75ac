"""Isolated worker process creation for conversion jobs."""

from __future__ import annotations

import multiprocessing
from collections.abc import Callable
from concurrent.futures import Executor, ProcessPoolExecutor
from typing import Any

from photoconv.utils.logging import get_logger

log = get_logger(__name__)


def _get_mp_context() -> multiprocessing.context.BaseContext:
    """Pick a start method that does not inherit the parent's threads.

    ``fork`` after an event loop has started is unsafe, so spawn is used
    everywhere it exists.
    """
    if "spawn" in multiprocessing.get_all_start_methods():
        return multiprocessing.get_context("spawn")
    return multiprocessing.get_context()


def create_isolated_executor(
    initializer: Callable[..., Any] | None = None,
    initargs: tuple[Any, ...] = (),
) -> Executor | None:
    """Create the single-process executor that hosts the conversion worker.

    Args:
        initializer: Callable run once inside the worker process
        initargs: Arguments for ``initializer``

    Returns:
        A one-worker ProcessPoolExecutor, or None when the platform cannot
        start worker processes (sandboxed interpreters, missing semaphores).
    """
    try:
        executor = ProcessPoolExecutor(
            max_workers=1,
            mp_context=_get_mp_context(),
            initializer=initializer,
            initargs=initargs,
        )
    except (NotImplementedError, OSError, ImportError) as e:
        log.warning("Isolated worker unavailable, converting in-process", error=str(e))
        return None

    log.debug("Created isolated worker executor")
    return executor


def shutdown_executor(executor: Executor | None) -> None:
    """Shutdown an executor created by :func:`create_isolated_executor`."""
    if executor is not None:
        executor.shutdown(wait=True)
        log.debug("Isolated worker executor shutdown")
