"""Tests for isolated executor creation."""

from concurrent.futures import ProcessPoolExecutor

from photoconv.utils import executor as executor_module
from photoconv.utils.executor import create_isolated_executor, shutdown_executor


class TestCreateIsolatedExecutor:
    """Tests for create_isolated_executor function."""

    def test_single_worker_pool(self):
        """A one-process pool is created."""
        executor = create_isolated_executor()
        try:
            assert isinstance(executor, ProcessPoolExecutor)
            assert executor._max_workers == 1
        finally:
            shutdown_executor(executor)

    def test_unavailable_platform(self, monkeypatch):
        """Platforms without process support get None."""

        def unavailable(*args, **kwargs):
            raise NotImplementedError("no sem_open")

        monkeypatch.setattr(executor_module, "ProcessPoolExecutor", unavailable)

        assert create_isolated_executor() is None


class TestShutdownExecutor:
    """Tests for shutdown_executor function."""

    def test_none_is_ignored(self):
        """Shutting down nothing is a no-op."""
        shutdown_executor(None)
