"""Batch orchestration: sequence per-file conversions and aggregate progress.

A producer coroutine dispatches the items one at a time and posts each
outcome as a :class:`CompletionEvent` on a queue. A single aggregator
coroutine owns the :class:`BatchJob`: it is the only code that records
outcomes, so counters and result lists are never mutated concurrently.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from photoconv.core.dispatcher import ParallelDispatcher
from photoconv.exceptions import PhotoconvError
from photoconv.image.metadata import extract_metadata
from photoconv.models import (
    BatchItem,
    BatchJob,
    ConversionRequest,
    ConversionResult,
    FileFailure,
    InputFile,
)
from photoconv.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class CompletionEvent:
    """Outcome of one batch item, success or failure."""

    item_id: str
    result: ConversionResult | None = None
    failure: FileFailure | None = None

    @property
    def succeeded(self) -> bool:
        return self.result is not None


class ProgressReporter(Protocol):
    """Receives batch progress notifications."""

    def on_file_converted(self, item: BatchItem, result: ConversionResult) -> None: ...

    def on_file_failed(self, item: BatchItem, failure: FileFailure) -> None: ...

    def on_progress(self, completed: int, total: int) -> None: ...

    def on_batch_complete(self, job: BatchJob) -> None: ...


class NullReporter:
    """Progress reporter that ignores every notification."""

    def on_file_converted(self, item: BatchItem, result: ConversionResult) -> None:
        pass

    def on_file_failed(self, item: BatchItem, failure: FileFailure) -> None:
        pass

    def on_progress(self, completed: int, total: int) -> None:
        pass

    def on_batch_complete(self, job: BatchJob) -> None:
        pass


class BatchOrchestrator:
    """Run a batch of conversions through a :class:`ParallelDispatcher`."""

    def __init__(
        self,
        dispatcher: ParallelDispatcher,
        reporter: ProgressReporter | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            dispatcher: Dispatcher used for every file
            reporter: Progress notifications target (default: ignore)
        """
        self.dispatcher = dispatcher
        self.reporter = reporter or NullReporter()

    @staticmethod
    def build_job(
        files: Sequence[InputFile],
        request: ConversionRequest | Sequence[ConversionRequest],
    ) -> BatchJob:
        """Pair files with their requests.

        Raises:
            ValueError: If a request list does not match the file list
        """
        if isinstance(request, ConversionRequest):
            requests = [request] * len(files)
        else:
            requests = list(request)
            if len(requests) != len(files):
                raise ValueError(f"Got {len(requests)} requests for {len(files)} files")

        items = [BatchItem(file=file, request=req) for file, req in zip(files, requests, strict=True)]
        return BatchJob(items=items)

    async def run(
        self,
        files: Sequence[InputFile],
        request: ConversionRequest | Sequence[ConversionRequest],
    ) -> BatchJob:
        """Convert every file, isolating per-file failures.

        Args:
            files: Input files, processed in order
            request: One request for every file, or one request per file

        Returns:
            The completed job; ``completed == total`` on return
        """
        job = self.build_job(files, request)
        queue: asyncio.Queue[CompletionEvent | None] = asyncio.Queue()

        log.info("Starting batch", total=job.total, mode=self.dispatcher.mode)

        aggregator = asyncio.create_task(self._aggregate(job, queue))
        try:
            await self._produce(job.items, queue)
        finally:
            await queue.put(None)
            await aggregator

        log.info(
            "Batch complete",
            total=job.total,
            succeeded=len(job.results),
            failed=len(job.errors),
            fallbacks=self.dispatcher.fallback_count,
        )
        return job

    async def _produce(
        self, items: Sequence[BatchItem], queue: asyncio.Queue[CompletionEvent | None]
    ) -> None:
        for item in items:
            await queue.put(await self._convert_item(item))

    async def _convert_item(self, item: BatchItem) -> CompletionEvent:
        file = item.file
        metadata = extract_metadata(file.data, file.name, file.type_hint)
        log.debug(
            "Converting file",
            file=file.name,
            format=item.request.target_format,
            width=metadata.width,
            height=metadata.height,
            orientation=metadata.orientation,
        )

        try:
            result = await self.dispatcher.dispatch(file, metadata, item.request)
        except PhotoconvError as e:
            log.warning("File conversion failed", file=file.name, error=str(e))
            return CompletionEvent(
                item_id=item.item_id,
                failure=FileFailure(item_id=item.item_id, file_name=file.name, error=e),
            )

        return CompletionEvent(item_id=item.item_id, result=result)

    async def _aggregate(self, job: BatchJob, queue: asyncio.Queue[CompletionEvent | None]) -> None:
        items = {item.item_id: item for item in job.items}

        if job.total == 0:
            self.reporter.on_progress(0, 0)
            self.reporter.on_batch_complete(job)

        while True:
            event = await queue.get()
            if event is None:
                break

            item = items[event.item_id]
            if event.result is not None:
                job.record_result(event.item_id, event.result)
                self.reporter.on_file_converted(item, event.result)
            elif event.failure is not None:
                job.record_failure(event.failure)
                self.reporter.on_file_failed(item, event.failure)

            self.reporter.on_progress(job.completed, job.total)
            if job.is_complete:
                self.reporter.on_batch_complete(job)
