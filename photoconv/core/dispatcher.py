"""Dispatch per-file conversions to an isolated worker process.

The dispatcher owns one execution strategy. :class:`IsolatedExecution` sends
each request to a single-process pool so decoding and encoding never run on
the event loop; :class:`LocalExecution` converts on the calling context and
is used when no worker process can be started. Both answer with the same
:data:`WorkerResponse` union, so callers never see which one ran.
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Callable
from concurrent.futures import Executor
from concurrent.futures.process import BrokenProcessPool
from typing import Literal, Protocol

from photoconv.config.constants import DEFAULT_THUMBNAIL_QUALITY, DEFAULT_THUMBNAIL_SIZE
from photoconv.core.messages import (
    ConvertFileRequest,
    Errored,
    FallbackRequested,
    FileConverted,
    WorkerResponse,
)
from photoconv.core.worker import convert_file, handle_convert_request, init_worker
from photoconv.exceptions import DispatchError, PhotoconvError
from photoconv.image.decoder import Decoder
from photoconv.image.encoder import FormatEncoder
from photoconv.models import ConversionRequest, ConversionResult, InputFile, Metadata
from photoconv.utils.executor import create_isolated_executor, shutdown_executor
from photoconv.utils.logging import get_logger

log = get_logger(__name__)

ExecutionMode = Literal["isolated", "local"]


class ExecutionStrategy(Protocol):
    """Something that can answer a :class:`ConvertFileRequest`."""

    mode: ExecutionMode

    async def submit(self, message: ConvertFileRequest) -> WorkerResponse: ...


class LocalExecution:
    """Convert on the calling context with the full layered decoder."""

    mode: ExecutionMode = "local"

    def __init__(
        self,
        decoder: Decoder | None = None,
        encoder: FormatEncoder | None = None,
        thumbnail_size: int = DEFAULT_THUMBNAIL_SIZE,
        thumbnail_quality: int = DEFAULT_THUMBNAIL_QUALITY,
    ) -> None:
        self.decoder = decoder or Decoder()
        self.encoder = encoder or FormatEncoder()
        self.thumbnail_size = thumbnail_size
        self.thumbnail_quality = thumbnail_quality

    def convert(self, message: ConvertFileRequest) -> WorkerResponse:
        """Run the conversion synchronously.

        Like the worker, any failure is answered with :class:`Errored`.
        """
        try:
            result = convert_file(
                message.to_input_file(),
                message.metadata,
                message.request,
                decoder=self.decoder,
                encoder=self.encoder,
                thumbnail_size=self.thumbnail_size,
                thumbnail_quality=self.thumbnail_quality,
            )
        except PhotoconvError as e:
            return Errored.from_exception(message.file_name, e)
        except Exception as e:
            log.error("Unexpected conversion failure", file=message.file_name, error=str(e), exc_info=True)
            return Errored(message.file_name, "dispatch", str(e))
        return FileConverted(result)

    async def submit(self, message: ConvertFileRequest) -> WorkerResponse:
        return self.convert(message)


class IsolatedExecution:
    """Send requests to a worker process through an executor."""

    mode: ExecutionMode = "isolated"

    def __init__(
        self,
        executor: Executor,
        worker_fn: Callable[[ConvertFileRequest], WorkerResponse],
    ) -> None:
        """Initialize the strategy.

        Args:
            executor: Executor hosting the worker (normally a one-process pool)
            worker_fn: Picklable callable run inside the worker
        """
        self.executor = executor
        self.worker_fn = worker_fn

    async def submit(self, message: ConvertFileRequest) -> WorkerResponse:
        """Run ``worker_fn`` in the executor without blocking the event loop.

        Raises:
            DispatchError: If the worker crashed, the exchange could not be
                serialized or the worker answered with an unknown message
        """
        loop = asyncio.get_running_loop()
        try:
            response = await loop.run_in_executor(self.executor, self.worker_fn, message)
        except BrokenProcessPool as e:
            raise DispatchError(message.file_name, "Worker process terminated abruptly", cause=e) from e
        except Exception as e:
            raise DispatchError(message.file_name, f"Worker exchange failed: {e}", cause=e) from e

        if not isinstance(response, (FileConverted, FallbackRequested, Errored)):
            raise DispatchError(message.file_name, f"Malformed worker response: {type(response).__name__}")
        return response


class ParallelDispatcher:
    """Convert files in an isolated worker with fallback to the calling context.

    Args:
        executor: Executor to run the worker in; the caller keeps ownership.
            When omitted, a one-process pool is created (and owned) if
            ``use_worker`` is set.
        use_worker: Whether to try an isolated worker at all
        worker_native_heif: Whether the worker registers the native HEIF opener
        worker_bundled_fallback: Whether the worker carries the bundled HEIF decoder
        decoder: Layered decoder used on the calling context
        thumbnail_size: Thumbnail longest side in pixels
        thumbnail_quality: Thumbnail JPEG quality
        worker_log_level: Log level configured inside the worker process
    """

    def __init__(
        self,
        executor: Executor | None = None,
        use_worker: bool = True,
        worker_native_heif: bool = True,
        worker_bundled_fallback: bool = False,
        decoder: Decoder | None = None,
        thumbnail_size: int = DEFAULT_THUMBNAIL_SIZE,
        thumbnail_quality: int = DEFAULT_THUMBNAIL_QUALITY,
        worker_log_level: str = "WARNING",
    ) -> None:
        self.fallback_count = 0
        self._local = LocalExecution(
            decoder=decoder,
            thumbnail_size=thumbnail_size,
            thumbnail_quality=thumbnail_quality,
        )
        self._owned_executor: Executor | None = None

        worker_fn = functools.partial(
            handle_convert_request,
            native_heif=worker_native_heif,
            bundled_fallback=worker_bundled_fallback,
            thumbnail_size=thumbnail_size,
            thumbnail_quality=thumbnail_quality,
        )

        if executor is None and use_worker:
            executor = create_isolated_executor(
                initializer=init_worker, initargs=(worker_native_heif, worker_log_level)
            )
            self._owned_executor = executor

        self._strategy: IsolatedExecution | LocalExecution
        if executor is not None:
            self._strategy = IsolatedExecution(executor, worker_fn)
        else:
            self._strategy = self._local

        log.debug("Dispatcher ready", mode=self.mode)

    @property
    def mode(self) -> ExecutionMode:
        return self._strategy.mode

    async def dispatch(
        self, file: InputFile, metadata: Metadata, request: ConversionRequest
    ) -> ConversionResult:
        """Convert one file.

        Returns:
            The conversion result, whichever context produced it

        Raises:
            DecodeError: If the input cannot be decoded
            EncodeError: If the output cannot be produced
            DispatchError: If the worker failed outside the conversion itself
        """
        message = ConvertFileRequest.for_file(file, metadata, request)

        try:
            response = await self._strategy.submit(message)
        except DispatchError as e:
            if isinstance(e.cause, BrokenProcessPool):
                log.warning("Isolated worker failed, converting remaining files in-process", file=file.name)
                self._strategy = self._local
            raise

        if isinstance(response, FallbackRequested):
            self.fallback_count += 1
            log.info("Worker requested fallback", file=file.name, reason=response.reason)
            response = self._local.convert(message)
            if isinstance(response, FallbackRequested):
                raise DispatchError(file.name, "Fallback conversion was handed back again")

        if isinstance(response, Errored):
            raise response.to_exception()
        return response.result

    def close(self) -> None:
        """Shutdown the worker process if this dispatcher created it."""
        shutdown_executor(self._owned_executor)
        self._owned_executor = None

    async def __aenter__(self) -> ParallelDispatcher:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()
