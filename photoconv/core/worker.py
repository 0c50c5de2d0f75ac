"""Per-file conversion, run inside the isolated worker or on the calling context."""

from __future__ import annotations

from photoconv.config.constants import DEFAULT_THUMBNAIL_QUALITY, DEFAULT_THUMBNAIL_SIZE
from photoconv.core.messages import (
    ConvertFileRequest,
    Errored,
    FallbackRequested,
    FileConverted,
    WorkerResponse,
)
from photoconv.exceptions import DecodeError, EncodeError, PhotoconvError
from photoconv.image.decoder import (
    Decoder,
    default_heif_capabilities,
    is_heif,
    register_native_heif,
)
from photoconv.image.encoder import FormatEncoder, make_thumbnail
from photoconv.models import ConversionRequest, ConversionResult, InputFile, Metadata
from photoconv.utils.fs import output_name_for
from photoconv.utils.logging import get_logger, setup_logging

log = get_logger(__name__)


def convert_file(
    file: InputFile,
    metadata: Metadata,
    request: ConversionRequest,
    decoder: Decoder | None = None,
    encoder: FormatEncoder | None = None,
    thumbnail_size: int = DEFAULT_THUMBNAIL_SIZE,
    thumbnail_quality: int = DEFAULT_THUMBNAIL_QUALITY,
) -> ConversionResult:
    """Decode, orient and re-encode one file.

    This is the single conversion path; the worker and the fallback on the
    calling context both go through it, so their results are identical.

    Raises:
        DecodeError: If the input cannot be decoded
        EncodeError: If the output cannot be produced
    """
    decoder = decoder or Decoder()
    encoder = encoder or FormatEncoder()

    buffer = decoder.decode(file, metadata)
    encoded = encoder.encode(buffer, request, file_name=file.name)
    try:
        thumbnail = make_thumbnail(buffer, max_size=thumbnail_size, quality=thumbnail_quality)
    except Exception as e:
        raise EncodeError(file.name, f"Failed to render thumbnail: {e}", cause=e) from e

    return ConversionResult(
        file_name=file.name,
        output_name=output_name_for(file.name, request.extension),
        target_format=request.target_format,
        output_bytes=encoded.data,
        thumbnail_bytes=thumbnail,
        width=buffer.width,
        height=buffer.height,
        achieved_quality=encoded.achieved_quality,
        achieved_size_target=encoded.achieved_size_target,
        metadata_policy=request.metadata_policy,
    )


def init_worker(native_heif: bool = True, log_level: str = "WARNING") -> None:
    """Process initializer for the isolated worker.

    A spawned process starts with unconfigured logging, so it is set up
    here before the HEIF opener is registered.
    """
    setup_logging(level=log_level)
    if native_heif:
        register_native_heif()


# Module-level function for process pool compatibility (must be picklable)
def handle_convert_request(
    message: ConvertFileRequest,
    native_heif: bool = True,
    bundled_fallback: bool = False,
    thumbnail_size: int = DEFAULT_THUMBNAIL_SIZE,
    thumbnail_quality: int = DEFAULT_THUMBNAIL_QUALITY,
) -> WorkerResponse:
    """Answer one :class:`ConvertFileRequest`.

    The worker only carries the decode capabilities it was started with. If
    the input is HEIF and none of them can handle it, or every one it has
    fails, the request is handed back with :class:`FallbackRequested` so the
    calling context can try its full decode chain.

    Args:
        message: Conversion request
        native_heif: Whether the worker may use the Pillow-registered HEIF opener
        bundled_fallback: Whether the worker may use the bundled HEIF decoder
        thumbnail_size: Thumbnail longest side in pixels
        thumbnail_quality: Thumbnail JPEG quality

    Returns:
        FileConverted, FallbackRequested or Errored; never raises for
        conversion failures
    """
    if message.action != "convert_file":
        return Errored(message.file_name, "dispatch", f"Unknown action: {message.action}")

    file = message.to_input_file()
    heif = is_heif(file.data, file.name, file.type_hint)
    capabilities = default_heif_capabilities(native=native_heif, bundled=bundled_fallback)
    decoder = Decoder(heif_capabilities=capabilities)

    if heif and not decoder.supports_heif:
        log.debug("Worker lacks HEIF support, requesting fallback", file=file.name)
        return FallbackRequested(file.name, reason="No HEIF decoder in worker")

    try:
        result = convert_file(
            file,
            message.metadata,
            message.request,
            decoder=decoder,
            thumbnail_size=thumbnail_size,
            thumbnail_quality=thumbnail_quality,
        )
    except DecodeError as e:
        if heif:
            log.info("Worker HEIF decode failed, requesting fallback", file=file.name, error=e.message)
            return FallbackRequested(file.name, reason=e.message)
        return Errored.from_exception(file.name, e)
    except PhotoconvError as e:
        return Errored.from_exception(file.name, e)
    except Exception as e:
        log.error("Unexpected worker failure", file=file.name, error=str(e), exc_info=True)
        return Errored(file.name, "dispatch", str(e))

    return FileConverted(result)
