"""Messages exchanged with the isolated conversion worker.

All messages are plain dataclasses so they pickle across the process
boundary. A worker answers every request with exactly one
:data:`WorkerResponse`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from photoconv.exceptions import DecodeError, DispatchError, EncodeError, FileConversionError
from photoconv.models import ConversionRequest, ConversionResult, InputFile, Metadata

ErrorKind = Literal["decode", "encode", "dispatch"]

_KIND_TO_ERROR: dict[str, type[FileConversionError]] = {
    "decode": DecodeError,
    "encode": EncodeError,
    "dispatch": DispatchError,
}


@dataclass(frozen=True)
class ConvertFileRequest:
    """Ask the worker to decode and re-encode one file."""

    file_name: str
    file_bytes: bytes = field(repr=False)
    metadata: Metadata
    request: ConversionRequest
    type_hint: str | None = None
    action: Literal["convert_file"] = "convert_file"

    @classmethod
    def for_file(cls, file: InputFile, metadata: Metadata, request: ConversionRequest) -> ConvertFileRequest:
        return cls(
            file_name=file.name,
            file_bytes=file.data,
            metadata=metadata,
            request=request,
            type_hint=file.type_hint,
        )

    def to_input_file(self) -> InputFile:
        return InputFile(name=self.file_name, data=self.file_bytes, type_hint=self.type_hint)


@dataclass(frozen=True)
class FileConverted:
    """The worker converted the file."""

    result: ConversionResult
    type: Literal["file_converted"] = "file_converted"


@dataclass(frozen=True)
class FallbackRequested:
    """The worker cannot decode this input and hands it back to the caller."""

    file_name: str
    reason: str = ""
    type: Literal["heic_fallback_request"] = "heic_fallback_request"


@dataclass(frozen=True)
class Errored:
    """The worker failed; ``kind`` tells the caller which error to raise."""

    file_name: str
    kind: ErrorKind
    error: str
    type: Literal["error"] = "error"

    @classmethod
    def from_exception(cls, file_name: str, exc: Exception) -> Errored:
        if isinstance(exc, DecodeError):
            kind: ErrorKind = "decode"
        elif isinstance(exc, EncodeError):
            kind = "encode"
        else:
            kind = "dispatch"
        message = exc.message if isinstance(exc, FileConversionError) else str(exc)
        return cls(file_name=file_name, kind=kind, error=message)

    def to_exception(self) -> FileConversionError:
        error_cls = _KIND_TO_ERROR.get(self.kind, DispatchError)
        return error_cls(self.file_name, self.error)


WorkerResponse = FileConverted | FallbackRequested | Errored
