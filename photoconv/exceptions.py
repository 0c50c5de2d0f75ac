"""Custom exceptions for photoconv."""


class PhotoconvError(Exception):
    """Base exception class for photoconv."""

    pass


class FileConversionError(PhotoconvError):
    """Error tied to a single input file of a batch."""

    def __init__(self, file_name: str, message: str, cause: Exception | None = None) -> None:
        self.file_name = file_name
        self.message = message
        self.cause = cause
        super().__init__(f"{file_name}: {message}")


class MetadataError(FileConversionError):
    """Metadata could not be read.

    Never surfaced to callers: the extractor always resolves it to a default.
    """


class DecodeError(FileConversionError):
    """Every decode path for the input was exhausted."""


class EncodeError(FileConversionError):
    """Serialization to the target format failed."""


class DispatchError(FileConversionError):
    """The isolated worker crashed or returned a malformed response."""


class ConfigurationError(PhotoconvError):
    """Settings from the environment or YAML file are invalid."""

    pass
