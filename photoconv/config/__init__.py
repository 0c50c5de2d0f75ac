"""Configuration module for photoconv."""

from photoconv.config.settings import (
    ConversionConfig,
    DecodeConfig,
    OutputConfig,
    PhotoconvSettings,
    ThumbnailConfig,
    WorkerConfig,
    get_settings,
    reload_settings,
)

__all__ = [
    "PhotoconvSettings",
    "ConversionConfig",
    "ThumbnailConfig",
    "DecodeConfig",
    "WorkerConfig",
    "OutputConfig",
    "get_settings",
    "reload_settings",
]
