"""Configuration settings using pydantic-settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict, YamlConfigSettingsSource

from photoconv.config.constants import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_JPEG_QUALITY,
    DEFAULT_LOG_DIR,
    DEFAULT_METADATA_POLICY,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_OUTPUT_FORMAT,
    DEFAULT_THUMBNAIL_QUALITY,
    DEFAULT_THUMBNAIL_SIZE,
)
from photoconv.exceptions import ConfigurationError


class ConversionConfig(BaseModel):
    """Defaults for conversion requests."""

    output_format: Literal["jpeg", "png", "pdf"] = DEFAULT_OUTPUT_FORMAT
    jpeg_quality: int = Field(default=DEFAULT_JPEG_QUALITY, ge=1, le=100)
    metadata_policy: Literal["strip", "keep_basic"] = DEFAULT_METADATA_POLICY


class ThumbnailConfig(BaseModel):
    """Thumbnail generation configuration."""

    max_size: int = Field(default=DEFAULT_THUMBNAIL_SIZE, ge=1)
    quality: int = Field(default=DEFAULT_THUMBNAIL_QUALITY, ge=1, le=100)


class DecodeConfig(BaseModel):
    """Decoder configuration."""

    # Register pillow-heif as a Pillow plugin, exposing the native HEIF path
    native_heif: bool = True


class WorkerConfig(BaseModel):
    """Isolated worker configuration."""

    use_worker: bool = True
    native_heif: bool = True  # Worker registers the HEIF opener in its own process
    bundled_fallback: bool = False  # Worker carries the bundled HEIF decoder too


class OutputConfig(BaseModel):
    """Output configuration."""

    default_dir: str = DEFAULT_OUTPUT_DIR
    on_conflict: Literal["skip", "overwrite", "rename"] = "rename"


class PhotoconvSettings(BaseSettings):
    """Main configuration class for photoconv."""

    model_config = SettingsConfigDict(
        env_prefix="PHOTOCONV_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        """Customize settings sources to include YAML file."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=DEFAULT_CONFIG_FILE),
            file_secret_settings,
        )

    # Sub-configurations
    conversion: ConversionConfig = Field(default_factory=ConversionConfig)
    thumbnail: ThumbnailConfig = Field(default_factory=ThumbnailConfig)
    decode: DecodeConfig = Field(default_factory=DecodeConfig)
    worker: WorkerConfig = Field(default_factory=WorkerConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    # Global settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_dir: str = DEFAULT_LOG_DIR

    def get_output_dir(self, base_path: Path | None = None) -> Path:
        """Get the output directory path."""
        if base_path:
            return base_path / self.output.default_dir
        return Path(self.output.default_dir)


@lru_cache
def get_settings() -> PhotoconvSettings:
    """Get cached settings instance.

    Raises:
        ConfigurationError: If the environment or photoconv.yaml holds invalid values
    """
    try:
        return PhotoconvSettings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def reload_settings() -> PhotoconvSettings:
    """Force reload settings (clear cache)."""
    get_settings.cache_clear()
    return get_settings()
