"""Configuration management for run-in-container.

Every setting can be supplied through a ``RIC_``-prefixed environment
variable. Command-line flags take precedence and are layered on top with
:meth:`Settings.with_overrides`.

Usage:
    from ric.config import get_settings

    settings = get_settings()

    # Grouped settings
    settings.docker.base_url
    settings.logging.level

    # Flat access
    settings.image
    settings.get_mounts()
"""

from functools import lru_cache
from typing import Annotated, Any, List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .docker import DockerConfig
from .logging import LoggingConfig


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(env_prefix="RIC_", case_sensitive=False, extra="ignore")

    # Invocation target
    image: Optional[str] = Field(default=None, description="Image to create a fresh container from")
    container: Optional[str] = Field(default=None, description="Name of a running container to exec into")
    mounts: Annotated[List[str], NoDecode] = Field(
        default_factory=list,
        description="Extra host:container volume bindings, applied before the working directory mount",
    )
    root: bool = Field(default=False, description="Run as 0:0 instead of the invoking uid:gid")
    propagate_exit_code: bool = Field(
        default=False,
        description="Exit with the contained command's exit status instead of 0",
    )

    # Docker Configuration
    docker_base_url: str = Field(default="unix:///var/run/docker.sock")
    docker_timeout: int = Field(default=60, ge=1, le=3600)
    docker_api_version: str = Field(default="auto")
    container_label_prefix: str = Field(default="com.run-in-container")

    # Logging Configuration
    log_level: str = Field(default="WARNING")
    log_format: Literal["console", "json"] = Field(default="console")
    log_file: Optional[str] = Field(default=None)
    log_max_size_mb: int = Field(default=10, ge=1)
    log_backup_count: int = Field(default=3, ge=1)

    # ========================================================================
    # VALIDATORS
    # ========================================================================

    @field_validator("mounts", mode="before")
    @classmethod
    def parse_mounts(cls, v):
        """Parse comma-separated mounts into a list."""
        if v is None:
            return []
        if isinstance(v, str):
            return [m.strip() for m in v.split(",") if m.strip()]
        return v

    @field_validator("image", "container", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Treat empty strings from the environment as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Ensure the log level is one the logging module knows."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    # ========================================================================
    # GROUPED CONFIG ACCESS
    # ========================================================================

    @property
    def docker(self) -> DockerConfig:
        """Access Docker configuration group."""
        return DockerConfig(
            docker_base_url=self.docker_base_url,
            docker_timeout=self.docker_timeout,
            docker_api_version=self.docker_api_version,
            container_label_prefix=self.container_label_prefix,
        )

    @property
    def logging(self) -> LoggingConfig:
        """Access logging configuration group."""
        return LoggingConfig(
            log_level=self.log_level,
            log_format=self.log_format,
            log_file=self.log_file,
            log_max_size_mb=self.log_max_size_mb,
            log_backup_count=self.log_backup_count,
        )

    # ========================================================================
    # HELPERS
    # ========================================================================

    def get_mounts(self) -> List[str]:
        return list(self.mounts)

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a copy with the given values layered on top.

        ``None`` values are ignored so that flags the user did not pass
        leave the environment-provided value in place.
        """
        update = {key: value for key, value in overrides.items() if value is not None}
        if not update:
            return self
        return self.model_validate({**self.model_dump(), **update})


@lru_cache()
def get_settings() -> Settings:
    """Get the settings loaded from the environment.

    Loaded lazily so that an invalid environment value surfaces as a
    configuration error at startup rather than at import time.
    """
    return Settings()


__all__ = [
    "Settings",
    "get_settings",
    "DockerConfig",
    "LoggingConfig",
]
