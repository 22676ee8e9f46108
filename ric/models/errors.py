"""Error models and exception classes for run-in-container."""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorType(str, Enum):
    """Error type enumeration."""

    CONFIGURATION = "configuration"
    ENGINE_UNREACHABLE = "engine_unreachable"
    IMAGE_PULL = "image_pull"
    RESOLUTION = "resolution"
    CREATION = "creation"
    STREAM = "stream"
    CLEANUP = "cleanup"


# Custom Exception Classes


class RicException(Exception):
    """Base exception for run-in-container.

    ``exit_code`` is the process exit status used when the error aborts
    the run.
    """

    def __init__(
        self,
        message: str,
        error_type: ErrorType,
        exit_code: int = 1,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_type = error_type
        self.exit_code = exit_code
        self.details = details or {}
        super().__init__(message)

    def to_log(self) -> Dict[str, Any]:
        """Structured fields for logging."""
        return {
            "error_type": self.error_type.value,
            "error": self.message,
            **self.details,
        }


class ConfigurationError(RicException):
    """Invalid or contradictory invocation settings."""

    def __init__(self, message: str = "Invalid configuration", **kwargs):
        super().__init__(
            message=message,
            error_type=ErrorType.CONFIGURATION,
            exit_code=2,
            **kwargs,
        )


class EngineUnreachableError(RicException):
    """The container engine could not be reached or negotiated with."""

    def __init__(self, message: str = "Docker engine is not reachable", **kwargs):
        super().__init__(
            message=message, error_type=ErrorType.ENGINE_UNREACHABLE, **kwargs
        )


class ImagePullError(RicException):
    """An image pull could not be initiated."""

    def __init__(self, image: str, reason: str = "", **kwargs):
        message = f"Failed to pull image {image}"
        if reason:
            message += f": {reason}"
        super().__init__(message=message, error_type=ErrorType.IMAGE_PULL, **kwargs)


class ResolutionError(RicException):
    """A named container could not be resolved to exactly one container."""

    def __init__(self, name: str, reason: str = "no running container matches", **kwargs):
        super().__init__(
            message=f"Cannot resolve container {name!r}: {reason}",
            error_type=ErrorType.RESOLUTION,
            **kwargs,
        )


class CreationError(RicException):
    """The engine rejected creating or starting the container."""

    def __init__(self, message: str = "Failed to create container", **kwargs):
        super().__init__(message=message, error_type=ErrorType.CREATION, **kwargs)


class StreamError(RicException):
    """Receiving or decoding output failed. Logged, never raised past the relay."""

    def __init__(self, message: str = "Output stream failed", **kwargs):
        super().__init__(message=message, error_type=ErrorType.STREAM, **kwargs)


class CleanupError(RicException):
    """Kill, wait or remove failed during teardown. Logged, never escalated."""

    def __init__(self, action: str, container_id: str, reason: str, **kwargs):
        super().__init__(
            message=f"Failed to {action} container {container_id[:12]}: {reason}",
            error_type=ErrorType.CLEANUP,
            **kwargs,
        )
