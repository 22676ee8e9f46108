"""Data models for run-in-container."""

from .errors import (
    ErrorType,
    RicException,
    ConfigurationError,
    EngineUnreachableError,
    ImagePullError,
    ResolutionError,
    CreationError,
    StreamError,
    CleanupError,
)
from .events import LogEvent, StreamKind
from .invocation import (
    CONTAINER_WORKDIR,
    ExistingContainer,
    InvocationRequest,
    InvocationSpec,
    MountSpec,
    NewContainer,
    UserIdentity,
    build_invocation,
    build_volumes,
    qualify_image,
)
from .run import RunResult, RunState

__all__ = [
    # Errors
    "ErrorType",
    "RicException",
    "ConfigurationError",
    "EngineUnreachableError",
    "ImagePullError",
    "ResolutionError",
    "CreationError",
    "StreamError",
    "CleanupError",
    # Events
    "LogEvent",
    "StreamKind",
    # Invocation
    "CONTAINER_WORKDIR",
    "ExistingContainer",
    "InvocationRequest",
    "InvocationSpec",
    "MountSpec",
    "NewContainer",
    "UserIdentity",
    "build_invocation",
    "build_volumes",
    "qualify_image",
    # Run
    "RunResult",
    "RunState",
]
