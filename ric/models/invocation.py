"""Invocation data models.

An invocation targets exactly one of two things: a fresh container created
from an image (:class:`NewContainer`) or an already running container that
the command is exec'd into (:class:`ExistingContainer`).
"""

import os
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from .errors import ConfigurationError

# Working directory of the contained command; the caller's cwd is mounted here.
CONTAINER_WORKDIR = "/tmp"


def qualify_image(image: str) -> str:
    """Append ``:latest`` to an image reference that carries no tag."""
    if ":" in image:
        return image
    return f"{image}:latest"


@dataclass(frozen=True)
class UserIdentity:
    """Numeric uid:gid the contained command runs as."""

    uid: int
    gid: int

    @classmethod
    def root(cls) -> "UserIdentity":
        return cls(0, 0)

    @classmethod
    def current(cls) -> "UserIdentity":
        return cls(os.getuid(), os.getgid())

    @classmethod
    def select(cls, root: bool) -> "UserIdentity":
        """Pick root or the invoking user's identity."""
        return cls.root() if root else cls.current()

    def __str__(self) -> str:
        return f"{self.uid}:{self.gid}"


@dataclass(frozen=True)
class MountSpec:
    """A single ``host:container[:mode]`` volume binding."""

    host: str
    container: str
    mode: Optional[str] = None

    @classmethod
    def parse(cls, value: str) -> "MountSpec":
        """Parse a binding string.

        Host paths starting with ``.`` or ``~`` are made absolute; anything
        else (absolute paths, named volumes) is passed through as given.
        """
        parts = value.split(":")
        if len(parts) not in (2, 3) or not all(parts[:2]):
            raise ConfigurationError(
                f"Invalid mount {value!r}: expected host:container[:mode]"
            )
        host, container = parts[0], parts[1]
        mode = parts[2] if len(parts) == 3 else None
        if not container.startswith("/"):
            raise ConfigurationError(
                f"Invalid mount {value!r}: container path must be absolute"
            )
        if host.startswith(("~", ".")):
            host = os.path.abspath(os.path.expanduser(host))
        return cls(host=host, container=container, mode=mode)

    @classmethod
    def workdir(cls, cwd: str) -> "MountSpec":
        """The caller's working directory bound to the container workdir."""
        return cls(host=cwd, container=CONTAINER_WORKDIR)

    def __str__(self) -> str:
        binding = f"{self.host}:{self.container}"
        if self.mode:
            binding += f":{self.mode}"
        return binding


def build_volumes(mounts: Sequence[str], cwd: str) -> Tuple[MountSpec, ...]:
    """User mounts in the given order, followed by the working directory mount."""
    return tuple(MountSpec.parse(m) for m in mounts) + (MountSpec.workdir(cwd),)


@dataclass(frozen=True)
class NewContainer:
    """Run the command in a fresh container created from ``image``."""

    image: str
    command: Tuple[str, ...]
    mounts: Tuple[MountSpec, ...]
    user: UserIdentity
    working_dir: str = CONTAINER_WORKDIR

    @property
    def qualified_image(self) -> str:
        return qualify_image(self.image)

    @property
    def volumes(self) -> List[str]:
        return [str(m) for m in self.mounts]


@dataclass(frozen=True)
class ExistingContainer:
    """Exec the command inside the running container ``name``."""

    name: str
    command: Tuple[str, ...]
    user: UserIdentity


InvocationSpec = Union[NewContainer, ExistingContainer]


@dataclass(frozen=True)
class InvocationRequest:
    """Raw invocation inputs before validation."""

    command: Tuple[str, ...]
    image: Optional[str] = None
    container: Optional[str] = None
    mounts: Tuple[str, ...] = ()
    root: bool = False

    @classmethod
    def from_settings(cls, settings, command: Sequence[str]) -> "InvocationRequest":
        """Create a request from loaded settings and the trailing command."""
        return cls(
            command=tuple(command),
            image=settings.image,
            container=settings.container,
            mounts=tuple(settings.get_mounts()),
            root=settings.root,
        )


def build_invocation(
    request: InvocationRequest,
    cwd: Optional[str] = None,
) -> InvocationSpec:
    """Validate the request and select the invocation variant.

    Raises:
        ConfigurationError: if the command is empty, or if not exactly one
            of image and container is set.
    """
    if not request.command:
        raise ConfigurationError("No command was specified")
    if request.image and request.container:
        raise ConfigurationError(
            "Both an image and a container were provided; use only one"
        )
    if not request.image and not request.container:
        raise ConfigurationError("Must provide either an image or a container to use")

    user = UserIdentity.select(request.root)
    if request.image:
        return NewContainer(
            image=request.image,
            command=tuple(request.command),
            mounts=build_volumes(request.mounts, cwd or os.getcwd()),
            user=user,
        )
    return ExistingContainer(
        name=request.container,
        command=tuple(request.command),
        user=user,
    )
