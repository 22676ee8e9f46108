"""Container creation and exec setup."""

from datetime import datetime, timezone
from typing import List, Optional

import structlog
from docker import DockerClient
from docker.errors import DockerException
from docker.models.containers import Container
from requests.exceptions import RequestException

from ...models.errors import CreationError, ResolutionError
from ...models.invocation import ExistingContainer, NewContainer

logger = structlog.get_logger(__name__)


class ContainerLauncher:
    """Builds containers and exec instances from an invocation."""

    def __init__(self, client: DockerClient, label_prefix: str = "com.run-in-container"):
        self.client = client
        self.label_prefix = label_prefix

    def _labels(self) -> dict:
        return {
            f"{self.label_prefix}.managed": "true",
            f"{self.label_prefix}.created-at": datetime.now(timezone.utc).isoformat(),
        }

    def create(self, spec: NewContainer) -> Container:
        """Create (but do not start) a container for ``spec``.

        Raises:
            CreationError: if the engine rejects the container.
        """
        container_config = {
            "image": spec.qualified_image,
            "command": list(spec.command),
            "volumes": spec.volumes,
            "working_dir": spec.working_dir,
            "user": str(spec.user),
            "labels": self._labels(),
            "tty": False,
            "stdin_open": False,
            "detach": True,
        }

        try:
            container = self.client.containers.create(**container_config)
        except (DockerException, RequestException) as e:
            logger.error("Failed to create container", image=spec.qualified_image, error=str(e))
            raise CreationError(
                f"Failed to create container from {spec.qualified_image}: {e}"
            ) from e

        logger.info(
            f"Created container {container.id[:12]}",
            image=spec.qualified_image,
            volumes=spec.volumes,
            user=str(spec.user),
        )
        return container

    def resolve(self, name: str) -> Container:
        """Find the running container called ``name``.

        The engine's name filter matches substrings, so an exact name (or id)
        match is preferred. Without one, a lone candidate is accepted and
        several candidates are an error.

        Raises:
            ResolutionError: if no container, or more than one non-exact
                candidate, matches.
        """
        try:
            candidates: List[Container] = self.client.containers.list(
                filters={"name": name}
            )
        except (DockerException, RequestException) as e:
            raise ResolutionError(name, f"container lookup failed: {e}") from e

        if not candidates:
            raise ResolutionError(name)

        exact = self._exact_match(name, candidates)
        if exact is not None:
            return exact

        if len(candidates) > 1:
            names = ", ".join(sorted(c.name for c in candidates))
            raise ResolutionError(name, f"ambiguous, matches {names}")

        logger.debug("Using partial name match", name=name, container=candidates[0].name)
        return candidates[0]

    @staticmethod
    def _exact_match(name: str, candidates: List[Container]) -> Optional[Container]:
        wanted = name.lstrip("/")
        for container in candidates:
            if container.name == wanted or container.id == name:
                return container
        return None

    def create_exec(self, container: Container, spec: ExistingContainer) -> str:
        """Create an exec instance running the command; returns its id.

        Only stdout and stderr are attached.
        """
        try:
            exec_instance = self.client.api.exec_create(
                container.id,
                cmd=list(spec.command),
                stdout=True,
                stderr=True,
                stdin=False,
                tty=False,
                user=str(spec.user),
            )
        except (DockerException, RequestException) as e:
            raise CreationError(
                f"Failed to create exec in container {container.name}: {e}"
            ) from e

        exec_id = exec_instance["Id"]
        logger.info(
            f"Created exec {exec_id[:12]} in container {container.name}",
            command=list(spec.command),
            user=str(spec.user),
        )
        return exec_id

    def start_exec(self, exec_id: str):
        """Start the exec instance and return its raw output socket."""
        return self.client.api.exec_start(exec_id, socket=True)

    def exec_exit_code(self, exec_id: str) -> Optional[int]:
        return self.client.api.exec_inspect(exec_id).get("ExitCode")
