"""Lifecycle Coordinator - runs one invocation from image to cleanup.

New container:
    1. Make sure the image is cached (pull if needed)
    2. Create the container
    3. Arm the interrupt handler for it
    4. Attach to its output, then start it
    5. Relay output until the stream closes
    6. Wait for the exit status
    7. Remove the container (always, exactly once in effect)

Existing container:
    1. Resolve the running container by name
    2. Create and start an exec, relaying its output
    3. Read the exec's exit code

The exec path never kills or removes anything; the container belongs to
whoever started it.

Usage:
    coordinator = LifecycleCoordinator(client_factory)
    result = coordinator.run(build_invocation(request))
"""

from typing import Optional

import structlog
from docker import DockerClient
from docker.errors import DockerException
from docker.models.containers import Container
from requests.exceptions import RequestException

from ..models.errors import CleanupError, CreationError
from ..models.invocation import ExistingContainer, InvocationSpec, NewContainer
from ..models.run import RunResult, RunState
from ..utils.shutdown import InterruptHandler
from .container.cleanup import remove_container
from .container.client import DockerClientFactory
from .container.images import ImageResolver
from .container.launcher import ContainerLauncher
from .container.relay import LogRelay

logger = structlog.get_logger(__name__)


class LifecycleCoordinator:
    """Coordinates a single run and guarantees container cleanup."""

    def __init__(
        self,
        client_factory: DockerClientFactory,
        relay: Optional[LogRelay] = None,
        interrupts: Optional[InterruptHandler] = None,
    ):
        self.client_factory = client_factory
        self.relay = relay or LogRelay()
        self.interrupts = interrupts or InterruptHandler(client_factory.create_client)

    @property
    def client(self) -> DockerClient:
        return self.client_factory.get_client()

    @property
    def launcher(self) -> ContainerLauncher:
        return ContainerLauncher(
            self.client, label_prefix=self.client_factory.config.container_label_prefix
        )

    def run(self, spec: InvocationSpec) -> RunResult:
        """Run ``spec`` to completion.

        Raises:
            ImagePullError, CreationError, ResolutionError: before any
                container is owned, or when a created container fails to start.
        """
        if isinstance(spec, NewContainer):
            return self._run_new(spec)
        if isinstance(spec, ExistingContainer):
            return self._run_existing(spec)
        raise TypeError(f"Unsupported invocation: {type(spec).__name__}")

    # ------------------------------------------------------------------
    # New container
    # ------------------------------------------------------------------

    def _run_new(self, spec: NewContainer) -> RunResult:
        ImageResolver(self.client).ensure_image(spec.image)

        result = RunResult(owns_container=True)
        self.interrupts.install()
        try:
            container = self.launcher.create(spec)
            result.container_id = container.id
            result.advance(RunState.CREATED)
            try:
                self.interrupts.bind_container(container.id)
                if self.interrupts.interrupted.is_set():
                    logger.info("Interrupted before start", container_id=container.id[:12])
                    result.advance(RunState.INTERRUPTED)
                else:
                    self._start_and_stream(container, result)
                if not self.interrupts.interrupted.is_set():
                    result.exit_code = self._wait(container)
                    result.advance(RunState.COMPLETED)
            finally:
                self._cleanup(container.id, result)
        finally:
            self.interrupts.close()
            if self.interrupts.interrupted.is_set():
                result.interrupted = True

        return result

    def _start_and_stream(self, container: Container, result: RunResult) -> None:
        sock = None
        try:
            sock = self.client.api.attach_socket(
                container.id,
                params={"stdout": 1, "stderr": 1, "stream": 1, "logs": 1},
            )
            container.start()
        except (DockerException, RequestException) as e:
            if sock is not None:
                sock.close()
            if self.interrupts.interrupted.is_set():
                logger.info("Container stopped before it started", error=str(e))
                result.advance(RunState.INTERRUPTED)
                return
            raise CreationError(
                f"Failed to start container {container.id[:12]}: {e}"
            ) from e

        result.advance(RunState.STARTED)
        logger.debug(f"Started container {container.id[:12]}")

        result.advance(RunState.STREAMING)
        try:
            self.relay.relay(sock)
        finally:
            sock.close()

        if self.interrupts.interrupted.is_set():
            result.advance(RunState.INTERRUPTED)

    def _wait(self, container: Container) -> Optional[int]:
        """Block until the container exits. Failures are logged, not raised."""
        try:
            status = container.wait()
        except (DockerException, RequestException) as e:
            if self.interrupts.interrupted.is_set():
                logger.info("Container was stopped while waiting", error=str(e))
            else:
                error = CleanupError("wait for", container.id, str(e))
                logger.error("Failed to wait for container", **error.to_log())
            return None

        exit_code = status.get("StatusCode")
        if status.get("Error"):
            logger.warning("Container reported an error", error=status["Error"])
        logger.debug("Container exited", exit_code=exit_code)
        return exit_code

    def _cleanup(self, container_id: str, result: RunResult) -> None:
        # A late interrupt must not start a second kill for this container.
        self.interrupts.disarm()
        self.interrupts.wait()
        if remove_container(self.client, container_id):
            result.advance(RunState.CLEANED_UP)

    # ------------------------------------------------------------------
    # Existing container
    # ------------------------------------------------------------------

    def _run_existing(self, spec: ExistingContainer) -> RunResult:
        launcher = self.launcher
        container = launcher.resolve(spec.name)
        exec_id = launcher.create_exec(container, spec)

        result = RunResult(container_id=container.id, owns_container=False)
        self.interrupts.install()
        try:
            try:
                sock = launcher.start_exec(exec_id)
            except (DockerException, RequestException) as e:
                raise CreationError(
                    f"Failed to start exec in container {container.name}: {e}"
                ) from e

            self.interrupts.bind_socket(sock)
            try:
                if not self.interrupts.interrupted.is_set():
                    result.advance(RunState.STREAMING)
                    self.relay.relay(sock)
            finally:
                self.interrupts.disarm()
                sock.close()

            if self.interrupts.interrupted.is_set():
                result.advance(RunState.INTERRUPTED)
                result.interrupted = True
                return result

            result.exit_code = self._exec_exit_code(launcher, exec_id)
            result.advance(RunState.COMPLETED)
        finally:
            self.interrupts.close()

        return result

    @staticmethod
    def _exec_exit_code(launcher: ContainerLauncher, exec_id: str) -> Optional[int]:
        try:
            return launcher.exec_exit_code(exec_id)
        except (DockerException, RequestException) as e:
            logger.error("Failed to inspect exec", exec_id=exec_id[:12], error=str(e))
            return None
