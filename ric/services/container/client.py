"""Docker client factory and initialization."""

import os
from typing import Optional

import docker
import structlog
from docker.errors import DockerException
from requests.exceptions import RequestException

from ...config.docker import DockerConfig
from ...models.errors import EngineUnreachableError

logger = structlog.get_logger(__name__)


class DockerClientFactory:
    """Factory for creating Docker clients with proper initialization.

    The main flow shares one cached client obtained with :meth:`get_client`.
    :meth:`create_client` hands out independent clients, each with its own
    connection pool, for contexts that must not depend on the main flow's
    connection (the interrupt handler).
    """

    def __init__(self, config: DockerConfig):
        self.config = config
        self.client: Optional[docker.DockerClient] = None

    def _check_socket(self) -> None:
        """Fail early with a readable message if the control socket is unusable."""
        socket_path = self.config.socket_path
        if socket_path is None:
            return

        if not os.path.exists(socket_path):
            raise EngineUnreachableError(f"Docker socket not found at {socket_path}")

        if not os.access(socket_path, os.R_OK | os.W_OK):
            raise EngineUnreachableError(
                f"No permission to access Docker socket at {socket_path}"
            )

    def create_client(self) -> docker.DockerClient:
        """Create, negotiate and ping a new Docker client.

        Raises:
            EngineUnreachableError: if the socket is missing, the API version
                cannot be negotiated, or the daemon does not answer a ping.
        """
        self._check_socket()

        try:
            client = docker.DockerClient(
                base_url=self.config.base_url,
                version=self.config.api_version,
                timeout=self.config.timeout,
            )
        except (DockerException, RequestException) as e:
            raise EngineUnreachableError(
                f"Failed to connect to Docker at {self.config.base_url}: {e}"
            ) from e

        try:
            client.ping()
        except (DockerException, RequestException) as e:
            client.close()
            raise EngineUnreachableError(f"Docker ping failed: {e}") from e

        logger.debug(
            "Docker client connected",
            base_url=self.config.base_url,
            api_version=client.api.api_version,
        )
        return client

    def get_client(self) -> docker.DockerClient:
        """Get the shared Docker client, creating it on first use."""
        if self.client is None:
            self.client = self.create_client()
        return self.client

    def close(self) -> None:
        """Close the shared Docker client connection."""
        try:
            if self.client is not None:
                self.client.close()
        except Exception as e:
            logger.error(f"Error closing Docker client: {e}")
        finally:
            self.client = None
