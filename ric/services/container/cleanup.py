"""Kill and remove actions shared by the normal and interrupt paths.

Both actions may race each other against the same container, so a
container that is already gone counts as success. Other failures are logged
and reported through the return value, never raised.
"""

import structlog
from docker import DockerClient
from docker.errors import APIError, DockerException, NotFound
from requests.exceptions import RequestException

from ...models.errors import CleanupError

logger = structlog.get_logger(__name__)


def kill_container(client: DockerClient, container_id: str) -> bool:
    """Send SIGKILL to the container. Returns True if it is no longer running."""
    try:
        client.api.kill(container_id)
        logger.info(f"Killed container {container_id[:12]}")
        return True
    except NotFound:
        logger.debug(f"Container {container_id[:12]} already gone")
        return True
    except APIError as e:
        # 409: created but never started, or already exited
        if e.status_code == 409:
            logger.debug(f"Container {container_id[:12]} is not running")
            return True
        error = CleanupError("kill", container_id, str(e))
        logger.error("Failed to stop container", **error.to_log())
        return False
    except (DockerException, RequestException) as e:
        error = CleanupError("kill", container_id, str(e))
        logger.error("Failed to stop container", **error.to_log())
        return False


def remove_container(client: DockerClient, container_id: str) -> bool:
    """Force-remove the container. Returns True once it no longer exists."""
    try:
        client.api.remove_container(container_id, force=True)
        logger.info(f"Removed container {container_id[:12]}")
        return True
    except NotFound:
        logger.debug(f"Container {container_id[:12]} already removed")
        return True
    except APIError as e:
        # 409: removal already in progress from the other path
        if e.status_code == 409 and "already in progress" in str(e).lower():
            logger.debug(f"Removal of container {container_id[:12]} already in progress")
            return True
        error = CleanupError("remove", container_id, str(e))
        logger.error("Error removing container", **error.to_log())
        return False
    except (DockerException, RequestException) as e:
        error = CleanupError("remove", container_id, str(e))
        logger.error("Error removing container", **error.to_log())
        return False
