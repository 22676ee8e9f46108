"""Local image resolution."""

import structlog
from docker import DockerClient
from docker.errors import DockerException
from requests.exceptions import RequestException

from ...models.errors import ImagePullError
from ...models.invocation import qualify_image

logger = structlog.get_logger(__name__)


class ImageResolver:
    """Makes sure an image is present locally before a container is created."""

    def __init__(self, client: DockerClient):
        self.client = client

    def is_cached(self, image: str) -> bool:
        """Whether any local image is tagged with the qualified reference."""
        qualified = qualify_image(image)
        for cached in self.client.images.list():
            if qualified in (cached.tags or []):
                return True
        return False

    def ensure_image(self, image: str) -> None:
        """Pull ``image`` unless a tagged copy is already cached.

        Progress chunks reporting an error are logged and the pull stream is
        consumed to the end regardless. Only a failure to start the pull is
        raised.

        Raises:
            ImagePullError: if the pull request could not be issued.
        """
        qualified = qualify_image(image)
        try:
            if self.is_cached(qualified):
                logger.debug("Image already downloaded", image=qualified)
                return
        except (DockerException, RequestException) as e:
            raise ImagePullError(qualified, f"could not list local images: {e}") from e

        logger.info("Pulling image", image=qualified)
        try:
            stream = self.client.api.pull(qualified, stream=True, decode=True)
        except (DockerException, RequestException) as e:
            raise ImagePullError(qualified, str(e)) from e

        self._consume_progress(qualified, stream)

    def _consume_progress(self, image: str, stream) -> None:
        chunks = 0
        try:
            for chunk in stream:
                chunks += 1
                if "error" in chunk:
                    logger.error(
                        "Image pull reported an error",
                        image=image,
                        error=chunk.get("error"),
                    )
                    continue
                logger.info(
                    chunk.get("status", "pull progress"),
                    image=image,
                    layer=chunk.get("id"),
                    progress=chunk.get("progress"),
                )
        except (DockerException, RequestException, ValueError) as e:
            logger.error("Image pull stream failed", image=image, error=str(e))

        logger.debug("Image pull finished", image=image, chunks=chunks)
