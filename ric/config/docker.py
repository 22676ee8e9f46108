"""Docker configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings


class DockerConfig(BaseSettings):
    """Docker engine connection settings."""

    base_url: str = Field(default="unix:///var/run/docker.sock", alias="docker_base_url")
    timeout: int = Field(default=60, ge=1, le=3600, alias="docker_timeout")
    api_version: str = Field(default="auto", alias="docker_api_version")

    # Container labeling so leaked containers can be found
    container_label_prefix: str = Field(default="com.run-in-container")

    class Config:
        env_prefix = ""
        extra = "ignore"

    @property
    def socket_path(self) -> str | None:
        """Filesystem path of the control socket, if the base URL is a unix socket."""
        if self.base_url.startswith("unix://"):
            return "/" + self.base_url[len("unix://") :].lstrip("/")
        return None
