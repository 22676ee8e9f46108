"""Container engine services.

This package provides Docker functionality split into:
- client.py: Docker client factory and initialization
- images.py: Local image resolution and pulling
- launcher.py: Container creation, name resolution and exec setup
- relay.py: Multiplexed output relay to the local streams
- cleanup.py: Kill and remove actions shared by every teardown path
"""

from .client import DockerClientFactory
from .images import ImageResolver
from .launcher import ContainerLauncher
from .relay import LogRelay
from .cleanup import kill_container, remove_container

__all__ = [
    "DockerClientFactory",
    "ImageResolver",
    "ContainerLauncher",
    "LogRelay",
    "kill_container",
    "remove_container",
]
