"""Run a command inside a Docker container as if it ran locally."""

from ._version import __version__

__all__ = ["__version__"]
