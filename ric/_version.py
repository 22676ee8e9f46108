"""Version information for run-in-container."""

__version__ = "0.3.0"
