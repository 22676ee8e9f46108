"""Utility modules for run-in-container."""
