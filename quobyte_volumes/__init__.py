"""
Quobyte Volumes - Docker volume plugin for Quobyte storage.

This package provides the volume lifecycle driver, the Docker volume plugin
API and a CLI for running the plugin and inspecting its state.
"""

__version__ = "0.1.0"
__all__ = ["api", "cli", "driver"]
