"""Configuration file access."""

from .repository import ConfigRepository, CONFIG_FILENAME

__all__ = ["ConfigRepository", "CONFIG_FILENAME"]
