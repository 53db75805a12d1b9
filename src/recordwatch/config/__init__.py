"""Configuration management."""

from .settings import Settings, load_settings
from .loader import ConfigLoader

__all__ = ["Settings", "load_settings", "ConfigLoader"]
