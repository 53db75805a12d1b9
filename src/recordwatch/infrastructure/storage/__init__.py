"""Storage implementations."""

from .sqlite import WatchStorage

__all__ = ["WatchStorage"]
