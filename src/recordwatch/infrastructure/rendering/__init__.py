"""Browser rendering."""

from .stealth_browser import StealthBrowser

__all__ = ["StealthBrowser"]
