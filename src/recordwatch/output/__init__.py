"""Notification output."""

from .discord import DiscordChannelClient
from .embed import build_embed, build_message, format_stars
from .router import NotificationRouter, resolve_channel

__all__ = [
    "DiscordChannelClient",
    "NotificationRouter",
    "resolve_channel",
    "build_embed",
    "build_message",
    "format_stars",
]
