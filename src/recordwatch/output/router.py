"""Per-organization routing of review notifications."""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import requests

from recordwatch.core.exceptions import SendError
from recordwatch.core.models import OrgNotificationConfig, ReviewRecord
from recordwatch.core.protocols import ChannelClient

from .embed import build_message

logger = logging.getLogger(__name__)

# Overrides tried, in order, when a source has no dedicated channel.
# The organization default comes last.
FALLBACK_CHAIN: Dict[str, Tuple[str, ...]] = {
    "latam": ("1001",),
}


def resolve_channel(config: OrgNotificationConfig, source: Optional[str]) -> Optional[str]:
    """Target channel for ``source`` in one organization, or None to skip it."""
    if source is not None:
        for tag in (source, *FALLBACK_CHAIN.get(source, ())):
            channel = config.overrides.get(tag)
            if channel:
                return channel
    return config.default_channel or None


@dataclass
class DispatchResult:
    """Outcome of sending one review to every organization."""

    sent: int = 0
    failed: int = 0
    skipped: int = 0


class NotificationRouter:
    """Sends each review once per organization to its resolved channel."""

    def __init__(
        self,
        client: ChannelClient,
        configs: Callable[[], Iterable[OrgNotificationConfig]],
    ):
        """
        Args:
            client: Outbound chat transport.
            configs: Returns the current organization configs; read on each
                dispatch so channel changes apply without restart.
        """
        self.client = client
        self._configs = configs

    def dispatch(self, review: ReviewRecord, source: Optional[str]) -> DispatchResult:
        """Send ``review`` to every organization; failures are isolated per org."""
        result = DispatchResult()
        message = build_message(review, source)
        configs: List[OrgNotificationConfig] = list(self._configs())

        for config in configs:
            channel = resolve_channel(config, source)
            if not channel:
                result.skipped += 1
                logger.debug("No channel configured in %s for source %s", config.org_key, source or "unknown")
                continue
            try:
                self.client.send(channel, message)
            except (SendError, requests.RequestException) as e:
                result.failed += 1
                logger.warning("Failed to notify %s (channel %s): %s", config.org_key, channel, e)
                continue
            result.sent += 1

        logger.info(
            "Dispatched %s by %s (%s): sent=%d failed=%d skipped=%d",
            review.album_title,
            review.artist_name,
            source or "unknown",
            result.sent,
            result.failed,
            result.skipped,
        )
        return result


__all__ = ["FALLBACK_CHAIN", "resolve_channel", "DispatchResult", "NotificationRouter"]
