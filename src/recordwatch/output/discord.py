"""Discord REST transport for notifications."""

import logging
from typing import Optional

import requests

from recordwatch.config.settings import DiscordConfig
from recordwatch.core.exceptions import ConfigurationError, SendError
from recordwatch.core.protocols import ChannelMessage
from recordwatch.utils.retry import with_retry

logger = logging.getLogger(__name__)


class DiscordChannelClient:
    """Posts messages to guild channels with a bot token."""

    BASE_URL = "https://discord.com/api/v10"

    def __init__(
        self,
        token: str,
        base_url: str = BASE_URL,
        timeout: float = 10.0,
        max_attempts: int = 3,
        backoff_factor: float = 2.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers["Authorization"] = f"Bot {token}"
        self._session.headers["Content-Type"] = "application/json"
        self._post = with_retry(max_attempts=max_attempts, backoff_factor=backoff_factor)(self._post_once)

    @classmethod
    def from_config(cls, config: DiscordConfig) -> "DiscordChannelClient":
        """Create client from Discord configuration."""
        if not config.has_token:
            raise ConfigurationError("discord.token is not set (DISCORD_TOKEN)")
        return cls(
            token=config.token,
            base_url=config.api_base,
            timeout=config.timeout_seconds,
            max_attempts=config.max_attempts,
        )

    def send(self, channel_id: str, message: ChannelMessage) -> None:
        """Post ``message`` to ``channel_id``.

        Raises:
            SendError: When the message could not be delivered after retries.
        """
        try:
            self._post(channel_id, message)
        except requests.RequestException as e:
            raise SendError(channel_id, str(e)) from e
        logger.debug("Sent message to channel %s", channel_id)

    def _post_once(self, channel_id: str, message: ChannelMessage) -> None:
        response = self._session.post(
            f"{self.base_url}/channels/{channel_id}/messages",
            json=message.to_payload(),
            timeout=self.timeout,
        )
        response.raise_for_status()

    def close(self) -> None:
        """Close the HTTP session."""
        self._session.close()


__all__ = ["DiscordChannelClient"]
