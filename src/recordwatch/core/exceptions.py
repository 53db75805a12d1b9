"""Custom exceptions for RecordWatch."""


class RecordWatchError(Exception):
    """Base exception for all RecordWatch errors."""

    pass


class ConfigurationError(RecordWatchError):
    """Raised when configuration is invalid or missing."""

    pass


class SourceFetchError(RecordWatchError):
    """Raised when rendering or fetching a source page fails."""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"[{source}] {message}")


class TransientNetworkError(RecordWatchError):
    """Raised for connection errors and timeouts that may succeed on retry."""

    pass


class RateLimitedError(RecordWatchError):
    """Raised when an external service asks us to slow down."""

    def __init__(self, service: str, retry_after: float | None = None):
        self.service = service
        self.retry_after = retry_after
        super().__init__(f"[{service}] rate limited")


class WatermarkNotFoundError(RecordWatchError):
    """Raised when a stored watermark is absent from the fetched review window."""

    def __init__(self, username: str, watermark: str):
        self.username = username
        self.watermark = watermark
        super().__init__(f"Watermark {watermark!r} for {username} not in fetched window")


class SendError(RecordWatchError):
    """Raised when a message cannot be delivered to a channel."""

    def __init__(self, channel_id: str, message: str):
        self.channel_id = channel_id
        super().__init__(f"[channel {channel_id}] {message}")


class StorageError(RecordWatchError):
    """Raised when storage operations fail."""

    pass


__all__ = [
    "RecordWatchError",
    "ConfigurationError",
    "SourceFetchError",
    "TransientNetworkError",
    "RateLimitedError",
    "WatermarkNotFoundError",
    "SendError",
    "StorageError",
]
