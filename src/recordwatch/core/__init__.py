"""Core domain models and interfaces."""

from .models import (
    CuratedAlbumEntry,
    OrgNotificationConfig,
    ReviewRecord,
    TrackedUser,
)
from .protocols import (
    ChannelClient,
    ChannelMessage,
    CuratedListSource,
    PageRenderer,
    AlbumDetails,
    RenderedPage,
    ReviewExtractor,
    WatchStore,
    YearResolver,
)
from .exceptions import (
    RecordWatchError,
    ConfigurationError,
    SourceFetchError,
    TransientNetworkError,
    RateLimitedError,
    WatermarkNotFoundError,
    SendError,
    StorageError,
)

__all__ = [
    # Models
    "ReviewRecord",
    "TrackedUser",
    "CuratedAlbumEntry",
    "OrgNotificationConfig",
    # Protocols
    "RenderedPage",
    "AlbumDetails",
    "ChannelMessage",
    "PageRenderer",
    "ReviewExtractor",
    "YearResolver",
    "ChannelClient",
    "CuratedListSource",
    "WatchStore",
    # Exceptions
    "RecordWatchError",
    "ConfigurationError",
    "SourceFetchError",
    "TransientNetworkError",
    "RateLimitedError",
    "WatermarkNotFoundError",
    "SendError",
    "StorageError",
]
