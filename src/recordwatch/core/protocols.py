"""Protocol definitions for RecordWatch collaborators."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Protocol, runtime_checkable

from .models import CuratedAlbumEntry, OrgNotificationConfig, ReviewRecord, TrackedUser


@dataclass
class RenderedPage:
    """HTML snapshot of a page after client-side rendering."""

    url: str
    html: str
    final_url: Optional[str] = None

    @property
    def effective_url(self) -> str:
        return self.final_url or self.url


@dataclass
class AlbumDetails:
    """Facts read from an album page."""

    release_year: Optional[str] = None
    image_url: Optional[str] = None


@dataclass
class ChannelMessage:
    """Outbound chat message: optional content plus a single embed."""

    embed: Dict[str, Any] = field(default_factory=dict)
    content: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"embeds": [self.embed]}
        if self.content:
            payload["content"] = self.content
        return payload


@runtime_checkable
class PageRenderer(Protocol):
    """Renders pages in a real browser."""

    def render_reviews(self, username: str) -> RenderedPage:
        """Render a user's review listing, triggering lazy loading."""
        ...

    def render(self, url: str) -> RenderedPage:
        """Render an arbitrary page on the review site."""
        ...


@runtime_checkable
class ReviewExtractor(Protocol):
    """Turns a rendered review listing into review records."""

    def extract(self, page: RenderedPage) -> list[ReviewRecord]:
        """Extract reviews, newest first."""
        ...

    def extract_album_details(self, page: RenderedPage) -> AlbumDetails:
        """Read release year and cover art from a rendered album page."""
        ...


@runtime_checkable
class YearResolver(Protocol):
    """External release-year lookup."""

    def resolve_year(self, artist: str, album: str) -> Optional[str]:
        """Return the original release year, or None when unknown."""
        ...


@runtime_checkable
class ChannelClient(Protocol):
    """Outbound chat transport."""

    def send(self, channel_id: str, message: ChannelMessage) -> None:
        """Deliver a message; raises SendError on failure."""
        ...


@runtime_checkable
class CuratedListSource(Protocol):
    """A curated best-of album list."""

    @property
    def tag(self) -> str:
        """Source tag attached to every entry."""
        ...

    def fetch(self) -> list[CuratedAlbumEntry]:
        """Download and parse the list."""
        ...


@runtime_checkable
class WatchStore(Protocol):
    """Persistence for tracked users, routing and curated albums."""

    def initialize(self) -> None:
        """Initialize storage schema."""
        ...

    def iter_users(self) -> Iterable[TrackedUser]:
        """Iterate over tracked users."""
        ...

    def set_watermark(self, user_key: str, watermark: Optional[str], checked_at: datetime) -> None:
        """Persist a user's watermark and last-checked time."""
        ...

    def touch_user(self, user_key: str, checked_at: datetime) -> None:
        """Update last-checked time only."""
        ...

    def list_org_configs(self) -> list[OrgNotificationConfig]:
        """All organization routing configs."""
        ...

    def list_curated_albums(self) -> list[CuratedAlbumEntry]:
        """The persisted curated album set."""
        ...

    def replace_curated_albums(self, source: str, entries: Iterable[CuratedAlbumEntry]) -> int:
        """Replace every row of one source."""
        ...


__all__ = [
    "RenderedPage",
    "AlbumDetails",
    "ChannelMessage",
    "PageRenderer",
    "ReviewExtractor",
    "YearResolver",
    "ChannelClient",
    "CuratedListSource",
    "WatchStore",
]
