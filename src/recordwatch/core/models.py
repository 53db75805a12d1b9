"""Domain models."""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field, computed_field

from recordwatch.utils.text import normalize

NO_RATING = "No rating"
UNKNOWN_ARTIST = "Unknown Artist"


class ReviewRecord(BaseModel):
    """A single album review scraped from a user's profile."""

    username: str = ""
    album_title: str
    artist_name: str = UNKNOWN_ARTIST
    rating: str = NO_RATING
    review_text: str = ""
    is_truncated: bool = False
    review_url: str
    album_url: Optional[str] = None
    image_url: Optional[str] = None
    avatar_url: Optional[str] = None
    timestamp: Optional[datetime] = None
    release_year: Optional[str] = None

    @property
    def identity(self) -> str:
        """Stable identity used as the polling watermark."""
        return self.review_url


class TrackedUser(BaseModel):
    """A chat member linked to a Record Club profile."""

    user_key: str
    username: str
    watermark: Optional[str] = None
    last_checked_at: Optional[datetime] = None

    @property
    def is_seeded(self) -> bool:
        return self.watermark is not None


class CuratedAlbumEntry(BaseModel):
    """Album from a curated best-of list."""

    model_config = {"frozen": True}

    title: str
    artist: str
    source: str

    @computed_field  # type: ignore[misc]
    @property
    def normalized_title(self) -> str:
        return normalize(self.title)

    @computed_field  # type: ignore[misc]
    @property
    def normalized_artist(self) -> str:
        return normalize(self.artist)


class OrgNotificationConfig(BaseModel):
    """Notification routing for one organization (Discord guild)."""

    org_key: str
    default_channel: Optional[str] = None
    overrides: Dict[str, str] = Field(default_factory=dict)


__all__ = [
    "NO_RATING",
    "UNKNOWN_ARTIST",
    "ReviewRecord",
    "TrackedUser",
    "CuratedAlbumEntry",
    "OrgNotificationConfig",
]
