"""Album metadata enrichment infrastructure."""

from .musicbrainz import MusicBrainzClient, earliest_year

__all__ = ["MusicBrainzClient", "earliest_year"]
