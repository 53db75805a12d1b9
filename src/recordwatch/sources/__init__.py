"""Review and curated-list sources."""

from .curated import Albums1001Source, LatamAlbumsSource, build_curated_sources
from .recordclub import RecordClubExtractor

__all__ = [
    "RecordClubExtractor",
    "Albums1001Source",
    "LatamAlbumsSource",
    "build_curated_sources",
]
