"""Curated-list classification of reviewed albums."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from recordwatch.core.models import CuratedAlbumEntry
from recordwatch.utils.text import normalize

logger = logging.getLogger(__name__)

# Match tiers, in the order they are tried
TIER_EXACT = 1
TIER_ARTIST_SUBSTRING = 2
TIER_TITLE_ONLY = 3


@dataclass(frozen=True)
class AlbumMatch:
    """A classification hit and the tier that produced it."""

    source: str
    tier: int
    entry: CuratedAlbumEntry


@dataclass(frozen=True)
class AlbumIndex:
    """Immutable lookup of curated albums keyed by normalized title."""

    by_title: Dict[str, Tuple[CuratedAlbumEntry, ...]] = field(default_factory=dict)
    size: int = 0

    @classmethod
    def build(cls, entries: Iterable[CuratedAlbumEntry]) -> "AlbumIndex":
        grouped: Dict[str, List[CuratedAlbumEntry]] = {}
        size = 0
        for entry in entries:
            key = entry.normalized_title
            if not key:
                continue
            grouped.setdefault(key, []).append(entry)
            size += 1
        return cls(by_title={key: tuple(rows) for key, rows in grouped.items()}, size=size)

    def match(self, title: str, artist: str) -> Optional[AlbumMatch]:
        """Three-tier lookup; first hit wins.

        1. normalized title and artist both equal;
        2. title equal and one artist contained in the other (billing variants);
        3. title equal alone. May misattribute when two lists share a title.
        """
        candidates = self.by_title.get(normalize(title))
        if not candidates:
            return None

        norm_artist = normalize(artist)
        for entry in candidates:
            if entry.normalized_artist == norm_artist:
                return AlbumMatch(entry.source, TIER_EXACT, entry)

        if norm_artist:
            for entry in candidates:
                other = entry.normalized_artist
                if other and (norm_artist in other or other in norm_artist):
                    return AlbumMatch(entry.source, TIER_ARTIST_SUBSTRING, entry)

        entry = candidates[0]
        return AlbumMatch(entry.source, TIER_TITLE_ONLY, entry)


class AlbumClassifier:
    """Classifies albums against the current curated index snapshot.

    ``rebuild`` builds a new index aside and swaps the reference in one
    assignment, so concurrent readers see either the old or the new index.
    """

    def __init__(self, entries: Iterable[CuratedAlbumEntry] = ()):
        self._index = AlbumIndex.build(entries)

    @property
    def index(self) -> AlbumIndex:
        return self._index

    def rebuild(self, entries: Iterable[CuratedAlbumEntry]) -> AlbumIndex:
        """Replace the index wholesale with ``entries``."""
        index = AlbumIndex.build(entries)
        self._index = index
        logger.info("Album index rebuilt with %d entries (%d titles)", index.size, len(index.by_title))
        return index

    def match(self, title: str, artist: str) -> Optional[AlbumMatch]:
        return self._index.match(title, artist)

    def classify(self, title: str, artist: str) -> Optional[str]:
        """Source tag for the album, or None when it is on no curated list."""
        hit = self.match(title, artist)
        if hit is None:
            return None
        if hit.tier == TIER_TITLE_ONLY:
            logger.debug("Title-only match for %s by %s -> %s (%s)", title, artist, hit.source, hit.entry.artist)
        return hit.source


__all__ = [
    "TIER_EXACT",
    "TIER_ARTIST_SUBSTRING",
    "TIER_TITLE_ONLY",
    "AlbumMatch",
    "AlbumIndex",
    "AlbumClassifier",
]
