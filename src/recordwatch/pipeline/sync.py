"""Curated list synchronization."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from recordwatch.core.exceptions import SourceFetchError, StorageError
from recordwatch.core.protocols import CuratedListSource
from recordwatch.infrastructure.storage import WatchStorage
from recordwatch.utils.datetime import ensure_isoformat, utc_now

from .classify import AlbumClassifier

logger = logging.getLogger(__name__)


@dataclass
class SyncStats:
    imported: Dict[str, int] = field(default_factory=dict)
    failed: List[str] = field(default_factory=list)
    index_size: int = 0

    @property
    def ok(self) -> bool:
        return not self.failed


def load_album_index(storage: WatchStorage, classifier: AlbumClassifier) -> int:
    """Rebuild the in-memory index from the persisted curated set."""
    return classifier.rebuild(storage.list_curated_albums()).size


def sync_curated_albums(
    storage: WatchStorage,
    classifier: AlbumClassifier,
    sources: Iterable[CuratedListSource],
) -> SyncStats:
    """Refresh curated lists in storage, then rebuild the index.

    Each source replaces only its own rows; a failing source keeps its
    previous rows.
    """
    stats = SyncStats()
    for source in sources:
        try:
            entries = source.fetch()
        except SourceFetchError as e:
            logger.error("Error importing %s list: %s", source.tag, e)
            stats.failed.append(source.tag)
            continue

        if not entries:
            logger.warning("%s list came back empty; keeping previous rows", source.tag)
            stats.failed.append(source.tag)
            continue

        try:
            stats.imported[source.tag] = storage.replace_curated_albums(source.tag, entries)
        except StorageError as e:
            logger.error("Error storing %s list: %s", source.tag, e)
            stats.failed.append(source.tag)
            continue
        logger.info("Imported %d albums for %s", stats.imported[source.tag], source.tag)

    stats.index_size = load_album_index(storage, classifier)
    storage.set_metadata("curated_synced_at", ensure_isoformat(utc_now()) or "")
    return stats


__all__ = ["SyncStats", "load_album_index", "sync_curated_albums"]
