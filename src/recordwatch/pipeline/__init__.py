"""Processing pipeline components."""

from .classify import AlbumClassifier, AlbumIndex, AlbumMatch
from .enrich import EnrichmentStats, ReleaseYearEnricher
from .fetch import ReviewFetcher
from .poll import CycleStats, PollingOrchestrator, PollOutcome, UserPollResult, backlog_since
from .scheduler import PollingService
from .state import CycleGuard, WatchState
from .sync import SyncStats, load_album_index, sync_curated_albums

__all__ = [
    "AlbumClassifier",
    "AlbumIndex",
    "AlbumMatch",
    "ReleaseYearEnricher",
    "EnrichmentStats",
    "ReviewFetcher",
    # Polling
    "PollingOrchestrator",
    "PollOutcome",
    "UserPollResult",
    "CycleStats",
    "backlog_since",
    "PollingService",
    "CycleGuard",
    "WatchState",
    # Curated lists
    "SyncStats",
    "load_album_index",
    "sync_curated_albums",
]
