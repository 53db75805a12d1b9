"""Polling orchestrator.

Each cycle walks the tracked users one at a time and, per user:

1. fetches the recent review window (newest first);
2. seeds the watermark on first sight without notifying;
3. locates the watermark in the window; if it is gone, resets to the newest
   review and skips the backlog rather than risk a flood;
4. otherwise enriches, classifies and dispatches the newer reviews
   oldest-to-newest, then advances the watermark once.

A failure for one user is logged and the cycle moves on.
"""

import enum
import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from recordwatch.core.exceptions import WatermarkNotFoundError
from recordwatch.core.models import ReviewRecord, TrackedUser
from recordwatch.core.protocols import WatchStore
from recordwatch.output.router import NotificationRouter
from recordwatch.utils.datetime import utc_now

from .enrich import EnrichmentStats, ReleaseYearEnricher
from .fetch import ReviewFetcher
from .state import WatchState

logger = logging.getLogger(__name__)


class PollOutcome(str, enum.Enum):
    EMPTY = "empty"
    SEEDED = "seeded"
    RESET = "reset"
    UP_TO_DATE = "up_to_date"
    NOTIFIED = "notified"
    FAILED = "failed"


@dataclass
class UserPollResult:
    """What happened to one user in one cycle."""

    user_key: str
    username: str
    outcome: PollOutcome
    new_reviews: int = 0
    messages_sent: int = 0
    send_failures: int = 0
    watermark: Optional[str] = None
    error: Optional[str] = None


@dataclass
class CycleStats:
    """Statistics from one polling cycle."""

    users_polled: int = 0
    users_failed: int = 0
    reviews_dispatched: int = 0
    messages_sent: int = 0
    send_failures: int = 0
    watermark_resets: int = 0
    enrichment: EnrichmentStats = field(default_factory=EnrichmentStats)
    results: List[UserPollResult] = field(default_factory=list)
    error: Optional[str] = None


def backlog_since(reviews: List[ReviewRecord], watermark: str) -> List[ReviewRecord]:
    """Reviews newer than ``watermark`` in a newest-first window.

    Raises:
        WatermarkNotFoundError: If the watermark is not in the window.
    """
    for position, review in enumerate(reviews):
        if review.identity == watermark:
            return reviews[:position]
    username = reviews[0].username if reviews else ""
    raise WatermarkNotFoundError(username, watermark)


class PollingOrchestrator:
    """Runs polling cycles over every tracked user."""

    def __init__(
        self,
        storage: WatchStore,
        fetcher: ReviewFetcher,
        router: NotificationRouter,
        state: Optional[WatchState] = None,
        enricher: Optional[ReleaseYearEnricher] = None,
        user_delay: float = 5.0,
    ):
        self.storage = storage
        self.fetcher = fetcher
        self.router = router
        self.state = state or WatchState()
        self.enricher = enricher
        self.user_delay = user_delay

    def run_cycle(self) -> Optional[CycleStats]:
        """Run one cycle unless another is in flight.

        Returns:
            Cycle statistics, or None when the trigger was dropped.
        """
        if not self.state.guard.try_enter():
            logger.warning("Polling cycle already running; dropping trigger")
            return None

        stats = CycleStats()
        started = time.monotonic()
        try:
            self._run(stats)
        except Exception as e:
            stats.error = str(e)
            logger.exception("Polling cycle aborted: %s", e)
        finally:
            self.state.guard.exit()

        logger.info(
            "Cycle finished in %.1fs: users=%d failed=%d dispatched=%d sent=%d resets=%d",
            time.monotonic() - started,
            stats.users_polled,
            stats.users_failed,
            stats.reviews_dispatched,
            stats.messages_sent,
            stats.watermark_resets,
        )
        return stats

    def _run(self, stats: CycleStats) -> None:
        users = list(self.storage.iter_users())
        logger.info("Polling %d tracked users", len(users))

        for idx, user in enumerate(users):
            if idx > 0 and self.user_delay > 0:
                time.sleep(self.user_delay)

            stats.users_polled += 1
            try:
                result = self.poll_user(user, stats.enrichment)
            except Exception as e:
                logger.exception("Error polling %s", user.username)
                result = UserPollResult(
                    user_key=user.user_key,
                    username=user.username,
                    outcome=PollOutcome.FAILED,
                    watermark=user.watermark,
                    error=str(e),
                )
                stats.users_failed += 1

            stats.results.append(result)
            stats.reviews_dispatched += result.new_reviews
            stats.messages_sent += result.messages_sent
            stats.send_failures += result.send_failures
            if result.outcome is PollOutcome.RESET:
                stats.watermark_resets += 1

    def poll_user(self, user: TrackedUser, enrichment: Optional[EnrichmentStats] = None) -> UserPollResult:
        """Advance one user's watermark, notifying about anything new."""
        reviews = self.fetcher.fetch(user.username)
        result = UserPollResult(
            user_key=user.user_key,
            username=user.username,
            outcome=PollOutcome.EMPTY,
            watermark=user.watermark,
        )
        if not reviews:
            logger.debug("No reviews for %s", user.username)
            return result

        newest = reviews[0].identity
        checked_at = utc_now()

        if user.watermark is None:
            self.storage.set_watermark(user.user_key, newest, checked_at)
            logger.info("Seeded watermark for %s at %s", user.username, newest)
            result.outcome, result.watermark = PollOutcome.SEEDED, newest
            return result

        try:
            backlog = backlog_since(reviews, user.watermark)
        except WatermarkNotFoundError:
            logger.warning(
                "Watermark %s for %s not in the last %d reviews; resetting to %s without notifying",
                user.watermark,
                user.username,
                len(reviews),
                newest,
            )
            self.storage.set_watermark(user.user_key, newest, checked_at)
            result.outcome, result.watermark = PollOutcome.RESET, newest
            return result

        if not backlog:
            self.storage.touch_user(user.user_key, checked_at)
            result.outcome = PollOutcome.UP_TO_DATE
            return result

        logger.info("%d new reviews for %s", len(backlog), user.username)
        self._process_backlog(list(reversed(backlog)), result, enrichment)

        self.storage.set_watermark(user.user_key, newest, utc_now())
        result.outcome, result.watermark = PollOutcome.NOTIFIED, newest
        return result

    def _process_backlog(
        self,
        backlog: List[ReviewRecord],
        result: UserPollResult,
        enrichment: Optional[EnrichmentStats],
    ) -> None:
        """Enrich, classify and dispatch reviews in the given (chronological) order."""
        lookups_left = 0
        if self.enricher is not None:
            lookups_left = sum(1 for review in backlog if self.enricher.needs_year(review))

        for review in backlog:
            if self.enricher is not None and self.enricher.needs_year(review):
                lookups_left -= 1
                try:
                    self.enricher.enrich(review, enrichment)
                except Exception:
                    # Earlier reviews may already be sent; dispatch this one without a year
                    logger.exception("Year lookup failed for %s; sending without a year", review.album_title)
                if lookups_left > 0:
                    self.enricher.pause()

            source = self.state.classifier.classify(review.album_title, review.artist_name)
            logger.info("New review by %s: %s (source: %s)", review.username, review.album_title, source or "unknown")

            dispatch = self.router.dispatch(review, source)
            result.new_reviews += 1
            result.messages_sent += dispatch.sent
            result.send_failures += dispatch.failed


__all__ = [
    "PollOutcome",
    "UserPollResult",
    "CycleStats",
    "backlog_since",
    "PollingOrchestrator",
]
