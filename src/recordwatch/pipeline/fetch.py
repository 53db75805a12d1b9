"""Review fetching: render with retries, then extract."""

import logging
import time
from typing import List, Optional

from recordwatch.core.exceptions import SourceFetchError
from recordwatch.core.models import ReviewRecord
from recordwatch.core.protocols import PageRenderer, ReviewExtractor

logger = logging.getLogger(__name__)


class ReviewFetcher:
    """Fetches a user's recent reviews, newest first.

    Rendering failures are retried up to ``max_attempts`` times, waiting
    ``retry_delay * attempt`` seconds in between, before the last
    ``SourceFetchError`` is raised. An empty list means the user has no
    visible reviews.
    """

    def __init__(
        self,
        renderer: PageRenderer,
        extractor: ReviewExtractor,
        max_attempts: int = 3,
        retry_delay: float = 5.0,
    ):
        self.renderer = renderer
        self.extractor = extractor
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay

    def fetch(self, username: str) -> List[ReviewRecord]:
        """Render and extract the review window for ``username``."""
        for attempt in range(1, self.max_attempts + 1):
            try:
                page = self.renderer.render_reviews(username)
                break
            except SourceFetchError as e:
                if attempt == self.max_attempts:
                    logger.error("Giving up on %s after %d attempts: %s", username, attempt, e)
                    raise
                delay = self.retry_delay * attempt
                logger.warning(
                    "Rendering reviews for %s failed (attempt %d/%d): %s; retrying in %.1fs",
                    username,
                    attempt,
                    self.max_attempts,
                    e,
                    delay,
                )
                time.sleep(delay)

        reviews = self.extractor.extract(page)
        for review in reviews:
            review.username = username
        logger.info("Fetched %d reviews for %s", len(reviews), username)
        return reviews

    def fetch_latest(self, username: str) -> Optional[ReviewRecord]:
        """Newest review for ``username``, or None when the profile has none."""
        reviews = self.fetch(username)
        return reviews[0] if reviews else None


__all__ = ["ReviewFetcher"]
