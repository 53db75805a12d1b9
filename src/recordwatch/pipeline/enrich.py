"""Release-year enrichment for scraped reviews."""

import logging
import time
from dataclasses import dataclass
from typing import Iterable, Optional

from recordwatch.core.exceptions import SourceFetchError
from recordwatch.core.models import ReviewRecord
from recordwatch.core.protocols import PageRenderer, ReviewExtractor, YearResolver
from recordwatch.sources.base import is_placeholder

logger = logging.getLogger(__name__)


@dataclass
class EnrichmentStats:
    """Counters for one batch of lookups."""

    lookups: int = 0
    resolved: int = 0
    from_album_page: int = 0


class ReleaseYearEnricher:
    """Fills ``release_year`` for reviews whose teaser did not show one.

    Order: year already on the teaser, then the external resolver, then
    (optionally) the album page itself. Consecutive resolver calls are spaced
    by ``min_interval`` seconds; no wait follows the last call of a batch.
    """

    def __init__(
        self,
        resolver: YearResolver,
        min_interval: float = 1.1,
        renderer: Optional[PageRenderer] = None,
        extractor: Optional[ReviewExtractor] = None,
    ):
        self.resolver = resolver
        self.min_interval = min_interval
        self.renderer = renderer
        self.extractor = extractor

    @property
    def album_page_fallback(self) -> bool:
        return self.renderer is not None and self.extractor is not None

    @staticmethod
    def needs_year(review: ReviewRecord) -> bool:
        return not review.release_year

    def enrich(self, review: ReviewRecord, stats: Optional[EnrichmentStats] = None) -> Optional[str]:
        """Look up the year for one review in place; returns the year found."""
        if not self.needs_year(review):
            return review.release_year

        if stats is not None:
            stats.lookups += 1

        logger.info("Year missing for %s; querying metadata service", review.album_title)
        year = self.resolver.resolve_year(review.artist_name, review.album_title)
        if not year and review.album_url and self.renderer is not None and self.extractor is not None:
            year = self._from_album_page(review, self.renderer, self.extractor)
            if year and stats is not None:
                stats.from_album_page += 1

        if year:
            review.release_year = year
            if stats is not None:
                stats.resolved += 1
        return year

    def enrich_all(self, reviews: Iterable[ReviewRecord]) -> EnrichmentStats:
        """Enrich a batch sequentially with spacing between lookups."""
        stats = EnrichmentStats()
        pending = [r for r in reviews if self.needs_year(r)]
        for idx, review in enumerate(pending):
            self.enrich(review, stats)
            if idx < len(pending) - 1:
                self.pause()
        return stats

    def pause(self) -> None:
        """Wait between consecutive lookups."""
        if self.min_interval > 0:
            logger.debug("Spacing metadata lookups: sleeping %.2f seconds", self.min_interval)
            time.sleep(self.min_interval)

    def _from_album_page(
        self, review: ReviewRecord, renderer: PageRenderer, extractor: ReviewExtractor
    ) -> Optional[str]:
        logger.info("Reading album page as last resort: %s", review.album_url)
        try:
            page = renderer.render(review.album_url)
        except SourceFetchError as e:
            logger.warning("Failed to fetch album details from %s: %s", review.album_url, e)
            return None

        details = extractor.extract_album_details(page)
        if details.image_url and is_placeholder(review.image_url):
            review.image_url = details.image_url
        return details.release_year


__all__ = ["ReleaseYearEnricher", "EnrichmentStats"]
