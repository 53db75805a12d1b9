"""MusicBrainz client for release-year enrichment."""

import logging
import time
from typing import Dict, List, Optional

import requests

from recordwatch.config.settings import EnrichmentConfig
from recordwatch.core.exceptions import RateLimitedError, TransientNetworkError
from recordwatch.utils.text import extract_year

logger = logging.getLogger(__name__)

# MusicBrainz signals throttling with 503 as well as 429
RATE_LIMIT_STATUS_CODES = {429, 503}


class MusicBrainzClient:
    """Looks up original release years on MusicBrainz.

    Retry policy:
    - connection errors and timeouts are retried, sleeping ``backoff * attempt``
      seconds between attempts;
    - a rate-limit response gives up immediately (callers space their calls);
    - anything else aborts without retry.
    """

    BASE_URL = "https://musicbrainz.org/ws/2"

    def __init__(
        self,
        user_agent: str,
        base_url: str = BASE_URL,
        timeout: float = 5.0,
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the client.

        Args:
            user_agent: MusicBrainz requires an identifying User-Agent with contact info.
            base_url: Web service root.
            timeout: Request timeout in seconds.
            max_attempts: Maximum attempts for transient failures.
            backoff_seconds: Base delay; attempt ``n`` waits ``n * backoff_seconds``.
            session: Optional preconfigured session.
        """
        self._session = session or requests.Session()
        self._session.headers["User-Agent"] = user_agent
        self._session.headers["Accept"] = "application/json"
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._backoff_seconds = backoff_seconds

    @classmethod
    def from_config(cls, config: EnrichmentConfig) -> "MusicBrainzClient":
        """Create client from enrichment configuration."""
        return cls(
            user_agent=config.user_agent,
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            max_attempts=config.max_attempts,
            backoff_seconds=config.backoff_seconds,
        )

    def _search_releases(self, artist: str, album: str) -> List[Dict]:
        """Single search request.

        Raises:
            RateLimitedError: On 429/503.
            TransientNetworkError: On connection errors and timeouts.
            requests.RequestException: On any other HTTP failure.
        """
        query = f'release:"{album}" AND artist:"{artist}"'
        try:
            response = self._session.get(
                f"{self._base_url}/release/",
                params={"query": query, "fmt": "json"},
                timeout=self._timeout,
            )
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            raise TransientNetworkError(str(e)) from e

        if response.status_code in RATE_LIMIT_STATUS_CODES:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitedError("musicbrainz", float(retry_after) if retry_after else None)

        response.raise_for_status()
        return response.json().get("releases") or []

    def resolve_year(self, artist: str, album: str) -> Optional[str]:
        """Return the earliest release year for ``album`` by ``artist``.

        Returns:
            Four-digit year string, or None when unknown or the lookup failed.
        """
        logger.debug("Querying MusicBrainz for %s - %s", artist, album)

        for attempt in range(1, self._max_attempts + 1):
            try:
                releases = self._search_releases(artist, album)
            except TransientNetworkError as e:
                logger.warning(
                    "MusicBrainz request failed: %s, attempt %d/%d",
                    e,
                    attempt,
                    self._max_attempts,
                )
                if attempt < self._max_attempts:
                    sleep_time = self._backoff_seconds * attempt
                    logger.debug("Backing off for %.1f seconds", sleep_time)
                    time.sleep(sleep_time)
                continue
            except RateLimitedError:
                logger.warning("Rate limited by MusicBrainz; skipping year lookup for %s", album)
                return None
            except (requests.RequestException, ValueError) as e:
                logger.warning("MusicBrainz lookup for %s - %s failed: %s", artist, album, e)
                return None

            year = earliest_year(releases)
            if year:
                logger.info("MusicBrainz found year %s for %s", year, album)
            return year

        logger.warning("MusicBrainz lookup for %s - %s gave up after %d attempts", artist, album, self._max_attempts)
        return None

    def close(self) -> None:
        """Close the HTTP session."""
        self._session.close()


def earliest_year(releases: List[Dict]) -> Optional[str]:
    """Year of the earliest dated release, treating it as the original issue."""
    dated = sorted((r["date"] for r in releases if r.get("date")))
    if not dated:
        return None
    return extract_year(dated[0])


__all__ = ["MusicBrainzClient", "earliest_year"]
