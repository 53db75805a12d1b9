"""Record Club review listing extractor."""

import logging
import re
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from recordwatch.config.settings import ExtractConfig
from recordwatch.core.models import NO_RATING, UNKNOWN_ARTIST, ReviewRecord
from recordwatch.core.protocols import AlbumDetails, RenderedPage
from recordwatch.utils.datetime import parse_review_timestamp, utc_now
from recordwatch.utils.text import ELLIPSIS, extract_year, truncate

from .base import image_source, is_placeholder, resolve_url, text_of

logger = logging.getLogger(__name__)

TEASER = "article.review-teaser"
ALBUM_LINK = "a.line-clamp-2, a.title"
REVIEW_LINK = "a.review-teaser-date"
ARTIST_LINK = 'a[href^="/artists/"]'
HEADINGS = "h3.release-headings, .release-headings"
RATING_VALUE = '[itemprop="ratingValue"]'
RATING_HIDDEN = ".rating .visuallyhidden"
BODY = ".review-body, .review-teaser-body, .review-teaser-content, .review-teaser-excerpt"
ARTWORK = ".release-artwork"
ARTWORK_INNER = ".release-artwork-inner"
PROFILE_AVATAR = ".user-profile-header .avatar"
TEASER_AVATAR = ".avatar"
YEAR = ".release-year"

_RATING_NUMBER = re.compile(r"(\d+(?:\.\d+)?)")
_MORE_LABELS = {"more", "read more", "...more", "…more", "... more", "… more"}
_TRAILING_MORE = re.compile(r"(?:(?:\.\.\.|…)\s*(?:read\s+)?more|\bread\s+more)\s*$", re.IGNORECASE)


class RecordClubExtractor:
    """Parses rendered Record Club pages into review records.

    Missing fields fall back to sentinels rather than failing; only teasers
    without a review link are dropped since the link is the review identity.
    """

    def __init__(self, base_url: str, max_review_chars: int = 500):
        self.base_url = base_url.rstrip("/")
        self.max_review_chars = max_review_chars

    @classmethod
    def from_config(cls, base_url: str, config: ExtractConfig) -> "RecordClubExtractor":
        return cls(base_url=base_url, max_review_chars=config.max_review_chars)

    def extract(self, page: RenderedPage) -> List[ReviewRecord]:
        """Extract every review teaser on the page, newest first."""
        soup = BeautifulSoup(page.html, "html.parser")
        profile_avatar = self._url(image_source(soup.select_one(PROFILE_AVATAR)))

        reviews: List[ReviewRecord] = []
        for teaser in soup.select(TEASER):
            review = self._parse_teaser(teaser, profile_avatar)
            if review is None:
                continue
            reviews.append(review)

        logger.debug("Extracted %d reviews from %s", len(reviews), page.effective_url)
        return reviews

    def extract_album_details(self, page: RenderedPage) -> AlbumDetails:
        """Release year and cover art from an album page."""
        soup = BeautifulSoup(page.html, "html.parser")

        year = None
        for selector in (YEAR, "dl.release-details dd.date", HEADINGS):
            year = extract_year(text_of(soup.select_one(selector)))
            if year:
                break
        if not year and soup.title is not None:
            year = extract_year(soup.title.get_text())

        image = self._url(image_source(soup.select_one(ARTWORK)))
        return AlbumDetails(release_year=year, image_url=None if is_placeholder(image) else image)

    def _parse_teaser(self, teaser: Tag, profile_avatar: Optional[str]) -> Optional[ReviewRecord]:
        review_link = teaser.select_one(REVIEW_LINK)
        review_url = self._url(review_link.get("href") if review_link else None)
        if not review_url:
            logger.debug("Skipping teaser without review link")
            return None

        title_el = teaser.select_one(ALBUM_LINK)
        album_title = text_of(title_el)
        album_url = self._url(title_el.get("href") if title_el else None)

        text, truncated = self._review_text(teaser)

        timestamp = None
        time_el = teaser.select_one("time")
        if time_el is not None:
            timestamp = parse_review_timestamp(time_el.get("datetime") or text_of(time_el))

        return ReviewRecord(
            album_title=album_title,
            artist_name=self._artist(teaser, album_title),
            rating=self._rating(teaser),
            review_text=text,
            is_truncated=truncated,
            review_url=review_url,
            album_url=album_url,
            image_url=self._cover(teaser),
            avatar_url=profile_avatar or self._url(image_source(teaser.select_one(TEASER_AVATAR))),
            timestamp=timestamp or utc_now(),
            release_year=self._year(teaser),
        )

    def _artist(self, teaser: Tag, album_title: str) -> str:
        artist = text_of(teaser.select_one(ARTIST_LINK))
        if not artist:
            headings = text_of(teaser.select_one(HEADINGS))
            artist = headings.replace(album_title, "", 1).strip() if album_title else headings
        return artist or UNKNOWN_ARTIST

    def _year(self, teaser: Tag) -> Optional[str]:
        for selector in (YEAR, HEADINGS):
            year = extract_year(text_of(teaser.select_one(selector)))
            if year:
                return year
        return None

    def _rating(self, teaser: Tag) -> str:
        value_el = teaser.select_one(RATING_VALUE)
        if value_el is not None:
            value = (value_el.get("content") or "").strip() or text_of(value_el)
            if value:
                return value
        match = _RATING_NUMBER.search(text_of(teaser.select_one(RATING_HIDDEN)))
        return match.group(1) if match else NO_RATING

    def _review_text(self, teaser: Tag) -> tuple[str, bool]:
        """Body text capped at ``max_review_chars``.

        A trailing "more" control means the site already cut the text; it is
        removed and the text marked truncated so the message links the full review.
        """
        body = teaser.select_one(BODY)
        if body is None:
            return "", False

        site_truncated = False
        for control in body.find_all(["a", "button", "span"]):
            if text_of(control).lower() in _MORE_LABELS:
                control.decompose()
                site_truncated = True

        text = text_of(body)
        if _TRAILING_MORE.search(text):
            text = _TRAILING_MORE.sub("", text).rstrip()
            site_truncated = True

        text, capped = truncate(text, self.max_review_chars)
        if site_truncated and text and not text.endswith((ELLIPSIS, "…")):
            text, _ = truncate(text + ELLIPSIS, self.max_review_chars)
        return text, capped or site_truncated

    def _cover(self, teaser: Tag) -> Optional[str]:
        image = image_source(teaser.select_one(ARTWORK))
        if is_placeholder(image):
            image = image_source(teaser.select_one(ARTWORK_INNER)) or image
        return self._url(image)

    def _url(self, href) -> Optional[str]:
        return resolve_url(self.base_url, str(href) if href else None)


__all__ = ["RecordClubExtractor"]
