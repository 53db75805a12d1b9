"""Curated best-of album list sources."""

import logging
import re
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Type

import requests
from bs4 import BeautifulSoup

from recordwatch.config.settings import CuratedConfig
from recordwatch.core.exceptions import SourceFetchError
from recordwatch.core.models import CuratedAlbumEntry

from .base import text_of

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class BaseCuratedSource(ABC):
    """Base class for curated lists published as HTML pages."""

    tag: str = ""

    def __init__(self, url: str, timeout: float = 30.0, session: Optional[requests.Session] = None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = BROWSER_USER_AGENT

    def fetch(self) -> List[CuratedAlbumEntry]:
        """Download the list page and parse its albums."""
        logger.info("Fetching %s list from %s", self.tag, self.url)
        try:
            resp = self.session.get(self.url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise SourceFetchError(self.tag, f"Failed to fetch {self.url}: {e}") from e

        entries = self.parse(resp.text)
        logger.info("Found %d albums in %s list", len(entries), self.tag)
        return entries

    @abstractmethod
    def parse(self, html: str) -> List[CuratedAlbumEntry]:
        """Albums listed on the downloaded page."""


class Albums1001Source(BaseCuratedSource):
    """"1001 Albums You Must Hear Before You Die" via 1001albumsgenerator.com."""

    tag = "1001"

    def parse(self, html: str) -> List[CuratedAlbumEntry]:
        soup = BeautifulSoup(html, "html.parser")
        entries = []
        for row in soup.select("table tbody tr"):
            title = text_of(row.select_one("td:nth-of-type(1) a"))
            artist = text_of(row.select_one("td:nth-of-type(2) a"))
            if title and artist:
                entries.append(CuratedAlbumEntry(title=title, artist=artist, source=self.tag))
        return entries


class LatamAlbumsSource(BaseCuratedSource):
    """"600 Discos de Latinoamérica" general index."""

    tag = "latam"

    # Index links read «Title» Artist
    _ENTRY = re.compile(r"«(.*?)»\s*(.*)")

    def parse(self, html: str) -> List[CuratedAlbumEntry]:
        soup = BeautifulSoup(html, "html.parser")
        entries = []
        for link in soup.find_all("a"):
            match = self._ENTRY.search(text_of(link))
            if not match:
                continue
            title, artist = match.group(1).strip(), match.group(2).strip()
            if title and artist:
                entries.append(CuratedAlbumEntry(title=title, artist=artist, source=self.tag))
        return entries


CURATED_SOURCES: Dict[str, Type[BaseCuratedSource]] = {
    Albums1001Source.tag: Albums1001Source,
    LatamAlbumsSource.tag: LatamAlbumsSource,
}


def build_curated_sources(config: CuratedConfig) -> List[BaseCuratedSource]:
    """Instantiate configured lists; unknown tags are skipped with a warning."""
    sources = []
    for tag, url in config.sources.items():
        source_cls = CURATED_SOURCES.get(tag)
        if source_cls is None:
            logger.warning("No parser for curated list %r; skipping", tag)
            continue
        sources.append(source_cls(url, timeout=config.timeout_seconds))
    return sources


__all__ = [
    "BaseCuratedSource",
    "Albums1001Source",
    "LatamAlbumsSource",
    "CURATED_SOURCES",
    "build_curated_sources",
]
