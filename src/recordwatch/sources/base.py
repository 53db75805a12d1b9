"""Shared helpers for HTML sources."""

import re
from typing import Optional
from urllib.parse import urljoin

from bs4 import Tag

_CSS_URL = re.compile(r"url\(\s*[\"']?([^\"')]+)[\"']?\s*\)")

PLACEHOLDER_MARKERS = ("placeholder", "default")


def resolve_url(base_url: str, href: Optional[str]) -> Optional[str]:
    """Make ``href`` absolute against ``base_url``; empty values become None."""
    if not href:
        return None
    href = href.strip()
    if not href:
        return None
    return urljoin(base_url.rstrip("/") + "/", href)


def background_image(tag: Optional[Tag]) -> Optional[str]:
    """URL from an inline ``background-image: url(...)`` style."""
    if tag is None:
        return None
    match = _CSS_URL.search(tag.get("style") or "")
    return match.group(1) if match else None


def image_source(tag: Optional[Tag]) -> Optional[str]:
    """Best image URL inside ``tag``: ``<img>`` src, lazy ``data-src``, then inline style."""
    if tag is None:
        return None
    img = tag if tag.name == "img" else tag.find("img")
    if isinstance(img, Tag):
        src = img.get("src") or img.get("data-src")
        if src:
            return str(src)
    return background_image(tag)


def is_placeholder(url: Optional[str]) -> bool:
    return not url or any(marker in url for marker in PLACEHOLDER_MARKERS)


def text_of(tag: Optional[Tag]) -> str:
    if tag is None:
        return ""
    return " ".join(tag.get_text(" ", strip=True).split())


__all__ = [
    "resolve_url",
    "background_image",
    "image_source",
    "is_placeholder",
    "text_of",
]
