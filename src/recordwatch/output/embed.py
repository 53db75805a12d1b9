"""Discord embed formatting for review notifications."""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from recordwatch.core.models import ReviewRecord
from recordwatch.core.protocols import ChannelMessage
from recordwatch.utils.datetime import ensure_isoformat

FULL_STAR = "★"
HALF_STAR = "½"
SEPARATOR = "┈"
NO_REVIEW_TEXT = "No review text."

# Discord caps embed descriptions at 4096 characters
MAX_DESCRIPTION = 4096


@dataclass(frozen=True)
class SourceStyle:
    """Accent color and footer label for a source tag."""

    color: int
    label: str


DEFAULT_STYLE = SourceStyle(color=0x0099FF, label="Record Club Review")

SOURCE_STYLES: Dict[str, SourceStyle] = {
    "1001": SourceStyle(color=0xFFD700, label="🏆 1001 Albums List"),
    "latam": SourceStyle(color=0xFF5733, label="🌎 600 Discos Latinoamérica"),
}


def style_for(source: Optional[str]) -> SourceStyle:
    if source is None:
        return DEFAULT_STYLE
    return SOURCE_STYLES.get(source, DEFAULT_STYLE)


def format_stars(rating: str) -> str:
    """Render a numeric rating as star glyphs.

    ``"4.5"`` becomes four full stars and a half; non-numeric ratings such as
    ``"No rating"`` are returned unchanged.
    """
    try:
        value = float(rating)
    except (TypeError, ValueError):
        return rating
    if not math.isfinite(value) or value < 0:
        return rating

    full = math.floor(value)
    half = value - full > 0
    return FULL_STAR * full + (HALF_STAR if half else "")


def review_body(review: ReviewRecord) -> str:
    """Review text with a link to the full review when it was cut."""
    text = review.review_text.strip()
    if not text:
        return NO_REVIEW_TEXT
    if review.is_truncated:
        text = f"{text} [more]({review.review_url})"
    return text


def build_embed(review: ReviewRecord, source: Optional[str]) -> Dict[str, Any]:
    """Embed payload for one review."""
    style = style_for(source)
    year = f" ({review.release_year})" if review.release_year else ""

    description = "\n".join(
        [
            format_stars(review.rating),
            SEPARATOR * 5,
            review_body(review),
            SEPARATOR * len(style.label),
        ]
    )

    author: Dict[str, Any] = {"name": f"{review.username} reviewed..."}
    if review.avatar_url:
        author["icon_url"] = review.avatar_url

    embed: Dict[str, Any] = {
        "color": style.color,
        "author": author,
        "title": f"{review.album_title} by {review.artist_name}{year}",
        "url": review.review_url,
        "description": description[:MAX_DESCRIPTION],
        "footer": {"text": style.label},
    }
    if review.timestamp is not None:
        embed["timestamp"] = ensure_isoformat(review.timestamp)
    if review.image_url:
        embed["thumbnail"] = {"url": review.image_url}
    return embed


def build_message(review: ReviewRecord, source: Optional[str]) -> ChannelMessage:
    return ChannelMessage(embed=build_embed(review, source))


__all__ = [
    "SourceStyle",
    "DEFAULT_STYLE",
    "SOURCE_STYLES",
    "style_for",
    "format_stars",
    "review_body",
    "build_embed",
    "build_message",
]
