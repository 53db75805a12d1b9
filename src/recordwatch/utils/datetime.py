"""Timestamp helpers for scraped reviews and stored check times."""

from datetime import datetime, timezone

# Display formats seen on review teasers when no machine-readable value exists
_DISPLAY_FORMATS = ("%Y-%m-%d", "%B %d, %Y", "%b %d, %Y", "%d %B %Y")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(dt: datetime) -> datetime:
    # Naive values from the site are UTC
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


def ensure_isoformat(dt: datetime | None) -> str | None:
    """Serialize as a UTC ISO 8601 string for storage and embeds."""
    if dt is None:
        return None
    return _as_utc(dt).astimezone(timezone.utc).isoformat()


def iso_to_datetime(value: str | None) -> datetime | None:
    """Parse a stored ISO 8601 value back into an aware datetime."""
    if not value:
        return None
    return _as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def parse_review_timestamp(value: str | None) -> datetime | None:
    """Parse a review's ``<time datetime>`` attribute or displayed date.

    Returns None for anything unrecognized so the caller can fall back to the
    fetch time.
    """
    if not value or not value.strip():
        return None
    text = value.strip()
    try:
        return _as_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass
    for fmt in _DISPLAY_FORMATS:
        try:
            return _as_utc(datetime.strptime(text, fmt))
        except ValueError:
            continue
    return None


__all__ = [
    "utc_now",
    "ensure_isoformat",
    "iso_to_datetime",
    "parse_review_timestamp",
]
