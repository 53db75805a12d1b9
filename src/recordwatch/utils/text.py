"""Text processing utilities for RecordWatch."""

import re
import unicodedata
from typing import Optional

_NON_ALNUM = re.compile(r"[^0-9a-z]+")
_YEAR = re.compile(r"\b(?:19|20)\d{2}\b")
_WHITESPACE = re.compile(r"\s+")

ELLIPSIS = "..."


def normalize(value: str | None) -> str:
    """Canonical form for fuzzy comparison.

    Case-folds, strips accents and drops everything that is not a letter or
    digit, so ``"Discos Latinoamérica!"`` and ``"discos latinoamerica"``
    compare equal.
    """
    if not value:
        return ""
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM.sub("", stripped.casefold())


def extract_year(value: str | None) -> Optional[str]:
    """Return the first plausible 4-digit year (1900-2099) in ``value``."""
    if not value:
        return None
    match = _YEAR.search(value)
    return match.group(0) if match else None


def collapse_whitespace(value: str | None) -> str:
    """Trim and collapse runs of whitespace."""
    if not value:
        return ""
    return _WHITESPACE.sub(" ", value).strip()


def truncate(value: str, max_len: int) -> tuple[str, bool]:
    """Cap ``value`` at ``max_len`` characters including the ellipsis.

    Returns the text and whether it was cut.
    """
    if len(value) <= max_len:
        return value, False
    return value[: max_len - len(ELLIPSIS)].rstrip() + ELLIPSIS, True


__all__ = [
    "ELLIPSIS",
    "normalize",
    "extract_year",
    "collapse_whitespace",
    "truncate",
]
