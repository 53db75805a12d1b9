"""Tests for album normalization and curated-list classification."""

import pytest

from recordwatch.core.models import CuratedAlbumEntry
from recordwatch.pipeline.classify import (
    TIER_ARTIST_SUBSTRING,
    TIER_EXACT,
    TIER_TITLE_ONLY,
    AlbumClassifier,
    AlbumIndex,
)
from recordwatch.utils.text import normalize


def entry(title, artist, source="1001"):
    return CuratedAlbumEntry(title=title, artist=artist, source=source)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("OK Computer", "okcomputer"),
        ("Ok  Computer!", "okcomputer"),
        ("Discos Latinoamérica", "discoslatinoamerica"),
        ("Charly García", "charlygarcia"),
        ("", ""),
        (None, ""),
    ],
)
def test_normalize(raw, expected):
    assert normalize(raw) == expected


def test_exact_match_is_case_insensitive():
    classifier = AlbumClassifier([entry("OK Computer", "Radiohead")])

    hit = classifier.match("Ok Computer", "Radiohead")

    assert hit.tier == TIER_EXACT
    assert classifier.classify("Ok Computer", "Radiohead") == "1001"


def test_artist_substring_match():
    classifier = AlbumClassifier([entry("OK Computer", "Radiohead feat. Thom Yorke")])

    hit = classifier.match("Ok Computer", "Thom Yorke")

    assert hit.tier == TIER_ARTIST_SUBSTRING
    assert hit.source == "1001"


def test_artist_substring_works_in_both_directions():
    classifier = AlbumClassifier([entry("Clics Modernos", "Charly García", "latam")])

    hit = classifier.match("Clics Modernos", "Charly Garcia y su banda")

    assert hit.tier == TIER_ARTIST_SUBSTRING
    assert hit.source == "latam"


def test_title_only_match_is_a_known_false_positive():
    classifier = AlbumClassifier([entry("OK Computer", "Radiohead")])

    hit = classifier.match("Ok Computer", "Someone Else")

    assert hit.tier == TIER_TITLE_ONLY
    assert classifier.classify("Ok Computer", "Someone Else") == "1001"


def test_empty_artist_skips_substring_tier():
    classifier = AlbumClassifier([entry("Kind of Blue", "Miles Davis")])

    assert classifier.match("Kind of Blue", "").tier == TIER_TITLE_ONLY


def test_exact_tier_wins_over_earlier_substring_candidate():
    classifier = AlbumClassifier(
        [
            entry("Greatest Hits", "Queen", "1001"),
            entry("Greatest Hits", "Queen II", "latam"),
        ]
    )

    hit = classifier.match("Greatest Hits", "Queen II")

    assert hit.tier == TIER_EXACT
    assert hit.source == "latam"


def test_unknown_album_is_unclassified():
    classifier = AlbumClassifier([entry("OK Computer", "Radiohead")])

    assert classifier.match("Kid A", "Radiohead") is None
    assert classifier.classify("Kid A", "Radiohead") is None


def test_empty_classifier():
    assert AlbumClassifier().classify("OK Computer", "Radiohead") is None


def test_index_skips_blank_titles():
    index = AlbumIndex.build([entry("", "Nobody"), entry("!!!", "Nobody"), entry("Blue", "Joni Mitchell")])

    assert index.size == 1
    assert list(index.by_title) == ["blue"]


def test_rebuild_swaps_whole_index():
    classifier = AlbumClassifier([entry("OK Computer", "Radiohead")])
    old_index = classifier.index

    new_index = classifier.rebuild([entry("Clics Modernos", "Charly García", "latam")])

    assert classifier.index is new_index
    assert classifier.classify("OK Computer", "Radiohead") is None
    assert classifier.classify("Clics Modernos", "Charly García") == "latam"
    # Readers holding the previous snapshot keep a complete index
    assert old_index.match("OK Computer", "Radiohead").source == "1001"
