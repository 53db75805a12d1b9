"""Tests for the Record Club page extractor."""

from recordwatch.core.models import NO_RATING, UNKNOWN_ARTIST
from recordwatch.core.protocols import RenderedPage
from recordwatch.sources.recordclub import RecordClubExtractor

from conftest import BASE_URL

REVIEWS_HTML = """
<html><body>
<div class="user-profile-header"><img class="avatar" src="/media/avatars/alice.jpg"></div>

<article class="review-teaser">
  <div class="release-artwork"><img src="https://cdn.record.club/covers/abbey.jpg"></div>
  <h3 class="release-headings">
    <a class="title" href="/releases/abbey-road">Abbey Road</a>
    <a href="/artists/the-beatles">The Beatles</a>
  </h3>
  <span class="release-year">1969</span>
  <div class="rating"><span itemprop="ratingValue" content="4.5"></span></div>
  <div class="review-body"><p>Side two medley is perfect.</p></div>
  <a class="review-teaser-date" href="/alice/reviews/101"><time datetime="2024-05-02T10:00:00Z">May 2</time></a>
</article>

<article class="review-teaser">
  <div class="release-artwork" style="background-image: url('/covers/placeholder.png')">
    <div class="release-artwork-inner" style="background-image: url('/covers/kid-a.jpg')"></div>
  </div>
  <h3 class="release-headings"><a class="line-clamp-2" href="/releases/kid-a">Kid A</a> Radiohead</h3>
  <div class="rating"><span class="visuallyhidden">Rated 3 out of 5</span></div>
  <div class="review-teaser-body">Cold and beautiful <button>...more</button></div>
  <a class="review-teaser-date" href="/alice/reviews/100">April</a>
</article>

<article class="review-teaser">
  <h3 class="release-headings"><a class="title" href="/releases/draft">Draft</a></h3>
  <div class="review-body">No link, so no identity.</div>
</article>

<article class="review-teaser">
  <a class="title" href="/releases/untitled">Untitled</a>
  <a class="review-teaser-date" href="/alice/reviews/99">March</a>
</article>
</body></html>
"""


def extract(html, **kwargs):
    extractor = RecordClubExtractor(BASE_URL, **kwargs)
    return extractor.extract(RenderedPage(url=f"{BASE_URL}/alice/reviews", html=html))


def teaser(body_html):
    return f"""
    <article class="review-teaser">
      <a class="title" href="/releases/x">X</a>
      <div class="review-body">{body_html}</div>
      <a class="review-teaser-date" href="/alice/reviews/1">Jan</a>
    </article>
    """


def test_extracts_teasers_newest_first_and_skips_unlinked():
    reviews = extract(REVIEWS_HTML)

    assert [r.review_url for r in reviews] == [
        f"{BASE_URL}/alice/reviews/101",
        f"{BASE_URL}/alice/reviews/100",
        f"{BASE_URL}/alice/reviews/99",
    ]


def test_full_teaser_fields():
    review = extract(REVIEWS_HTML)[0]

    assert review.album_title == "Abbey Road"
    assert review.artist_name == "The Beatles"
    assert review.rating == "4.5"
    assert review.release_year == "1969"
    assert review.review_text == "Side two medley is perfect."
    assert review.is_truncated is False
    assert review.album_url == f"{BASE_URL}/releases/abbey-road"
    assert review.image_url == "https://cdn.record.club/covers/abbey.jpg"
    assert review.avatar_url == f"{BASE_URL}/media/avatars/alice.jpg"
    assert review.timestamp.isoformat() == "2024-05-02T10:00:00+00:00"


def test_fallback_selectors_and_relative_urls():
    review = extract(REVIEWS_HTML)[1]

    assert review.album_title == "Kid A"
    assert review.artist_name == "Radiohead"
    assert review.rating == "3"
    assert review.release_year is None
    assert review.image_url == f"{BASE_URL}/covers/kid-a.jpg"
    assert review.timestamp is not None


def test_more_control_marks_site_truncation():
    review = extract(REVIEWS_HTML)[1]

    assert review.review_text == "Cold and beautiful..."
    assert review.is_truncated is True


def test_missing_fields_use_sentinels():
    review = extract(REVIEWS_HTML)[2]

    assert review.album_title == "Untitled"
    assert review.artist_name == UNKNOWN_ARTIST
    assert review.rating == NO_RATING
    assert review.review_text == ""
    assert review.image_url is None


def test_long_text_is_capped():
    review = extract(teaser("a" * 50), max_review_chars=20)[0]

    assert review.review_text == "a" * 17 + "..."
    assert len(review.review_text) == 20
    assert review.is_truncated is True


def test_trailing_read_more_text_is_stripped():
    review = extract(teaser("Great record... read more"))[0]

    assert review.review_text == "Great record..."
    assert review.is_truncated is True


def test_text_ending_in_more_is_not_truncation():
    review = extract(teaser("I only wanted more"))[0]

    assert review.review_text == "I only wanted more"
    assert review.is_truncated is False


def test_page_without_reviews_is_empty():
    assert extract("<html><body><p>No reviews yet</p></body></html>") == []


def test_album_details_from_release_details():
    html = """
    <html><head><title>Abbey Road - Record Club</title></head><body>
    <div class="release-artwork"><img src="/covers/abbey-large.jpg"></div>
    <dl class="release-details"><dt>Released</dt><dd class="date">September 26, 1969</dd></dl>
    </body></html>
    """
    details = RecordClubExtractor(BASE_URL).extract_album_details(
        RenderedPage(url=f"{BASE_URL}/releases/abbey-road", html=html)
    )

    assert details.release_year == "1969"
    assert details.image_url == f"{BASE_URL}/covers/abbey-large.jpg"


def test_album_details_fall_back_to_title_and_drop_placeholder_art():
    html = """
    <html><head><title>Let It Be (1970) - Record Club</title></head><body>
    <div class="release-artwork"><img src="/img/default-cover.png"></div>
    </body></html>
    """
    details = RecordClubExtractor(BASE_URL).extract_album_details(
        RenderedPage(url=f"{BASE_URL}/releases/let-it-be", html=html)
    )

    assert details.release_year == "1970"
    assert details.image_url is None
