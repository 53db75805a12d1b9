#!/usr/bin/env python3
"""Manual check that a Record Club profile renders and parses through Camoufox."""

import logging
import sys

from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("check_render")


def main():
    from recordwatch.core.exceptions import SourceFetchError
    from recordwatch.infrastructure.rendering import StealthBrowser
    from recordwatch.output import format_stars
    from recordwatch.sources import RecordClubExtractor

    username = sys.argv[1] if len(sys.argv) > 1 else "recordclub"
    base_url = "https://record.club"

    browser = StealthBrowser(base_url, headless=True)
    extractor = RecordClubExtractor(base_url)

    logger.info("=" * 60)
    logger.info("Rendering reviews for %s", username)
    logger.info("URL: %s", browser.reviews_url(username))
    logger.info("=" * 60)

    try:
        page = browser.render_reviews(username)
    except SourceFetchError as e:
        logger.error("Render failed: %s", e)
        sys.exit(1)

    logger.info("Final URL: %s", page.effective_url)
    logger.info("HTML length: %d characters", len(page.html))

    reviews = extractor.extract(page)
    if not reviews:
        logger.warning("No review teasers found on the page")
        sys.exit(1)

    for review in reviews:
        year = f" ({review.release_year})" if review.release_year else ""
        print(f"{review.album_title} by {review.artist_name}{year}  {format_stars(review.rating)}")
        print(f"    {review.review_url}")

    latest = reviews[0]
    if latest.album_url:
        logger.info("Reading album page %s", latest.album_url)
        details = extractor.extract_album_details(browser.render(latest.album_url))
        logger.info("Album page year=%s image=%s", details.release_year, details.image_url)


if __name__ == "__main__":
    main()
