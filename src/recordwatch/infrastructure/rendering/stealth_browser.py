"""Camoufox-backed page renderer.

Record Club sits behind Cloudflare and renders reviews client-side, so pages
are loaded in a stealth Firefox build rather than fetched with plain HTTP.
"""

import logging
from typing import Optional

from camoufox.sync_api import Camoufox
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from recordwatch.config.settings import BrowserConfig
from recordwatch.core.exceptions import SourceFetchError
from recordwatch.core.protocols import RenderedPage

logger = logging.getLogger(__name__)

REVIEW_SELECTOR = "article.review-teaser"
CHALLENGE_MARKERS = ("Just a moment", "Verify you are human")


class StealthBrowser:
    """Renders Record Club pages in a fresh Camoufox session per call."""

    def __init__(
        self,
        base_url: str,
        headless: bool = True,
        navigation_timeout: float = 60.0,
        ready_timeout: float = 10.0,
        scroll_pixels: int = 500,
        settle_seconds: float = 1.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.headless = headless
        self.navigation_timeout_ms = int(navigation_timeout * 1000)
        self.ready_timeout_ms = int(ready_timeout * 1000)
        self.scroll_pixels = scroll_pixels
        self.settle_ms = int(settle_seconds * 1000)

    @classmethod
    def from_config(cls, base_url: str, config: BrowserConfig) -> "StealthBrowser":
        return cls(
            base_url=base_url,
            headless=config.headless,
            navigation_timeout=config.navigation_timeout_seconds,
            ready_timeout=config.ready_timeout_seconds,
            scroll_pixels=config.scroll_pixels,
            settle_seconds=config.settle_seconds,
        )

    def reviews_url(self, username: str) -> str:
        return f"{self.base_url}/{username}/reviews"

    def render_reviews(self, username: str) -> RenderedPage:
        """Render a user's review listing and nudge lazy-loaded teasers into view."""
        return self._render(self.reviews_url(username), ready_selector=REVIEW_SELECTOR, lazy_load=True)

    def render(self, url: str) -> RenderedPage:
        """Render an album or review page."""
        return self._render(url, wait_until="domcontentloaded")

    def _render(
        self,
        url: str,
        *,
        ready_selector: Optional[str] = None,
        lazy_load: bool = False,
        wait_until: str = "networkidle",
    ) -> RenderedPage:
        logger.debug("Rendering %s", url)
        try:
            with Camoufox(headless=self.headless) as browser:
                page = browser.new_page()
                page.set_viewport_size({"width": 1280, "height": 800})
                page.goto(url, wait_until=wait_until, timeout=self.navigation_timeout_ms)

                if ready_selector:
                    try:
                        page.wait_for_selector(ready_selector, timeout=self.ready_timeout_ms)
                    except PlaywrightTimeoutError:
                        # Users without reviews never show a teaser
                        logger.debug("No %s on %s within %dms", ready_selector, url, self.ready_timeout_ms)

                if lazy_load:
                    page.mouse.wheel(0, self.scroll_pixels)
                    page.wait_for_timeout(self.settle_ms)

                html = page.content()
                final_url = page.url
        except PlaywrightTimeoutError as e:
            raise SourceFetchError("recordclub", f"Timed out rendering {url}: {e}") from e
        except PlaywrightError as e:
            raise SourceFetchError("recordclub", f"Browser error rendering {url}: {e}") from e

        if any(marker in html for marker in CHALLENGE_MARKERS):
            raise SourceFetchError("recordclub", f"Stuck on Cloudflare challenge at {url}")

        return RenderedPage(url=url, html=html, final_url=final_url)


__all__ = ["StealthBrowser", "REVIEW_SELECTOR"]
