"""
Generic HTML strategy for LinkedIn, Pinterest and arbitrary web pages.

Also the last resort for every other source type.
"""

import logging

from capture_common.constants import DEFAULT_MAX_IMAGES
from capture_common.exceptions import StrategyError
from capture_common.models import ExtractedContent, VideoAsset
from capture_common.scraper import html
from capture_common.scraper.base import ContentStrategy
from capture_common.scraper.fetcher import FetchError, HttpFetcher
from capture_common.scraper.screenshot import ScreenshotService

logger = logging.getLogger(__name__)


class GenericHtmlStrategy(ContentStrategy):
    """
    Open Graph / Twitter Card / meta tag extraction from a fetched page.

    Args:
        fetcher: HttpFetcher for the page request
        max_images: Cap on collected images
        screenshots: Optional ScreenshotService; None disables screenshots
    """

    name = "generic"

    def __init__(
        self,
        fetcher: HttpFetcher,
        max_images: int = DEFAULT_MAX_IMAGES,
        screenshots: ScreenshotService | None = None,
    ):
        self.fetcher = fetcher
        self.max_images = max_images
        self.screenshots = screenshots

    def attempt(self, url: str) -> ExtractedContent:
        try:
            result = self.fetcher.fetch(url)
        except FetchError as e:
            raise StrategyError(e.message) from e

        soup = html.parse_html(result.text)
        meta = html.read_meta(soup)

        title = html.extract_title(soup, meta)
        description = html.extract_description(meta)
        author_name, author_handle = html.extract_author(meta)
        published_at = html.extract_published_at(soup, meta)
        canonical = soup.find("link", rel="canonical")

        # Chrome is stripped before images and body text are sampled
        html.sanitize_html(soup)
        body_text = html.extract_body_text(soup)
        images = html.collect_images(soup, meta, result.url or url, self.max_images)

        videos = []
        if meta.get("og:video"):
            videos.append(
                VideoAsset(
                    original_url=html.resolve_url(meta["og:video"], url),
                    thumbnail=images[0].original_url if images else None,
                )
            )

        if not any((title, description, body_text, images)):
            raise StrategyError("Page has no extractable content")

        screenshot = self.screenshots.capture(url) if self.screenshots else None

        platform_data = {
            "ogType": meta.get("og:type"),
            "canonicalUrl": canonical.get("href") if canonical else None,
            "siteName": meta.get("og:site_name"),
        }

        return ExtractedContent(
            title=title,
            description=description,
            body_text=body_text,
            author_name=author_name,
            author_handle=author_handle,
            published_at=published_at,
            images=images,
            videos=videos,
            screenshot=screenshot,
            platform_data={k: v for k, v in platform_data.items() if v},
        )
