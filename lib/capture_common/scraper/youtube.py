"""
YouTube videos via oEmbed plus the watch page's Open Graph tags.

Both lookups run concurrently and each degrades to missing data on failure.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any
from urllib.parse import parse_qs, quote, urlsplit

from capture_common.exceptions import StrategyError
from capture_common.models import ExtractedContent, MediaAsset, SourceType, VideoAsset
from capture_common.scraper.base import ContentStrategy
from capture_common.scraper.fetcher import FetchError, HttpFetcher
from capture_common.scraper.html import parse_html, read_meta
from capture_common.urls import classify_source

logger = logging.getLogger(__name__)

OEMBED_ENDPOINT = "https://www.youtube.com/oembed"
EMBED_BASE = "https://www.youtube.com/embed"

# Meta tags kept verbatim in platform_data
RAW_META_KEYS = (
    "og:title",
    "og:description",
    "og:image",
    "og:image:secure_url",
    "og:image:width",
    "og:image:height",
    "twitter:image",
    "description",
    "author",
)


def unescape_url(url: str) -> str:
    """Undo &amp; entities left over from copying a link out of HTML."""
    return url.replace("&amp;", "&")


def embed_url(url: str) -> str | None:
    """
    Build the embed URL for a watch, short link or Shorts URL.

    Returns:
        https://www.youtube.com/embed/{id}, or None if no video id is present
    """
    try:
        parsed = urlsplit(url)
    except ValueError:
        return None

    host = (parsed.hostname or "").lower()
    if host == "youtu.be" or host.endswith(".youtu.be"):
        video_id = parsed.path.strip("/").split("/", 1)[0]
        return f"{EMBED_BASE}/{video_id}" if video_id else None

    video_id = (parse_qs(parsed.query).get("v") or [None])[0]
    if video_id:
        return f"{EMBED_BASE}/{video_id}"

    if parsed.path.startswith("/shorts/"):
        parts = parsed.path.split("/")
        short_id = parts[2] if len(parts) > 2 else ""
        return f"{EMBED_BASE}/{short_id}" if short_id else None

    return None


def _positive_int(value: Any) -> int | None:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


class YouTubeStrategy(ContentStrategy):
    """oEmbed + Open Graph extraction for YouTube URLs."""

    name = "youtube"

    def __init__(self, fetcher: HttpFetcher):
        self.fetcher = fetcher

    def can_handle(self, url: str) -> bool:
        return classify_source(url) == SourceType.YOUTUBE

    def fetch_oembed(self, url: str) -> dict[str, Any] | None:
        endpoint = f"{OEMBED_ENDPOINT}?url={quote(url, safe='')}&format=json"
        try:
            data = self.fetcher.fetch_json(endpoint)
        except FetchError as e:
            logger.warning(f"YouTube oEmbed lookup failed: {e.message}")
            return None
        return data if isinstance(data, dict) else None

    def fetch_open_graph(self, url: str) -> dict[str, Any]:
        try:
            result = self.fetcher.fetch(url)
        except FetchError as e:
            logger.warning(f"YouTube page fetch failed: {e.message}")
            return {}

        soup = parse_html(result.text)
        meta = read_meta(soup)
        title_tag = soup.find("title")
        return {
            "title": meta.get("og:title")
            or (title_tag.get_text(strip=True) if title_tag else None)
            or None,
            "description": meta.get("og:description") or meta.get("description"),
            "image": meta.get("og:image")
            or meta.get("og:image:secure_url")
            or meta.get("twitter:image"),
            "image_width": _positive_int(meta.get("og:image:width")),
            "image_height": _positive_int(meta.get("og:image:height")),
            "author": meta.get("author") or meta.get("og:site_name"),
            "raw": {key: meta[key] for key in RAW_META_KEYS if key in meta},
        }

    def attempt(self, url: str) -> ExtractedContent:
        url = unescape_url(url)
        embed = embed_url(url)

        with ThreadPoolExecutor(max_workers=2) as executor:
            oembed_future = executor.submit(self.fetch_oembed, url)
            og_future = executor.submit(self.fetch_open_graph, url)
            oembed = oembed_future.result() or {}
            og = og_future.result()

        title = og.get("title") or oembed.get("title")
        if not title and not embed:
            raise StrategyError("No title or video id found")

        thumbnail = og.get("image") or oembed.get("thumbnail_url")
        images = []
        if thumbnail:
            images.append(
                MediaAsset(
                    original_url=thumbnail,
                    width=og.get("image_width") or _positive_int(oembed.get("thumbnail_width")),
                    height=og.get("image_height") or _positive_int(oembed.get("thumbnail_height")),
                )
            )
        videos = [VideoAsset(original_url=embed, thumbnail=thumbnail)] if embed else []

        platform_data: dict[str, Any] = {"embedUrl": embed}
        if oembed:
            platform_data["oembed"] = oembed
        if og.get("raw"):
            platform_data["ogMeta"] = og["raw"]

        return ExtractedContent(
            title=title,
            description=og.get("description"),
            author_name=og.get("author") or oembed.get("author_name"),
            images=images,
            videos=videos,
            platform_data={k: v for k, v in platform_data.items() if v is not None},
        )
