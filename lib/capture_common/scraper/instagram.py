"""Instagram posts and reels via the apify/instagram-scraper actor."""

import logging
from typing import Any

from capture_common.constants import (
    INSTAGRAM_DESCRIPTION_LENGTH,
    INSTAGRAM_TIMEOUT,
    TITLE_PREVIEW_LENGTH,
)
from capture_common.exceptions import StrategyError
from capture_common.models import ExtractedContent, MediaAsset, SourceType, VideoAsset
from capture_common.scraper.apify import ApifyClient, ApifyError
from capture_common.scraper.base import ContentStrategy, preview_title, to_iso_datetime
from capture_common.urls import classify_source

logger = logging.getLogger(__name__)

INSTAGRAM_ACTOR = "apify/instagram-scraper"
DEFAULT_TITLE = "Instagram Post"


def parse_instagram_post(post: dict[str, Any]) -> ExtractedContent:
    """Adapt one instagram-scraper dataset item."""
    caption = post.get("caption") or ""

    images: list[MediaAsset] = []
    seen_images: set[str] = set()

    def add_image(url: str | None) -> None:
        if url and url not in seen_images:
            seen_images.add(url)
            images.append(MediaAsset(original_url=url))

    videos: list[VideoAsset] = []
    seen_videos: set[str] = set()

    def add_video(url: str | None, **attrs) -> None:
        if url and url not in seen_videos:
            seen_videos.add(url)
            videos.append(VideoAsset(original_url=url, **attrs))

    add_image(post.get("displayUrl"))
    add_video(
        post.get("videoUrl"),
        thumbnail=post.get("displayUrl"),
        duration=post.get("videoDuration"),
    )

    # Carousel children
    for child in post.get("childPosts") or []:
        if child.get("type") == "Image":
            add_image(child.get("displayUrl"))
        elif child.get("type") == "Video":
            add_video(child.get("videoUrl"), thumbnail=child.get("displayUrl"))

    for url in post.get("images") or []:
        add_image(url)

    first_line = caption.split("\n", 1)[0].strip()
    owner = post.get("ownerUsername")

    return ExtractedContent(
        title=preview_title(first_line, TITLE_PREVIEW_LENGTH) if first_line else DEFAULT_TITLE,
        description=caption[:INSTAGRAM_DESCRIPTION_LENGTH] or None,
        body_text=caption or None,
        author_name=post.get("ownerFullName") or None,
        author_handle=f"@{owner}" if owner else None,
        published_at=to_iso_datetime(post.get("timestamp")),
        images=images,
        videos=videos,
        platform_data={
            k: v
            for k, v in {
                "postId": post.get("id"),
                "shortCode": post.get("shortCode"),
                "type": post.get("type"),
                "likesCount": post.get("likesCount"),
                "commentsCount": post.get("commentsCount"),
            }.items()
            if v is not None
        },
    )


class InstagramApifyStrategy(ContentStrategy):
    """Instagram post/reel extraction through residential proxies."""

    name = "instagram"

    def __init__(self, client: ApifyClient, timeout: float = INSTAGRAM_TIMEOUT):
        self.client = client
        self.timeout = timeout

    def can_handle(self, url: str) -> bool:
        return classify_source(url) == SourceType.INSTAGRAM

    def attempt(self, url: str) -> ExtractedContent:
        run_input = {
            "directUrls": [url],
            "resultsType": "posts",
            "resultsLimit": 1,
            "addParentData": True,
            "proxy": {"useApifyProxy": True, "apifyProxyGroups": ["RESIDENTIAL"]},
        }
        try:
            items = self.client.run_actor(INSTAGRAM_ACTOR, run_input, timeout=self.timeout)
        except ApifyError as e:
            raise StrategyError(str(e)) from e
        if not items:
            raise StrategyError("No Instagram data returned")

        post = items[0]
        if post.get("error"):
            raise StrategyError(f"Actor error: {post.get('errorDescription') or post['error']}")
        return parse_instagram_post(post)
